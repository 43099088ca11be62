from typing import List, Literal, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator, ConfigDict

from .services.validation import ValidationError, validate_score

MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 320


def _as_utc(value: datetime | None) -> datetime | None:
    """Return a UTC-normalized datetime, assuming naive values are already UTC."""

    if value is None:
        return None
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class PlayerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    email: Optional[str] = Field(default=None, max_length=MAX_EMAIL_LENGTH)

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if not isinstance(value, str):
            raise TypeError("name must be a string")
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("name must not be empty")
        return trimmed

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise TypeError("email must be a string")
        trimmed = value.strip()
        if not trimmed:
            return None
        if "@" not in trimmed or any(ch.isspace() for ch in trimmed):
            raise ValueError("email must be a valid address")
        return trimmed


class PlayerOut(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class PlayerListOut(BaseModel):
    players: List[PlayerOut]
    total: int
    limit: int
    offset: int


class PlayerNameOut(BaseModel):
    id: Optional[str] = None
    name: str
    email: Optional[str] = None


class GameCreate(BaseModel):
    team1PlayerIds: List[str]
    team2PlayerIds: List[str]
    team1Score: int
    team2Score: int
    playedAt: Optional[datetime] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("team1Score", "team2Score", mode="before")
    @classmethod
    def _validate_score(cls, value, info):
        team = "team1" if info.field_name == "team1Score" else "team2"
        try:
            return validate_score(value, team=team)
        except ValidationError as exc:
            raise ValueError(exc.detail) from exc

    @field_validator("playedAt")
    @classmethod
    def _require_timezone(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError("playedAt must include a timezone offset")
        return value.astimezone(timezone.utc)


class TeamOut(BaseModel):
    players: List[PlayerNameOut]
    score: int


class GameOut(BaseModel):
    id: str
    team1: TeamOut
    team2: TeamOut
    winner: Literal["team1", "team2"]
    playedAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None

    @field_validator("playedAt", "createdAt")
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class GameListOut(BaseModel):
    games: List[GameOut]
    total: int
    limit: int
    offset: int


class GameShareOut(BaseModel):
    gameId: str
    text: str


class PlayerStatOut(BaseModel):
    """Aggregated results for one player; ``rank`` is 1-based and positional."""

    rank: Optional[int] = None
    playerId: Optional[str] = None
    playerName: str
    playerEmail: Optional[str] = None
    gamesPlayed: int = 0
    wins: int = 0
    losses: int = 0
    totalPoints: int = 0
    winRate: float = 0.0
    avgPoints: float = 0.0


class LeaderboardOut(BaseModel):
    leaders: List[PlayerStatOut]
    total: int
    limit: int
    offset: int


class ProfileOut(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
