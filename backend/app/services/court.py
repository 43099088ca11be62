"""Court assignment state for the game being set up.

Tracks which player stands in each of the four court positions and the
scores typed in so far, and turns a complete court into a ``GameCreate``
payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .. import schemas
from .stats import PlayerRef, TEAM_1, TEAM_2
from .validation import ValidationError, validate_score, validate_teams

POSITIONS: tuple[str, ...] = ("team1Left", "team1Right", "team2Left", "team2Right")
TEAM_POSITIONS: Dict[str, tuple[str, str]] = {
    TEAM_1: ("team1Left", "team1Right"),
    TEAM_2: ("team2Left", "team2Right"),
}


def _check_position(position: str) -> None:
    if position not in POSITIONS:
        raise ValueError(f"unknown court position {position!r}")


@dataclass
class CourtState:
    positions: Dict[str, Optional[PlayerRef]] = field(
        default_factory=lambda: {p: None for p in POSITIONS}
    )
    scores: Dict[str, str] = field(default_factory=lambda: {TEAM_1: "", TEAM_2: ""})

    def assign(self, position: str, player: Optional[PlayerRef]) -> None:
        _check_position(position)
        self.positions[position] = player

    def move(self, from_position: str, to_position: str) -> None:
        """Move a player between positions, swapping with any occupant."""
        _check_position(from_position)
        _check_position(to_position)
        if from_position == to_position:
            return
        moving = self.positions[from_position]
        if moving is None:
            return
        self.positions[from_position] = self.positions[to_position]
        self.positions[to_position] = moving

    def set_score(self, team: str, value: str) -> None:
        if team not in self.scores:
            raise ValueError(f"unknown team {team!r}")
        self.scores[team] = value

    def team(self, team: str) -> List[PlayerRef]:
        if team not in TEAM_POSITIONS:
            raise ValueError(f"unknown team {team!r}")
        return [
            p for p in (self.positions[pos] for pos in TEAM_POSITIONS[team]) if p
        ]

    def reset_scores(self) -> None:
        self.scores = {TEAM_1: "", TEAM_2: ""}

    def clear(self) -> None:
        self.positions = {p: None for p in POSITIONS}
        self.reset_scores()

    def to_submission(self) -> schemas.GameCreate:
        """Build the payload for recording the game currently on court."""
        team1 = self.team(TEAM_1)
        team2 = self.team(TEAM_2)
        if not team1 or not team2:
            raise ValidationError("Add at least one player per team.")
        unsaved = [p.name for p in team1 + team2 if not p.id]
        if unsaved:
            raise ValidationError(f"Player '{unsaved[0]}' has not been saved yet.")

        team1_ids, team2_ids = validate_teams(
            [p.id for p in team1], [p.id for p in team2]
        )
        return schemas.GameCreate(
            team1PlayerIds=team1_ids,
            team2PlayerIds=team2_ids,
            team1Score=validate_score(self.scores[TEAM_1], team=TEAM_1),
            team2Score=validate_score(self.scores[TEAM_2], team=TEAM_2),
        )
