from typing import Any, List, Sequence

from .stats import TEAM_1, TEAM_2, Team

MAX_PLAYERS_PER_TEAM = 2
DEFAULT_MAX_SCORE = 1000


class ValidationError(Exception):
    """Raised when a submitted game is invalid."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


def _team_label(team: str) -> str:
    return "Team 1" if team == TEAM_1 else "Team 2"


def validate_team(player_ids: Sequence[Any], *, team: str) -> List[str]:
    """Validate the player ids on one side of a game.

    Rules:
    - At least one and at most two players
    - Ids must be non-empty strings
    - The same player cannot fill both slots
    """

    label = _team_label(team)
    if not isinstance(player_ids, Sequence) or isinstance(player_ids, (str, bytes)):
        raise ValidationError(f"{label} players must be a list of ids.")
    if len(player_ids) == 0:
        raise ValidationError(f"{label} needs at least one player.")
    if len(player_ids) > MAX_PLAYERS_PER_TEAM:
        raise ValidationError(
            f"{label} can have at most {MAX_PLAYERS_PER_TEAM} players."
        )

    normalized: List[str] = []
    for raw in player_ids:
        if not isinstance(raw, str) or not raw.strip():
            raise ValidationError(f"{label} player ids must be non-empty strings.")
        pid = raw.strip()
        if pid in normalized:
            raise ValidationError(f"{label} lists player '{pid}' more than once.")
        normalized.append(pid)
    return normalized


def validate_teams(
    team1: Sequence[Any], team2: Sequence[Any]
) -> tuple[List[str], List[str]]:
    first = validate_team(team1, team=TEAM_1)
    second = validate_team(team2, team=TEAM_2)
    overlap = sorted(set(first) & set(second))
    if overlap:
        raise ValidationError(
            f"Player '{overlap[0]}' cannot play on both teams."
        )
    return first, second


def validate_score(
    value: Any, *, team: str, max_value: int = DEFAULT_MAX_SCORE
) -> int:
    label = _team_label(team)
    # bool is a subclass of int
    if isinstance(value, bool):
        raise ValidationError(f"{label} score must be an integer (not a boolean).")
    if isinstance(value, str):
        value = value.strip()
    try:
        score = int(value)
    except (TypeError, ValueError, OverflowError):
        # OverflowError: int(float("inf")); JSON bodies may carry Infinity
        raise ValidationError(f"{label} score must be an integer.")
    if isinstance(value, float) and value != score:
        raise ValidationError(f"{label} score must be an integer.")

    if score < 0:
        raise ValidationError(f"{label} score must be >= 0.")
    if score > max_value:
        raise ValidationError(f"{label} score must be <= {max_value}.")
    return score


def determine_winner(team1_score: int, team2_score: int) -> Team:
    """Return the team with the strictly greater score.

    A pickleball game cannot end level, so tied scores are rejected.
    """
    if team1_score == team2_score:
        raise ValidationError("A game cannot end in a tie.")
    return TEAM_1 if team1_score > team2_score else TEAM_2
