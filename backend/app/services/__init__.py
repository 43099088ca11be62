"""Internal application services (pure helpers, no I/O)."""

from .validation import (
    ValidationError,
    validate_team,
    validate_teams,
    validate_score,
    determine_winner,
)
from .stats import (
    PlayerRef,
    TeamResult,
    GameRecord,
    PlayerStat,
    identity_key,
    compute_player_stats,
    rank_player_stats,
    round_one_decimal,
)
from .share import format_game_result
# court builds schemas.GameCreate, and schemas imports .validation above
from .court import CourtState

__all__ = [
    "ValidationError",
    "validate_team",
    "validate_teams",
    "validate_score",
    "determine_winner",
    "PlayerRef",
    "TeamResult",
    "GameRecord",
    "PlayerStat",
    "identity_key",
    "compute_player_stats",
    "rank_player_stats",
    "round_one_decimal",
    "format_game_result",
    "CourtState",
]
