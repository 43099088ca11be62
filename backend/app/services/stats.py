"""Win/loss aggregation for recorded pickleball games.

Statistics are never stored. They are rebuilt from the full game history
every time a leaderboard is requested, so everything here is a pure function
of its input.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Literal, Optional, Sequence

TEAM_1 = "team1"
TEAM_2 = "team2"
TEAMS: tuple[str, str] = (TEAM_1, TEAM_2)

Team = Literal["team1", "team2"]

_ONE_DECIMAL = Decimal("0.1")


@dataclass(frozen=True)
class PlayerRef:
    """A player as referenced from a game slot."""

    name: str
    id: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class TeamResult:
    players: tuple[Optional[PlayerRef], ...]
    score: int

    def present(self) -> list[PlayerRef]:
        """Return the occupied slots in slot order."""
        return [p for p in self.players if p is not None]


@dataclass(frozen=True)
class GameRecord:
    team1: TeamResult
    team2: TeamResult
    winner: Team
    id: Optional[str] = None
    played_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def team(self, side: str) -> TeamResult:
        if side == TEAM_1:
            return self.team1
        if side == TEAM_2:
            return self.team2
        raise ValueError(f"unknown team {side!r}")


@dataclass
class PlayerStat:
    player: PlayerRef
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    total_points: int = 0
    win_rate: float = 0.0
    avg_points: float = 0.0

    @property
    def key(self) -> str:
        return identity_key(self.player)


def identity_key(player: PlayerRef) -> str:
    """Bucket key for a player: the persisted id, falling back to the name.

    Unsaved players that share a name end up in the same bucket.
    """
    return player.id or player.name


def round_one_decimal(numerator: int, denominator: int, *, scale: int = 1) -> float:
    """Return ``numerator * scale / denominator`` rounded to one decimal.

    The division is done in decimal arithmetic and rounded half away from
    zero, so ``6.25`` becomes ``6.3`` and ``0.05`` becomes ``0.1``. A
    non-positive denominator yields ``0.0``.
    """
    if denominator <= 0:
        return 0.0
    value = Decimal(numerator) * scale / Decimal(denominator)
    return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def _rank_key(stat: PlayerStat) -> tuple:
    return (-stat.wins, -stat.win_rate, stat.player.name.casefold(), stat.key)


def rank_player_stats(stats: Iterable[PlayerStat]) -> list[PlayerStat]:
    """Order stats by wins, then win rate, then name, then identity key."""
    return sorted(stats, key=_rank_key)


def compute_player_stats(games: Sequence[GameRecord]) -> list[PlayerStat]:
    """Aggregate per-player results over ``games`` and rank them.

    Each occupied slot counts one game for that player, credits the team's
    score as points and records a win when the team is the game's winner,
    otherwise a loss. A team without players contributes nothing. The
    returned list is freshly allocated; ``games`` is never modified.
    """
    accumulators: dict[str, PlayerStat] = {}
    for game in games:
        for side in TEAMS:
            team = game.team(side)
            won = game.winner == side
            for player in team.present():
                key = identity_key(player)
                stat = accumulators.get(key)
                if stat is None:
                    stat = PlayerStat(player=player)
                    accumulators[key] = stat
                stat.games_played += 1
                stat.total_points += team.score
                if won:
                    stat.wins += 1
                else:
                    stat.losses += 1

    for stat in accumulators.values():
        stat.win_rate = round_one_decimal(stat.wins, stat.games_played, scale=100)
        stat.avg_points = round_one_decimal(stat.total_points, stat.games_played)

    return rank_player_stats(accumulators.values())
