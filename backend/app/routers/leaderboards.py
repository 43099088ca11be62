import logging

from fastapi import APIRouter, Query, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..cache import leaderboard_cache, LEADERBOARD_KEY
from ..schemas import PlayerStatOut, LeaderboardOut
from ..services import compute_player_stats, PlayerStat
from ..services.history import load_game_records

logger = logging.getLogger(__name__)

# Resource-only prefix; no /api or /api/v0 here
router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


def stat_to_out(stat: PlayerStat, *, rank: int | None = None) -> PlayerStatOut:
    return PlayerStatOut(
        rank=rank,
        playerId=stat.player.id,
        playerName=stat.player.name,
        playerEmail=stat.player.email,
        gamesPlayed=stat.games_played,
        wins=stat.wins,
        losses=stat.losses,
        totalPoints=stat.total_points,
        winRate=stat.win_rate,
        avgPoints=stat.avg_points,
    )


async def ranked_stats(session: AsyncSession) -> list[PlayerStat]:
    """Return ranked stats for the full history, rebuilding when not cached."""

    cached = await leaderboard_cache.get(LEADERBOARD_KEY)
    if cached is not None:
        return cached
    generation = leaderboard_cache.generation
    games = await load_game_records(session)
    stats = compute_player_stats(games)
    logger.debug("Computed leaderboard for %d players over %d games", len(stats), len(games))
    await leaderboard_cache.set(LEADERBOARD_KEY, stats, generation=generation)
    return stats


# GET /api/v0/leaderboard?limit=50&offset=0
@router.get("", response_model=LeaderboardOut)
async def leaderboard(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    stats = await ranked_stats(session)
    page = stats[offset : offset + limit]
    leaders = [
        stat_to_out(stat, rank=offset + idx)
        for idx, stat in enumerate(page, start=1)
    ]
    return LeaderboardOut(leaders=leaders, total=len(stats), limit=limit, offset=offset)
