import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..cache import leaderboard_cache
from ..models import Player, Profile
from ..schemas import PlayerCreate, PlayerOut, PlayerListOut, PlayerStatOut
from ..exceptions import ProblemDetail, PlayerNotFound
from .auth import get_current_user, limiter, write_rate_limit
from .leaderboards import ranked_stats, stat_to_out

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/players",
    tags=["players"],
    responses={400: {"model": ProblemDetail}, 404: {"model": ProblemDetail}},
)


def _player_out(p: Player) -> PlayerOut:
    return PlayerOut(id=p.id, name=p.name, email=p.email, created_at=p.created_at)


@router.post("", response_model=PlayerOut)
@limiter.limit(write_rate_limit)
async def create_player(
    request: Request,
    body: PlayerCreate,
    session: AsyncSession = Depends(get_session),
    user: Profile = Depends(get_current_user),
):
    pid = uuid.uuid4().hex
    p = Player(
        id=pid,
        name=body.name,
        email=body.email,
        created_at=datetime.now(timezone.utc).replace(tzinfo=None),
    )
    session.add(p)
    await session.commit()
    await session.refresh(p)
    await leaderboard_cache.clear()
    logger.info("Player %s created by %s", pid, user.id)
    return _player_out(p)


@router.get("", response_model=PlayerListOut)
async def list_players(
    q: str = "",
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    stmt = select(Player)
    count_stmt = select(func.count()).select_from(Player)
    q = q.strip()
    if q:
        pattern = f"%{q}%"
        match = or_(Player.name.ilike(pattern), Player.email.ilike(pattern))
        stmt = stmt.where(match)
        count_stmt = count_stmt.where(match)
    total = (await session.execute(count_stmt)).scalar()
    stmt = stmt.order_by(Player.created_at, Player.id).limit(limit).offset(offset)
    rows = (await session.execute(stmt)).scalars().all()
    return PlayerListOut(
        players=[_player_out(p) for p in rows],
        total=total or 0,
        limit=limit,
        offset=offset,
    )


@router.get("/{player_id}", response_model=PlayerOut)
async def get_player(player_id: str, session: AsyncSession = Depends(get_session)):
    p = await session.get(Player, player_id)
    if not p:
        raise PlayerNotFound(player_id)
    return _player_out(p)


@router.get("/{player_id}/stats", response_model=PlayerStatOut)
async def player_stats(player_id: str, session: AsyncSession = Depends(get_session)):
    p = await session.get(Player, player_id)
    if not p:
        raise PlayerNotFound(player_id)
    stats = await ranked_stats(session)
    for idx, stat in enumerate(stats, start=1):
        if stat.player.id == player_id:
            return stat_to_out(stat, rank=idx)
    return PlayerStatOut(playerId=p.id, playerName=p.name, playerEmail=p.email)
