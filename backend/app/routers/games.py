import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..cache import leaderboard_cache
from ..models import Game, Player, Profile
from ..schemas import (
    GameCreate,
    GameOut,
    GameListOut,
    GameShareOut,
    PlayerNameOut,
    TeamOut,
)
from ..services import (
    GameRecord,
    TeamResult,
    ValidationError,
    determine_winner,
    format_game_result,
    validate_teams,
)
from ..services.history import load_game_records, load_player_refs, to_game_record
from ..exceptions import ProblemDetail, GameNotFound, PlayerNotFound, http_problem
from .auth import get_current_user, limiter, write_rate_limit

logger = logging.getLogger(__name__)

# Resource-only prefix; versioning is added in main.py
router = APIRouter(
    prefix="/games",
    tags=["games"],
    responses={404: {"model": ProblemDetail}, 422: {"model": ProblemDetail}},
)


def _team_out(team: TeamResult) -> TeamOut:
    return TeamOut(
        players=[
            PlayerNameOut(id=p.id, name=p.name, email=p.email) for p in team.present()
        ],
        score=team.score,
    )


def _game_out(record: GameRecord) -> GameOut:
    return GameOut(
        id=record.id,
        team1=_team_out(record.team1),
        team2=_team_out(record.team2),
        winner=record.winner,
        playedAt=record.played_at,
        createdAt=record.created_at,
    )


def _pad(ids: list[str]) -> list[str | None]:
    return list(ids) + [None] * (2 - len(ids))


async def _get_record(session: AsyncSession, game_id: str) -> GameRecord:
    game = await session.get(Game, game_id)
    if not game:
        raise GameNotFound(game_id)
    return to_game_record(game, await load_player_refs(session))


@router.post("", response_model=GameOut)
@limiter.limit(write_rate_limit)
async def create_game(
    request: Request,
    body: GameCreate,
    session: AsyncSession = Depends(get_session),
    user: Profile = Depends(get_current_user),
):
    try:
        team1_ids, team2_ids = validate_teams(body.team1PlayerIds, body.team2PlayerIds)
    except ValidationError as exc:
        raise http_problem(
            status_code=422,
            detail=str(exc),
            code="game_invalid_teams",
        )
    try:
        winner = determine_winner(body.team1Score, body.team2Score)
    except ValidationError as exc:
        raise http_problem(
            status_code=422,
            detail=str(exc),
            code="game_tied_score",
        )

    wanted = team1_ids + team2_ids
    found = set(
        (
            await session.execute(select(Player.id).where(Player.id.in_(wanted)))
        ).scalars().all()
    )
    for pid in wanted:
        if pid not in found:
            raise PlayerNotFound(pid)

    t1p1, t1p2 = _pad(team1_ids)
    t2p1, t2p2 = _pad(team2_ids)
    now = datetime.now(timezone.utc)
    played_at = body.playedAt or now
    game = Game(
        id=uuid.uuid4().hex,
        team1_player1_id=t1p1,
        team1_player2_id=t1p2,
        team2_player1_id=t2p1,
        team2_player2_id=t2p2,
        team1_score=body.team1Score,
        team2_score=body.team2Score,
        winner=winner,
        played_at=played_at.replace(tzinfo=None),
        created_at=now.replace(tzinfo=None),
        created_by=user.id,
    )
    session.add(game)
    await session.commit()
    await session.refresh(game)
    # The next leaderboard read recomputes from the full history.
    await leaderboard_cache.clear()
    logger.info(
        "Recorded game %s: %s %d-%d (winner %s)",
        game.id,
        "/".join(wanted),
        game.team1_score,
        game.team2_score,
        winner,
    )
    return _game_out(to_game_record(game, await load_player_refs(session)))


@router.get("", response_model=GameListOut)
async def list_games(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    total = (await session.execute(select(func.count()).select_from(Game))).scalar()
    records = await load_game_records(session, limit=limit, offset=offset)
    return GameListOut(
        games=[_game_out(r) for r in records],
        total=total or 0,
        limit=limit,
        offset=offset,
    )


@router.get("/{game_id}", response_model=GameOut)
async def get_game(game_id: str, session: AsyncSession = Depends(get_session)):
    return _game_out(await _get_record(session, game_id))


@router.get("/{game_id}/share", response_model=GameShareOut)
async def share_game(game_id: str, session: AsyncSession = Depends(get_session)):
    record = await _get_record(session, game_id)
    return GameShareOut(gameId=game_id, text=format_game_result(record))
