"""Turn stored players and games into the records the aggregator consumes."""

from __future__ import annotations

from typing import Mapping, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Game, Player
from .stats import GameRecord, PlayerRef, TeamResult, TEAM_1, TEAM_2


def to_player_ref(player: Player) -> PlayerRef:
    return PlayerRef(name=player.name, id=player.id, email=player.email)


def _team_result(
    game: Game, team: str, players_by_id: Mapping[str, PlayerRef]
) -> TeamResult:
    slots: list[Optional[PlayerRef]] = []
    for pid in game.slot_ids(team):
        # Ids the directory no longer knows about become empty slots.
        slots.append(players_by_id.get(pid) if pid else None)
    score = game.team1_score if team == TEAM_1 else game.team2_score
    return TeamResult(players=tuple(slots), score=score)


def to_game_record(game: Game, players_by_id: Mapping[str, PlayerRef]) -> GameRecord:
    return GameRecord(
        id=game.id,
        team1=_team_result(game, TEAM_1, players_by_id),
        team2=_team_result(game, TEAM_2, players_by_id),
        winner=game.winner,
        played_at=game.played_at,
        created_at=game.created_at,
    )


async def load_player_refs(session: AsyncSession) -> dict[str, PlayerRef]:
    rows = (
        await session.execute(select(Player).order_by(Player.created_at, Player.id))
    ).scalars().all()
    return {p.id: to_player_ref(p) for p in rows}


async def load_game_records(
    session: AsyncSession,
    *,
    limit: int | None = None,
    offset: int = 0,
    players_by_id: Mapping[str, PlayerRef] | None = None,
) -> list[GameRecord]:
    """Return stored games newest first, resolved against the directory."""

    if players_by_id is None:
        players_by_id = await load_player_refs(session)
    stmt = select(Game).order_by(Game.created_at.desc(), Game.id.desc())
    if offset:
        stmt = stmt.offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    games = (await session.execute(stmt)).scalars().all()
    return [to_game_record(g, players_by_id) for g in games]
