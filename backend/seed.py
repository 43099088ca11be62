import asyncio
import os
from datetime import datetime, timedelta
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from app.db import normalize_database_url
from app.models import Game, Player
from app.services import CourtState, PlayerRef, determine_winner

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required")
DATABASE_URL = normalize_database_url(DATABASE_URL)

engine = create_async_engine(DATABASE_URL, echo=False, pool_pre_ping=True)
Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

BASE_TIME = datetime(2024, 1, 6, 9, 0)

PLAYERS = [
    ("demo-alex", "Alex Ruiz", "alex@example.com"),
    ("demo-bella", "Bella Fernandez", None),
    ("demo-carlos", "Carlos Mendez", "carlos@example.com"),
    ("demo-diana", "Diana Soto", None),
    ("demo-eli", "Eli Vasquez", None),
]

# (game id, team 1 ids, team 2 ids, team 1 score, team 2 score)
GAMES = [
    ("demo-game-1", ["demo-alex", "demo-bella"], ["demo-carlos", "demo-diana"], 11, 7),
    ("demo-game-2", ["demo-alex", "demo-carlos"], ["demo-bella", "demo-diana"], 9, 11),
    ("demo-game-3", ["demo-eli"], ["demo-diana"], 11, 4),
    ("demo-game-4", ["demo-bella", "demo-eli"], ["demo-alex", "demo-carlos"], 13, 11),
]


def _slots(ids):
    return list(ids) + [None] * (2 - len(ids))


def _court_payload(refs, team1, team2, score1, score2):
    """Set the game up on a court and return its validated payload."""
    court = CourtState()
    for position, pid in zip(("team1Left", "team1Right"), team1):
        court.assign(position, refs[pid])
    for position, pid in zip(("team2Left", "team2Right"), team2):
        court.assign(position, refs[pid])
    court.set_score("team1", str(score1))
    court.set_score("team2", str(score2))
    return court.to_submission()


async def main():
    async with Session() as s:
        existing_players = {
            x.id for x in (await s.execute(select(Player))).scalars().all()
        }
        for idx, (pid, name, email) in enumerate(PLAYERS):
            if pid not in existing_players:
                s.add(
                    Player(
                        id=pid,
                        name=name,
                        email=email,
                        created_at=BASE_TIME + timedelta(seconds=idx),
                    )
                )
        await s.commit()

        existing_games = {
            x.id for x in (await s.execute(select(Game))).scalars().all()
        }
        refs = {pid: PlayerRef(name=name, id=pid, email=email) for pid, name, email in PLAYERS}
        for idx, (gid, team1, team2, score1, score2) in enumerate(GAMES):
            if gid in existing_games:
                continue
            payload = _court_payload(refs, team1, team2, score1, score2)
            t1p1, t1p2 = _slots(payload.team1PlayerIds)
            t2p1, t2p2 = _slots(payload.team2PlayerIds)
            played = BASE_TIME + timedelta(minutes=20 * idx)
            s.add(
                Game(
                    id=gid,
                    team1_player1_id=t1p1,
                    team1_player2_id=t1p2,
                    team2_player1_id=t2p1,
                    team2_player2_id=t2p2,
                    team1_score=payload.team1Score,
                    team2_score=payload.team2Score,
                    winner=determine_winner(payload.team1Score, payload.team2Score),
                    played_at=played,
                    created_at=played,
                )
            )
        await s.commit()

if __name__ == "__main__":
    asyncio.run(main())
