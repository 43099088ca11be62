from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    Integer,
    Index,
    CheckConstraint,
)
from sqlalchemy.sql import func
from .db import Base


class Profile(Base):
    """Signed-in user as reported by the identity provider."""

    __tablename__ = "profile"
    id = Column(String, primary_key=True)   # provider user id (token "sub")
    email = Column(String, nullable=True)
    full_name = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)


class Player(Base):
    __tablename__ = "player"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_player_created_at", "created_at"),
    )


class Game(Base):
    __tablename__ = "game"
    id = Column(String, primary_key=True)
    team1_player1_id = Column(String, ForeignKey("player.id"), nullable=True)
    team1_player2_id = Column(String, ForeignKey("player.id"), nullable=True)
    team2_player1_id = Column(String, ForeignKey("player.id"), nullable=True)
    team2_player2_id = Column(String, ForeignKey("player.id"), nullable=True)
    team1_score = Column(Integer, nullable=False)
    team2_score = Column(Integer, nullable=False)
    winner = Column(String, nullable=False)  # "team1" | "team2"
    played_at = Column(DateTime, server_default=func.now(), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    created_by = Column(String, ForeignKey("profile.id"), nullable=True)

    __table_args__ = (
        CheckConstraint("winner IN ('team1', 'team2')", name="ck_game_winner"),
        CheckConstraint(
            "team1_score >= 0 AND team2_score >= 0", name="ck_game_scores_non_negative"
        ),
        Index("ix_game_created_at", "created_at"),
    )

    def slot_ids(self, team: str) -> tuple:
        if team == "team1":
            return (self.team1_player1_id, self.team1_player2_id)
        return (self.team2_player1_id, self.team2_player2_id)
