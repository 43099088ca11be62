from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "profile",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("avatar_url", sa.String(), nullable=True),
        sa.Column(
            "updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_table(
        "player",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index("ix_player_created_at", "player", ["created_at"])
    op.create_table(
        "game",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("team1_player1_id", sa.String(), sa.ForeignKey("player.id"), nullable=True),
        sa.Column("team1_player2_id", sa.String(), sa.ForeignKey("player.id"), nullable=True),
        sa.Column("team2_player1_id", sa.String(), sa.ForeignKey("player.id"), nullable=True),
        sa.Column("team2_player2_id", sa.String(), sa.ForeignKey("player.id"), nullable=True),
        sa.Column("team1_score", sa.Integer(), nullable=False),
        sa.Column("team2_score", sa.Integer(), nullable=False),
        sa.Column("winner", sa.String(), nullable=False),
        sa.Column(
            "played_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("created_by", sa.String(), sa.ForeignKey("profile.id"), nullable=True),
        sa.CheckConstraint("winner IN ('team1', 'team2')", name="ck_game_winner"),
        sa.CheckConstraint(
            "team1_score >= 0 AND team2_score >= 0",
            name="ck_game_scores_non_negative",
        ),
    )
    op.create_index("ix_game_created_at", "game", ["created_at"])


def downgrade():
    op.drop_index("ix_game_created_at", table_name="game")
    op.drop_table("game")
    op.drop_index("ix_player_created_at", table_name="player")
    op.drop_table("player")
    op.drop_table("profile")
