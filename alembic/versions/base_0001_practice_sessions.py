"""practice sessions, submissions, users and run scores

Revision ID: base_0001
Revises:
Create Date: 2026-10-18 09:12:44.018311

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "base_0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("name", name="uq_users_name"),
    )
    op.create_table(
        "problem_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("problem_text", sa.Text(), nullable=False),
        sa.Column("correct_answer", sa.Float(), nullable=False),
        sa.Column("operation", sa.String(length=20), nullable=False),
        sa.Column("difficulty", sa.String(length=20), nullable=False),
        sa.Column("hint", sa.Text(), nullable=False),
        sa.Column("time_limit_seconds", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
    )
    op.create_index("ix_problem_sessions_created_at", "problem_sessions", ["created_at"])
    op.create_table(
        "submissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "session_id",
            sa.String(length=36),
            sa.ForeignKey(
                "problem_sessions.id",
                ondelete="CASCADE",
                name="fk_submissions_session_id_problem_sessions",
            ),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL", name="fk_submissions_user_id_users"),
            nullable=True,
        ),
        sa.Column("user_answer", sa.Float(), nullable=True),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("feedback_text", sa.Text(), nullable=False),
        sa.Column("difficulty", sa.String(length=20), nullable=False),
        sa.Column("time_used_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("score_delta", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        # one submission per session
        sa.UniqueConstraint("session_id", name="uq_submissions_session_id"),
    )
    op.create_table(
        "run_scores",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("player_name", sa.String(length=100), nullable=False),
        sa.Column("total_score", sa.Float(), nullable=False),
        sa.Column("total_problems", sa.Integer(), nullable=False),
        sa.Column("correct_answers", sa.Integer(), nullable=False),
        sa.Column("accuracy_percentage", sa.Integer(), nullable=False),
        sa.Column("difficulties_played", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_run_scores_created_at", "run_scores", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_run_scores_created_at", table_name="run_scores")
    op.drop_table("run_scores")
    op.drop_table("submissions")
    op.drop_index("ix_problem_sessions_created_at", table_name="problem_sessions")
    op.drop_table("problem_sessions")
    op.drop_table("users")
