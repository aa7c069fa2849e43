"""Initial schema - problems, teams, submissions, event_settings.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "problems",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("difficulty", sa.String(10), nullable=False, server_default="medium"),
        sa.Column("test_cases", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_problems_difficulty", "problems", ["difficulty"])

    op.create_table(
        "teams",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("members", sa.JSON, nullable=False),
        sa.Column("problem_ids", sa.JSON, nullable=False),
        sa.Column("code_store", sa.JSON, nullable=False),
        sa.Column("last_languages", sa.JSON, nullable=False),
        sa.Column("current_round", sa.Integer, nullable=False, server_default="1"),
        sa.Column("round_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("event_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("event_expired", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_teams_name", "teams", ["name"], unique=True)

    op.create_table(
        "submissions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "team_id", UUID(as_uuid=True),
            sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("team_name", sa.String(100), nullable=False),
        sa.Column("handle", sa.String(100), nullable=False),
        sa.Column("problem_id", UUID(as_uuid=True), nullable=False),
        sa.Column("code", sa.Text, nullable=False),
        sa.Column("language", sa.String(20), nullable=False),
        sa.Column("passed", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("passed_test_cases", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_test_cases", sa.Integer, nullable=False, server_default="0"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_submissions_team_id", "submissions", ["team_id"])

    op.create_table(
        "event_settings",
        sa.Column("key", sa.String(20), primary_key=True),
        sa.Column("rotation_interval_seconds", sa.Integer, nullable=False, server_default="60"),
        sa.Column("event_duration_seconds", sa.Integer, nullable=False, server_default="300"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("event_settings")
    op.drop_index("ix_submissions_team_id", table_name="submissions")
    op.drop_table("submissions")
    op.drop_index("ix_teams_name", table_name="teams")
    op.drop_table("teams")
    op.drop_index("ix_problems_difficulty", table_name="problems")
    op.drop_table("problems")
