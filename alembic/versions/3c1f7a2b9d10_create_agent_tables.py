"""create agent sessions, execution logs, memory and chat tables

Revision ID: 3c1f7a2b9d10
Revises:
Create Date: 2026-10-02 14:12:48.301955

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from pgvector.sqlalchemy import Vector
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3c1f7a2b9d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _json():
    return sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")


def upgrade() -> None:
    """Upgrade schema."""
    if op.get_bind().dialect.name == "postgresql":
        op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        "agent_sessions",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("state", sa.String(), nullable=False, server_default="idle"),
        sa.Column("current_step", sa.String(), nullable=True),
        sa.Column("progress", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("metadata", _json(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_agent_sessions_progress_range"),
    )
    op.create_index("ix_agent_sessions_id", "agent_sessions", ["id"], unique=False)
    op.create_index("ix_agent_sessions_user_id", "agent_sessions", ["user_id"], unique=False)
    op.create_index("ix_agent_sessions_state", "agent_sessions", ["state"], unique=False)

    op.create_table(
        "agent_execution_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("session_id", sa.String(), nullable=False),
        sa.Column("step_name", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("tool_name", sa.String(), nullable=True),
        sa.Column("input_data", _json(), nullable=True),
        sa.Column("output_data", _json(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["session_id"], ["agent_sessions.id"]),
    )
    op.create_index("ix_agent_execution_logs_session_id", "agent_execution_logs", ["session_id"], unique=False)
    op.create_index(
        "ix_agent_execution_logs_session_created",
        "agent_execution_logs",
        ["session_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "agent_memory",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("memory_type", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("embedding", Vector(1536), nullable=True),
        sa.Column("metadata", _json(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_agent_memory_id", "agent_memory", ["id"], unique=False)
    op.create_index("ix_agent_memory_user_id", "agent_memory", ["user_id"], unique=False)
    op.create_index("ix_agent_memory_user_type", "agent_memory", ["user_id", "memory_type"], unique=False)

    op.create_table(
        "agent_chat_messages",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("session_id", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("is_streaming", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("metadata", _json(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["session_id"], ["agent_sessions.id"]),
    )
    op.create_index("ix_agent_chat_messages_id", "agent_chat_messages", ["id"], unique=False)
    op.create_index("ix_agent_chat_messages_session_id", "agent_chat_messages", ["session_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_agent_chat_messages_session_id", table_name="agent_chat_messages")
    op.drop_index("ix_agent_chat_messages_id", table_name="agent_chat_messages")
    op.drop_table("agent_chat_messages")

    op.drop_index("ix_agent_memory_user_type", table_name="agent_memory")
    op.drop_index("ix_agent_memory_user_id", table_name="agent_memory")
    op.drop_index("ix_agent_memory_id", table_name="agent_memory")
    op.drop_table("agent_memory")

    op.drop_index("ix_agent_execution_logs_session_created", table_name="agent_execution_logs")
    op.drop_index("ix_agent_execution_logs_session_id", table_name="agent_execution_logs")
    op.drop_table("agent_execution_logs")

    op.drop_index("ix_agent_sessions_state", table_name="agent_sessions")
    op.drop_index("ix_agent_sessions_user_id", table_name="agent_sessions")
    op.drop_index("ix_agent_sessions_id", table_name="agent_sessions")
    op.drop_table("agent_sessions")
