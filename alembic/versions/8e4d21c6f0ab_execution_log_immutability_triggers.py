"""agent_execution_logs immutability triggers

Revision ID: 8e4d21c6f0ab
Revises: 3c1f7a2b9d10
Create Date: 2026-10-02 15:03:11.774120

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8e4d21c6f0ab"
down_revision: Union[str, Sequence[str], None] = "3c1f7a2b9d10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _is_postgres() -> bool:
    return op.get_bind().dialect.name == "postgresql"


def upgrade() -> None:
    """Upgrade schema."""
    if not _is_postgres():
        return

    op.execute(
        """
        CREATE OR REPLACE FUNCTION agent_execution_logs_block_mutation()
        RETURNS trigger AS $$
        BEGIN
            RAISE EXCEPTION 'agent_execution_logs is append-only';
        END;
        $$ LANGUAGE plpgsql;

        DROP TRIGGER IF EXISTS trg_agent_execution_logs_block_update ON agent_execution_logs;
        CREATE TRIGGER trg_agent_execution_logs_block_update
        BEFORE UPDATE ON agent_execution_logs
        FOR EACH ROW
        EXECUTE FUNCTION agent_execution_logs_block_mutation();

        DROP TRIGGER IF EXISTS trg_agent_execution_logs_block_delete ON agent_execution_logs;
        CREATE TRIGGER trg_agent_execution_logs_block_delete
        BEFORE DELETE ON agent_execution_logs
        FOR EACH ROW
        EXECUTE FUNCTION agent_execution_logs_block_mutation();
        """
    )


def downgrade() -> None:
    """Downgrade schema."""
    if not _is_postgres():
        return

    op.execute(
        """
        DROP TRIGGER IF EXISTS trg_agent_execution_logs_block_update ON agent_execution_logs;
        DROP TRIGGER IF EXISTS trg_agent_execution_logs_block_delete ON agent_execution_logs;
        DROP FUNCTION IF EXISTS agent_execution_logs_block_mutation();
        """
    )
