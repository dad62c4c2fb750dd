import pytest
from sqlalchemy.exc import DBAPIError

from ugc_agent import database
from ugc_agent.database import SessionLocal
from ugc_agent.models.agent_execution_log import AgentExecutionLog, LogStatus
from ugc_agent.services import execution_log, session_store

pytestmark = pytest.mark.skipif(
    database.engine.dialect.name != "postgresql",
    reason="append-only triggers are installed on postgres only",
)


def _logged_row_id() -> int:
    session = session_store.create_session("immut-user", brand_context="immut")
    row_id = execution_log.log_step(session.id, "analyze_brand", LogStatus.STARTED)
    assert row_id is not None
    return row_id


def test_execution_log_update_is_blocked():
    row_id = _logged_row_id()

    db = SessionLocal()
    try:
        row = db.get(AgentExecutionLog, row_id)
        row.status = "completed"
        with pytest.raises(DBAPIError):
            db.commit()
    finally:
        db.rollback()
        db.close()


def test_execution_log_delete_is_blocked():
    row_id = _logged_row_id()

    db = SessionLocal()
    try:
        row = db.get(AgentExecutionLog, row_id)
        db.delete(row)
        with pytest.raises(DBAPIError):
            db.commit()
    finally:
        db.rollback()
        db.close()
