import logging
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from ugc_agent.database import SessionLocal
from ugc_agent.models.agent_execution_log import AgentExecutionLog, LogStatus

logger = logging.getLogger(__name__)


def log_step(
    session_id: str,
    step_name: str,
    status: Union[LogStatus, str],
    *,
    tool_name: Optional[str] = None,
    input_data: Optional[Dict[str, Any]] = None,
    output_data: Optional[Any] = None,
    error_message: Optional[str] = None,
    duration_ms: Optional[int] = None,
) -> Optional[int]:
    """
    Append one audit row in its own transaction.

    Never raises: a failed write is reported through the logger and the
    caller's control flow continues. Returns the new row id, or None.
    """
    status_value = status.value if isinstance(status, LogStatus) else str(status)

    db: Session = SessionLocal()
    try:
        row = AgentExecutionLog(
            session_id=session_id,
            step_name=step_name,
            status=status_value,
            tool_name=tool_name,
            input_data=input_data,
            output_data=output_data,
            error_message=error_message,
            duration_ms=None if duration_ms is None else int(duration_ms),
        )
        db.add(row)
        db.commit()
        return row.id
    except Exception:
        db.rollback()
        logger.exception(
            "Execution log write failed",
            extra={"session_id": session_id, "step_name": step_name, "status": status_value},
        )
        return None
    finally:
        db.close()


def list_logs(
    session_id: str,
    *,
    after_id: Optional[int] = None,
    limit: int = 200,
    db: Optional[Session] = None,
) -> List[AgentExecutionLog]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        q = db.query(AgentExecutionLog).filter(AgentExecutionLog.session_id == session_id)
        if after_id is not None:
            q = q.filter(AgentExecutionLog.id > int(after_id))

        return q.order_by(AgentExecutionLog.id.asc()).limit(int(limit)).all()
    finally:
        if owns_db:
            db.close()
