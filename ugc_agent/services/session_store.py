import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Union

from sqlalchemy.orm import Session

from ugc_agent.database import SessionLocal
from ugc_agent.models.agent_execution_log import LogStatus
from ugc_agent.models.agent_session import AgentSession, SessionState
from ugc_agent.services import execution_log

logger = logging.getLogger(__name__)

# Columns update_session is allowed to touch. "metadata" maps to metadata_.
_UPDATABLE_FIELDS = {
    "state",
    "current_step",
    "progress",
    "title",
    "metadata",
    "completed_at",
}


class SessionNotFound(ValueError):
    pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _get_db() -> Session:
    return SessionLocal()


def _state_value(state: Union[SessionState, str]) -> str:
    return state.value if isinstance(state, SessionState) else str(state)


def _load(db: Session, session_id: str, user_id: Optional[str] = None) -> AgentSession:
    q = db.query(AgentSession).filter(AgentSession.id == session_id)
    if user_id is not None:
        q = q.filter(AgentSession.user_id == str(user_id))

    row = q.first()
    if row is None:
        raise SessionNotFound("Session not found")
    return row


def create_session(
    user_id: str,
    *,
    brand_context: Optional[str] = None,
    title: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    session_id: Optional[str] = None,
    state: Union[SessionState, str] = SessionState.IDLE,
) -> AgentSession:
    bag = dict(metadata or {})
    if brand_context is not None:
        bag["brandContext"] = brand_context

    db = _get_db()
    try:
        now = _utc_now()
        row = AgentSession(
            id=session_id or str(uuid.uuid4()),
            user_id=str(user_id),
            title=title,
            state=_state_value(state),
            current_step=None,
            progress=0,
            metadata_=bag,
            created_at=now,
            updated_at=now,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row
    finally:
        db.close()


def get_session(session_id: str, user_id: Optional[str] = None) -> AgentSession:
    db = _get_db()
    try:
        return _load(db, session_id, user_id)
    finally:
        db.close()


def update_session(session_id: str, **fields: Any) -> AgentSession:
    """
    Merge the given columns into the session row and refresh updated_at.

    No version check: concurrent writers race and the last commit wins.
    """
    unknown = set(fields) - _UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown session fields: {sorted(unknown)}")

    db = _get_db()
    try:
        row = _load(db, session_id)

        for name, value in fields.items():
            if name == "state":
                row.state = _state_value(value)
            elif name == "metadata":
                row.metadata_ = dict(value or {})
            else:
                setattr(row, name, value)

        row.updated_at = _utc_now()
        db.commit()
        db.refresh(row)
        return row
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def merge_metadata(
    session_id: str,
    patch: Dict[str, Any],
    *,
    remove: Iterable[str] = (),
    **fields: Any,
) -> AgentSession:
    """Overlay ``patch`` on the stored metadata bag, drop ``remove`` keys and write it back."""
    current = get_session(session_id)
    merged = dict(current.metadata_ or {})
    merged.update(patch)
    for key in remove:
        merged.pop(key, None)
    return update_session(session_id, metadata=merged, **fields)


def cancel_session(session_id: str, user_id: str) -> AgentSession:
    db = _get_db()
    try:
        row = _load(db, session_id, user_id)
        now = _utc_now()
        row.state = SessionState.CANCELLED.value
        row.completed_at = now
        row.updated_at = now
        db.commit()
        db.refresh(row)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    logger.info("Agent session cancelled", extra={"session_id": session_id, "user_id": user_id})

    execution_log.log_step(
        session_id,
        "cancelled",
        LogStatus.CANCELLED,
        output_data={"reason": "User cancelled session"},
    )
    return row
