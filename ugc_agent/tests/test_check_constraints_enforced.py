from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from ugc_agent.database import SessionLocal
from ugc_agent.models.agent_session import AgentSession


def _session_row(session_id: str, progress: int) -> AgentSession:
    now = datetime.now(timezone.utc)
    return AgentSession(
        id=session_id,
        user_id="ck-user",
        state="idle",
        progress=progress,
        metadata_={},
        created_at=now,
        updated_at=now,
    )


@pytest.mark.parametrize("progress", [-1, 101])
def test_check_constraint_blocks_progress_outside_range(progress):
    db = SessionLocal()
    try:
        db.add(_session_row(f"ck-{progress}", progress))

        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    finally:
        db.close()


def test_progress_bounds_are_accepted():
    db = SessionLocal()
    try:
        db.add(_session_row("ck-zero", 0))
        db.add(_session_row("ck-full", 100))
        db.commit()

        assert db.query(AgentSession).count() == 2
    finally:
        db.close()
