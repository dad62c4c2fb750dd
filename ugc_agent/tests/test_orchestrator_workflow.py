from typing import List

from ugc_agent.database import SessionLocal
from ugc_agent.models.agent_execution_log import AgentExecutionLog
from ugc_agent.models.agent_memory import AgentMemory
from ugc_agent.models.agent_session import SessionState
from ugc_agent.services import agent_steps, orchestrator, session_store
from ugc_agent.services.agent_steps import StepName

STEP_ORDER = [step.name.value for step in orchestrator.AGENT_WORKFLOW]


def _db():
    return SessionLocal()


def _logs(session_id: str) -> List[AgentExecutionLog]:
    db = _db()
    try:
        return (
            db.query(AgentExecutionLog)
            .filter(AgentExecutionLog.session_id == session_id)
            .order_by(AgentExecutionLog.id.asc())
            .all()
        )
    finally:
        db.close()


def _start(brand_context: str = "eco-friendly water bottles", user_id: str = "user-1"):
    return orchestrator.start_workflow(user_id, brand_context)


def _record_progress(monkeypatch) -> List[int]:
    seen: List[int] = []
    original = session_store.update_session

    def recording_update(session_id, **fields):
        if "progress" in fields:
            seen.append(fields["progress"])
        return original(session_id, **fields)

    monkeypatch.setattr(session_store, "update_session", recording_update)
    return seen


def test_workflow_definition_is_fixed_and_ordered():
    assert STEP_ORDER == [
        "analyze_brand",
        "research_competitors",
        "analyze_trends",
        "generate_concepts",
        "generate_scripts",
        "await_approval",
        "generate_videos",
        "update_memory",
    ]
    assert [s.progress for s in orchestrator.AGENT_WORKFLOW] == [10, 25, 40, 55, 70, 75, 90, 100]


def test_run_pauses_at_approval_gate_with_candidate_scripts(monkeypatch):
    progress = _record_progress(monkeypatch)
    session = _start()

    outcome = orchestrator.orchestrate_workflow(session.id, "user-1", "eco-friendly water bottles")

    assert outcome == SessionState.AWAITING_APPROVAL
    assert progress == [10, 25, 40, 55, 70, 75]
    assert progress == sorted(progress)

    fresh = session_store.get_session(session.id)
    assert fresh.state == "awaiting_approval"
    assert fresh.progress == 75
    assert fresh.current_step == "Awaiting script approval"
    assert fresh.metadata_["brandContext"] == "eco-friendly water bottles"

    scripts = fresh.metadata_["scripts"]
    assert len(scripts) == 2
    assert all(s["id"] and s["content"] for s in scripts)

    completed = [log.step_name for log in _logs(session.id) if log.status == "completed"]
    assert completed == STEP_ORDER[:5]

    started = [log.step_name for log in _logs(session.id) if log.status == "started"]
    assert started == STEP_ORDER[:6]


def test_step_exception_marks_session_error_and_stops(monkeypatch):
    session = _start()

    def exploding(_ctx):
        raise RuntimeError("trend provider unavailable")

    handlers = agent_steps.default_handlers()
    handlers[StepName.ANALYZE_TRENDS] = exploding

    outcome = orchestrator.orchestrate_workflow(session.id, "user-1", "eco", handlers=handlers)
    assert outcome == SessionState.ERROR

    logs = _logs(session.id)
    failed = [log for log in logs if log.status == "failed"]
    assert len(failed) == 1
    assert failed[0].step_name == "analyze_trends"
    assert failed[0].error_message == "trend provider unavailable"
    assert failed[0].duration_ms is not None

    assert not [log for log in logs if log.step_name in STEP_ORDER[3:]]

    fresh = session_store.get_session(session.id)
    assert fresh.state == "error"
    assert fresh.metadata_["error"] == "trend provider unavailable"
    assert fresh.progress == 40


def test_approved_run_passes_gate_and_completes():
    session = _start()
    session_store.merge_metadata(session.id, {"approvedScripts": ["script-id-1"]})

    outcome = orchestrator.orchestrate_workflow(session.id, "user-1", "eco-friendly water bottles")
    assert outcome == SessionState.COMPLETED

    fresh = session_store.get_session(session.id)
    assert fresh.state == "completed"
    assert fresh.progress == 100
    assert fresh.completed_at is not None
    assert "approvedScripts" not in fresh.metadata_

    completed = [log.step_name for log in _logs(session.id) if log.status == "completed"]
    assert completed == STEP_ORDER

    db = _db()
    try:
        memories = db.query(AgentMemory).filter(AgentMemory.user_id == "user-1").all()
        assert len(memories) == 1
        assert memories[0].memory_type == "performance"
        assert memories[0].metadata_ == {"session_id": session.id, "type": "video_generation"}
        assert memories[0].embedding is None
    finally:
        db.close()


def test_loop_does_not_observe_cancellation(monkeypatch):
    session = _start()

    handlers = agent_steps.default_handlers()
    real_concepts = handlers[StepName.GENERATE_CONCEPTS]

    def cancel_mid_run(ctx):
        session_store.cancel_session(ctx.session_id, ctx.user_id)
        return real_concepts(ctx)

    handlers[StepName.GENERATE_CONCEPTS] = cancel_mid_run

    outcome = orchestrator.orchestrate_workflow(session.id, "user-1", "eco", handlers=handlers)

    # The in-flight run overwrites the cancelled state on its next update.
    assert outcome == SessionState.AWAITING_APPROVAL
    fresh = session_store.get_session(session.id)
    assert fresh.state == "awaiting_approval"
    assert fresh.completed_at is None
    assert [log.step_name for log in _logs(session.id) if log.status == "cancelled"] == ["cancelled"]


def test_run_detached_swallows_missing_session():
    orchestrator.run_detached("does-not-exist", "user-1", "eco")


def test_start_workflow_requires_brand_context():
    try:
        orchestrator.start_workflow("user-1", "   ")
    except ValueError as exc:
        assert "brand_context" in str(exc)
    else:
        raise AssertionError("expected ValueError")


def test_second_run_after_approval_stops_at_gate_again():
    session = _start()
    session_store.merge_metadata(session.id, {"approvedScripts": ["script-id-1"]})

    assert orchestrator.orchestrate_workflow(session.id, "user-1", "eco") == SessionState.COMPLETED
    assert orchestrator.orchestrate_workflow(session.id, "user-1", "eco") == SessionState.AWAITING_APPROVAL

    fresh = session_store.get_session(session.id)
    assert fresh.state == "awaiting_approval"
    assert fresh.completed_at is None

    videos = [log.status for log in _logs(session.id) if log.step_name == "generate_videos"]
    assert videos == ["started", "completed"]
