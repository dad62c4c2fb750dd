import httpx
import pytest

from ugc_agent.models.agent_memory import EMBEDDING_DIMENSIONS, MemoryType
from ugc_agent.services import agent_steps, embedding_client, memory_service
from ugc_agent.services.agent_steps import RunContext, StepName


def _ctx(user_id="steps-user", brand_context="eco-friendly water bottles", metadata=None) -> RunContext:
    return RunContext(
        session_id="sess-steps",
        user_id=user_id,
        brand_context=brand_context,
        metadata=dict(metadata or {}),
    )


def test_analyze_brand_without_memory_falls_back_to_context():
    result = agent_steps.execute_step(StepName.ANALYZE_BRAND, _ctx())

    assert result.success
    assert result.data == {
        "brandInfo": "eco-friendly water bottles",
        "confidence": 0.6,
        "memoriesUsed": 0,
    }


def test_analyze_brand_uses_five_newest_brand_memories():
    for i in range(7):
        memory_service.write_memory("steps-user", MemoryType.BRAND, f"brand fact {i}")
    memory_service.write_memory("steps-user", MemoryType.TASK, "not a brand fact")
    memory_service.write_memory("other-user", MemoryType.BRAND, "someone else's brand")

    result = agent_steps.execute_step(StepName.ANALYZE_BRAND, _ctx())

    assert result.success
    assert result.data["confidence"] == 0.95
    assert result.data["memoriesUsed"] == 5
    assert result.data["brandInfo"].split("\n") == [f"brand fact {i}" for i in (6, 5, 4, 3, 2)]


def test_simulated_steps_return_fixed_shapes():
    ctx = _ctx()

    competitors = agent_steps.execute_step(StepName.RESEARCH_COMPETITORS, ctx).data["competitors"]
    trends = agent_steps.execute_step(StepName.ANALYZE_TRENDS, ctx).data["trends"]
    concepts = agent_steps.execute_step(StepName.GENERATE_CONCEPTS, ctx).data["concepts"]
    scripts = agent_steps.execute_step(StepName.GENERATE_SCRIPTS, ctx).data["scripts"]

    assert [c["name"] for c in competitors] == ["Competitor A", "Competitor B"]
    assert [t["platform"] for t in trends] == ["TikTok", "Instagram"]
    assert len(concepts) == 2
    assert [s["tone"] for s in scripts] == ["professional", "conversational"]
    assert len({s["id"] for s in scripts}) == 2
    assert all(s["duration"] == 30 for s in scripts)


def test_await_approval_prefers_scripts_from_current_run():
    ctx = _ctx(metadata={"scripts": [{"id": "old"}]})
    ctx.record(StepName.GENERATE_SCRIPTS, {"scripts": [{"id": "new"}]})

    data = agent_steps.execute_step(StepName.AWAIT_APPROVAL, ctx).data

    assert data == {"scripts": [{"id": "new"}], "approved": False, "approvedScripts": []}


def test_await_approval_reports_recorded_decision():
    ctx = _ctx(metadata={"scripts": [{"id": "s-1"}], "approvedScripts": ["s-1"]})

    data = agent_steps.execute_step(StepName.AWAIT_APPROVAL, ctx).data

    assert data["approved"] is True
    assert data["approvedScripts"] == ["s-1"]
    assert data["scripts"] == [{"id": "s-1"}]


def test_generate_videos_references_approved_scripts():
    data = agent_steps.execute_step(
        StepName.GENERATE_VIDEOS,
        _ctx(metadata={"approvedScripts": ["s-1", "s-2"]}),
    ).data

    assert len(data["videoUrls"]) == 2
    assert data["scriptIds"] == ["s-1", "s-2"]


def test_update_memory_tolerates_embedding_failure(monkeypatch):
    def failing_embedding(_text, **_kwargs):
        raise httpx.ConnectError("embedding host unreachable")

    monkeypatch.setattr(embedding_client, "embeddings_enabled", lambda: True)
    monkeypatch.setattr(embedding_client, "create_embedding", failing_embedding)

    ctx = _ctx()
    ctx.record(StepName.GENERATE_CONCEPTS, {"concepts": [{"title": "Problem-Solution Format"}]})
    ctx.record(StepName.GENERATE_VIDEOS, {"videoUrls": ["a", "b"]})

    result = agent_steps.execute_step(StepName.UPDATE_MEMORY, ctx)

    assert result.success
    assert result.data["memorySaved"] is True
    assert result.data["embedded"] is False
    assert result.data["insight"] == (
        "Generated 2 video ads with problem-solution formats for eco-friendly water bottles."
    )

    stored = memory_service.recent_memories("steps-user", MemoryType.PERFORMANCE)
    assert [m.id for m in stored] == [result.data["memoryId"]]


def test_update_memory_stores_embedding_when_available(monkeypatch):
    monkeypatch.setattr(embedding_client, "embeddings_enabled", lambda: True)
    monkeypatch.setattr(embedding_client, "create_embedding", lambda _text, **_kw: [0.1, 0.2, 0.3] + [0.0] * (EMBEDDING_DIMENSIONS - 3))

    result = agent_steps.execute_step(StepName.UPDATE_MEMORY, _ctx())

    assert result.data["embedded"] is True
    stored = memory_service.recent_memories("steps-user", MemoryType.PERFORMANCE)
    assert list(stored[0].embedding[:3]) == pytest.approx([0.1, 0.2, 0.3])


def test_unknown_step_succeeds_with_empty_data():
    result = agent_steps.execute_step("no_such_step", _ctx())

    assert result.success
    assert result.data == {}
    assert result.error is None


def test_handler_exception_becomes_failed_result():
    def broken(_ctx):
        raise RuntimeError("competitor API down")

    handlers = agent_steps.default_handlers()
    handlers[StepName.RESEARCH_COMPETITORS] = broken

    result = agent_steps.execute_step(StepName.RESEARCH_COMPETITORS, _ctx(), handlers=handlers)

    assert not result.success
    assert result.data is None
    assert result.error == "competitor API down"
