import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from ugc_agent.core import config
from ugc_agent.models.agent_memory import MemoryType
from ugc_agent.services import embedding_client, memory_service

logger = logging.getLogger(__name__)


class StepName(str, Enum):
    ANALYZE_BRAND = "analyze_brand"
    RESEARCH_COMPETITORS = "research_competitors"
    ANALYZE_TRENDS = "analyze_trends"
    GENERATE_CONCEPTS = "generate_concepts"
    GENERATE_SCRIPTS = "generate_scripts"
    AWAIT_APPROVAL = "await_approval"
    GENERATE_VIDEOS = "generate_videos"
    UPDATE_MEMORY = "update_memory"


@dataclass
class RunContext:
    """Inputs of one orchestration run plus the outputs of the steps already done."""

    session_id: str
    user_id: str
    brand_context: str
    metadata: dict = field(default_factory=dict)
    outputs: Dict[StepName, dict] = field(default_factory=dict)

    def output(self, step: StepName) -> dict:
        return self.outputs.get(step) or {}

    def record(self, step: StepName, data: Optional[dict]) -> None:
        self.outputs[step] = dict(data or {})


@dataclass(frozen=True)
class StepResult:
    success: bool
    data: Optional[dict] = None
    error: Optional[str] = None


StepHandler = Callable[[RunContext], dict]


# Multipliers of AGENT_STEP_DELAY_SECONDS for the simulated vendor steps.
_SIMULATED_DELAY_FACTORS = {
    StepName.RESEARCH_COMPETITORS: 2.0,
    StepName.ANALYZE_TRENDS: 1.5,
    StepName.GENERATE_CONCEPTS: 2.0,
    StepName.GENERATE_SCRIPTS: 2.0,
    StepName.GENERATE_VIDEOS: 3.0,
}


def _simulate_latency(step: StepName) -> None:
    seconds = config.step_delay_seconds() * _SIMULATED_DELAY_FACTORS.get(step, 0.0)
    if seconds > 0:
        time.sleep(seconds)


def analyze_brand(ctx: RunContext) -> dict:
    memories = memory_service.recent_memories(ctx.user_id, MemoryType.BRAND, limit=5)

    if memories:
        return {
            "brandInfo": "\n".join(m.content for m in memories),
            "confidence": 0.95,
            "memoriesUsed": len(memories),
        }

    return {"brandInfo": ctx.brand_context, "confidence": 0.6, "memoriesUsed": 0}


def research_competitors(ctx: RunContext) -> dict:
    _simulate_latency(StepName.RESEARCH_COMPETITORS)
    return {
        "competitors": [
            {
                "name": "Competitor A",
                "strategy": "Problem-solution format",
                "hooks": ["Did you know...", "Stop wasting time..."],
            },
            {
                "name": "Competitor B",
                "strategy": "Testimonial-based",
                "hooks": ["See what our customers say...", "Real results..."],
            },
        ]
    }


def analyze_trends(ctx: RunContext) -> dict:
    _simulate_latency(StepName.ANALYZE_TRENDS)
    return {
        "trends": [
            {"platform": "TikTok", "trend": "Short-form storytelling", "engagement": "high"},
            {"platform": "Instagram", "trend": "Behind-the-scenes content", "engagement": "medium"},
        ]
    }


def generate_concepts(ctx: RunContext) -> dict:
    _simulate_latency(StepName.GENERATE_CONCEPTS)
    return {
        "concepts": [
            {
                "title": "Problem-Solution Format",
                "description": "Start with a relatable problem, then present your solution",
                "hook": "Tired of wasting hours on...",
                "cta": "Try it free today",
            },
            {
                "title": "Testimonial Story",
                "description": "Real customer success story",
                "hook": "Here's how [Customer] saved 10 hours per week",
                "cta": "Get started now",
            },
        ]
    }


def generate_scripts(ctx: RunContext) -> dict:
    _simulate_latency(StepName.GENERATE_SCRIPTS)
    return {
        "scripts": [
            {
                "id": str(uuid.uuid4()),
                "title": "Script 1: Problem-Solution",
                "content": (
                    "Hook: Are you tired of spending hours on manual tasks?\n\n"
                    "Body: Our AI-powered platform automates your workflow, saving you time "
                    "and reducing errors.\n\n"
                    "CTA: Start your free trial today and see the difference."
                ),
                "duration": 30,
                "tone": "professional",
            },
            {
                "id": str(uuid.uuid4()),
                "title": "Script 2: Customer Story",
                "content": (
                    "Hook: Meet Sarah, who transformed her business in just 30 days.\n\n"
                    "Body: Using our platform, Sarah automated her processes and increased "
                    "productivity by 300%.\n\n"
                    "CTA: Join thousands of successful users. Try it free."
                ),
                "duration": 30,
                "tone": "conversational",
            },
        ]
    }


def await_approval(ctx: RunContext) -> dict:
    scripts = ctx.output(StepName.GENERATE_SCRIPTS).get("scripts")
    if scripts is None:
        scripts = ctx.metadata.get("scripts") or []

    approved = ctx.metadata.get("approvedScripts")
    return {
        "scripts": scripts,
        "approved": bool(approved),
        "approvedScripts": list(approved or []),
    }


def generate_videos(ctx: RunContext) -> dict:
    # Sora/KIE seam; simulated until a provider is wired in.
    _simulate_latency(StepName.GENERATE_VIDEOS)
    return {
        "videoUrls": ["https://example.com/video1.mp4", "https://example.com/video2.mp4"],
        "scriptIds": list(ctx.metadata.get("approvedScripts") or []),
    }


def _summarize_run(ctx: RunContext) -> str:
    videos = ctx.output(StepName.GENERATE_VIDEOS).get("videoUrls") or []
    concepts = ctx.output(StepName.GENERATE_CONCEPTS).get("concepts") or []
    formats = " and ".join(c.get("title", "").split(" Format")[0].lower() for c in concepts if c.get("title"))

    insight = f"Generated {len(videos)} video ads"
    if formats:
        insight += f" with {formats} formats"
    if ctx.brand_context:
        insight += f" for {ctx.brand_context.strip()}"
    return insight.replace("\n", " ") + "."


def update_memory(ctx: RunContext) -> dict:
    insight = _summarize_run(ctx)
    embedding = embedding_client.try_create_embedding(insight)

    row = memory_service.write_memory(
        ctx.user_id,
        MemoryType.PERFORMANCE,
        insight,
        metadata={"session_id": ctx.session_id, "type": "video_generation"},
        embedding=embedding,
    )
    return {"memorySaved": True, "memoryId": row.id, "insight": insight, "embedded": embedding is not None}


def default_handlers() -> Dict[StepName, StepHandler]:
    return {
        StepName.ANALYZE_BRAND: analyze_brand,
        StepName.RESEARCH_COMPETITORS: research_competitors,
        StepName.ANALYZE_TRENDS: analyze_trends,
        StepName.GENERATE_CONCEPTS: generate_concepts,
        StepName.GENERATE_SCRIPTS: generate_scripts,
        StepName.AWAIT_APPROVAL: await_approval,
        StepName.GENERATE_VIDEOS: generate_videos,
        StepName.UPDATE_MEMORY: update_memory,
    }


def execute_step(
    step_name: Union[StepName, str],
    ctx: RunContext,
    *,
    handlers: Optional[Dict[StepName, StepHandler]] = None,
) -> StepResult:
    """Run one step's handler. Exceptions become a failed StepResult, never propagate."""
    if handlers is None:
        handlers = default_handlers()

    started = time.monotonic()
    name = step_name.value if isinstance(step_name, StepName) else str(step_name)

    try:
        try:
            handler = handlers.get(StepName(name))
        except ValueError:
            handler = None

        if handler is None:
            return StepResult(success=True, data={})

        data: Any = handler(ctx)
        return StepResult(success=True, data=dict(data or {}))

    except Exception as exc:
        logger.exception("Step failed", extra={"session_id": ctx.session_id, "step_name": name})
        return StepResult(success=False, error=str(exc) or exc.__class__.__name__)

    finally:
        logger.info(
            "Step finished",
            extra={
                "session_id": ctx.session_id,
                "step_name": name,
                "duration_ms": int((time.monotonic() - started) * 1000),
            },
        )
