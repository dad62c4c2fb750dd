import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ugc_agent.models.agent_execution_log import LogStatus
from ugc_agent.models.agent_session import AgentSession, SessionState
from ugc_agent.services import agent_steps, execution_log, session_store
from ugc_agent.services.agent_steps import RunContext, StepHandler, StepName

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkflowStep:
    name: StepName
    label: str
    progress: int


AGENT_WORKFLOW: List[WorkflowStep] = [
    WorkflowStep(StepName.ANALYZE_BRAND, "Analyzing brand memory", 10),
    WorkflowStep(StepName.RESEARCH_COMPETITORS, "Researching competitors", 25),
    WorkflowStep(StepName.ANALYZE_TRENDS, "Analyzing trends", 40),
    WorkflowStep(StepName.GENERATE_CONCEPTS, "Generating concepts", 55),
    WorkflowStep(StepName.GENERATE_SCRIPTS, "Generating scripts", 70),
    WorkflowStep(StepName.AWAIT_APPROVAL, "Awaiting script approval", 75),
    WorkflowStep(StepName.GENERATE_VIDEOS, "Generating videos", 90),
    WorkflowStep(StepName.UPDATE_MEMORY, "Updating memory", 100),
]


class StepFailed(RuntimeError):
    pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def start_workflow(user_id: str, brand_context: str, *, title: Optional[str] = None) -> AgentSession:
    if not brand_context or not brand_context.strip():
        raise ValueError("brand_context is required")

    session = session_store.create_session(
        user_id,
        brand_context=brand_context.strip(),
        title=title,
    )
    logger.info("Agent session created", extra={"session_id": session.id, "user_id": str(user_id)})
    return session


def orchestrate_workflow(
    session_id: str,
    user_id: str,
    brand_context: str,
    *,
    handlers: Optional[Dict[StepName, StepHandler]] = None,
) -> SessionState:
    """
    Walk AGENT_WORKFLOW from the first step.

    Returns the state the run left the session in: AWAITING_APPROVAL when it
    stopped at the approval gate, COMPLETED, or ERROR. Does not check for
    cancellation between steps.
    """
    session = session_store.get_session(session_id)
    ctx = RunContext(
        session_id=session_id,
        user_id=str(user_id),
        brand_context=brand_context or "",
        metadata=dict(session.metadata_ or {}),
    )

    logger.info("Starting orchestration", extra={"session_id": session_id})

    current: Optional[WorkflowStep] = None
    started = time.monotonic()

    try:
        for step in AGENT_WORKFLOW:
            current = step
            started = time.monotonic()

            execution_log.log_step(
                session_id,
                step.name.value,
                LogStatus.STARTED,
                input_data={"label": step.label},
            )
            session_store.update_session(
                session_id,
                state=step.name.value,
                current_step=step.label,
                progress=step.progress,
                completed_at=None,
            )

            result = agent_steps.execute_step(step.name, ctx, handlers=handlers)
            if not result.success:
                raise StepFailed(result.error or f"Step {step.name.value} failed")

            data = result.data or {}
            ctx.record(step.name, data)

            if step.name == StepName.AWAIT_APPROVAL and not data.get("approved"):
                session_store.merge_metadata(
                    session_id,
                    {"scripts": data.get("scripts") or []},
                    state=SessionState.AWAITING_APPROVAL,
                )
                logger.info("Orchestration paused for script approval", extra={"session_id": session_id})
                return SessionState.AWAITING_APPROVAL

            if step.name == StepName.AWAIT_APPROVAL:
                # One approval admits one pass through the gate.
                session_store.merge_metadata(session_id, {}, remove=("approvedScripts",))

            execution_log.log_step(
                session_id,
                step.name.value,
                LogStatus.COMPLETED,
                output_data=data,
                duration_ms=int((time.monotonic() - started) * 1000),
            )

        session_store.update_session(
            session_id,
            state=SessionState.COMPLETED,
            completed_at=_utc_now(),
        )
        logger.info("Orchestration completed", extra={"session_id": session_id})
        return SessionState.COMPLETED

    except Exception as exc:
        message = str(exc) or exc.__class__.__name__
        step_name = current.name.value if current is not None else "orchestrate"

        logger.error(
            "Orchestration error",
            extra={"session_id": session_id, "step_name": step_name, "error": message},
        )

        execution_log.log_step(
            session_id,
            step_name,
            LogStatus.FAILED,
            error_message=message,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

        try:
            session_store.merge_metadata(session_id, {"error": message}, state=SessionState.ERROR)
        except Exception:
            logger.exception("Could not mark session as failed", extra={"session_id": session_id})

        return SessionState.ERROR


def run_detached(session_id: str, user_id: str, brand_context: str) -> None:
    """Background-task entry point. Nothing is awaited or tracked by the caller."""
    try:
        orchestrate_workflow(session_id, user_id, brand_context)
    except Exception:
        logger.exception("Orchestration crashed", extra={"session_id": session_id})
