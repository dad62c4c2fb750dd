import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Iterator, List, Optional

from ugc_agent.core import config
from ugc_agent.database import SessionLocal
from ugc_agent.models.agent_chat_message import AgentChatMessage
from ugc_agent.models.agent_execution_log import LogStatus
from ugc_agent.models.agent_session import AgentSession, SessionState
from ugc_agent.services import execution_log, llm_gateway, session_store

logger = logging.getLogger(__name__)

STEP_LABEL = "Agent Response"
DONE_FRAME = "data: [DONE]\n\n"

SYSTEM_PROMPT = """You are an ad research assistant for a UGC video-ad studio.
You help marketers understand competitor ads and draft short-form UGC scripts.

- Lead with the most important finding.
- Be concise and specific; prefer bullet points for lists of hooks or angles.
- When drafting scripts, label Hook, Body and CTA.
- If the request lacks a brand or product, state the assumption you made."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def sse_frame(event_type: str, data: Any, node: str = "agent") -> str:
    event = {
        "mode": "messages" if event_type == "token" else "updates",
        "type": event_type,
        "node": node,
        "data": data,
        "timestamp": _utc_now().isoformat(),
    }
    return f"data: {json.dumps(event, default=str)}\n\n"


def build_messages(prompt: str, brand_name: Optional[str] = None, attached_urls: Optional[List[str]] = None) -> List[dict]:
    content = prompt
    if attached_urls:
        content += f"\n\nAdditional URLs to analyze: {', '.join(attached_urls)}"
    if brand_name:
        content += f"\n\nBrand/Company: {brand_name}"

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": content},
    ]


def prepare_session(user_id: str, session_id: Optional[str], brand_name: Optional[str]) -> AgentSession:
    """Create the streaming session, or take over an existing one owned by the caller."""
    title = f"Ad Audit: {brand_name}" if brand_name else "Agent Task"
    metadata = {"model": config.agent_model(), "startedAt": _utc_now().isoformat()}

    if session_id:
        db = SessionLocal()
        try:
            existing = db.query(AgentSession).filter(AgentSession.id == session_id).first()
        finally:
            db.close()

        if existing is not None:
            if existing.user_id != str(user_id):
                raise session_store.SessionNotFound("Session not found")
            return session_store.merge_metadata(
                session_id,
                metadata,
                state=SessionState.RUNNING,
                current_step="initializing",
                progress=0,
                title=title,
            )

    return session_store.create_session(
        user_id,
        session_id=session_id or str(uuid.uuid4()),
        title=title,
        metadata=metadata,
        state=SessionState.RUNNING,
    )


def _add_message(session_id: str, role: str, content: str, *, is_streaming: bool = False, metadata: Optional[dict] = None) -> str:
    db = SessionLocal()
    try:
        now = _utc_now()
        row = AgentChatMessage(
            id=str(uuid.uuid4()),
            session_id=session_id,
            role=role,
            content=content,
            is_streaming=is_streaming,
            metadata_=dict(metadata or {}),
            created_at=now,
            updated_at=now,
        )
        db.add(row)
        db.commit()
        return row.id
    finally:
        db.close()


def _finish_message(message_id: str, content: str) -> None:
    db = SessionLocal()
    try:
        row = db.query(AgentChatMessage).filter(AgentChatMessage.id == message_id).first()
        if row is None:
            return
        row.content = content
        row.is_streaming = False
        row.updated_at = _utc_now()
        db.commit()
    finally:
        db.close()


def _record_failure(session_id: str, assistant_id: Optional[str], partial: str, message: str, started: float) -> None:
    execution_log.log_step(
        session_id,
        STEP_LABEL,
        LogStatus.FAILED,
        tool_name="llm",
        error_message=message,
        duration_ms=int((time.monotonic() - started) * 1000),
    )
    try:
        if assistant_id is not None:
            _finish_message(assistant_id, partial)
        session_store.merge_metadata(session_id, {"error": message}, state=SessionState.ERROR)
    except Exception:
        logger.exception("Could not mark streaming session as failed", extra={"session_id": session_id})


def stream_agent_events(
    session_id: str,
    prompt: str,
    *,
    brand_name: Optional[str] = None,
    attached_urls: Optional[List[str]] = None,
) -> Iterator[str]:
    """
    Run one streaming LLM call and yield SSE frames for it.

    Ends with a ``[DONE]`` frame unless the client disconnects; failures
    become an ``error`` event.
    """
    started = time.monotonic()
    model = config.agent_model()
    assistant_id: Optional[str] = None
    full_content = ""
    finished = False

    try:
        yield sse_frame("session_start", {"sessionId": session_id, "model": model})

        _add_message(
            session_id,
            "user",
            prompt,
            metadata={"brandName": brand_name, "attachedUrls": list(attached_urls or [])},
        )
        assistant_id = _add_message(session_id, "assistant", "", is_streaming=True)

        yield sse_frame("step_start", {"step": "Initializing Agent", "message": "Starting analysis..."})

        execution_log.log_step(
            session_id,
            STEP_LABEL,
            LogStatus.STARTED,
            tool_name="llm",
            input_data={"prompt": prompt, "brandName": brand_name},
        )
        session_store.update_session(session_id, current_step="generating", progress=10)

        yield sse_frame(
            "step_start",
            {"step": STEP_LABEL, "progress": 10, "message": "Thinking..."},
            node="model",
        )

        token_count = 0
        for token in llm_gateway.stream_chat(build_messages(prompt, brand_name, attached_urls), model=model):
            token_count += 1
            full_content += token
            yield sse_frame("token", {"token": token, "fullContent": full_content}, node="model")

        duration_ms = int((time.monotonic() - started) * 1000)

        yield sse_frame("step_end", {"step": STEP_LABEL, "tokens": token_count}, node="model")

        execution_log.log_step(
            session_id,
            STEP_LABEL,
            LogStatus.COMPLETED,
            tool_name="llm",
            output_data={"tokens": token_count, "characters": len(full_content)},
            duration_ms=duration_ms,
        )

        _finish_message(assistant_id, full_content or "Analysis complete.")
        session_store.merge_metadata(
            session_id,
            {"model": model, "durationMs": duration_ms},
            state=SessionState.COMPLETED,
            current_step="completed",
            progress=100,
            completed_at=_utc_now(),
        )

        finished = True
        yield sse_frame(
            "session_end",
            {"sessionId": session_id, "status": "completed", "durationMs": duration_ms},
        )

    except GeneratorExit:
        # Client went away; nothing more can be sent.
        if not finished:
            logger.warning("Stream client disconnected", extra={"session_id": session_id})
            _record_failure(session_id, assistant_id, full_content, "Client disconnected", started)
        raise

    except Exception as exc:
        message = str(exc) or exc.__class__.__name__
        logger.exception("Streaming agent failed", extra={"session_id": session_id})

        _record_failure(session_id, assistant_id, full_content, message, started)
        yield sse_frame("error", {"error": message})

    yield DONE_FRAME
