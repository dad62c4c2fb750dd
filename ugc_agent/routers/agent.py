from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from ugc_agent.deps.auth import require_user
from ugc_agent.models.agent_session import AgentSession
from ugc_agent.schemas.agent import (
    ApproveScriptsRequest,
    CancelRequest,
    CancelResponse,
    ExecutionLogListResponse,
    ExecutionLogResponse,
    OrchestrateRequest,
    SessionResponse,
    StartAgentRequest,
    StartAgentResponse,
    StatusResponse,
    StreamRequest,
)
from ugc_agent.services import agent_stream, approval_gate, execution_log, orchestrator, session_store

router = APIRouter(prefix="/agent", tags=["Agent"])


def _load_session_or_404(session_id: str, user_id: str) -> AgentSession:
    try:
        return session_store.get_session(session_id, user_id=user_id)
    except session_store.SessionNotFound as exc:
        raise HTTPException(status_code=404, detail="Session not found") from exc


@router.post("/start", response_model=StartAgentResponse)
def start_agent(
    payload: StartAgentRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(require_user),
):
    try:
        session = orchestrator.start_workflow(user_id, payload.brand_context, title=payload.title)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    background_tasks.add_task(
        orchestrator.run_detached,
        session.id,
        user_id,
        session.metadata_.get("brandContext", ""),
    )

    return {"session_id": session.id, "message": "Orchestration started"}


@router.post("/orchestrate", response_model=StartAgentResponse)
def orchestrate_agent(
    payload: OrchestrateRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(require_user),
):
    session = _load_session_or_404(payload.session_id, user_id)

    background_tasks.add_task(
        orchestrator.run_detached,
        session.id,
        user_id,
        (session.metadata_ or {}).get("brandContext", ""),
    )

    return {"session_id": session.id, "message": "Orchestration started"}


@router.post("/approve-scripts", response_model=StatusResponse)
def approve_scripts(
    payload: ApproveScriptsRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(require_user),
):
    try:
        outcome = approval_gate.submit_decision(
            payload.session_id,
            user_id,
            payload.approved,
            payload.selected_scripts,
        )
    except session_store.SessionNotFound as exc:
        raise HTTPException(status_code=404, detail="Session not found") from exc
    except approval_gate.SessionStateConflict as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if outcome.approved:
        # Restarts from the first step; there is no saved cursor.
        background_tasks.add_task(
            orchestrator.run_detached,
            payload.session_id,
            user_id,
            outcome.brand_context or "",
        )

    return {"message": outcome.message}


@router.post("/cancel", response_model=CancelResponse)
def cancel_agent(payload: CancelRequest, user_id: str = Depends(require_user)):
    try:
        session = session_store.cancel_session(payload.session_id, user_id)
    except session_store.SessionNotFound as exc:
        raise HTTPException(status_code=404, detail="Session not found") from exc

    return {
        "message": "Agent session cancelled successfully",
        "session": SessionResponse.model_validate(session),
    }


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_agent_session(session_id: str, user_id: str = Depends(require_user)):
    return SessionResponse.model_validate(_load_session_or_404(session_id, user_id))


@router.get("/sessions/{session_id}/logs", response_model=ExecutionLogListResponse)
def list_agent_logs(
    session_id: str,
    after_id: Optional[int] = Query(None, ge=0),
    limit: int = Query(200, ge=1, le=1000),
    user_id: str = Depends(require_user),
):
    _load_session_or_404(session_id, user_id)

    rows = execution_log.list_logs(session_id, after_id=after_id, limit=limit)
    return {
        "session_id": session_id,
        "after_id": after_id,
        "logs": [ExecutionLogResponse.model_validate(r) for r in rows],
    }


@router.post("/stream")
def stream_agent(payload: StreamRequest, user_id: str = Depends(require_user)):
    try:
        session = agent_stream.prepare_session(user_id, payload.session_id, payload.brand_name)
    except session_store.SessionNotFound as exc:
        raise HTTPException(status_code=404, detail="Session not found") from exc

    events = agent_stream.stream_agent_events(
        session.id,
        payload.user_message(),
        brand_name=payload.brand_name,
        attached_urls=payload.attached_urls,
    )
    return StreamingResponse(
        events,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
