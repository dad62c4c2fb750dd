import logging
from dataclasses import dataclass
from typing import List, Optional

from ugc_agent.models.agent_execution_log import LogStatus
from ugc_agent.models.agent_session import SessionState
from ugc_agent.services import execution_log, session_store

logger = logging.getLogger(__name__)

REGENERATING_LABEL = "Regenerating scripts"


class SessionStateConflict(ValueError):
    pass


@dataclass(frozen=True)
class ApprovalOutcome:
    approved: bool
    message: str
    # Set on approval: the caller re-runs the workflow with this context.
    brand_context: Optional[str] = None


def submit_decision(
    session_id: str,
    user_id: str,
    approved: bool,
    selected_scripts: Optional[List[str]] = None,
) -> ApprovalOutcome:
    """
    Record the human decision for a session suspended at the approval gate.

    Approval does not resume from the gate; the caller restarts the whole
    workflow. Rejection only rewinds state to script generation.
    """
    session = session_store.get_session(session_id, user_id=user_id)

    if session.state != SessionState.AWAITING_APPROVAL.value:
        raise SessionStateConflict(f"Session is not awaiting approval (state={session.state})")

    logger.info(
        "Processing script approval",
        extra={"session_id": session_id, "approved": bool(approved)},
    )

    if approved:
        selection = list(selected_scripts or [])
        if not selection:
            raise ValueError("selected_scripts is required when approving")

        execution_log.log_step(
            session_id,
            "scripts_approved",
            LogStatus.COMPLETED,
            output_data={"approved": True, "selectedScripts": selection},
        )
        updated = session_store.merge_metadata(session_id, {"approvedScripts": selection})

        return ApprovalOutcome(
            approved=True,
            message="Scripts approved. Proceeding to video generation...",
            brand_context=str((updated.metadata_ or {}).get("brandContext") or ""),
        )

    execution_log.log_step(
        session_id,
        "scripts_rejected",
        LogStatus.COMPLETED,
        output_data={"approved": False},
    )
    session_store.update_session(
        session_id,
        state=SessionState.GENERATE_SCRIPTS,
        current_step=REGENERATING_LABEL,
    )

    return ApprovalOutcome(approved=False, message="Scripts rejected. Regenerating...")
