from enum import Enum

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.mutable import MutableDict

from ugc_agent.database import Base

JSONType = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"

    # Step names double as states while a step is active.
    ANALYZE_BRAND = "analyze_brand"
    RESEARCH_COMPETITORS = "research_competitors"
    ANALYZE_TRENDS = "analyze_trends"
    GENERATE_CONCEPTS = "generate_concepts"
    GENERATE_SCRIPTS = "generate_scripts"
    AWAIT_APPROVAL = "await_approval"
    GENERATE_VIDEOS = "generate_videos"
    UPDATE_MEMORY = "update_memory"

    AWAITING_APPROVAL = "awaiting_approval"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"


class AgentSession(Base):
    __tablename__ = "agent_sessions"

    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_agent_sessions_progress_range"),
    )

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=True)

    state = Column(String, nullable=False, default=SessionState.IDLE.value, index=True)
    current_step = Column(String, nullable=True)
    progress = Column(Integer, nullable=False, default=0)

    # "metadata" is reserved on declarative classes
    metadata_ = Column("metadata", MutableDict.as_mutable(JSONType), nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
