from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, func

from ugc_agent.database import Base
from ugc_agent.models.agent_session import JSONType


class LogStatus(str, Enum):
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class AgentExecutionLog(Base):
    """Append-only audit row. Postgres blocks UPDATE/DELETE with triggers."""

    __tablename__ = "agent_execution_logs"

    __table_args__ = (
        Index("ix_agent_execution_logs_session_created", "session_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    session_id = Column(String, ForeignKey("agent_sessions.id"), nullable=False, index=True)
    step_name = Column(String, nullable=False)
    status = Column(String, nullable=False)  # started|completed|failed|cancelled
    tool_name = Column(String, nullable=True)

    input_data = Column(JSONType, nullable=True)
    output_data = Column(JSONType, nullable=True)
    error_message = Column(Text, nullable=True)
    duration_ms = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
