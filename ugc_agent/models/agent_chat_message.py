from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, func

from ugc_agent.database import Base
from ugc_agent.models.agent_session import JSONType


class AgentChatMessage(Base):
    __tablename__ = "agent_chat_messages"

    id = Column(String, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("agent_sessions.id"), nullable=False, index=True)

    role = Column(String, nullable=False)  # user|assistant
    content = Column(Text, nullable=False, default="")
    is_streaming = Column(Boolean, nullable=False, default=False)
    metadata_ = Column("metadata", JSONType, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
