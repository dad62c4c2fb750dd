from enum import Enum

from pgvector.sqlalchemy import Vector
from sqlalchemy import Column, DateTime, Index, String, Text, func

from ugc_agent.database import Base
from ugc_agent.models.agent_session import JSONType

# text-embedding-3-small
EMBEDDING_DIMENSIONS = 1536


class MemoryType(str, Enum):
    BRAND = "brand"
    USER_PREFERENCES = "user_preferences"
    COMPETITIVE = "competitive"
    TASK = "task"
    PERFORMANCE = "performance"


class AgentMemory(Base):
    __tablename__ = "agent_memory"

    __table_args__ = (
        Index("ix_agent_memory_user_type", "user_id", "memory_type"),
    )

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    memory_type = Column(String, nullable=False)
    content = Column(Text, nullable=False)

    embedding = Column(Vector(EMBEDDING_DIMENSIONS), nullable=True)
    metadata_ = Column("metadata", JSONType, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
