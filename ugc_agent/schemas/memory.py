from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ugc_agent.models.agent_memory import MemoryType


class MemoryWriteRequest(BaseModel):
    content: str = Field(min_length=1)
    memory_type: MemoryType
    metadata: Dict[str, Any] = Field(default_factory=dict)


class MemoryWriteResponse(BaseModel):
    success: bool = True
    memory_id: str
    message: str = "Memory saved successfully"


class MemoryReadRequest(BaseModel):
    query: str = Field(min_length=1)
    memory_type: Optional[MemoryType] = None
    match_threshold: float = Field(default=0.7, ge=-1.0, le=1.0)
    match_count: int = Field(default=5, ge=1, le=50)


class MemoryResult(BaseModel):
    id: str
    memory_type: str
    content: str
    metadata: Dict[str, Any]
    similarity: float


class MemoryReadResponse(BaseModel):
    results: List[MemoryResult]
