from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, model_validator


class StartAgentRequest(BaseModel):
    brand_context: str = Field(min_length=1, max_length=10_000)
    title: Optional[str] = Field(default=None, max_length=200)


class StartAgentResponse(BaseModel):
    success: bool = True
    session_id: str
    message: str


class OrchestrateRequest(BaseModel):
    session_id: str = Field(min_length=1)


class ApproveScriptsRequest(BaseModel):
    session_id: str = Field(min_length=1)
    approved: StrictBool
    selected_scripts: Optional[List[str]] = None

    @model_validator(mode="after")
    def _selection_required_on_approval(self):
        if self.approved and not self.selected_scripts:
            raise ValueError("selected_scripts is required when approving")
        return self


class CancelRequest(BaseModel):
    session_id: str = Field(min_length=1)


class StatusResponse(BaseModel):
    success: bool = True
    message: str


class SessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    user_id: str
    title: Optional[str] = None
    state: str
    current_step: Optional[str] = None
    progress: int
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_")
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None


class CancelResponse(StatusResponse):
    session: SessionResponse


class ExecutionLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    session_id: str
    step_name: str
    status: str
    tool_name: Optional[str] = None
    input_data: Optional[Any] = None
    output_data: Optional[Any] = None
    error_message: Optional[str] = None
    duration_ms: Optional[int] = None
    created_at: datetime


class ExecutionLogListResponse(BaseModel):
    session_id: str
    after_id: Optional[int]
    logs: List[ExecutionLogResponse]


class StreamRequest(BaseModel):
    prompt: Optional[str] = None
    session_id: Optional[str] = None
    brand_name: Optional[str] = None
    attached_urls: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _prompt_or_brand(self):
        if not (self.prompt and self.prompt.strip()) and not self.brand_name:
            raise ValueError("prompt or brand_name is required")
        return self

    def user_message(self) -> str:
        if self.prompt and self.prompt.strip():
            return self.prompt.strip()
        return f"Analyze competitor ads for {self.brand_name or 'brand'}"
