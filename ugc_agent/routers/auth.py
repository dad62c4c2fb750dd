from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ugc_agent.core.config import environment
from ugc_agent.services.auth_service import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


class TokenRequest(BaseModel):
    user_id: str = Field(min_length=1)


@router.post("/token")
def issue_token(payload: TokenRequest):
    if environment() not in {"dev", "local", "test"}:
        raise HTTPException(status_code=404, detail="Not Found")
    try:
        token = create_access_token(user_id=payload.user_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {
        "access_token": token,
        "token_type": "bearer",
    }
