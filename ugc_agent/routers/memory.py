import httpx
from fastapi import APIRouter, Depends, HTTPException

from ugc_agent.deps.auth import require_user
from ugc_agent.schemas.memory import (
    MemoryReadRequest,
    MemoryReadResponse,
    MemoryWriteRequest,
    MemoryWriteResponse,
)
from ugc_agent.services import embedding_client, memory_service

router = APIRouter(prefix="/agent/memory", tags=["Memory"])


@router.post("/write", response_model=MemoryWriteResponse)
def write_memory(payload: MemoryWriteRequest, user_id: str = Depends(require_user)):
    try:
        row = memory_service.write_memory(
            user_id,
            payload.memory_type,
            payload.content,
            metadata=payload.metadata,
            require_embedding=True,
        )
    except embedding_client.EmbeddingUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except httpx.HTTPError as exc:
        raise HTTPException(status_code=502, detail=f"Embedding request failed: {exc}") from exc

    return {"memory_id": row.id}


@router.post("/read", response_model=MemoryReadResponse)
def read_memory(payload: MemoryReadRequest, user_id: str = Depends(require_user)):
    try:
        matches = memory_service.search_memories(
            user_id,
            payload.query,
            memory_type=payload.memory_type,
            match_threshold=payload.match_threshold,
            match_count=payload.match_count,
        )
    except httpx.HTTPError as exc:
        raise HTTPException(status_code=502, detail=f"Embedding request failed: {exc}") from exc

    return {
        "results": [
            {
                "id": m.id,
                "memory_type": m.memory_type,
                "content": m.content,
                "metadata": m.metadata,
                "similarity": m.similarity,
            }
            for m in matches
        ]
    }
