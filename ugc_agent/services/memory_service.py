import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from ugc_agent.database import SessionLocal
from ugc_agent.models.agent_memory import AgentMemory, MemoryType
from ugc_agent.services import embedding_client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MemoryMatch:
    id: str
    user_id: str
    memory_type: str
    content: str
    metadata: dict
    similarity: float


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _memory_type_value(memory_type: Union[MemoryType, str]) -> str:
    try:
        return MemoryType(memory_type).value
    except ValueError as exc:
        raise ValueError(f"Invalid memory_type: {memory_type}") from exc


def write_memory(
    user_id: str,
    memory_type: Union[MemoryType, str],
    content: str,
    *,
    metadata: Optional[Dict[str, Any]] = None,
    embedding: Optional[List[float]] = None,
    require_embedding: bool = False,
    db: Optional[Session] = None,
) -> AgentMemory:
    """
    Store one memory row.

    With require_embedding=True the content is embedded first and any failure
    (missing key, vendor error) propagates before anything is written.
    """
    type_value = _memory_type_value(memory_type)

    if embedding is None and require_embedding:
        embedding = embedding_client.create_embedding(content)

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        now = _utc_now()
        row = AgentMemory(
            id=str(uuid.uuid4()),
            user_id=str(user_id),
            memory_type=type_value,
            content=content,
            embedding=embedding,
            metadata_=dict(metadata or {}),
            created_at=now,
            updated_at=now,
        )
        db.add(row)
        db.flush()

        if owns_db:
            db.commit()
            db.refresh(row)

        logger.info(
            "Memory created",
            extra={"memory_id": row.id, "user_id": str(user_id), "memory_type": type_value},
        )
        return row
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def recent_memories(
    user_id: str,
    memory_type: Union[MemoryType, str],
    *,
    limit: int = 5,
    db: Optional[Session] = None,
) -> List[AgentMemory]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return (
            db.query(AgentMemory)
            .filter(
                AgentMemory.user_id == str(user_id),
                AgentMemory.memory_type == _memory_type_value(memory_type),
            )
            .order_by(AgentMemory.created_at.desc(), AgentMemory.id.desc())
            .limit(int(limit))
            .all()
        )
    finally:
        if owns_db:
            db.close()


def match_memories_query(
    user_id: str,
    query_embedding: List[float],
    *,
    memory_type: Optional[Union[MemoryType, str]] = None,
    match_threshold: float = 0.7,
    match_count: int = 5,
) -> Select:
    """
    Nearest memories by pgvector cosine distance, closest first.

    Similarity is ``1 - distance``; only rows strictly above the threshold
    are returned.
    """
    distance = AgentMemory.embedding.cosine_distance(query_embedding)

    stmt = select(AgentMemory, distance.label("distance")).where(
        AgentMemory.user_id == str(user_id),
        AgentMemory.embedding.isnot(None),
        distance < 1 - float(match_threshold),
    )
    if memory_type is not None:
        stmt = stmt.where(AgentMemory.memory_type == _memory_type_value(memory_type))

    return stmt.order_by(distance.asc()).limit(int(match_count))


def search_memories(
    user_id: str,
    query: str,
    *,
    memory_type: Optional[Union[MemoryType, str]] = None,
    match_threshold: float = 0.7,
    match_count: int = 5,
    db: Optional[Session] = None,
) -> List[MemoryMatch]:
    if not embedding_client.embeddings_enabled():
        logger.warning("No OPENAI_API_KEY configured, returning empty memory results")
        return []

    query_embedding = embedding_client.create_embedding(query)
    stmt = match_memories_query(
        user_id,
        query_embedding,
        memory_type=memory_type,
        match_threshold=match_threshold,
        match_count=match_count,
    )

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        matches = [
            MemoryMatch(
                id=row.id,
                user_id=row.user_id,
                memory_type=row.memory_type,
                content=row.content,
                metadata=dict(row.metadata_ or {}),
                similarity=1.0 - float(distance),
            )
            for row, distance in db.execute(stmt).all()
        ]

        logger.info(
            "Memory search finished",
            extra={"user_id": str(user_id), "results": len(matches)},
        )
        return matches
    finally:
        if owns_db:
            db.close()
