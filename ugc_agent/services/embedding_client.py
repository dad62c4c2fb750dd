import logging
from typing import List, Optional

import httpx

from ugc_agent.core import config

logger = logging.getLogger(__name__)


class EmbeddingUnavailable(ValueError):
    pass


def embeddings_enabled() -> bool:
    return config.openai_api_key() is not None


def create_embedding(text: str, *, client: Optional[httpx.Client] = None) -> List[float]:
    """
    Embed ``text`` with the OpenAI embeddings endpoint.

    Raises EmbeddingUnavailable when no key is configured, httpx.HTTPError
    on transport or non-2xx responses.
    """
    api_key = config.openai_api_key()
    if not api_key:
        raise EmbeddingUnavailable("OPENAI_API_KEY not configured")

    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=httpx.Timeout(config.http_timeout_seconds(), connect=30.0))

    try:
        response = client.post(
            f"{config.openai_base_url()}/embeddings",
            headers={"Authorization": f"Bearer {api_key}"},
            json={"model": config.embedding_model(), "input": text},
        )
        response.raise_for_status()
        data = response.json()
        return [float(x) for x in data["data"][0]["embedding"]]
    finally:
        if owns_client:
            client.close()


def try_create_embedding(text: str) -> Optional[List[float]]:
    """Best-effort variant: None when disabled or the call fails."""
    if not embeddings_enabled():
        return None

    try:
        return create_embedding(text)
    except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError):
        logger.warning("Embedding request failed; storing memory without embedding", exc_info=True)
        return None
