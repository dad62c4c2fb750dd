import json
import logging
from typing import Iterator, List, Optional

import httpx

from ugc_agent.core import config

logger = logging.getLogger(__name__)


class GatewayError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _error_for_status(status_code: int, body: str) -> GatewayError:
    if status_code == 429:
        return GatewayError("Rate limited. Please wait and try again.", status_code)
    if status_code == 402:
        return GatewayError("Credits exhausted. Please add funds.", status_code)
    logger.error("LLM gateway error", extra={"status_code": status_code, "body": body[:500]})
    return GatewayError(f"LLM API error: {status_code}", status_code)


def parse_sse_line(line: str) -> Optional[str]:
    """Content delta carried by one ``data:`` line, or None for anything else."""
    if not line.startswith("data:"):
        return None

    raw = line[5:].strip()
    if not raw or raw == "[DONE]":
        return None

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None

    choices = parsed.get("choices") if isinstance(parsed, dict) else None
    if not choices:
        return None

    delta = choices[0].get("delta") or {}
    content = delta.get("content")
    return content if isinstance(content, str) and content else None


def stream_chat(
    messages: List[dict],
    *,
    model: Optional[str] = None,
    max_tokens: int = 4096,
    client: Optional[httpx.Client] = None,
) -> Iterator[str]:
    """Yield content tokens from an OpenAI-compatible streaming chat completion."""
    api_key = config.llm_api_key()
    if not api_key:
        raise GatewayError("LLM_API_KEY not configured")

    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=httpx.Timeout(config.http_timeout_seconds(), connect=30.0))

    try:
        with client.stream(
            "POST",
            config.llm_gateway_url(),
            headers={"Authorization": f"Bearer {api_key}"},
            json={
                "model": model or config.agent_model(),
                "messages": messages,
                "stream": True,
                "max_tokens": int(max_tokens),
            },
        ) as response:
            if response.status_code >= 400:
                response.read()
                raise _error_for_status(response.status_code, response.text)

            for line in response.iter_lines():
                token = parse_sse_line(line)
                if token is not None:
                    yield token
    finally:
        if owns_client:
            client.close()
