import os
from typing import List, Optional

DEFAULT_DATABASE_URL = "sqlite:///./ugc_agent.db"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_LLM_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_AGENT_MODEL = "google/gemini-2.5-flash"


def env_str(name: str, default: str = "") -> str:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    return v.strip()


def env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return float(v)
    except ValueError:
        return default


def env_list(name: str, default: List[str]) -> List[str]:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return list(default)
    return [part.strip() for part in v.split(",") if part.strip()]


def database_url() -> str:
    return env_str("DATABASE_URL", DEFAULT_DATABASE_URL)


def openai_api_key() -> Optional[str]:
    return env_str("OPENAI_API_KEY") or None


def openai_base_url() -> str:
    return env_str("OPENAI_BASE_URL", DEFAULT_OPENAI_BASE_URL).rstrip("/")


def embedding_model() -> str:
    return env_str("EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL)


def llm_gateway_url() -> str:
    return env_str("LLM_GATEWAY_URL", DEFAULT_LLM_GATEWAY_URL)


def llm_api_key() -> Optional[str]:
    return env_str("LLM_API_KEY") or None


def agent_model() -> str:
    return env_str("AGENT_MODEL", DEFAULT_AGENT_MODEL)


def http_timeout_seconds() -> float:
    return env_float("HTTP_TIMEOUT_SECONDS", 60.0)


def step_delay_seconds() -> float:
    """Base delay for the simulated research/generation steps. 0 disables waiting."""
    delay = env_float("AGENT_STEP_DELAY_SECONDS", 1.0)
    return max(0.0, delay)


def cors_origins() -> List[str]:
    return env_list("CORS_ORIGINS", ["*"])


def environment() -> str:
    return env_str("ENV", "dev").lower()
