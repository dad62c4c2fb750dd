from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ugc_agent.core.config import database_url as _get_database_url

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)

Base = declarative_base()

DATABASE_URL = ""
engine = None
_configured_database_url = None


def _engine_kwargs(url: str) -> dict:
    # Orchestration runs in worker threads; sqlite connections must be shareable.
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


def configure_database() -> None:
    global DATABASE_URL, engine, _configured_database_url

    url = _get_database_url()

    if engine is not None and _configured_database_url == url:
        return

    engine = create_engine(url, **_engine_kwargs(url))
    SessionLocal.configure(bind=engine)
    DATABASE_URL = url
    _configured_database_url = url


configure_database()
