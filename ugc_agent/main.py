from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ugc_agent.core.config import cors_origins
from ugc_agent.core.logging import configure_logging
from ugc_agent.models import agent_chat_message, agent_execution_log, agent_memory, agent_session  # noqa: F401
from ugc_agent.routers.agent import router as agent_router
from ugc_agent.routers.auth import router as auth_router
from ugc_agent.routers.memory import router as memory_router

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("UGC agent service starting", extra={"version": VERSION})
    yield


app = FastAPI(
    title="UGC Agent Service",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(auth_router)
app.include_router(agent_router)
app.include_router(memory_router)


@app.get("/")
def root():
    return {"status": "UGC agent service running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": VERSION,
    }
