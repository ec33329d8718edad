"""
HTTP front end for Script Sentinel.
Sets up the FastAPI server with CORS, error mapping, and the analyze,
chat and analysis-log routes.
"""

from __future__ import annotations

import contextlib
import functools
import os
from collections.abc import AsyncGenerator
from typing import Any

import dotenv
import fastapi
import pydantic
import uvicorn
from fastapi import exceptions as fastapi_exceptions
from fastapi.middleware import cors
from starlette import responses

from script_sentinel import __version__, settings as settings_mod, storage
from script_sentinel.agents import config as agent_config
from script_sentinel.browser import renderer
from script_sentinel.models import analysis
from script_sentinel.services import sentinel as sentinel_mod
from script_sentinel.utils import errors, logger
from script_sentinel.utils.serialization import snake_to_camel

dotenv.load_dotenv()

log = logger.create_logger("Server")

HOST = os.environ.get("UVICORN_HOST", "0.0.0.0")
PORT = int(os.environ.get("UVICORN_PORT", "3001"))
IS_PRODUCTION = os.environ.get("ENVIRONMENT", "development") == "production"

SERVICE_NAME = "Script Sentinel API"


@functools.lru_cache(maxsize=1)
def get_sentinel() -> sentinel_mod.Sentinel:
    """Get the process-wide ``Sentinel`` built from settings."""
    settings = settings_mod.get_settings()
    return sentinel_mod.Sentinel(
        renderer=renderer.PageRenderer(),
        store=storage.create_session_store(settings),
        settings=settings,
    )


@contextlib.asynccontextmanager
async def lifespan(_app: fastapi.FastAPI) -> AsyncGenerator[None]:
    """Announce startup and flag a missing oracle backend."""
    log.section("Script Sentinel Server Started")
    log.info("Environment", {"env": "production" if IS_PRODUCTION else "development"})
    config_error = agent_config.validate_llm_config()
    if config_error:
        log.warn(config_error)
        log.warn("Unrecognised scripts will be flagged for manual review")
    yield


app = fastapi.FastAPI(title=SERVICE_NAME, version=__version__, lifespan=lifespan)

# ============================================================================
# Middleware
# ============================================================================

app.add_middleware(
    cors.CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# Request Bodies
# ============================================================================


class _Body(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(alias_generator=snake_to_camel, populate_by_name=True)


class AnalyzeRequest(_Body):
    url: str = ""


class ChatRequest(_Body):
    message: str = ""
    session_id: str = ""
    analysis_data: analysis.AnalysisResult | None = None


class ChatInitRequest(_Body):
    session_id: str = ""
    analysis_data: analysis.AnalysisResult | None = None


# ============================================================================
# Error Mapping
# ============================================================================


def _error_response(status_code: int, error: str, message: str) -> responses.JSONResponse:
    return responses.JSONResponse(status_code=status_code, content={"error": error, "message": message})


@app.exception_handler(errors.ValidationError)
async def _on_validation_error(_request: fastapi.Request, exc: errors.ValidationError) -> responses.JSONResponse:
    return _error_response(400, "Invalid request", str(exc))


@app.exception_handler(fastapi_exceptions.RequestValidationError)
async def _on_request_validation_error(
    _request: fastapi.Request, exc: fastapi_exceptions.RequestValidationError
) -> responses.JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    return _error_response(400, "Invalid request", str(first.get("msg", "Malformed request body")))


@app.exception_handler(errors.SessionNotFound)
async def _on_session_not_found(_request: fastapi.Request, exc: errors.SessionNotFound) -> responses.JSONResponse:
    return _error_response(404, "Session not found", str(exc))


@app.exception_handler(errors.RenderError)
async def _on_render_error(_request: fastapi.Request, exc: errors.RenderError) -> responses.JSONResponse:
    status_code = 504 if isinstance(exc, errors.LoadTimeout) else 502
    message = f"{exc} ({exc.detail})" if exc.detail else str(exc)
    return _error_response(status_code, "Failed to analyze website", message)


# ============================================================================
# API Routes
# ============================================================================

SentinelDep = fastapi.Depends(get_sentinel)


@app.get("/")
async def health() -> dict[str, str]:
    """Service identity and liveness."""
    return {"status": "ok", "service": SERVICE_NAME, "version": __version__}


@app.post("/api/analyze")
async def analyze_endpoint(
    body: AnalyzeRequest,
    sentinel: sentinel_mod.Sentinel = SentinelDep,
) -> dict[str, Any]:
    """
    Render a URL and classify its third-party scripts.
    """
    log.info("Incoming analysis request", {"url": body.url})
    result = await sentinel.analyze(body.url)
    return result.model_dump(mode="json", by_alias=True)


@app.post("/api/chat")
async def chat_endpoint(
    body: ChatRequest,
    sentinel: sentinel_mod.Sentinel = SentinelDep,
) -> dict[str, Any]:
    """Answer one question within an initialised chat session."""
    reply = await sentinel.chat(body.message, body.session_id, body.analysis_data)
    return reply.model_dump(mode="json", by_alias=True)


@app.post("/api/chat/init")
async def chat_init_endpoint(
    body: ChatInitRequest,
    sentinel: sentinel_mod.Sentinel = SentinelDep,
) -> dict[str, Any]:
    """Start (or restart) a chat session."""
    return await sentinel.init_chat_session(body.session_id, body.analysis_data)


@app.get("/api/chat/history")
async def chat_history_endpoint(
    session_id: str = fastapi.Query("", alias="sessionId", description="Chat session id"),
    sentinel: sentinel_mod.Sentinel = SentinelDep,
) -> dict[str, Any]:
    """Messages and analysis snapshot of a session."""
    history = await sentinel.get_history(session_id)
    return history.model_dump(mode="json", by_alias=True)


@app.get("/api/analyses")
async def analyses_endpoint(sentinel: sentinel_mod.Sentinel = SentinelDep) -> dict[str, Any]:
    """Every stored analysis, oldest first."""
    stored = sentinel.list_analyses()
    return {
        "success": True,
        "count": len(stored),
        "analyses": [entry.model_dump(mode="json", by_alias=True) for entry in stored],
    }


# ============================================================================
# Start Server
# ============================================================================


def main() -> None:
    """Entry point for running the server."""
    log.success(f"Server listening on {HOST}:{PORT}")
    log.info("Environment", {"env": "production" if IS_PRODUCTION else "development"})

    uvicorn.run(
        "script_sentinel.main:app",
        host=HOST,
        port=PORT,
        reload=not IS_PRODUCTION,
    )


if __name__ == "__main__":
    main()
