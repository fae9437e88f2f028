"""AI todo manager - todo API with natural-language parsing and AI summaries."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.core.config import settings
from src.core.db_client import DatabaseError, RecordNotFoundError
from src.core.errors import RequestValidationFailure, UpstreamServiceError
from src.core.logging import configure_logfire, instrument_fastapi, instrument_outbound
from src.core.scheduler import start_scheduler, stop_scheduler
from src.interface.ai_router import router as ai_router
from src.interface.auth_router import router as auth_router
from src.interface.content_router import router as content_router
from src.interface.cron_router import router as cron_router
from src.interface.dependencies import upstream_error_response, validation_failure_response
from src.interface.feedback_router import router as feedback_router
from src.interface.todo_router import router as todo_router


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    configure_logfire()
    if not settings.openrouter_api_key:
        logger.warning("startup_validation", extra={"service": "openrouter", "status": "not_configured"})
    if not settings.cron_secret:
        logger.warning("startup_validation", extra={"service": "cron", "status": "not_configured"})

    instrument_outbound()
    start_scheduler()
    yield
    # Shutdown
    stop_scheduler()


app = FastAPI(
    title="ai-todo-manager",
    description="Todo API with natural-language parsing and AI summaries",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)


@app.exception_handler(RequestValidationFailure)
async def handle_request_validation_failure(_request: Request, exc: RequestValidationFailure) -> JSONResponse:
    """Render input validation failures as `{error, code}`."""
    return validation_failure_response(exc)


@app.exception_handler(UpstreamServiceError)
async def handle_upstream_error(_request: Request, exc: UpstreamServiceError) -> JSONResponse:
    """Render classified model failures as `{error, code, details?}`."""
    return upstream_error_response(exc)


@app.exception_handler(RecordNotFoundError)
async def handle_not_found(request: Request, exc: RecordNotFoundError) -> JSONResponse:
    """Missing and foreign records look the same to the caller."""
    logger.info("record_not_found", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(content={"detail": "할 일을 찾을 수 없습니다."}, status_code=status.HTTP_404_NOT_FOUND)


@app.exception_handler(DatabaseError)
async def handle_database_error(request: Request, exc: DatabaseError) -> JSONResponse:
    """Storage failures surface once as a 500."""
    logger.error("database_error", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(
        content={"detail": "데이터 처리 중 오류가 발생했습니다."},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# Register routers
app.include_router(ai_router)
app.include_router(auth_router)
app.include_router(todo_router)
app.include_router(feedback_router)
app.include_router(cron_router)
app.include_router(content_router)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)
