"""
FastAPI application for quizmastery.

Provides REST API for:
- Starting a topic quiz and checking answers one at a time
- Submitting a completed session to update mastery
- Student dashboard data
- Cohort analytics for instructors and admins
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from config import get_settings
from quizmastery import __version__
from quizmastery.core.errors import (
    InvalidQuestion,
    InvalidSessionResult,
    InvalidSubmission,
    NotFound,
    QuizMasteryError,
    SessionStateError,
    StoreUnavailable,
    SubmissionRejected,
)
from quizmastery.core.log_config import configure_logging
from quizmastery.db.database import check_database_health, init_db

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    configure_logging(settings)
    logger.info("Starting quizmastery service...")
    init_db()
    logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

    yield

    # Shutdown
    logger.info("Shutting down quizmastery service...")


app = FastAPI(
    title="Quiz Mastery",
    description="""
    Mastery tracking and quiz session engine.

    ## Data Flow

    ```
    GET  /api/quiz/start   (questions for a topic, answers stripped)
        ↓ one round trip per question
    POST /api/quiz/check   (isCorrect, correctAnswer, explanation)
        ↓ once per completed session
    POST /api/quiz/submit  (new mastery + appended history)
        ↓
    GET  /api/users/...    (dashboard, cohort analytics)
    ```
    """,
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ========================================
# Error Mapping
# ========================================

CLIENT_ERRORS = (
    NotFound,
    InvalidSubmission,
    InvalidSessionResult,
    InvalidQuestion,
    SubmissionRejected,
    SessionStateError,
)


async def client_error_handler(request: Request, exc: QuizMasteryError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def store_unavailable_handler(request: Request, exc: StoreUnavailable) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "retry": True},
        headers={"Retry-After": "1"},
    )


for _error in CLIENT_ERRORS:
    app.add_exception_handler(_error, client_error_handler)
app.add_exception_handler(StoreUnavailable, store_unavailable_handler)


# ========================================
# Health & Status Endpoints
# ========================================


@app.get("/", tags=["Health"])
def root() -> dict[str, str]:
    """Root endpoint returning service info."""
    return {
        "service": "quizmastery",
        "version": __version__,
        "status": "ok",
    }


@app.get("/health", tags=["Health"])
def health_check() -> dict[str, Any]:
    """Health check with an actual database round trip."""
    db_status, db_error = check_database_health()

    result: dict[str, Any] = {
        "status": "healthy" if db_status == "ok" else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {"database": db_status},
    }
    if db_error:
        result["errors"] = {"database": db_error}
    return result


# ========================================
# Import and mount routers
# ========================================

from quizmastery.api.routers import quiz_router, users_router  # noqa: E402

app.include_router(quiz_router.router, prefix="/api/quiz", tags=["Quiz"])
app.include_router(users_router.router, prefix="/api/users", tags=["Users"])
