"""
Rules quiz API

Quiz delivery under /{language}/quiz/{rule_set_slug} and quiz statistics
under /admin/stats.
"""
from contextlib import asynccontextmanager
from typing import Optional
import logging
import time

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rulequiz.api import admin_stats, quiz
from rulequiz.config import settings
from rulequiz.database import get_db, init_db
from rulequiz.exceptions import DataAccessError, QuizError
from rulequiz.services.session_identity import resolve_session, set_session_cookie
from rulequiz.utils.cache import cache_service

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    try:
        init_db()
    except SQLAlchemyError as e:
        logger.error(f"Could not create quiz tables: {str(e)}")
        raise
    yield
    logger.info(f"{settings.APP_NAME} stopped")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Quiz sessions and quiz statistics for the WFDF rules of Ultimate",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def _is_quiz_path(path: str) -> bool:
    parts = path.strip("/").split("/")
    return len(parts) >= 3 and parts[1] == "quiz"


@app.middleware("http")
async def quiz_session_middleware(request: Request, call_next):
    """Resolve the quiz session and issue the cookie when a new one was minted"""

    if not _is_quiz_path(request.url.path):
        return await call_next(request)

    session = resolve_session(request.cookies.get(settings.QUIZ_SESSION_COOKIE_NAME))
    request.state.quiz_session = session

    response = await call_next(request)

    # /clear expires the cookie; do not hand the token back out
    if session.is_new and not getattr(request.state, "quiz_session_cleared", False):
        logger.debug(f"Setting new quiz session cookie: {session.session_id}")
        set_session_cookie(response, session.session_id)

    return response


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000

    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"({elapsed_ms:.1f}ms)"
    )
    return response


def _error_response(status_code: int, error: str, message, detail: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "detail": detail if settings.DEBUG else None,
        },
    )


@app.exception_handler(QuizError)
async def quiz_error_handler(request: Request, exc: QuizError):
    """NotFound/InvalidInput become 404; data access failures a generic 500"""

    if isinstance(exc, DataAccessError):
        logger.error(f"Data access failure on {request.url.path}: {exc.message}", exc_info=exc.__cause__)
        return _error_response(exc.status_code, exc.error_code, GENERIC_ERROR_MESSAGE, exc.message)

    logger.info(f"{exc.error_code} on {request.url.path}: {exc.message}")
    return _error_response(exc.status_code, exc.error_code, exc.message, exc.message)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error_response(exc.status_code, "http_error", exc.detail)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {str(exc)}", exc_info=True)
    return _error_response(500, "internal_server_error", GENERIC_ERROR_MESSAGE, str(exc))


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Liveness plus a database round trip; the chart cache is optional"""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.warning(f"Health check database probe failed: {str(e)}")
        database = "unavailable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": database,
        "chart_cache": "enabled" if cache_service.redis_client else "disabled",
    }


@app.get("/")
def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "quiz": "/{language}/quiz/{rule_set_slug}",
        "statistics": "/admin/stats",
        "docs": "/docs",
    }


app.include_router(quiz.router)
app.include_router(admin_stats.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("rulequiz.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
