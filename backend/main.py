"""
SlideCraft FastAPI Backend

Main application entry point with ASGI server.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import uvicorn

from slidecraft import __version__
from slidecraft.core.exceptions import (
    BatchInProgressError,
    CreditLimitError,
    MissingKeyError,
    PreconditionError,
    SceneBusyError,
    SessionNotFoundError,
    SlideCraftError,
)

from backend.core.config import settings
from backend.core.logging import setup_logging, get_logger
from backend.core.rate_limit import limiter
from backend.api import health, library, sessions, usage
from backend.api.deps import get_registry

logger = get_logger("main")

ERROR_STATUS = [
    (PreconditionError, 400),
    (CreditLimitError, 402),
    (SessionNotFoundError, 404),
    (SceneBusyError, 409),
    (BatchInProgressError, 409),
    (MissingKeyError, 503),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting SlideCraft API...")
    yield
    stopped = get_registry().cancel_all()
    logger.info(f"Shutting down SlideCraft API ({stopped} batches asked to stop)...")


app = FastAPI(
    title="SlideCraft API",
    description="Character-consistent illustration backend",
    version=__version__,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SlideCraftError)
async def slidecraft_error_handler(request: Request, exc: SlideCraftError):
    """Map domain errors to HTTP responses."""
    status_code = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 500)
    if status_code == 500:
        logger.error(f"Unhandled domain error: {exc}")

    body = {"detail": exc.message}
    code = getattr(exc, "code", None)
    if code:
        body["code"] = code
    if exc.details:
        body["details"] = exc.details
    return JSONResponse(status_code=status_code, content=body)


app.include_router(health.router, tags=["Health"])
app.include_router(sessions.router, prefix="/api/sessions", tags=["Sessions"])
app.include_router(library.router, prefix="/api/library", tags=["Library"])
app.include_router(usage.router, prefix="/api/usage", tags=["Usage"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "SlideCraft API",
        "version": __version__,
        "status": "running"
    }


def run():
    """Run the server."""
    setup_logging(settings.log_level, verbose=settings.debug)
    uvicorn.run(
        "backend.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info"
    )


if __name__ == "__main__":
    run()
