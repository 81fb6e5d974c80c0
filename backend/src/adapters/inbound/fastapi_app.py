"""
FastAPI application - primary inbound adapter.
"""
from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.src.core.exceptions import ClientInputError, FrameSlicerError
from backend.src.infrastructure.config import Settings
from backend.src.infrastructure.logging_config import setup_logging

logger = logging.getLogger(__name__)

settings = Settings()

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    setup_logging(settings.logging.level)
    settings.validate_production()
    logger.info("FrameSlicer starting up (storage backend: %s)", settings.storage.backend)
    from backend.src.infrastructure.container import ApplicationContainer
    app.state.container = ApplicationContainer(settings)
    yield
    logger.info("FrameSlicer shutting down...")


app = FastAPI(
    title="FrameSlicer API",
    description="Slices uploaded videos into numbered PNG frame sequences",
    version=API_VERSION,
    lifespan=lifespan,
)

# CORS: restrict origins in production
_allowed_origin = os.environ.get("ALLOWED_ORIGIN", "")
if settings.app_env == "production" and _allowed_origin:
    _origins = [o.strip() for o in _allowed_origin.split(",") if o.strip()]
else:
    _origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Log each request with method, path, status, and duration."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    if request.url.path.startswith("/api"):
        response.headers["cache-control"] = "no-store, no-cache, must-revalidate"
    logger.info(
        "%s %s -> %d (%.1fms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


@app.exception_handler(ClientInputError)
async def client_input_handler(request: Request, exc: ClientInputError):
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content={"status": "bad-request", "message": str(exc)})


@app.exception_handler(FrameSlicerError)
async def frameslicer_error_handler(request: Request, exc: FrameSlicerError):
    logger.error("Failed %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"status": "server-error", "message": f"An error occurred while slicing the video: {exc}"},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"status": "server-error", "message": "Internal server error"},
    )


# ── API routes ─────────────────────────────────────────────────

from backend.src.adapters.inbound.api.uploads import router as uploads_router

app.include_router(uploads_router, prefix="/api", tags=["uploads"])


@app.get("/api/health")
async def health(request: Request):
    container = getattr(request.app.state, "container", None)
    active = container.settings if container is not None else settings
    return {
        "status": "ok",
        "version": API_VERSION,
        "storage_backend": active.storage.backend,
    }
