"""FastAPI application for repo-mirror."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import MirrorConfig, load_config
from ..constants import MIRROR_VERSION
from ..errors import (
    AuthError,
    InvalidRequestError,
    MirrorError,
    NetworkError,
    NotFoundError,
    RemoteWriteConflict,
)
from ..service import MirrorService
from .routes import health_router, router
from .schemas import ErrorResponse

logger = logging.getLogger(__name__)

# First match wins, so subclasses come before their bases
ERROR_STATUS = (
    (InvalidRequestError, 400),
    (NotFoundError, 404),
    (RemoteWriteConflict, 409),
    (AuthError, 502),
    (NetworkError, 502),
    (MirrorError, 500),
)


def status_for(exc: MirrorError) -> int:
    """HTTP status code for a mirror error."""
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 500


async def mirror_error_handler(request: Request, exc: MirrorError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content=ErrorResponse(error=str(exc)).model_dump())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error=f"Invalid request: {exc.errors()}").model_dump(),
    )


def create_app(service: Optional[MirrorService] = None, config: Optional[MirrorConfig] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        service: Pre-built service (tests inject one over an in-memory store)
        config: Configuration used to build a service when none is given;
            loaded from repo-mirror.yaml and the environment if omitted

    Returns:
        Configured FastAPI app instance.
    """
    if service is None:
        service = MirrorService(config or load_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await service.aclose()

    app = FastAPI(
        title="repo-mirror",
        description="Live mirror of a remote repository with change streaming.",
        version=MIRROR_VERSION,
        lifespan=lifespan,
    )
    app.state.service = service

    # Browser clients read and edit the tree directly
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.add_exception_handler(MirrorError, mirror_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health_router)
    app.include_router(router)

    return app
