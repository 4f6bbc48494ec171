"""FastAPI application factory and entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from auth_bridge.api.routes import root_router
from auth_bridge.core.config import Settings, get_settings
from auth_bridge.core.errors import register_exception_handlers
from auth_bridge.core.logging import configure_logging
from auth_bridge.core.middleware import (
    AccessLogMiddleware,
    RequestIDMiddleware,
    RequestSizeLimitMiddleware,
)
from auth_bridge.core.version import APP_VERSION
from auth_bridge.directory.base import AccountDirectory
from auth_bridge.directory.supabase import SupabaseAccountDirectory

logger = logging.getLogger("auth_bridge.main")


def build_account_directory(settings: Settings) -> AccountDirectory | None:
    """Create the Supabase directory client when its URL and key are configured."""

    credentials = settings.account_directory_credentials
    if credentials is None:
        logger.warning("Account directory is not configured; session requests will fail")
        return None

    base_url, service_role_key = credentials
    return SupabaseAccountDirectory(
        base_url=base_url,
        service_role_key=service_role_key,
        timeout=settings.account_directory_timeout_seconds,
    )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    yield
    directory: AccountDirectory | None = application.state.account_directory
    if directory is not None and application.state.owns_account_directory:
        await directory.aclose()


def create_app(
    settings: Settings | None = None,
    directory: AccountDirectory | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    ``settings`` and ``directory`` default to the environment-derived
    configuration and a Supabase client; tests pass fakes instead.
    """

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.project_name,
        debug=settings.debug,
        version=APP_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=_lifespan,
    )

    application.state.settings = settings
    application.state.owns_account_directory = directory is None
    application.state.account_directory = directory or build_account_directory(settings)

    # CORS headers are set by the routes and error handlers, and OPTIONS is
    # always answered by the preflight route.
    register_exception_handlers(application)

    application.add_middleware(AccessLogMiddleware)
    application.add_middleware(
        RequestSizeLimitMiddleware,
        max_request_bytes=settings.max_request_bytes,
    )
    application.add_middleware(RequestIDMiddleware)

    application.include_router(root_router)

    return application


app = create_app()

__all__ = ["app", "build_account_directory", "create_app"]
