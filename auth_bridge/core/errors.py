"""Shared error primitives and FastAPI exception handlers."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Awaitable, Callable, Final, Mapping, cast

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

ExceptionHandlerCallable = Callable[[Request, Exception], Awaitable[Response]]

logger = logging.getLogger("auth_bridge.errors")

CORS_HEADERS: Final[dict[str, str]] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


class ErrorCode(StrEnum):
    """Stable wire codes returned in the ``error`` field."""

    # Request shape
    MISSING_PARAMS = "missing_params"
    INVALID_INIT_DATA = "invalid_init_data"

    # Authenticity
    INVALID_HASH = "invalid_hash"
    TELEGRAM_ID_MISMATCH = "telegram_id_mismatch"
    INIT_DATA_EXPIRED = "init_data_expired"

    # Configuration
    BOT_TOKEN_NOT_SET = "bot_token_not_set"
    SUPABASE_ENV_NOT_SET = "supabase_env_not_set"

    # Account directory
    TELEGRAM_USER_NOT_FOUND = "telegram_user_not_found"
    EMAIL_NOT_FOUND = "email_not_found"
    GENERATE_LINK_FAILED = "generate_link_failed"
    VERIFY_OTP_FAILED = "verify_otp_failed"

    # Transport/common
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    INTERNAL_ERROR = "internal_error"


class ErrorCategory(StrEnum):
    REQUEST = "request"
    AUTHENTICITY = "authenticity"
    CONFIGURATION = "configuration"
    DOWNSTREAM = "downstream"
    INTERNAL = "internal"


ERROR_CATEGORIES: Final[dict[ErrorCode, ErrorCategory]] = {
    ErrorCode.MISSING_PARAMS: ErrorCategory.REQUEST,
    ErrorCode.INVALID_INIT_DATA: ErrorCategory.REQUEST,
    ErrorCode.INVALID_HASH: ErrorCategory.AUTHENTICITY,
    ErrorCode.TELEGRAM_ID_MISMATCH: ErrorCategory.AUTHENTICITY,
    ErrorCode.INIT_DATA_EXPIRED: ErrorCategory.AUTHENTICITY,
    ErrorCode.BOT_TOKEN_NOT_SET: ErrorCategory.CONFIGURATION,
    ErrorCode.SUPABASE_ENV_NOT_SET: ErrorCategory.CONFIGURATION,
    ErrorCode.TELEGRAM_USER_NOT_FOUND: ErrorCategory.DOWNSTREAM,
    ErrorCode.EMAIL_NOT_FOUND: ErrorCategory.DOWNSTREAM,
    ErrorCode.GENERATE_LINK_FAILED: ErrorCategory.DOWNSTREAM,
    ErrorCode.VERIFY_OTP_FAILED: ErrorCategory.DOWNSTREAM,
}


def category_for(code: ErrorCode | str) -> ErrorCategory:
    try:
        return ERROR_CATEGORIES.get(ErrorCode(code), ErrorCategory.INTERNAL)
    except ValueError:
        return ErrorCategory.INTERNAL


class BridgeError(Exception):
    """Failure that is rendered to the client as ``{"error": code}``."""

    def __init__(
        self,
        code: ErrorCode | str,
        message: str | None = None,
        *,
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ) -> None:
        super().__init__(message or str(code))
        self.code = str(code)
        self.message = message or str(code)
        self.status_code = status_code

    @property
    def category(self) -> ErrorCategory:
        return category_for(self.code)


class InitDataError(BridgeError):
    """Raised when Telegram initData fails validation."""


class ConfigurationError(BridgeError):
    """Raised when a required secret or endpoint is not configured."""

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory.CONFIGURATION


class AccountDirectoryError(Exception):
    """Raised by account directory clients when a call fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def register_exception_handlers(app: FastAPI) -> None:
    """Attach global exception handlers to the FastAPI app."""

    app.add_exception_handler(
        BridgeError,
        cast(ExceptionHandlerCallable, bridge_error_handler),
    )
    app.add_exception_handler(
        RequestValidationError,
        cast(ExceptionHandlerCallable, request_validation_exception_handler),
    )
    app.add_exception_handler(
        StarletteHTTPException,
        cast(ExceptionHandlerCallable, http_exception_handler),
    )
    app.add_exception_handler(
        Exception,
        cast(ExceptionHandlerCallable, unexpected_exception_handler),
    )


async def bridge_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
    _log_bridge_error(request, exc)
    return error_response(status_code=exc.status_code, code=exc.code)


async def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    logger.info(
        "Request validation failed",
        extra={"http_path": request.url.path, "errors": len(exc.errors())},
    )
    return error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorCode.MISSING_PARAMS,
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, Mapping) and detail.get("code"):
        code = str(detail["code"])
    else:
        code = _default_code_for_status(exc.status_code)

    return error_response(status_code=exc.status_code, code=code)


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception during request",
        exc_info=(exc.__class__, exc, exc.__traceback__),
    )
    return error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorCode.INTERNAL_ERROR,
    )


def error_response(*, status_code: int, code: ErrorCode | str) -> JSONResponse:
    """Return JSONResponse adhering to the public ``{"error": code}`` contract."""
    return JSONResponse(
        content=build_error_payload(code),
        status_code=status_code,
        headers=CORS_HEADERS,
    )


def build_error_payload(code: ErrorCode | str | None) -> dict[str, str]:
    return {"error": _coerce_code(code)}


def _log_bridge_error(request: Request, exc: BridgeError) -> None:
    extra = {"http_path": request.url.path, "error_code": exc.code}
    category = exc.category
    if category is ErrorCategory.CONFIGURATION:
        logger.error("Service is misconfigured: %s", exc.message, extra=extra)
    elif category in (ErrorCategory.AUTHENTICITY, ErrorCategory.DOWNSTREAM):
        logger.warning("Request rejected: %s", exc.message, extra=extra)
    else:
        logger.info("Request rejected: %s", exc.message, extra=extra)


def _default_code_for_status(status_code: int) -> str:
    mapping: dict[int, ErrorCode] = {
        status.HTTP_400_BAD_REQUEST: ErrorCode.MISSING_PARAMS,
        status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
        status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.METHOD_NOT_ALLOWED,
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: ErrorCode.PAYLOAD_TOO_LARGE,
    }
    return mapping.get(status_code, ErrorCode.INTERNAL_ERROR)


def _coerce_code(code: ErrorCode | str | None) -> str:
    if code is None:
        return ErrorCode.INTERNAL_ERROR
    return str(code)


__all__ = [
    "AccountDirectoryError",
    "BridgeError",
    "CORS_HEADERS",
    "ConfigurationError",
    "ERROR_CATEGORIES",
    "ErrorCategory",
    "ErrorCode",
    "InitDataError",
    "bridge_error_handler",
    "build_error_payload",
    "category_for",
    "error_response",
    "http_exception_handler",
    "register_exception_handlers",
    "request_validation_exception_handler",
    "unexpected_exception_handler",
]
