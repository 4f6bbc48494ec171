"""JSON log output with request correlation and credential masking."""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Final

REQUEST_ID_CTX: Final[ContextVar[str | None]] = ContextVar("request_id", default=None)

_LOGGING_CONFIGURED: bool = False

# httpx logs every request line at INFO, directory URLs included.
_NOISY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "uvicorn.access")

SENSITIVE_FIELDS: Final[frozenset[str]] = frozenset(
    {"access_token", "refresh_token", "email_otp", "token", "hash", "init_data", "initData"}
)
MASK: Final[str] = "***"

# Anything a bare LogRecord carries is metadata, not a caller-supplied extra.
_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName", "request_id"}


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            entry["request_id"] = request_id

        entry.update(self._extras(record))

        if record.exc_info:
            entry["exc_info"] = self._single_line(self.formatException(record.exc_info))
        if record.stack_info:
            entry["stack"] = self._single_line(self.formatStack(record.stack_info))

        return json.dumps(entry, ensure_ascii=True, separators=(",", ":"))

    def _extras(self, record: logging.LogRecord) -> dict[str, Any]:
        extras: dict[str, Any] = {}
        for key, value in vars(record).items():
            if key in _RECORD_ATTRS or key.startswith("_") or value is None:
                continue
            extras[key] = MASK if key in SENSITIVE_FIELDS else _jsonable(value)
        return extras

    @staticmethod
    def _single_line(text: str) -> str:
        return text.replace("\n", " | ")


def _jsonable(value: object) -> object:
    if isinstance(value, (str, int, float, bool)):
        return value
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def configure_logging(level_name: str) -> None:
    """Route the root logger through JsonLogFormatter; later calls are no-ops."""

    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonLogFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(_resolve_level(level_name))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    _LOGGING_CONFIGURED = True


def _resolve_level(level_name: str) -> int:
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def bind_request_id(request_id: str) -> Token[str | None]:
    return REQUEST_ID_CTX.set(request_id)


def get_request_id() -> str | None:
    return REQUEST_ID_CTX.get()


def reset_request_id(token: Token[str | None]) -> None:
    REQUEST_ID_CTX.reset(token)


__all__ = [
    "JsonLogFormatter",
    "bind_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "reset_request_id",
]
