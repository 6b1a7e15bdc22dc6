"""
Storefront - Logging

One ``storefront`` logger for the whole application. Production writes one
JSON object per line; development writes readable lines tagged with the
request and user ids of the current request.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

from storefront.core.config import settings

LOGGER_NAME = "storefront"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str] = ContextVar("user_id", default="")

# Attributes every LogRecord already has; extra fields may not reuse them
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "request_id", "user_id"}


def get_request_id() -> str:
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_user_id() -> str:
    return user_id_var.get()


def set_user_id(user_id: str) -> None:
    user_id_var.set(user_id)


def generate_request_id() -> str:
    """Short id used to correlate the log lines of one request"""
    return uuid.uuid4().hex[:8]


def safe_extra(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Prefix keys that would clash with LogRecord attributes (``filename`` -> ``ctx_filename``)"""
    return {(f"ctx_{key}" if key in _RECORD_ATTRS else key): value for key, value in fields.items()}


class JSONFormatter(logging.Formatter):
    """Structured lines for log aggregation"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        for key, value in (("request_id", get_request_id()), ("user_id", get_user_id())):
            if value:
                entry[key] = value

        entry.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ContextualFormatter(logging.Formatter):
    """Plain text with ``%(request_id)s`` / ``%(user_id)s`` available"""

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = get_request_id() or "-"
        record.user_id = get_user_id() or "-"
        return super().format(record)


class StorefrontLogger(logging.Logger):
    """Logger with one helper per kind of application event"""

    def _event(self, level: int, message: str, event_type: str, **fields: Any) -> None:
        self.log(level, message, extra=safe_extra({"event_type": event_type, **fields}))

    def log_request(self, method: str, path: str, status_code: int, duration_ms: float, **fields) -> None:
        level = logging.WARNING if status_code >= 500 else logging.INFO
        self._event(
            level, f"{method} {path} -> {status_code} ({duration_ms:.1f}ms)", "http_request",
            http_method=method, http_path=path, http_status=status_code, duration_ms=duration_ms, **fields,
        )

    def log_db_operation(self, operation: str, collection: str, affected: int = 0, **fields) -> None:
        self._event(
            logging.DEBUG, f"[DB] {operation} {collection}: {affected}", "db_operation",
            db_operation=operation, db_collection=collection, affected=affected, **fields,
        )

    def log_auth_event(self, event: str, success: bool, user_email: Optional[str] = None,
                       reason: Optional[str] = None, **fields) -> None:
        outcome = "ok" if success else f"rejected ({reason or 'no reason'})"
        self._event(
            logging.INFO if success else logging.WARNING,
            f"[Auth] {event} {user_email or '-'}: {outcome}", "auth",
            auth_event=event, auth_success=success, user_email=user_email, failure_reason=reason, **fields,
        )

    def log_error_with_context(self, error: Exception, context: Optional[str] = None, **fields) -> None:
        self.error(
            f"[Error] {context or 'unknown'}: {type(error).__name__}: {error}",
            exc_info=error,
            extra=safe_extra({"event_type": "error", "error_type": type(error).__name__,
                              "error_context": context, **fields}),
        )

    def log_performance(self, operation: str, duration_ms: float, threshold_ms: float = 1000, **fields) -> None:
        """Slow operations are warnings, the rest only show up at DEBUG"""
        slow = duration_ms > threshold_ms
        self._event(
            logging.WARNING if slow else logging.DEBUG,
            f"[Perf] {operation}: {duration_ms:.1f}ms" + (f" > {threshold_ms}ms" if slow else ""),
            "performance",
            operation=operation, duration_ms=duration_ms, threshold_ms=threshold_ms, slow=slow, **fields,
        )


def _handlers(formatter: logging.Formatter, file_formatter: logging.Formatter) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(formatter)
    handlers: List[logging.Handler] = [console]

    if settings.LOG_FILE:
        path = Path(settings.LOG_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(path, maxBytes=10 * 1024 * 1024, backupCount=5)
        rotating.setLevel(logging.DEBUG)
        rotating.setFormatter(file_formatter)
        handlers.append(rotating)

    return handlers


def setup_logging() -> StorefrontLogger:
    """(Re)configure the ``storefront`` logger from settings"""
    logging.setLoggerClass(StorefrontLogger)
    logger = logging.getLogger(LOGGER_NAME)
    logger.__class__ = StorefrontLogger
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.propagate = False

    if settings.ENVIRONMENT == "production":
        formatter = file_formatter = JSONFormatter()
    else:
        formatter = ContextualFormatter("%(levelname)-8s | %(message)s")
        file_formatter = ContextualFormatter(
            "%(asctime)s | %(levelname)-8s | [%(request_id)s] [%(user_id)s] | %(name)s | %(message)s"
        )

    logger.handlers.clear()
    for handler in _handlers(formatter, file_formatter):
        logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    logger.debug("Logging configured", extra={"environment": settings.ENVIRONMENT})
    return logger


logger: StorefrontLogger = setup_logging()
