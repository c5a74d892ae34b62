"""
Society Management - Logging
Plain text in development, one JSON object per line in production.

Every record carries the id of the request being served and the id of the
authenticated user, taken from context variables set by the middleware and
the auth dependency.
"""

import logging
import sys
import json
import uuid
from datetime import datetime
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar

from society.core.config import settings


request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')


def get_request_id() -> str:
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_user_id() -> str:
    return user_id_var.get()


def set_user_id(user_id: str) -> None:
    user_id_var.set(user_id)


def generate_request_id() -> str:
    """Short id for correlating the log lines of one request"""
    return uuid.uuid4().hex[:8]


# Attributes every LogRecord has; anything else came in through ``extra=``
_STANDARD_ATTRS = set(vars(logging.makeLogRecord({}))) | {'message', 'request_id', 'user_id'}

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024


class JSONFormatter(logging.Formatter):
    """Structured records for log shippers"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "request_id": get_request_id() or None,
            "user_id": get_user_id() or None,
        }
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(
            (key, value) for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith('_')
        )
        return json.dumps(entry, default=str)


class ContextualFormatter(logging.Formatter):
    """Text formatter exposing %(request_id)s and %(user_id)s"""

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = get_request_id() or '-'
        record.user_id = get_user_id() or '-'
        return super().format(record)


class SocietyLogger(logging.Logger):
    """
    Logger with one helper per kind of event the backend records.

    Helpers put the event fields in ``extra`` so the JSON formatter emits
    them as top-level keys.
    """

    def log_request(self, method: str, path: str, status_code: int,
                    duration_ms: float, **kwargs) -> None:
        level = logging.WARNING if status_code >= 500 else logging.INFO
        self.log(
            level,
            f"{method} {path} -> {status_code} ({duration_ms:.1f}ms)",
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": round(duration_ms, 2),
                **kwargs
            }
        )

    def log_auth_event(self, event: str, success: bool, user_email: Optional[str] = None,
                       reason: Optional[str] = None, **kwargs) -> None:
        """Registration, verification, login and account status changes"""
        parts = ["[Auth]", event, user_email, "ok" if success else "rejected", reason and f"({reason})"]
        self.log(
            logging.INFO if success else logging.WARNING,
            " ".join(p for p in parts if p),
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "user_email": user_email,
                "failure_reason": reason,
                **kwargs
            }
        )

    def log_occupancy_event(self, event: str, wing: Optional[str], flat_no: Optional[str],
                            **kwargs) -> None:
        """A flat changed hands: registered, assigned, released, vacated, renamed or deleted"""
        self.info(
            f"[Occupancy] {event} {wing or '?'}-{flat_no or '?'}",
            extra={
                "event_type": "occupancy",
                "occupancy_event": event,
                "wing": wing,
                "flat_no": flat_no,
                **kwargs
            }
        )

    def log_billing_event(self, event: str, **kwargs) -> None:
        summary = f" ({kwargs['count']} bills)" if "count" in kwargs else ""
        self.info(
            f"[Billing] {event}{summary}",
            extra={"event_type": "billing", "billing_event": event, **kwargs}
        )

    def log_error_with_context(self, error: Exception, context: Optional[str] = None,
                               **kwargs) -> None:
        self.error(
            f"Error in {context or 'request'}: {type(error).__name__}: {error}",
            exc_info=error,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_context": context,
                **kwargs
            }
        )


def _file_handler(formatter: logging.Formatter, backups: int) -> Optional[logging.Handler]:
    if not settings.LOG_FILE:
        return None
    path = Path(settings.LOG_FILE)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=backups)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> SocietyLogger:
    """Configure the ``society`` logger for the current environment"""
    logging.setLoggerClass(SocietyLogger)

    logger = logging.getLogger("society")
    logger.__class__ = SocietyLogger  # may have been created before setLoggerClass
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.propagate = False
    logger.handlers.clear()

    json_logging = settings.ENVIRONMENT == "production"
    if json_logging:
        console_formatter = file_formatter = JSONFormatter()
        backups = 10
    else:
        console_formatter = ContextualFormatter("%(levelname)-8s | %(message)s")
        file_formatter = ContextualFormatter(
            "%(asctime)s | %(levelname)-8s | [%(request_id)s] [%(user_id)s] | "
            "%(module)s.%(funcName)s:%(lineno)d | %(message)s"
        )
        backups = 5

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(console_formatter)
    logger.addHandler(console)

    file_handler = _file_handler(file_formatter, backups)
    if file_handler is not None:
        logger.addHandler(file_handler)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "aiosmtplib"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.debug(
        "Logging initialized",
        extra={"environment": settings.ENVIRONMENT, "json_logging": json_logging}
    )
    return logger


logger: SocietyLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'get_request_id',
    'set_request_id',
    'get_user_id',
    'set_user_id',
    'generate_request_id',
    'SocietyLogger',
    'JSONFormatter',
]
