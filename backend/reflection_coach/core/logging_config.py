"""
Logging setup for the Reflection Coach API.

setup_logging() is called once from the app lifespan. Records are emitted as
one JSON object per line unless settings.debug is on, in which case a short
human-readable line is used. Every record carries the request's correlation
id and profile id (see core.middleware).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from reflection_coach.core.config import get_settings

# Record attributes copied into the JSON line when a caller passes them via extra=
_EXTRA_FIELDS = ("reflection_id", "path", "method")

_NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "h11", "watchfiles")


class RequestContextFilter(logging.Filter):
    """Stamp correlation_id and profile_id onto each record ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        from reflection_coach.core.middleware import get_correlation_id, get_request_profile_id

        record.correlation_id = get_correlation_id() or "-"
        # An explicit extra={"profile_id": ...} wins over the request's header
        if not getattr(record, "profile_id", None):
            record.profile_id = get_request_profile_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("correlation_id", "profile_id"):
            value = getattr(record, key, None)
            if value and value != "-":
                entry[key] = value
        for key in _EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: Optional[str] = None) -> None:
    settings = get_settings()
    log_level = level or ("DEBUG" if settings.debug else "INFO")

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(RequestContextFilter())
    if settings.debug:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-7s %(name)s [%(profile_id)s %(correlation_id)s] "
                "%(message)s",
                datefmt="%H:%M:%S",
            )
        )
    else:
        handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
