"""Logging configuration."""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from ux_integrations.core.config import get_settings

settings = get_settings()

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else arrived through `extra=`
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

# Third-party loggers that would otherwise log every provider request
_QUIET_LOGGERS = ("httpx", "httpcore", "google.auth", "urllib3")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, tagged with service and environment."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": settings.service_name,
            "environment": settings.environment,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data.update(
            (key, value) for key, value in record.__dict__.items() if key not in _STANDARD_ATTRS
        )

        return json.dumps(log_data, default=str)


def setup_logging():
    """Route all logging to stdout in the configured format."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if settings.log_format == "json" else logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)

    for name in ("uvicorn", "fastapi"):
        logging.getLogger(name).setLevel(settings.log_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
