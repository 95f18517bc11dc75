"""
Structured Logging Configuration.

Supports two modes:
- text: Human-readable format for development
- json: One JSON object per line, for log shippers

Set LOG_FORMAT to "json" for production.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional

# Record attributes that may be attached through ``extra=`` by the stores.
_EXTRA_FIELDS = ("repo_url", "source", "status_code", "count")


class JSONFormatter(logging.Formatter):
    """Formatter that outputs JSON strings, including known ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "line": record.lineno,
        }

        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_record[field] = getattr(record, field)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record)


def setup_logging(log_format: Optional[str] = None, level: int = logging.INFO) -> None:
    """
    Setup logging for the application.

    Uses ``log_format`` (falls back to settings.LOG_FORMAT):
    - "json": Structured JSON
    - "text" (default): Human-readable for development
    """
    root_logger = logging.getLogger()

    # Avoid adding multiple handlers
    if root_logger.handlers:
        return

    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)

    if log_format is None:
        from repo_registry.config import settings

        log_format = settings.LOG_FORMAT

    if log_format.lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)

    root_logger.addHandler(handler)

    # Set lower level for noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
