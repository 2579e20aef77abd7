"""Structured logging configuration.

JSON-formatted log lines so that recognizer polling, extraction and address
resolution can be correlated by trace ID and job handle in a log aggregator.
"""

import json
import logging
from datetime import datetime, timezone

# Context fields copied from ``logger.info(..., extra={...})`` into the JSON
# payload when present on the record.
CONTEXT_FIELDS = (
    "trace_id",
    "job_handle",
    "attempt",
    "max_attempts",
    "status",
    "error_code",
    "http_status",
    "duration_ms",
    "geo_level",
    "query",
    "parent_code",
    "line_count",
    "document_type",
    "retry_attempt",
)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Example:
        >>> logger.info("Recognition succeeded", extra={"job_handle": "...", "attempt": 3})
        # Output: {"timestamp": "2025-12-05T17:52:00+00:00", "level": "INFO",
        #          "message": "Recognition succeeded", "job_handle": "...", "attempt": 3}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_data, ensure_ascii=False, default=str)


def configure_structured_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Configure root logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatter (True) or plain text (False)
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    if json_format:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Suppress noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
