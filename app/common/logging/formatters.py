"""Structured JSON logging formatter with correlation ID support."""

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Produces log entries in JSON format suitable for log aggregation systems.
    Includes correlation_id, structured_data, and exception info.
    """

    def __init__(self, include_path: bool = False, extra_fields: dict[str, Any] | None = None):
        """
        Initialize JSON formatter.

        Args:
            include_path: Include file:line info
            extra_fields: Static fields to add to every log entry
        """
        super().__init__()
        self.include_path = include_path
        self.extra_fields = extra_fields or {}

    @staticmethod
    def _extract_component(logger_name: str) -> str:
        """
        Extract component name from logger hierarchy.

        Examples:
            app.core.catalog.query_service -> catalog.query_service
            app.api.routes -> api.routes
            __main__ -> main
        """
        if logger_name == "__main__":
            return "main"

        parts = logger_name.split(".")
        # Remove "app" and "core" prefixes
        if parts[0] == "app":
            parts = parts[1:]
        if parts and parts[0] == "core":
            parts = parts[1:]

        return ".".join(parts) if parts else logger_name

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "component": self._extract_component(record.name),
            "logger": record.name,
        }

        if self.include_path:
            log_entry["path"] = f"{record.pathname}:{record.lineno}"

        message = record.getMessage()
        log_entry["message"] = message.strip() if message else ""

        if getattr(record, "correlation_id", None):
            log_entry["correlation_id"] = record.correlation_id

        if getattr(record, "structured_data", None):
            log_entry["data"] = record.structured_data

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        log_entry.update(self.extra_fields)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class StructuredLogAdapter(logging.LoggerAdapter):
    """
    Log adapter that adds structured data to logs.

    Usage:
        logger = StructuredLogAdapter(logging.getLogger(__name__))
        logger.info("Cache miss", data={"key": "photos:id:42"})
    """

    def __init__(self, logger: logging.Logger, extra: dict | None = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        """Move the 'data' kwarg into the record's extra dict."""
        extra = kwargs.get("extra", {})

        if "data" in kwargs:
            extra["structured_data"] = kwargs.pop("data")

        kwargs["extra"] = extra
        return msg, kwargs

    def info(self, msg: str, *args, data: dict | None = None, **kwargs):
        """Log info with optional structured data."""
        if data:
            kwargs["data"] = data
        super().info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, data: dict | None = None, **kwargs):
        """Log warning with optional structured data."""
        if data:
            kwargs["data"] = data
        super().warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, data: dict | None = None, **kwargs):
        """Log error with optional structured data."""
        if data:
            kwargs["data"] = data
        super().error(msg, *args, **kwargs)

    def debug(self, msg: str, *args, data: dict | None = None, **kwargs):
        """Log debug with optional structured data."""
        if data:
            kwargs["data"] = data
        super().debug(msg, *args, **kwargs)
