"""
Structured logging configuration for the buildpack manifest validator.

Emits one JSON object per log record so validation runs can be traced by
CI systems that collect build logs.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "getMessage",
    "exc_info",
    "exc_text",
    "stack_info",
    "taskName",
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class ValidatorLogger:
    """Structured logger carrying the context of the current validation run."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(f"buildpack_manifest.{name}")
        self._setup_logger()
        self.run_context: Dict[str, Any] = {}

    def _setup_logger(self) -> None:
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.WARNING)
            self.logger.propagate = False

    def set_run_context(self, manifest_path: Optional[str] = None) -> None:
        """Set validation run context for logging."""
        self.run_context = {}
        if manifest_path:
            self.run_context["manifest_path"] = manifest_path

    def clear_run_context(self) -> None:
        self.run_context.clear()

    def _log(self, level: str, event_type: str, **kwargs) -> None:
        log_data = {"event_type": event_type, **self.run_context, **kwargs}
        getattr(self.logger, level)(event_type, extra=log_data)

    def info(self, event_type: str, **kwargs) -> None:
        self._log("info", event_type, **kwargs)

    def warning(self, event_type: str, **kwargs) -> None:
        self._log("warning", event_type, **kwargs)

    def error(self, event_type: str, **kwargs) -> None:
        self._log("error", event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        self._log("debug", event_type, **kwargs)


# Global logger instances
_validator_logger = ValidatorLogger("validator")
_loader_logger = ValidatorLogger("loader")


def get_validator_logger() -> ValidatorLogger:
    """Get validation run logger."""
    return _validator_logger


def get_loader_logger() -> ValidatorLogger:
    """Get manifest and schema loading logger."""
    return _loader_logger


def log_validation_start(manifest_path: str) -> None:
    """Log validation start event."""
    logger = get_validator_logger()
    logger.set_run_context(manifest_path)
    logger.info("validation_started")


def log_validation_complete(
    manifest_path: str, valid: bool, error_counts: Dict[str, int]
) -> None:
    """Log validation completion event."""
    logger = get_validator_logger()
    if valid:
        logger.info("validation_completed", valid=True)
    else:
        logger.warning("validation_completed", valid=False, error_counts=error_counts)
    logger.clear_run_context()


def log_manifest_loaded(manifest_path: str, top_level_keys: int) -> None:
    """Log a successfully parsed manifest."""
    get_loader_logger().debug(
        "manifest_loaded", manifest_path=manifest_path, top_level_keys=top_level_keys
    )


def configure_logging(log_level: str = "WARNING", structured: bool = True) -> None:
    """Configure level and output format of the validator loggers."""
    level = getattr(logging, log_level.upper(), logging.WARNING)
    formatter = (
        StructuredFormatter()
        if structured
        else logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    for logger in [_validator_logger, _loader_logger]:
        logger.logger.setLevel(level)
        for handler in logger.logger.handlers:
            handler.setFormatter(formatter)
