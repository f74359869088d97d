"""
Sicario Loader Logging

Module loggers share one stderr handler, so log output never mixes with the
JSON document a command prints on stdout.

Records may carry loader context through ``extra=``. The fields named in
CONTEXT_FIELDS are appended to text output and included in JSON output; any
other extra attribute is ignored.

Usage:
    from sicario_loader.core.logging import get_logger

    logger = get_logger(__name__)
    logger.warning("Skipping preset %s", path, extra={"source": str(path)})
    logger.info("Build finished", extra={"duration_ms": 420})

Environment Variables:
    SICARIO_LOG_LEVEL: Set log level (DEBUG, INFO, WARNING, ERROR)
    SICARIO_DEBUG: Legacy - if set, enables DEBUG level
    SICARIO_LOG_JSON: If set, output JSON-formatted logs
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from .config import get_settings

# Context attributes understood by the formatter, in output order
CONTEXT_FIELDS: tuple[str, ...] = ("source", "target", "operation", "path", "duration_ms")


def _record_context(record: logging.LogRecord) -> dict[str, Any]:
    return {
        field: getattr(record, field)
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class SicarioFormatter(logging.Formatter):
    """
    Formatter for loader logs.

    Text: ``[SICARIO LEVEL] [module] message (key=value, ...)``
    JSON: one object per record with the context fields as top-level keys.
    """

    def __init__(self, json_output: bool = False) -> None:
        super().__init__()
        self.json_output = json_output

    def format(self, record: logging.LogRecord) -> str:
        context = _record_context(record)
        if self.json_output:
            return self._format_json(record, context)
        return self._format_text(record, context)

    def _format_text(self, record: logging.LogRecord, context: dict[str, Any]) -> str:
        module = record.name.rsplit(".", 1)[-1]
        msg = f"[SICARIO {record.levelname}] [{module}] {record.getMessage()}"
        if context:
            msg += " (" + ", ".join(f"{k}={v}" for k, v in context.items()) + ")"
        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)
        return msg

    def _format_json(self, record: logging.LogRecord, context: dict[str, Any]) -> str:
        created = datetime.fromtimestamp(record.created, timezone.utc)
        log_data: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **context,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


_loggers: dict[str, logging.Logger] = {}
_handler: Optional[logging.Handler] = None
# Set by the CLI's --verbose; wins over settings for loggers created later too
_level_override: Optional[int] = None


def _get_handler() -> logging.Handler:
    global _handler
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(SicarioFormatter(json_output=get_settings().log_json))
    return _handler


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the given module name.

    Args:
        name: Module name (typically __name__)

    Returns:
        Configured logger instance
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    if _level_override is not None:
        logger.setLevel(_level_override)
    else:
        logger.setLevel(get_settings().log_level_int)
    logger.addHandler(_get_handler())
    logger.propagate = False

    _loggers[name] = logger
    return logger


def set_log_level(level: int) -> None:
    """Set the level of every loader logger, including ones created later."""
    global _level_override
    _level_override = level
    for logger in _loggers.values():
        logger.setLevel(level)


def reset_logging() -> None:
    """
    Reset all loader loggers to default state.

    Restores propagate=True and level=NOTSET on every sicario_loader.* logger
    and drops the shared handler and any level override, so pytest's caplog
    sees records again.
    """
    global _handler, _level_override

    manager = logging.Logger.manager
    for name in list(manager.loggerDict.keys()):
        if name.startswith("sicario_loader"):
            logger_or_placeholder = manager.loggerDict[name]
            # loggerDict can contain Logger objects or PlaceHolder objects
            if isinstance(logger_or_placeholder, logging.Logger):
                logger_or_placeholder.propagate = True
                logger_or_placeholder.setLevel(logging.NOTSET)

    for logger in _loggers.values():
        if _handler is not None:
            logger.removeHandler(_handler)

    _handler = None
    _level_override = None
