"""
Application Logger

Every module logs through a child of the ``entprep`` logger. Exam sessions
log through a SessionLogger so each line carries the session id, and gateway
operations are timed with log_execution_time.

The logger is configured once at import from LOG_LEVEL, LOG_JSON and LOG_FILE,
and again by create_context() from the loaded LoggingConfig.
"""

import os
import sys
import json
import time
import logging
import datetime
import functools
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar, Union

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-28s | %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

APP_LOGGER_NAME = "entprep"

# Operations slower than this are logged at INFO instead of DEBUG
SLOW_OPERATION_SECONDS = 1.0

T = TypeVar('T')

__all__ = [
    'app_logger',
    'configure_logger',
    'JsonFormatter',
    'SessionLogger',
    'with_context',
    'log_execution_time'
]


class JsonFormatter(logging.Formatter):
    """One JSON object per line; session context is merged into the object."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.datetime.fromtimestamp(record.created, datetime.timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            entry.update(context)
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logger(
    level: Union[str, int] = logging.INFO,
    use_json: bool = False,
    log_file: Optional[str] = None,
    name: str = APP_LOGGER_NAME
) -> logging.Logger:
    """
    (Re)configure the application logger.

    Existing handlers are replaced, so calling this twice does not duplicate
    output. An unwritable log file is reported on stderr and skipped.

    Args:
        level: Level name or number
        use_json: Emit JSON lines instead of the text format
        log_file: Also append to this file
        name: Logger to configure

    Returns:
        The configured logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    formatter = JsonFormatter() if use_json else logging.Formatter(TEXT_FORMAT, TEXT_DATE_FORMAT)
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        except OSError as e:
            sys.stderr.write(f"entprep: cannot log to {log_file}: {e}\n")

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


class SessionLogger(logging.LoggerAdapter):
    """
    Adapter tagging records with fixed context such as a session id.

    Text output gets a ``[key=value]`` prefix; JSON output gets the context
    as top-level fields.
    """

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        super().__init__(logger, dict(context or {}))
        self._prefix = " ".join(f"{k}={v}" for k, v in self.extra.items())

    def process(self, msg: Any, kwargs: Dict[str, Any]):
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = {**self.extra, **extra.get("context", {})}
        kwargs["extra"] = extra
        if self._prefix:
            msg = f"[{self._prefix}] {msg}"
        return msg, kwargs


def with_context(name: Optional[str] = None, **context: Any) -> SessionLogger:
    """Return a SessionLogger over ``name`` (the application logger by default)."""
    logger = logging.getLogger(name) if name else app_logger
    return SessionLogger(logger, context)


def _logger_from_env() -> logging.Logger:
    logger = logging.getLogger(APP_LOGGER_NAME)
    if logger.handlers:
        return logger
    return configure_logger(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        use_json=os.environ.get("LOG_JSON", "false").lower() == "true",
        log_file=os.environ.get("LOG_FILE"),
    )


app_logger = _logger_from_env()


def log_execution_time(logger: Optional[logging.Logger] = None):
    """
    Decorator timing a coroutine function.

    Completed calls are logged at DEBUG, or INFO when slower than
    SLOW_OPERATION_SECONDS. Failures are logged at ERROR and re-raised.
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            log = logger or app_logger
            start = time.monotonic()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                log.error(f"{func.__qualname__} failed after {time.monotonic() - start:.3f}s: {e}")
                raise
            elapsed = time.monotonic() - start
            log.log(logging.INFO if elapsed > SLOW_OPERATION_SECONDS else logging.DEBUG,
                    f"{func.__qualname__} took {elapsed:.3f}s")
            return result
        return wrapper
    return decorator
