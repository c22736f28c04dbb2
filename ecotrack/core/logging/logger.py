"""
EcoTrack Logging Subsystem

Purpose
-------
One logging setup for the whole package. Every record carries the
user/category/operation it was emitted for, so a recompute or a leaderboard
read can be traced from the log alone.

Pipeline
--------
    logger.info(...)  ->  ContextFilter  ->  EcoTrackQueueHandler
                                               |
                                     bounded queue.Queue
                                               |
                           EcoTrackQueueListener (background thread)
                              |                          |
                      console handler            daily JSON file
               (JSON in production, colored      (TimedRotatingFileHandler)
                text on a dev TTY)

- Context lives in a ContextVar and is bound with `LogContext`; async tasks
  inherit it, so a service call and the recompute it triggers share one
  correlation id.
- Fields passed with `extra={...}` are kept; the JSON output nests them
  under "extra".
- When the queue is full the record is dropped and counted; callers never
  block on logging.

Public API
----------
- setup_logging() / shutdown_logging()
- get_logger(name)
- LogContext (sync + async context manager)
- get_log_context() / set_log_context() / clear_log_context()
- get_logging_health()
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

from ecotrack.core.config.config import Config

UNSET = "N/A"

# Fields every record carries, in output order
CONTEXT_FIELDS = (
    "user_id",
    "category",
    "operation",
    "component",
    "correlation_id",
    "request_id",
)

_context: ContextVar[Dict[str, Any]] = ContextVar("ecotrack_log_context", default={})


# ============================================================================
# Settings
# ============================================================================


@dataclass(frozen=True)
class LoggerConfig:
    """Logging settings; level, JSON and directory come from `Config`."""

    CONSOLE_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
    DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
    DAILY_BASENAME: str = "ecotrack_daily.json.log"
    DAILY_BACKUP_COUNT: int = 1
    QUEUE_MAX_SIZE: int = 10_000

    @property
    def environment(self) -> str:
        return str(Config.ENVIRONMENT).lower()

    @property
    def log_level(self) -> int:
        level = logging.getLevelName(str(Config.LOG_LEVEL).upper())
        return level if isinstance(level, int) else logging.INFO

    @property
    def logs_dir(self) -> Path:
        return Path(Config.LOGS_DIR).resolve()

    @property
    def use_json(self) -> bool:
        if Config.LOG_JSON is None:
            return self.environment == "production"
        return bool(Config.LOG_JSON)

    @property
    def use_colors(self) -> bool:
        return not self.use_json and sys.stdout.isatty()


LOGGER_CONFIG = LoggerConfig()


# ============================================================================
# Health
# ============================================================================


@dataclass
class LoggingMetrics:
    records_enqueued: int = 0
    records_dropped: int = 0
    listener_errors: int = 0


@dataclass(frozen=True)
class LoggingHealth:
    initialized: bool
    queue_size: int
    queue_max_size: int
    records_enqueued: int
    records_dropped: int
    listener_errors: int


_metrics = LoggingMetrics()
_log_queue: Optional["queue.Queue[logging.LogRecord]"] = None
_listener: Optional[QueueListener] = None
_INIT_FLAG = "_ecotrack_logging_initialized"


# ============================================================================
# Filters & Formatters
# ============================================================================


class ContextFilter(logging.Filter):
    """
    Stamp the bound context onto each record.

    Values given explicitly through `extra=` are left alone; missing fields
    become "N/A". The component defaults to the top-level logger name.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        bound = _context.get()

        correlation_id = bound.get("correlation_id") or bound.get("request_id") or UNSET
        defaults = {
            "user_id": bound.get("user_id", UNSET),
            "category": bound.get("category", UNSET),
            "operation": bound.get("operation", UNSET),
            "component": bound.get("component") or record.name.partition(".")[0],
            "correlation_id": correlation_id,
            "request_id": bound.get("request_id", correlation_id),
        }
        for name, value in defaults.items():
            if not hasattr(record, name):
                setattr(record, name, value)

        return True


class ColoredFormatter(logging.Formatter):
    """Human-readable console output with the level name colored."""

    COLORS: Dict[str, str] = {
        "DEBUG": "\033[90m",
        "INFO": "\033[94m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[91m\033[1m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)

        plain = record.levelname
        record.levelname = f"{color}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


# Attributes every LogRecord has; anything else arrived through extra=
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """One JSON object per record; the canonical file format."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None and value != UNSET:
                payload[name] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
            and key not in CONTEXT_FIELDS
            and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        return json.dumps(payload, ensure_ascii=False, default=str)


# ============================================================================
# Queue Delivery
# ============================================================================


class EcoTrackQueueHandler(QueueHandler):
    """Non-blocking enqueue; a full queue drops the record."""

    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        _metrics.records_enqueued += 1
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            _metrics.records_dropped += 1
            sys.stderr.write("EcoTrack logging queue full; record dropped.\n")


class EcoTrackQueueListener(QueueListener):
    def handleError(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        _metrics.listener_errors += 1
        sys.stderr.write("EcoTrack log handler failed while writing a record.\n")


def _console_formatter() -> logging.Formatter:
    if LOGGER_CONFIG.use_json:
        return JSONFormatter()
    formatter_class = ColoredFormatter if LOGGER_CONFIG.use_colors else logging.Formatter
    return formatter_class(fmt=LOGGER_CONFIG.CONSOLE_FORMAT, datefmt=LOGGER_CONFIG.DATE_FORMAT)


def _build_handlers() -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_console_formatter())
    handlers: List[logging.Handler] = [console]

    logs_dir = LOGGER_CONFIG.logs_dir
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        sys.stderr.write(f"Cannot create {logs_dir}; file logging disabled.\n")
    else:
        daily = TimedRotatingFileHandler(
            filename=str(logs_dir / LOGGER_CONFIG.DAILY_BASENAME),
            when="midnight",
            backupCount=LOGGER_CONFIG.DAILY_BACKUP_COUNT,
            encoding="utf-8",
            utc=True,
            delay=True,
        )
        daily.setFormatter(JSONFormatter())
        handlers.append(daily)

    for handler in handlers:
        handler.setLevel(LOGGER_CONFIG.log_level)
    return handlers


# ============================================================================
# Lifecycle
# ============================================================================


def setup_logging() -> None:
    """Install the queue handler on the root logger. Idempotent."""
    global _metrics, _log_queue, _listener

    root = logging.getLogger()
    if getattr(root, _INIT_FLAG, False):
        return

    _metrics = LoggingMetrics()
    _log_queue = queue.Queue(LOGGER_CONFIG.QUEUE_MAX_SIZE)
    _listener = EcoTrackQueueListener(_log_queue, *_build_handlers(), respect_handler_level=True)
    _listener.start()

    queue_handler = EcoTrackQueueHandler(_log_queue)
    queue_handler.setLevel(LOGGER_CONFIG.log_level)
    queue_handler.addFilter(ContextFilter())

    root.setLevel(LOGGER_CONFIG.log_level)
    root.addHandler(queue_handler)

    for noisy in ("sqlalchemy.engine", "aiosqlite", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    setattr(root, _INIT_FLAG, True)

    logging.getLogger(__name__).info(
        "Logging initialized",
        extra={
            "environment": LOGGER_CONFIG.environment,
            "log_level": logging.getLevelName(LOGGER_CONFIG.log_level),
            "json": LOGGER_CONFIG.use_json,
            "logs_dir": str(LOGGER_CONFIG.logs_dir),
        },
    )


def shutdown_logging() -> None:
    """Flush the queue, stop the listener and detach the queue handler."""
    global _log_queue, _listener

    root = logging.getLogger()
    if not getattr(root, _INIT_FLAG, False):
        return

    logging.getLogger(__name__).info("Shutting down logging")

    if _listener is not None:
        _listener.stop()
        _listener = None

    for handler in [h for h in root.handlers if isinstance(h, EcoTrackQueueHandler)]:
        root.removeHandler(handler)
        handler.close()

    setattr(root, _INIT_FLAG, False)
    _log_queue = None


def get_logging_health() -> LoggingHealth:
    return LoggingHealth(
        initialized=bool(getattr(logging.getLogger(), _INIT_FLAG, False)),
        queue_size=_log_queue.qsize() if _log_queue is not None else 0,
        queue_max_size=_log_queue.maxsize if _log_queue is not None else 0,
        records_enqueued=_metrics.records_enqueued,
        records_dropped=_metrics.records_dropped,
        listener_errors=_metrics.listener_errors,
    )


# ============================================================================
# Context API
# ============================================================================


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Bind context to every record emitted inside the block.

    A correlation id is generated when none is given; `request_id` doubles
    as the correlation id when only it is supplied.

    Example
    -------
    >>> async with LogContext(user_id="u-1", category="food", operation="log_activity"):
    ...     logger.info("Activity logged")
    """

    def __init__(
        self,
        user_id: Optional[Any] = None,
        category: Optional[str] = None,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        request_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        correlation_id = correlation_id or request_id or uuid.uuid4().hex[:8]
        fields = {
            "user_id": str(user_id) if user_id is not None else None,
            "category": category,
            "component": component,
            "operation": operation,
            "correlation_id": correlation_id,
            "request_id": request_id or correlation_id,
        }
        self.context: Dict[str, Any] = {
            **{key: value for key, value in fields.items() if value is not None},
            **extra,
        }
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> LogContext:
        self._token = _context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def get_log_context() -> Dict[str, Any]:
    return dict(_context.get())


def set_log_context(
    user_id: Optional[Any] = None,
    category: Optional[str] = None,
    component: Optional[str] = None,
    operation: Optional[str] = None,
    correlation_id: Optional[str] = None,
    request_id: Optional[str] = None,
    **extra: Any,
) -> None:
    """Merge fields into the current context without a scoped block."""
    updated = dict(_context.get())
    updated.update(
        {
            key: value
            for key, value in (
                ("user_id", str(user_id) if user_id is not None else None),
                ("category", category),
                ("component", component),
                ("operation", operation),
                ("correlation_id", correlation_id),
                ("request_id", request_id),
            )
            if value
        }
    )
    if request_id and "correlation_id" not in updated:
        updated["correlation_id"] = request_id
    updated.update(extra)
    _context.set(updated)


def clear_log_context() -> None:
    _context.set({})


setup_logging()
