"""
Logging builder: create and apply a dictConfig logging configuration and
optionally move handler I/O to a background QueueListener.

 - make_dict_config(settings) builds the dictConfig mapping.
 - setup_logging(settings) applies it; with LOG_USE_QUEUE the real handlers are
   moved behind a QueueHandler so request coroutines only enqueue records.
 - stop_queue_logging() flushes and stops the listener at shutdown.

Queue knobs on Settings:
 - LOG_USE_QUEUE: enable queue-backed logging
 - LOG_QUEUE_MAX_SIZE: > 0 for a bounded queue, 0 for unbounded
 - LOG_QUEUE_BLOCKING: with a bounded queue, block producers instead of dropping
 - LOG_QUEUE_DROP_WARNING_THRESHOLD: warn every N dropped records
"""

from __future__ import annotations

from pathlib import Path
import logging
import logging.config
import queue as _queue
import threading
from typing import Optional

from logging.handlers import QueueHandler, QueueListener

from cattery.utils.logging import get_project_name
from .formatters import JsonFormatter, ColorFormatter
from .filters import RequestIdFilter, RedactFilter
from .handlers import (
    get_console_handler,
    get_file_handler,
    get_error_file_handler,
    get_error_console_handler,
)

from cattery.config.settings import Settings

_QUEUE_LISTENER: Optional[QueueListener] = None
_QUEUE: Optional[_queue.Queue] = None

_DROPPED_LOGS_COUNT = 0
_DROPPED_LOGS_LOCK = threading.Lock()
_DROP_WARNING_THRESHOLD = 100


class NonBlockingQueueHandler(QueueHandler):
    """
    QueueHandler that never blocks producers on a full bounded queue.

    A full queue drops the record and bumps a module-level counter; every
    `_DROP_WARNING_THRESHOLD` drops a warning is written straight to stderr
    through `handleError` (logging it would enqueue into the full queue).
    """

    def emit(self, record: logging.LogRecord) -> None:
        global _DROPPED_LOGS_COUNT
        try:
            self.queue.put_nowait(self.prepare(record))
        except _queue.Full:
            with _DROPPED_LOGS_LOCK:
                _DROPPED_LOGS_COUNT += 1
                dropped = _DROPPED_LOGS_COUNT
            if _DROP_WARNING_THRESHOLD > 0 and dropped % _DROP_WARNING_THRESHOLD == 0:
                self.handleError(record)


def get_queue_stats() -> dict:
    """Return small diagnostics about queue usage."""
    with _DROPPED_LOGS_LOCK:
        return {"dropped_logs": _DROPPED_LOGS_COUNT, "queue_present": _QUEUE is not None}


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping for `settings`.

      - formatters: "standard" (colored when LOG_FORMAT is text) and "json"
      - filters: "request_id", "redact"
      - handlers: console, plus file/error_file when logging to LOG_DIR,
        otherwise error_console
      - loggers: root, uvicorn.error, uvicorn.access, sqlalchemy.engine
    """
    formatters = {
        "standard": {
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s",
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": get_project_name(default="cattery"),
        },
    }

    filters = {
        "request_id": {"()": RequestIdFilter},
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}

    if (not settings.LOG_TO_STDOUT) and settings.LOG_DIR:
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers.keys()),
                "level": settings.LOG_LEVEL,
            },
            "uvicorn.error": {
                "level": settings.LOG_LEVEL,
                "handlers": list(handlers.keys()),
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "DEBUG" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Apply the logging configuration, optionally switching to queue-backed logging.

    Steps:
      1. Create LOG_DIR when logging to files.
      2. dictConfig(make_dict_config(settings)).
      3. Add a RequestIdFilter on the root logger as a safety net.
      4. With LOG_USE_QUEUE: detach the real handlers, run them in a
         QueueListener thread, and attach a (NonBlocking)QueueHandler to root.
         The producer-side filters run on the QueueHandler so the request id
         contextvar is read in the producing task.
    """
    global _QUEUE_LISTENER, _QUEUE, _DROP_WARNING_THRESHOLD

    stop_queue_logging()

    if (not settings.LOG_TO_STDOUT) and settings.LOG_DIR:
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))

    logging.getLogger().addFilter(RequestIdFilter())

    if not getattr(settings, "LOG_USE_QUEUE", False):
        return

    max_size = getattr(settings, "LOG_QUEUE_MAX_SIZE", 0) or 0
    blocking = bool(getattr(settings, "LOG_QUEUE_BLOCKING", False))
    _DROP_WARNING_THRESHOLD = int(getattr(settings, "LOG_QUEUE_DROP_WARNING_THRESHOLD", 100))

    root_logger = logging.getLogger()
    current_handlers = list(root_logger.handlers)
    if not current_handlers:
        return

    # Detach the real handlers everywhere so they only run on the listener thread.
    handlers_to_move = set(current_handlers)
    for logger_obj in list(logging.Logger.manager.loggerDict.values()):
        if isinstance(logger_obj, logging.Logger):
            for h in list(logger_obj.handlers):
                if h in handlers_to_move:
                    logger_obj.removeHandler(h)
    for h in current_handlers:
        root_logger.removeHandler(h)

    log_queue: _queue.Queue = _queue.Queue(max_size if max_size > 0 else 0)

    if max_size > 0 and not blocking:
        qh: QueueHandler = NonBlockingQueueHandler(log_queue)
    else:
        qh = QueueHandler(log_queue)

    qh.addFilter(RequestIdFilter())
    qh.addFilter(RedactFilter())

    listener = QueueListener(log_queue, *current_handlers, respect_handler_level=True)
    listener.start()

    root_logger.addHandler(qh)

    _QUEUE_LISTENER = listener
    _QUEUE = log_queue


def stop_queue_logging() -> None:
    """
    Stop the QueueListener (flushing queued records) and clear module refs.
    No-op when queue logging is not active.
    """
    global _QUEUE_LISTENER, _QUEUE
    listener = _QUEUE_LISTENER
    if listener is None:
        return

    try:
        listener.stop()
    except Exception:
        logging.getLogger(__name__).exception("Failed to stop QueueListener cleanly")
    finally:
        _QUEUE_LISTENER = None
        _QUEUE = None
