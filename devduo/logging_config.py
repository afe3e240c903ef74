"""
Logging configuration for the Dev Duo admin console.

Single 'devduo' logger used across all modules; engine and datastore
modules log through child loggers (logging.getLogger(__name__)).

  Log file : $LOG_DIR/devduo.log (LOG_DIR defaults to ./logs)
  Rotation : 5 MB × 3 backups
  Level    : LOG_LEVEL env var (DEBUG / INFO / WARNING / ERROR / CRITICAL)
             defaults to INFO when unset
  Console  : optional stderr handler (devduo --verbose)

Usage
-----
    from devduo.logging_config import configure_logging, log_call

    configure_logging()              # idempotent
    configure_logging(console=True)  # also echo log lines to stderr

    @log_call
    def projects_list(category):
        ...

Log format per line
-------------------
    2026-10-18 14:32:01 | DEBUG    | CALL projects_list | args=(category=None)
    2026-10-18 14:32:01 | INFO     | OK   projects_list | 42ms
    2026-10-18 14:32:01 | ERROR    | FAIL projects_delete | AuthorizationError: Role editor may not delete projects | 3ms
"""

import functools
import logging
import logging.handlers
import os
import sys
import time
from pathlib import Path

_LOG_DIR = Path(os.environ.get("LOG_DIR", Path(__file__).parent.parent / "logs"))
_LOG_FILE = _LOG_DIR / "devduo.log"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3
_MAX_ARG_REPR = 80


def _has_handler(logger: logging.Logger, kind: type) -> bool:
    # RotatingFileHandler is itself a StreamHandler subclass, so match exact types
    return any(type(h) is kind for h in logger.handlers)


def configure_logging(console: bool = False) -> logging.Logger:
    """
    Set up the devduo logger and return it.
    Safe to call on every CLI entry: each handler is added at most once.
    """
    _LOG_DIR.mkdir(parents=True, exist_ok=True)

    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger("devduo")
    logger.setLevel(level)
    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)

    if not _has_handler(logger, logging.handlers.RotatingFileHandler):
        handler = logging.handlers.RotatingFileHandler(
            _LOG_FILE,
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if console and not _has_handler(logger, logging.StreamHandler):
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(formatter)
        logger.addHandler(stream)

    return logger


def _short_repr(value) -> str:
    """repr() capped at _MAX_ARG_REPR chars, so file contents never reach the log."""
    text = repr(value)
    if len(text) > _MAX_ARG_REPR:
        return f"{text[:_MAX_ARG_REPR - 3]}..."
    return text


def log_call(func):
    """
    Decorator: logs entry, clean exit, and exceptions for any function.

    - DEBUG on entry   : CALL <name> | args=(...)
    - INFO  on success : OK   <name> | <N>ms
    - ERROR on failure : FAIL <name> | ExcType: message | <N>ms   (then re-raises)
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger("devduo")
        name = func.__name__
        start = time.perf_counter()

        parts = [_short_repr(a) for a in args] + [f"{k}={_short_repr(v)}" for k, v in kwargs.items()]
        arg_str = ", ".join(parts) if parts else "—"
        logger.debug(f"CALL {name} | args=({arg_str})")

        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            ms = int((time.perf_counter() - start) * 1000)
            logger.error(f"FAIL {name} | {type(exc).__name__}: {exc} | {ms}ms")
            raise

        ms = int((time.perf_counter() - start) * 1000)
        logger.info(f"OK   {name} | {ms}ms")
        return result

    return wrapper
