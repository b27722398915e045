"""Call logging for the upstream client and the coordinator services."""

from __future__ import annotations

import functools
import logging
import os
import threading
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

CALL_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"

_LOG_DIR = os.getenv("LIVEPUSH_LOG_DIR", "logs")
_LOG_FILE = os.path.join(_LOG_DIR, "calls.log")

_logger: logging.Logger | None = None
_logger_lock = threading.Lock()


def configure(log_dir: str) -> None:
    """Point the call log at *log_dir*, reopening the file if it is already in use."""
    global _LOG_DIR, _LOG_FILE, _logger
    with _logger_lock:
        _LOG_DIR = log_dir
        _LOG_FILE = os.path.join(log_dir, "calls.log")
        if _logger is not None:
            for handler in _logger.handlers[:]:
                _logger.removeHandler(handler)
                handler.close()
            _logger = None


def _get_logger() -> logging.Logger:
    """The non-propagating ``livepush.calls`` logger, opened on first use."""
    global _logger
    with _logger_lock:
        if _logger is None:
            os.makedirs(_LOG_DIR, exist_ok=True)
            handler = logging.FileHandler(_LOG_FILE, encoding="utf-8")
            handler.setFormatter(logging.Formatter(CALL_LOG_FORMAT))
            calls = logging.getLogger("livepush.calls")
            calls.setLevel(logging.DEBUG)
            calls.propagate = False
            calls.addHandler(handler)
            _logger = calls
        return _logger


def _describe_args(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    # Skip 'self'
    arg_parts = [repr(a) for a in args[1:]]
    arg_parts += [f"{k}={v!r}" for k, v in kwargs.items()]
    return ", ".join(arg_parts)


def _describe_result(result: Any) -> str:
    status = getattr(result, "status", None)
    if status is not None:
        return str(getattr(status, "value", status))
    if isinstance(result, list):
        return f"{len(result)} items"
    return type(result).__name__


def _timed(fn: F, prefix: str, args_in_outcome: bool) -> F:
    """Wrap *fn* so every call logs a CALL line and then an OK or FAIL line.

    Outcome lines repeat the arguments only when *args_in_outcome* is set;
    service calls keep them on the CALL line alone.
    """

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        logger = _get_logger()
        call = f"{fn.__qualname__}({_describe_args(args, kwargs)})"
        label = call if args_in_outcome else fn.__qualname__
        logger.info("%sCALL: %s", prefix, call)

        start = time.monotonic()
        try:
            result = await fn(*args, **kwargs)
        except Exception as exc:
            logger.error(
                "%sFAIL: %s -> %s: %s (%.3fs)",
                prefix, label, type(exc).__name__, exc, time.monotonic() - start,
            )
            raise
        logger.info(
            "%sOK: %s -> %s (%.3fs)",
            prefix, label, _describe_result(result), time.monotonic() - start,
        )
        return result

    return wrapper  # type: ignore[return-value]


def log_upstream_call(fn: F) -> F:
    """Decorator that logs upstream fetches, with their outcome status."""
    return _timed(fn, "", args_in_outcome=True)


def log_service_call(fn: F) -> F:
    """Decorator that logs coordinator entry points."""
    return _timed(fn, "SERVICE ", args_in_outcome=False)
