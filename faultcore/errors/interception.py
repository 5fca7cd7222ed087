"""
errors/interception.py - Global fault interception

Hooks for faults the application never caught: uncaught exceptions in
the main thread and worker threads, and failed asyncio tasks nobody
awaited. The host entry point calls ``install()`` once.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Optional
from types import TracebackType
import asyncio
import logging
import sys
import threading

from faultcore.eventlog.logger import get_event_logger
from .statistics import ErrorStatistics, get_error_statistics
from .taxonomy import extract_details

logger = logging.getLogger("errors.interception")

_lock = threading.Lock()
_installed = False
_previous_excepthook: Optional[Callable[..., Any]] = None
_previous_threading_excepthook: Optional[Callable[..., Any]] = None
_hooked_loop: Optional[asyncio.AbstractEventLoop] = None
_previous_loop_handler: Optional[Callable[..., Any]] = None


def handle_uncaught_exception(
    exc_type: type,
    exc: Optional[BaseException],
    tb: Optional[TracebackType],
    thread_name: Optional[str] = None,
) -> bool:
    """
    Log an uncaught exception at FATAL.

    Returns True when default handling is suppressed. KeyboardInterrupt
    goes to the previous hook instead and returns False.
    """
    if issubclass(exc_type, KeyboardInterrupt):
        previous = _previous_excepthook or sys.__excepthook__
        previous(exc_type, exc, tb)
        return False

    if exc is not None and exc.__traceback__ is None and tb is not None:
        exc = exc.with_traceback(tb)

    details = extract_details(exc if exc is not None else exc_type.__name__)
    metadata: Dict[str, Any] = {
        "source": "uncaught_exception",
        "exception_type": exc_type.__name__,
    }
    if details.code:
        metadata["code"] = details.code
    if thread_name:
        metadata["thread"] = thread_name

    get_event_logger().fatal(f"Uncaught exception: {details.message}", error=exc, metadata=metadata)
    return True


def handle_unhandled_rejection(
    loop: asyncio.AbstractEventLoop,
    context: Dict[str, Any],
) -> bool:
    """
    Log a failed task or callback at ERROR, then let asyncio report it too.

    Always returns False: the loop's default handling still runs.
    """
    exc = context.get("exception")
    loop_message = context.get("message") or "Unhandled exception in event loop"
    details = extract_details(exc if exc is not None else loop_message)

    metadata: Dict[str, Any] = {
        "source": "unhandled_rejection",
        "loop_message": loop_message,
    }
    task = context.get("task") or context.get("future")
    if task is not None:
        metadata["task"] = repr(task)

    get_event_logger().error(
        f"Unhandled task failure: {details.message}",
        error=exc if isinstance(exc, BaseException) else None,
        metadata=metadata,
    )
    loop.default_exception_handler(context)
    return False


def _sys_excepthook(exc_type, exc, tb) -> None:
    handle_uncaught_exception(exc_type, exc, tb)


def _threading_excepthook(args) -> None:
    # Matches threading's default hook, which ignores SystemExit
    if issubclass(args.exc_type, SystemExit):
        return
    thread_name = args.thread.name if args.thread is not None else None
    handle_uncaught_exception(args.exc_type, args.exc_value, args.exc_traceback, thread_name)


def _hook_loop(loop: asyncio.AbstractEventLoop) -> None:
    global _hooked_loop, _previous_loop_handler
    _previous_loop_handler = loop.get_exception_handler()
    loop.set_exception_handler(handle_unhandled_rejection)
    _hooked_loop = loop


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def install(loop: Optional[asyncio.AbstractEventLoop] = None) -> bool:
    """
    Install the global hooks.

    Without ``loop``, the running event loop (if any) is hooked. Returns
    False if the hooks were already installed; a loop passed on a later
    call is still hooked when no open loop is hooked yet.
    """
    global _installed, _previous_excepthook, _previous_threading_excepthook

    if loop is None:
        loop = _running_loop()

    with _lock:
        if _installed:
            if loop is not None and (_hooked_loop is None or _hooked_loop.is_closed()):
                _hook_loop(loop)
            return False

        _previous_excepthook = sys.excepthook
        sys.excepthook = _sys_excepthook

        _previous_threading_excepthook = threading.excepthook
        threading.excepthook = _threading_excepthook

        if loop is not None:
            _hook_loop(loop)

        _installed = True

    logger.debug("Global fault hooks installed")
    get_event_logger().info("Global error handlers initialized")
    return True


def uninstall() -> None:
    """Restore the hooks that were active before ``install()``."""
    global _installed, _previous_excepthook, _previous_threading_excepthook
    global _hooked_loop, _previous_loop_handler

    with _lock:
        if not _installed:
            return

        if _previous_excepthook is not None:
            sys.excepthook = _previous_excepthook
        if _previous_threading_excepthook is not None:
            threading.excepthook = _previous_threading_excepthook
        if _hooked_loop is not None and not _hooked_loop.is_closed():
            _hooked_loop.set_exception_handler(_previous_loop_handler)

        _previous_excepthook = None
        _previous_threading_excepthook = None
        _hooked_loop = None
        _previous_loop_handler = None
        _installed = False

    logger.debug("Global fault hooks removed")


def is_installed() -> bool:
    return _installed


__all__ = [
    "install",
    "uninstall",
    "is_installed",
    "handle_uncaught_exception",
    "handle_unhandled_rejection",
    "get_error_statistics",
    "ErrorStatistics",
]
