"""Process-level crash guards."""

import asyncio
import logging
import os
import sys
import threading
from collections.abc import Callable
from types import TracebackType
from typing import Any

from .config import Settings
from .logging_config import get_logger
from .metrics import record_process_fault


def flush_output() -> None:
    """Push buffered log output out before the process is killed."""
    for stream in (sys.stdout, sys.stderr):
        if stream is not None:
            stream.flush()
    logging.shutdown()


class ProcessSupervisor:
    """Records faults that escape every request handler.

    Asynchronous faults (failed tasks nobody awaited, failing loop callbacks)
    are always logged and never stop the process: on a serverless host each
    invocation already isolates its own failure. Uncaught exceptions terminate
    the process outside production so development fails fast; in production
    they are only logged and the platform decides whether to restart.

    Args:
        settings: Application settings
        logger: Structured logger faults are written to
        terminate: Called with the exit code to stop the process
        flush: Called right before terminate to write out buffered logs
    """

    def __init__(
        self,
        settings: Settings,
        logger: Any = None,
        terminate: Callable[[int], None] = os._exit,
        flush: Callable[[], None] = flush_output,
    ):
        self.settings = settings
        self.logger = logger or get_logger(__name__)
        self.terminate = terminate
        self.flush = flush
        self._previous_excepthook: Callable[..., Any] | None = None
        self._previous_threading_excepthook: Callable[..., Any] | None = None

    def install(self) -> None:
        """Register the synchronous exception hooks.

        Calling it again while installed does nothing.
        """
        if self._previous_excepthook is not None:
            return
        self._previous_excepthook = sys.excepthook
        self._previous_threading_excepthook = threading.excepthook
        sys.excepthook = self.handle_uncaught_exception
        threading.excepthook = self._handle_thread_exception

    def install_loop_handler(self, loop: asyncio.AbstractEventLoop) -> None:
        """Register the handler for unhandled asynchronous failures."""
        loop.set_exception_handler(self.handle_unhandled_rejection)

    def uninstall(self) -> None:
        """Restore the hooks that were active before install()."""
        if self._previous_excepthook is not None:
            sys.excepthook = self._previous_excepthook
            self._previous_excepthook = None
        if self._previous_threading_excepthook is not None:
            threading.excepthook = self._previous_threading_excepthook
            self._previous_threading_excepthook = None

    def handle_unhandled_rejection(
        self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
    ) -> None:
        """Log an asynchronous failure without stopping the process."""
        exc = context.get("exception")
        record_process_fault("unhandled_rejection")
        self.logger.error(
            "Unhandled rejection",
            message=context.get("message"),
            reason=repr(exc) if exc else None,
            task=repr(context.get("future") or context.get("task")),
            exc_info=(type(exc), exc, exc.__traceback__) if exc else None,
        )

    def handle_uncaught_exception(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        """Log an uncaught exception and stop the process outside production."""
        if issubclass(exc_type, KeyboardInterrupt):
            if self._previous_excepthook is not None:
                self._previous_excepthook(exc_type, exc, tb)
            return

        record_process_fault("uncaught_exception")
        self.logger.critical(
            "Uncaught exception",
            error_type=exc_type.__name__,
            error_message=str(exc),
            environment=self.settings.environment_name,
            exc_info=(exc_type, exc, tb),
        )

        if not self.settings.is_production:
            self.flush()
            self.terminate(1)

    def _handle_thread_exception(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_value is None:
            return
        self.handle_uncaught_exception(
            args.exc_type, args.exc_value, args.exc_traceback
        )
