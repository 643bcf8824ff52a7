"""
Error Handler
Global error handling and reporting
"""

import asyncio
import signal
import traceback
from typing import Any, Awaitable, Callable, Dict, Optional

from utils.logger import get_logger

ShutdownCallback = Callable[[], Awaitable[None]]


class ErrorHandler:
    """Global error handler for the bot."""

    def __init__(self):
        self.logger = get_logger("ErrorHandler")
        self.error_counts: Dict[str, int] = {}
        self._on_shutdown: Optional[ShutdownCallback] = None
        self._shutdown_task: Optional[asyncio.Task] = None

    def initialize(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        on_shutdown: Optional[ShutdownCallback] = None,
    ) -> None:
        """
        Install the loop exception handler and signal handlers.

        Args:
            loop: Event loop (default: the running loop)
            on_shutdown: Coroutine function called on SIGINT/SIGTERM
        """
        if loop is None:
            loop = asyncio.get_running_loop()

        self._on_shutdown = on_shutdown

        # Errors from tasks nobody awaits end up here
        loop.set_exception_handler(self._async_exception_handler)

        try:
            loop.add_signal_handler(signal.SIGINT, self._signal_handler, signal.SIGINT)
            loop.add_signal_handler(signal.SIGTERM, self._signal_handler, signal.SIGTERM)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

        self.logger.info("Error handlers initialized")

    def _signal_handler(self, sig: signal.Signals) -> None:
        """Handle shutdown signals."""
        self.logger.info(f"Received signal {sig.name}, shutting down...")
        if self._on_shutdown is not None and self._shutdown_task is None:
            self._shutdown_task = asyncio.ensure_future(self._on_shutdown())

    def _async_exception_handler(self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        """Handle async exceptions."""
        exception = context.get("exception")
        if exception:
            self.handle_exception(exception, "asyncio")
        else:
            message = context.get("message", "Unknown async error")
            self.logger.error(f"Async error: {message}")

    def handle_exception(self, error: BaseException, context: str = "") -> int:
        """
        Handle an exception.

        Args:
            error: The exception that occurred
            context: Optional context string

        Returns:
            Number of errors seen so far for this context and exception type
        """
        error_key = f"{context}:{type(error).__name__}"

        if context:
            self.logger.error(f"[{context}] {type(error).__name__}: {error}")
        else:
            self.logger.error(f"{type(error).__name__}: {error}")

        formatted = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        self.logger.debug(f"Traceback:\n{formatted}")

        count = self.error_counts.get(error_key, 0) + 1
        self.error_counts[error_key] = count
        return count

    def reset(self) -> None:
        """Clear error counts."""
        self.error_counts.clear()


# Global error handler instance
_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Get the global error handler instance."""
    global _error_handler
    if _error_handler is None:
        _error_handler = ErrorHandler()
    return _error_handler


def setup_error_handler(
    loop: Optional[asyncio.AbstractEventLoop] = None,
    on_shutdown: Optional[ShutdownCallback] = None,
) -> ErrorHandler:
    """Set up the global error handler."""
    handler = get_error_handler()
    handler.initialize(loop, on_shutdown)
    return handler
