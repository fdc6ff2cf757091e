"""
Cooperative cancellation for the duplicate detection pipeline.
"""

import signal
import sys
import threading
from typing import Optional


class CancellationToken:
    """
    Sticky, thread-safe cancellation flag shared by all pipeline phases.

    Once cancelled the token stays cancelled. Workers poll it between units
    of work; it never interrupts a read that is already in progress.
    """

    def __init__(self, cancelled: bool = False):
        self._event = threading.Event()
        if cancelled:
            self._event.set()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __bool__(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"


def is_cancelled(token: Optional[CancellationToken]) -> bool:
    """Return True if a token was given and has been cancelled."""
    return token is not None and token.cancelled


def install_interrupt_handler(token: CancellationToken):
    """
    Route SIGINT (Ctrl+C) into the given token instead of raising KeyboardInterrupt.

    Must be called from the main thread; ``signal.signal`` raises ValueError
    otherwise and the caller should treat that as fatal.

    Args:
        token: Token to cancel when the signal arrives

    Returns:
        The previously installed handler, so callers can restore it
    """
    def _handle_interrupt(signum, frame):
        if not token.cancelled:
            print("\nInterrupted by user, cleaning up...", file=sys.stderr)
        token.cancel()

    return signal.signal(signal.SIGINT, _handle_interrupt)


def restore_interrupt_handler(previous) -> None:
    """Reinstall a handler returned by install_interrupt_handler."""
    if previous is not None:
        signal.signal(signal.SIGINT, previous)
