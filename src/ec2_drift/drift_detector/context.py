"""
Cancellation context for batch drift detection.
"""

import threading
import time
from typing import Optional

from ..errors import CONTEXT_CANCELED, CONTEXT_DEADLINE_EXCEEDED


class DetectionContext:
    """
    Cancellation signal shared by every task of a batch.

    A context is cancelled explicitly with cancel() or implicitly once its
    timeout elapses. It can be shared between threads.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    @classmethod
    def background(cls) -> "DetectionContext":
        """A context that is never cancelled unless cancel() is called."""
        return cls()

    def cancel(self) -> None:
        self._event.set()

    @property
    def deadline_exceeded(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.deadline_exceeded

    def error(self) -> Optional[str]:
        """Reason for cancellation, or None while the context is live."""
        if self._event.is_set():
            return CONTEXT_CANCELED
        if self.deadline_exceeded:
            return CONTEXT_DEADLINE_EXCEEDED
        return None
