"""Cancellation and deadlines for API calls.

A :class:`Context` is handed to every client call. It can be canceled from
another thread and may carry a deadline. The deadline becomes the transport
timeout of the request and is checked again while the body is read, so there
is no separate timer.
"""
from __future__ import annotations

import threading
import time
from typing import Optional

from .errors import Canceled, ContextError, DeadlineExceeded


class Context:
    """A cancellable, optionally deadline-bound execution context.

    Parameters
    ----------
    timeout: float, optional
        Seconds from now after which the context expires.
    parent: Context, optional
        The context is done whenever its parent is; the earlier of the two
        deadlines applies.
    """

    def __init__(self, timeout: Optional[float] = None, parent: Optional["Context"] = None) -> None:
        self.parent = parent
        self._canceled = threading.Event()
        deadline = None if timeout is None else time.monotonic() + timeout
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline

    def cancel(self) -> None:
        self._canceled.set()

    def err(self) -> Optional[ContextError]:
        """Return why the context is done, or ``None`` while it is live."""
        if self._canceled.is_set():
            return Canceled()
        if self.deadline is not None and time.monotonic() >= self.deadline:
            return DeadlineExceeded()
        if self.parent is not None:
            return self.parent.err()
        return None

    def done(self) -> bool:
        return self.err() is not None

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, ``None`` when there is none."""
        if self.deadline is None:
            return None
        return max(self.deadline - time.monotonic(), 0.0)


def background() -> Context:
    """A context that is never canceled and has no deadline."""
    return Context()


def with_timeout(timeout: float, parent: Optional[Context] = None) -> Context:
    return Context(timeout=timeout, parent=parent)


def with_cancel(parent: Optional[Context] = None) -> Context:
    return Context(parent=parent)
