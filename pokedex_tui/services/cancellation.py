"""Cancellation — cooperative tokens for background loads the caller may abandon.

Invariants:
    - A token only goes from live to cancelled, never back
    - ensure_live() is called after every await that produced data and before
      any shared state (cache, event queue) is touched
"""


class AbandonedError(Exception):
    """A load finished after its caller cancelled it. Dropped silently, never surfaced."""


class CancelToken:
    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


def ensure_live(token: CancelToken | None) -> None:
    """Raise AbandonedError if token was cancelled. A None token is always live."""
    if token is not None and token.cancelled:
        raise AbandonedError()
