"""Cooperative cancellation shared by every optimizer loop."""

from __future__ import annotations

import threading
from typing import Optional


class OptimizationCancelled(Exception):
    """Raised when a run is cancelled; no partial result accompanies it."""

    def __init__(self, reason: str = "cancelled") -> None:
        super().__init__(reason)
        self.reason = reason


class CancelToken:
    __slots__ = ("_event", "_reason")

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OptimizationCancelled(self._reason or "cancelled")


def check(token: Optional[CancelToken]) -> None:
    if token is not None:
        token.raise_if_cancelled()


__all__ = ["CancelToken", "OptimizationCancelled", "check"]
