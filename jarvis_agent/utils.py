"""Utility helpers shared by the core components."""

from __future__ import annotations

import logging
from typing import Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Listeners(Generic[T]):
    """
    Fan-out of change notifications to UI subscribers.

    A subscriber that raises is logged and skipped; it never interrupts
    the component that is notifying.

    Usage:
        >>> listeners = Listeners()
        >>> unsubscribe = listeners.add(print)
        >>> listeners.notify("changed")
        changed
        >>> unsubscribe()
    """

    def __init__(self) -> None:
        self._callbacks: List[Callable[[T], None]] = []

    def add(self, callback: Callable[[T], None]) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def notify(self, value: T) -> None:
        for callback in list(self._callbacks):
            try:
                callback(value)
            except Exception:
                logger.exception("Listener %r failed", callback)

    def clear(self) -> None:
        self._callbacks.clear()

    def __len__(self) -> int:
        return len(self._callbacks)


def base_language(language: Optional[str], default: str = "en") -> str:
    """
    Strip the region from a BCP-47 code.

    Example:
        >>> base_language("en-US")
        'en'
    """
    lang = language or default
    if "-" in lang:
        lang = lang.split("-")[0]
    return lang.lower()
