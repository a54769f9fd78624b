"""Ordered chat history for one conversation."""

from __future__ import annotations

import logging
from typing import Callable, Iterator, List, Tuple

from .models import MODEL_ROLE, SessionSnapshot, Turn
from .utils import Listeners

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Append-only turn history seeded with a model greeting.

    The history is never empty. ``clear`` is the only mutation that is not an
    append: it swaps the whole history for a new seed turn and bumps
    :attr:`version`, which lets callers detect that a snapshot they hold has
    gone stale.

    Usage:
        store = SessionStore("Hello, how can I help?")
        store.append(Turn(role="user", text="Hi"))
        snapshot = store.snapshot()
    """

    def __init__(self, seed_text: str) -> None:
        self._turns: List[Turn] = [Turn(role=MODEL_ROLE, text=seed_text)]
        self._version = 0
        self._listeners: Listeners[Tuple[Turn, ...]] = Listeners()

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)
        logger.debug("Appended %s turn (%d chars); history length %d", turn.role, len(turn.text), len(self._turns))
        self._listeners.notify(self.turns)

    def snapshot(self) -> SessionSnapshot:
        """Return an immutable copy of the history as it is right now."""
        return SessionSnapshot(turns=tuple(self._turns), version=self._version)

    def clear(self, seed_text: str) -> None:
        """Replace the whole history with a single model turn."""
        self._turns = [Turn(role=MODEL_ROLE, text=seed_text)]
        self._version += 1
        logger.info("History cleared (version %d)", self._version)
        self._listeners.notify(self.turns)

    def subscribe(self, callback: Callable[[Tuple[Turn, ...]], None]) -> Callable[[], None]:
        """Call ``callback`` with the full history after every change."""
        return self._listeners.add(callback)

    @property
    def turns(self) -> Tuple[Turn, ...]:
        """Read-only chat history."""
        return tuple(self._turns)

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self.turns)
