"""Single-flight dispatch of user turns to the generation backend."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from .exceptions import MalformedResponseError
from .interfaces import GenerationBackend
from .models import MODEL_ROLE, USER_ROLE, PendingRequest, Turn
from .session import SessionStore
from .utils import Listeners

logger = logging.getLogger(__name__)

MALFORMED_FALLBACK = "I am sorry, I could not generate a response."
TRANSPORT_FALLBACK = "There was an error communicating with the server. Please try again."


class DispatchController:
    """
    Sends each accepted user turn to the backend exactly once.

    At most one request is in flight. ``submit`` while a request is pending
    is rejected, never queued. The pending check, the user-turn append and
    the request snapshot happen in one synchronous step so no other reaction
    can interleave between them.

    Every outcome ends in a model turn: the candidate text, or one of the
    fixed fallback messages. If the history was reset while the request was
    in flight, the outcome is dropped instead of being appended to the new
    conversation.

    Usage:
        dispatch = DispatchController(store, backend)
        task = dispatch.submit("What's the weather like?")
        if task is not None:
            await task
    """

    def __init__(self, store: SessionStore, backend: GenerationBackend) -> None:
        self._store = store
        self._backend = backend
        self._pending: Optional[PendingRequest] = None
        self._task: Optional[asyncio.Task] = None
        self._listeners: Listeners[bool] = Listeners()

    def submit(self, text: str) -> Optional[asyncio.Task]:
        """
        Append a user turn and start generating the reply.

        Returns:
            The task running the backend call, or None when the submit was
            rejected (request already pending, or blank text).
        """
        if self._pending is not None:
            logger.info("Submit ignored: a request is already pending")
            return None
        text = text.strip()
        if not text:
            logger.debug("Submit ignored: empty message")
            return None

        loop = asyncio.get_running_loop()
        self._store.append(Turn(role=USER_ROLE, text=text))
        request = PendingRequest.from_snapshot(self._store.snapshot())
        self._pending = request
        self._listeners.notify(True)

        self._task = loop.create_task(self._run(request))
        return self._task

    def reset(self, seed_text: str) -> None:
        """Start a fresh conversation; a reply still in flight will be dropped."""
        if self._pending is not None:
            logger.info("Clearing history while a request is pending; its reply will be discarded")
        self._store.clear(seed_text)

    async def wait_idle(self) -> None:
        """Wait for the in-flight request, if any, to settle."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.wait({task})

    def subscribe(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        """Call ``callback`` with the pending flag whenever it changes."""
        return self._listeners.add(callback)

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def pending_request(self) -> Optional[PendingRequest]:
        return self._pending

    async def _run(self, request: PendingRequest) -> None:
        try:
            try:
                payload = await self._backend.generate(request.contents)
            except Exception as exc:
                logger.error("Generation request failed: %s", exc)
                reply = TRANSPORT_FALLBACK
            else:
                try:
                    reply = extract_candidate_text(payload)
                except MalformedResponseError as exc:
                    logger.warning("%s: %r", exc, payload)
                    reply = MALFORMED_FALLBACK
            self._deliver(request, reply)
        finally:
            self._pending = None
            self._listeners.notify(False)

    def _deliver(self, request: PendingRequest, reply: str) -> None:
        if self._store.version != request.version:
            logger.info(
                "Discarding reply for history version %d; current version is %d",
                request.version,
                self._store.version,
            )
            return
        self._store.append(Turn(role=MODEL_ROLE, text=reply))


def extract_candidate_text(payload: Dict[str, Any]) -> str:
    """
    Pull the reply text out of a generateContent response.

    Expected shape:
        {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}

    Raises:
        MalformedResponseError: when the path is absent or the text is empty.
    """
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise MalformedResponseError("Generation response did not contain candidate text") from exc

    if not isinstance(text, str) or not text:
        raise MalformedResponseError("Generation response did not contain candidate text")
    return text
