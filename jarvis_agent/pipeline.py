"""Core orchestration for the assistant."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from .capture import CaptureController
from .composer import TurnComposer
from .dispatch import DispatchController
from .interfaces import CaptureEngine, GenerationBackend
from .models import CaptureSession, PromptBuffer, Turn
from .session import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_GREETING = "Hello, I am your personal AI assistant. How can I help you today?"
DEFAULT_CLEAR_MESSAGE = "Chat history cleared. How can I help you now?"


class ConversationOrchestrator:
    """
    Wires the conversation and capture components together.

    Compose this class with a generation backend and a capture engine. The
    UI reads :attr:`history`, :attr:`pending` and :attr:`capture_session`
    (or subscribes through :attr:`store`, :attr:`dispatch` and
    :attr:`capture`) and mutates only through the action methods below.

    Usage:
        async with ConversationOrchestrator(
            backend=GeminiClient("https://generativelanguage.googleapis.com", api_key=key),
            capture_engine=ConsoleCaptureEngine(),
        ) as orchestrator:
            task = orchestrator.send("Hello")
            await task
    """

    def __init__(
        self,
        *,
        backend: GenerationBackend,
        capture_engine: CaptureEngine,
        greeting: str = DEFAULT_GREETING,
        clear_message: str = DEFAULT_CLEAR_MESSAGE,
    ) -> None:
        self._clear_message = clear_message
        self.store = SessionStore(greeting)
        self.dispatch = DispatchController(self.store, backend)
        self.capture = CaptureController(capture_engine)
        self.composer = TurnComposer(self.dispatch, self.capture)
        self._closed = False

    async def __aenter__(self) -> "ConversationOrchestrator":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def submit(self, prompt: PromptBuffer) -> Optional[asyncio.Task]:
        """Send the typed prompt, or the finalized transcript when nothing was typed."""
        return self.composer.submit(prompt)

    def send(self, text: str) -> Optional[asyncio.Task]:
        return self.composer.submit(PromptBuffer(text))

    def clear(self, seed_text: Optional[str] = None) -> None:
        self.dispatch.reset(seed_text or self._clear_message)

    def start_listening(self) -> bool:
        return self.capture.start()

    def stop_listening(self) -> bool:
        return self.capture.stop()

    def toggle_listening(self) -> bool:
        return self.capture.toggle()

    def adopt_transcript(self, prompt: PromptBuffer) -> bool:
        return self.composer.adopt_transcript(prompt)

    async def aclose(self) -> None:
        """Stop capture and let the in-flight request settle; safe to call twice."""
        if self._closed:
            return
        self._closed = True
        try:
            self.capture.close()
            await self.capture.wait_closed()
        except Exception:
            logger.exception("Failed to stop capture engine during shutdown")
        finally:
            await self.dispatch.wait_idle()
        logger.info("Orchestrator closed")

    @property
    def history(self) -> Sequence[Turn]:
        """Read-only chat history accumulated during the session."""
        return self.store.turns

    @property
    def pending(self) -> bool:
        return self.dispatch.pending

    @property
    def capture_session(self) -> CaptureSession:
        return self.capture.session
