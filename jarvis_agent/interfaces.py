"""Protocol interfaces for dependency injection."""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, Sequence

from .models import CapturedAudio, ResultFragment


class GenerationBackend(Protocol):
    """Produces the next model turn for a conversation."""

    async def generate(self, contents: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Send the full conversation and return the decoded JSON response.

        Raises:
            GenerationTransportError: when the service cannot be reached or rejects the call.
        """


class CaptureListener(Protocol):
    """Receives lifecycle and result events from a capture engine."""

    def on_result(self, results: Sequence[ResultFragment], result_index: int = 0) -> None:
        """Deliver recognition results; fragments before ``result_index`` are unchanged."""

    def on_error(self, code: str) -> None:
        """Report an engine error such as ``"not-allowed"`` or ``"network"``."""

    def on_end(self) -> None:
        """Report that the engine stopped producing events for this session."""


class CaptureEngine(Protocol):
    """Continuous speech recognizer driven by the capture controller."""

    def initialize(self, listener: CaptureListener) -> bool:
        """
        Bind the listener and probe the capability.

        Returns:
            True when capture is available on this device.
        """

    def start(self) -> None:
        """Begin producing events for a new session."""

    def stop(self) -> None:
        """Request the end of the current session; ``on_end`` follows."""

    async def wait_closed(self) -> None:
        """Wait until the engine has released its resources after ``stop``."""


class SpeechToText(Protocol):
    """Transcribes one recorded utterance into text."""

    async def transcribe(self, audio: CapturedAudio, *, language: Optional[str] = None) -> str:
        """Return the transcribed text for the provided audio."""
