"""Custom exceptions for the assistant."""

from __future__ import annotations


class GenerationError(RuntimeError):
    """Base class for failures while producing a model turn."""


class GenerationTransportError(GenerationError):
    """Raised when the generation service cannot be reached or answers with a non-2xx status."""


class MalformedResponseError(GenerationError):
    """Raised when a generation response does not carry candidate text."""


class CaptureEngineError(RuntimeError):
    """Raised when a capture engine cannot begin a listening session."""


class TranscriptionError(RuntimeError):
    """Raised when a speech-to-text adapter fails to transcribe an utterance."""
