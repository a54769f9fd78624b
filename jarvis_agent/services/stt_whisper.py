"""Whisper-based STT adapter."""

from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Optional

import numpy as np

from ..exceptions import TranscriptionError
from ..interfaces import SpeechToText
from ..models import CapturedAudio
from ..utils import base_language


class WhisperSpeechToText(SpeechToText):
    """
    Speech-to-text implementation using OpenAI Whisper, run in a worker thread.

    Args:
        model_size: Whisper model name (e.g., "tiny", "base", "small", "medium", "large").
        device: Device string passed to whisper (e.g., "cpu", "cuda").

    Notes:
        - Requires the `openai-whisper` package.
        - The model is loaded on first use.
    """

    def __init__(self, *, model_size: str = "tiny", device: Optional[str] = None) -> None:
        self.model_size = model_size
        self.device = device

    async def transcribe(self, audio: CapturedAudio, *, language: Optional[str] = None) -> str:
        if not audio.data:
            raise TranscriptionError("No audio data provided for transcription.")
        return await asyncio.to_thread(self._transcribe, audio, language)

    def _transcribe(self, audio: CapturedAudio, language: Optional[str]) -> str:
        model = _load_whisper(self.model_size, self.device)
        pcm = np.frombuffer(audio.data, dtype=np.int16).astype(np.float32) / 32768.0
        result = model.transcribe(pcm, language=base_language(language) if language else None)
        return str(result.get("text", "")).strip()


@lru_cache(maxsize=1)
def _load_whisper(model_size: str, device: Optional[str]):
    try:
        import whisper  # type: ignore
    except ImportError as exc:  # pragma: no cover - runtime dependency
        raise TranscriptionError("openai-whisper is required for WhisperSpeechToText. Install via pip.") from exc

    return whisper.load_model(model_size, device=device)
