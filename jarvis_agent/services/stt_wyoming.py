"""Wyoming Whisper STT adapter via Wyoming protocol."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from wyoming.asr import Transcribe, Transcript
from wyoming.audio import AudioChunk, AudioStart, AudioStop
from wyoming.client import AsyncTcpClient

from ..exceptions import TranscriptionError
from ..interfaces import SpeechToText
from ..models import CapturedAudio
from ..utils import base_language

logger = logging.getLogger(__name__)

CHUNK_BYTES = 8192


class WyomingSpeechToText(SpeechToText):
    """
    Speech-to-text implementation using the Wyoming Whisper protocol.

    Runs directly on the caller's event loop, one TCP connection per utterance.

    Args:
        host: Wyoming service host (e.g., "localhost")
        port: Wyoming service port (e.g., 10300 for whisper)
        timeout: Seconds to wait for the transcript event.
    """

    def __init__(
        self,
        *,
        host: str = "localhost",
        port: int = 10300,
        timeout: float = 30.0,
    ) -> None:
        self._host = host
        self._port = port
        self._timeout = timeout

    async def transcribe(self, audio: CapturedAudio, *, language: Optional[str] = None) -> str:
        if not audio.data:
            raise TranscriptionError("No audio data provided for transcription.")

        logger.debug("Connecting to Wyoming at %s:%s", self._host, self._port)
        try:
            return await self._transcribe(audio, base_language(language))
        except asyncio.TimeoutError as exc:
            raise TranscriptionError(f"Wyoming Whisper request timed out after {self._timeout}s") from exc
        except OSError as exc:
            raise TranscriptionError(f"Wyoming Whisper error: {exc}") from exc

    async def _transcribe(self, audio: CapturedAudio, language: str) -> str:
        pcm = audio.data
        async with AsyncTcpClient(self._host, self._port) as client:
            await client.write_event(Transcribe(language=language).event())
            await client.write_event(AudioStart(rate=audio.sample_rate, width=2, channels=1).event())
            for offset in range(0, len(pcm), CHUNK_BYTES):
                chunk = AudioChunk(audio=pcm[offset:offset + CHUNK_BYTES], rate=audio.sample_rate, width=2, channels=1)
                await client.write_event(chunk.event())
            await client.write_event(AudioStop().event())

            while True:
                event = await asyncio.wait_for(client.read_event(), timeout=self._timeout)
                if event is None:
                    break
                if Transcript.is_type(event.type):
                    return Transcript.from_event(event).text.strip()

        raise TranscriptionError("No transcript received from Wyoming Whisper")
