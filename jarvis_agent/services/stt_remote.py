"""Remote Whisper STT adapter via HTTP API."""

from __future__ import annotations

import asyncio
import json
import logging
import ssl
import struct
import urllib.error
import urllib.parse
import urllib.request
from typing import Optional

from ..exceptions import TranscriptionError
from ..interfaces import SpeechToText
from ..models import CapturedAudio

logger = logging.getLogger(__name__)


class RemoteSpeechToText(SpeechToText):
    """
    Speech-to-text implementation using a remote Whisper API.

    Args:
        base_url: Base URL for the Whisper service (e.g., "http://whisper:9000")
        timeout: HTTP timeout in seconds.
        ssl_context: Optional SSL context for HTTPS.

    Expected API format:
        POST /transcribe?language=<code>
        Content-Type: audio/wav
        Body: 16-bit mono WAV

        Response: {"text": "transcribed text"} or plain text
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 30.0,
        ssl_context: Optional[ssl.SSLContext] = None,
    ) -> None:
        self._endpoint = f"{base_url.rstrip('/')}/transcribe"
        self._timeout = timeout
        self._ssl_context = ssl_context

    async def transcribe(self, audio: CapturedAudio, *, language: Optional[str] = None) -> str:
        if not audio.data:
            raise TranscriptionError("No audio data provided for transcription.")
        return await asyncio.to_thread(self._post, audio, language)

    def _post(self, audio: CapturedAudio, language: Optional[str]) -> str:
        url = self._endpoint
        if language:
            url = f"{url}?{urllib.parse.urlencode({'language': language})}"
        request = urllib.request.Request(
            url,
            data=pcm_to_wav(audio.data, audio.sample_rate),
            headers={"Content-Type": "audio/wav"},
            method="POST",
        )

        logger.debug("Posting %.2fs of audio to %s", audio.duration, url)
        try:
            with urllib.request.urlopen(request, timeout=self._timeout, context=self._ssl_context) as response:  # type: ignore[arg-type]
                body = response.read()
                content_type = response.headers.get("Content-Type", "")
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore")
            raise TranscriptionError(f"Whisper request failed ({exc.code}): {detail}") from exc
        except urllib.error.URLError as exc:
            raise TranscriptionError(f"Whisper request could not reach the server: {exc.reason}") from exc

        if "application/json" in content_type:
            try:
                payload = json.loads(body.decode("utf-8"))
            except json.JSONDecodeError as exc:
                raise TranscriptionError("Whisper response was not valid JSON") from exc
            return str(payload.get("text", "")).strip()

        return body.decode("utf-8", errors="ignore").strip()


def pcm_to_wav(pcm_data: bytes, sample_rate: int) -> bytes:
    """Wrap raw 16-bit mono PCM in a WAV header."""
    channels = 1
    bits_per_sample = 16
    byte_rate = sample_rate * channels * bits_per_sample // 8
    block_align = channels * bits_per_sample // 8
    data_size = len(pcm_data)

    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        1,  # PCM
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        b"data",
        data_size,
    )
    return header + pcm_data
