"""
Tests for the remote Whisper adapter.
"""

import asyncio
import io
import struct
import urllib.error
import urllib.request

import pytest

from jarvis_agent.exceptions import TranscriptionError
from jarvis_agent.models import CapturedAudio
from jarvis_agent.services.stt_remote import RemoteSpeechToText, pcm_to_wav


class FakeResponse:
    def __init__(self, body, content_type):
        self._body = body
        self.headers = {"Content-Type": content_type}

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


def test_pcm_to_wav_header():
    pcm = b"\x01\x00" * 100
    wav = pcm_to_wav(pcm, 16000)

    assert wav[:4] == b"RIFF"
    assert wav[8:12] == b"WAVE"
    assert struct.unpack("<I", wav[4:8])[0] == 36 + len(pcm)
    assert struct.unpack("<I", wav[24:28])[0] == 16000
    assert wav[44:] == pcm


def test_transcribe_json_response(monkeypatch):
    seen = []

    def fake_urlopen(request, timeout=None, context=None):
        seen.append(request)
        return FakeResponse(b'{"text": " hello there "}', "application/json")

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    stt = RemoteSpeechToText(base_url="http://whisper:9000/")
    audio = CapturedAudio(data=b"\x00\x00" * 160, sample_rate=16000)

    text = asyncio.run(stt.transcribe(audio, language="en-US"))

    assert text == "hello there"
    assert seen[0].full_url == "http://whisper:9000/transcribe?language=en-US"
    assert seen[0].data[:4] == b"RIFF"


def test_transcribe_plain_text_response(monkeypatch):
    monkeypatch.setattr(
        urllib.request, "urlopen", lambda request, timeout=None, context=None: FakeResponse(b"hi\n", "text/plain")
    )
    stt = RemoteSpeechToText(base_url="http://whisper:9000")

    assert asyncio.run(stt.transcribe(CapturedAudio(data=b"\x00\x00", sample_rate=16000))) == "hi"


def test_server_error_raises_transcription_error(monkeypatch):
    def fake_urlopen(request, timeout=None, context=None):
        raise urllib.error.HTTPError(request.full_url, 503, "Unavailable", {}, io.BytesIO(b"loading"))

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    stt = RemoteSpeechToText(base_url="http://whisper:9000")

    with pytest.raises(TranscriptionError, match="503"):
        asyncio.run(stt.transcribe(CapturedAudio(data=b"\x00\x00", sample_rate=16000)))


def test_empty_audio_is_rejected():
    stt = RemoteSpeechToText(base_url="http://whisper:9000")

    with pytest.raises(TranscriptionError):
        asyncio.run(stt.transcribe(CapturedAudio(data=b"", sample_rate=16000)))
