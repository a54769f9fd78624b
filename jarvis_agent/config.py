"""Configuration helpers for the Jarvis assistant."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .pipeline import DEFAULT_CLEAR_MESSAGE, DEFAULT_GREETING
from .services.gemini_client import DEFAULT_MODEL

load_dotenv()


@dataclass
class AppConfig:
    """
    Runtime configuration for the assistant.

    Attributes:
        api_base_url: Root URL of the generation service (without trailing slash).
        api_key: API key sent as the `x-goog-api-key` header.
        model: Generation model name.
        request_timeout: HTTP timeout in seconds.
        greeting: Seed model turn shown when the conversation starts.
        clear_message: Seed model turn used after the history is cleared.
        language: BCP-47 recognition language for speech capture.
        mode: "console" or "audio" for selecting the capture engine.
        stt_mode: "local", "remote", or "wyoming" for the audio-mode transcriber.
        whisper_url: URL for remote Whisper service (when stt_mode=remote).
        whisper_host: Wyoming Whisper host (when stt_mode=wyoming).
        whisper_port: Wyoming Whisper port (when stt_mode=wyoming).
        whisper_model: Whisper model size (when stt_mode=local).
        whisper_device: Device for Whisper ("cpu"/"cuda"/None).
        sample_rate: Microphone sample rate in Hz.
        silence_duration: Seconds of silence that end an utterance.
        silence_threshold: Mean absolute level below which audio counts as silence.
        max_utterance_seconds: Longest utterance before it is cut and transcribed.
        interim_seconds: Interval between interim transcriptions (0 disables them).
        audio_feedback: Whether to play start/stop cues in audio mode.

    Usage:
        >>> config = AppConfig.from_env()
        >>> config.model
        'gemini-2.5-flash-preview-05-20'
    """

    api_base_url: str
    api_key: Optional[str]
    model: str
    request_timeout: float
    greeting: str
    clear_message: str
    language: str
    mode: str
    stt_mode: str
    whisper_url: Optional[str]
    whisper_host: str
    whisper_port: int
    whisper_model: str
    whisper_device: Optional[str]
    sample_rate: int
    silence_duration: float
    silence_threshold: float
    max_utterance_seconds: float
    interim_seconds: float
    audio_feedback: bool

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Build an :class:`AppConfig` from environment variables.

        Supported variables:
            - JARVIS_API_BASE_URL: Generation service root (default: https://generativelanguage.googleapis.com)
            - JARVIS_API_KEY: API key for the generation service.
            - JARVIS_MODEL: Model name (default: gemini-2.5-flash-preview-05-20).
            - JARVIS_REQUEST_TIMEOUT: Timeout in seconds (float, default: 30).
            - JARVIS_GREETING: First model turn of every session.
            - JARVIS_CLEAR_MESSAGE: Model turn that replaces the history on clear.
            - JARVIS_LANGUAGE: Recognition language (default: "en-US").
            - JARVIS_MODE: "console" (default) or "audio" to capture from the microphone.
            - JARVIS_STT_MODE: "local" (default), "remote", or "wyoming".
            - JARVIS_WHISPER_URL: URL for remote Whisper (HTTP) service.
            - JARVIS_WHISPER_HOST: Wyoming Whisper host (default: "localhost").
            - JARVIS_WHISPER_PORT: Wyoming Whisper port (default: 10300).
            - JARVIS_WHISPER_MODEL: Whisper model size (default: "tiny").
            - JARVIS_WHISPER_DEVICE: Whisper device (e.g., "cuda" or "cpu").
            - JARVIS_SAMPLE_RATE: Microphone sample rate (default: 16000).
            - JARVIS_SILENCE_SECONDS: Silence that ends an utterance (default: 1.0).
            - JARVIS_SILENCE_THRESHOLD: Silence level (default: 0.01).
            - JARVIS_MAX_UTTERANCE_SECONDS: Utterance length cap (default: 15).
            - JARVIS_INTERIM_SECONDS: Interim transcription interval, 0 disables (default: 0).
            - JARVIS_AUDIO_FEEDBACK: "true"/"false" for start/stop cues (default: true).
        """

        return cls(
            api_base_url=os.environ.get(
                "JARVIS_API_BASE_URL", "https://generativelanguage.googleapis.com"
            ).rstrip("/"),
            api_key=os.environ.get("JARVIS_API_KEY") or None,
            model=os.environ.get("JARVIS_MODEL") or DEFAULT_MODEL,
            request_timeout=_float_env("JARVIS_REQUEST_TIMEOUT", "30"),
            greeting=os.environ.get("JARVIS_GREETING") or DEFAULT_GREETING,
            clear_message=os.environ.get("JARVIS_CLEAR_MESSAGE") or DEFAULT_CLEAR_MESSAGE,
            language=os.environ.get("JARVIS_LANGUAGE") or "en-US",
            mode=os.environ.get("JARVIS_MODE", "console").lower(),
            stt_mode=os.environ.get("JARVIS_STT_MODE", "local").lower(),
            whisper_url=os.environ.get("JARVIS_WHISPER_URL") or None,
            whisper_host=os.environ.get("JARVIS_WHISPER_HOST", "localhost"),
            whisper_port=_int_env("JARVIS_WHISPER_PORT", "10300"),
            whisper_model=os.environ.get("JARVIS_WHISPER_MODEL", "tiny"),
            whisper_device=os.environ.get("JARVIS_WHISPER_DEVICE") or None,
            sample_rate=_int_env("JARVIS_SAMPLE_RATE", "16000"),
            silence_duration=_float_env("JARVIS_SILENCE_SECONDS", "1.0"),
            silence_threshold=_float_env("JARVIS_SILENCE_THRESHOLD", "0.01"),
            max_utterance_seconds=_float_env("JARVIS_MAX_UTTERANCE_SECONDS", "15"),
            interim_seconds=_float_env("JARVIS_INTERIM_SECONDS", "0"),
            audio_feedback=os.environ.get("JARVIS_AUDIO_FEEDBACK", "true").lower() in {"1", "true", "yes", "on"},
        )


def _float_env(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc


def _int_env(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
