"""Audio cues for the start and end of a listening session."""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050


def sweep(freq_start: float, freq_end: float, duration: float, *, volume: float = 0.8, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """
    Build a linear frequency sweep with a short fade in and out.

    Args:
        freq_start: Starting frequency in Hz.
        freq_end: Ending frequency in Hz.
        duration: Length in seconds.
        volume: Peak amplitude (0.0 to 1.0).
        sample_rate: Output sample rate.
    """
    samples = int(sample_rate * duration)
    if samples <= 0:
        return np.zeros(0, dtype=np.float32)

    freqs = np.linspace(freq_start, freq_end, samples, endpoint=False)
    tone = np.sin(np.cumsum(2 * np.pi * freqs / sample_rate))

    fade = min(int(sample_rate * 0.03), samples // 2)
    if fade > 0:
        envelope = np.ones(samples)
        envelope[:fade] = np.linspace(0, 1, fade) ** 2
        envelope[-fade:] = np.linspace(1, 0, fade) ** 2
        tone = tone * envelope

    return (tone * volume).astype(np.float32)


def play_start_sound() -> None:
    """Rising tone: the microphone is open."""
    _play(sweep(400, 800, 0.25))


def play_stop_sound() -> None:
    """Falling tone: the microphone is closed."""
    _play(sweep(800, 500, 0.3, volume=0.75))


def _play(tone: np.ndarray) -> None:
    try:
        import sounddevice as sd  # type: ignore
    except ImportError:
        logger.debug("sounddevice not available; skipping audio cue")
        return
    try:
        sd.play(tone, samplerate=SAMPLE_RATE, blocking=True)
    except Exception as exc:
        logger.warning("Failed to play audio cue: %s", exc)
