"""Continuous microphone capture backed by sounddevice with Voice Activity Detection."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

import numpy as np

from ..exceptions import CaptureEngineError, TranscriptionError
from ..interfaces import CaptureEngine, CaptureListener, SpeechToText
from ..models import CapturedAudio, ResultFragment
from .audio_feedback import play_start_sound, play_stop_sound

logger = logging.getLogger(__name__)

AUDIO_CAPTURE = "audio-capture"
NETWORK = "network"


class UtteranceSegmenter:
    """
    Splits a stream of float32 audio blocks into utterances.

    Blocks below ``silence_threshold`` are ignored until speech begins. An
    utterance ends after ``silence_duration`` seconds of trailing silence or
    once it reaches ``max_seconds``.

    Usage:
        segmenter = UtteranceSegmenter(sample_rate=16000)
        for block in blocks:
            utterance = segmenter.add(block)
            if utterance is not None:
                ...
    """

    def __init__(
        self,
        *,
        sample_rate: int = 16000,
        silence_duration: float = 1.0,
        silence_threshold: float = 0.01,
        max_seconds: float = 15.0,
    ) -> None:
        self.sample_rate = sample_rate
        self.silence_duration = silence_duration
        self.silence_threshold = silence_threshold
        self.max_seconds = max_seconds
        self._chunks: List[np.ndarray] = []
        self._samples = 0
        self._silent_samples = 0

    @property
    def in_speech(self) -> bool:
        return bool(self._chunks)

    def add(self, block: np.ndarray) -> Optional[CapturedAudio]:
        """Feed one block; returns a finished utterance when one just ended."""
        mono = block[:, 0] if block.ndim > 1 else block
        level = float(np.abs(mono).mean()) if len(mono) else 0.0

        if level > self.silence_threshold:
            self._silent_samples = 0
        elif self._chunks:
            self._silent_samples += len(mono)
        else:
            return None

        self._chunks.append(mono)
        self._samples += len(mono)

        if self._silent_samples >= self.silence_duration * self.sample_rate:
            return self.flush()
        if self.max_seconds > 0 and self._samples >= self.max_seconds * self.sample_rate:
            return self.flush()
        return None

    def peek(self) -> Optional[CapturedAudio]:
        """Audio captured so far for the current utterance, without ending it."""
        if not self._chunks:
            return None
        return self._encode(np.concatenate(self._chunks))

    def flush(self) -> Optional[CapturedAudio]:
        """End the current utterance, if any."""
        if not self._chunks:
            return None
        recording = np.concatenate(self._chunks)
        self._chunks = []
        self._samples = 0
        self._silent_samples = 0
        return self._encode(recording)

    def _encode(self, recording: np.ndarray) -> CapturedAudio:
        # float32 [-1.0, 1.0] -> 16-bit PCM
        pcm = np.clip(recording, -1.0, 1.0)
        data = (pcm * 32767).astype(np.int16).tobytes()
        return CapturedAudio(data=data, sample_rate=self.sample_rate)


class MicrophoneCaptureEngine(CaptureEngine):
    """
    Continuous recognizer over the default microphone.

    Audio blocks arrive on the sounddevice thread and are handed to the event
    loop with ``call_soon_threadsafe``. A worker task on the loop segments
    them into utterances and transcribes each one; every finished utterance
    becomes a final result. With ``interim_seconds`` > 0 the utterance in
    progress is also transcribed periodically and reported as an interim
    result. All listener events are emitted from the loop thread.

    Args:
        transcriber: Speech-to-text adapter used for every utterance.
        language: BCP-47 language passed to the transcriber.
        sample_rate: Target sample rate (Hz).
        channels: Number of channels to record.
        silence_duration: Seconds of silence that end an utterance.
        silence_threshold: Audio level below which is considered silence.
        max_utterance_seconds: Force an utterance boundary after this long.
        interim_seconds: Interval between interim transcriptions; 0 disables them.
        audio_feedback: Play start/stop cues.
    """

    def __init__(
        self,
        transcriber: SpeechToText,
        *,
        language: Optional[str] = None,
        sample_rate: int = 16000,
        channels: int = 1,
        silence_duration: float = 1.0,
        silence_threshold: float = 0.01,
        max_utterance_seconds: float = 15.0,
        interim_seconds: float = 0.0,
        audio_feedback: bool = True,
    ) -> None:
        self._transcriber = transcriber
        self.language = language
        self.sample_rate = sample_rate
        self.channels = channels
        self.silence_duration = silence_duration
        self.silence_threshold = silence_threshold
        self.max_utterance_seconds = max_utterance_seconds
        self.interim_seconds = interim_seconds
        self.audio_feedback = audio_feedback

        self._listener: Optional[CaptureListener] = None
        self._sd: Any = None
        self._stream: Any = None
        self._frames: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    def initialize(self, listener: CaptureListener) -> bool:
        self._listener = listener
        try:
            sd = _lazy_import_sounddevice()
            sd.query_devices(kind="input")
        except Exception as exc:
            logger.warning("Microphone capture unavailable: %s", exc)
            return False
        self._sd = sd
        return True

    def start(self) -> None:
        if self._sd is None or self._listener is None:
            raise CaptureEngineError("Microphone engine is not initialized")
        if self._worker is not None and not self._worker.done():
            raise CaptureEngineError("Previous capture session is still closing")

        loop = asyncio.get_running_loop()
        frames: asyncio.Queue = asyncio.Queue()

        def callback(indata, frame_count, time_info, status):  # runs on the audio thread
            if status:
                logger.debug("Audio status: %s", status)
            loop.call_soon_threadsafe(frames.put_nowait, indata.copy())

        try:
            stream = self._sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                callback=callback,
            )
            stream.start()
        except Exception as exc:
            raise CaptureEngineError(f"Could not open the microphone: {exc}") from exc

        self._stream = stream
        self._frames = frames
        self._worker = loop.create_task(self._run(frames, self._listener))
        logger.info("Microphone open (%d Hz)", self.sample_rate)

    def stop(self) -> None:
        frames = self._frames
        if frames is None:
            return
        self._frames = None
        self._close_stream()
        frames.put_nowait(None)

    async def wait_closed(self) -> None:
        if self._worker is not None:
            await asyncio.wait({self._worker})

    async def _run(self, frames: asyncio.Queue, listener: CaptureListener) -> None:
        loop = asyncio.get_running_loop()
        segmenter = UtteranceSegmenter(
            sample_rate=self.sample_rate,
            silence_duration=self.silence_duration,
            silence_threshold=self.silence_threshold,
            max_seconds=self.max_utterance_seconds,
        )
        results: List[ResultFragment] = []
        showing_interim = False
        last_interim = loop.time()

        try:
            if self.audio_feedback:
                await asyncio.to_thread(play_start_sound)
                # Drop whatever the microphone picked up from the cue itself.
                while not frames.empty():
                    if frames.get_nowait() is None:
                        frames.put_nowait(None)
                        break

            while True:
                block = await frames.get()
                utterance = segmenter.flush() if block is None else segmenter.add(block)

                if utterance is not None:
                    text = await self._transcriber.transcribe(utterance, language=self.language)
                    if text:
                        results.append(ResultFragment(text, is_final=True))
                        listener.on_result(tuple(results), len(results) - 1)
                    elif showing_interim:
                        listener.on_result(tuple(results), len(results))
                    showing_interim = False
                    last_interim = loop.time()
                elif block is not None and self._interim_due(segmenter, loop.time() - last_interim):
                    last_interim = loop.time()
                    partial = segmenter.peek()
                    text = await self._transcriber.transcribe(partial, language=self.language) if partial else ""
                    if text:
                        listener.on_result(tuple(results) + (ResultFragment(text),), len(results))
                        showing_interim = True

                if block is None:
                    break
        except TranscriptionError as exc:
            logger.error("Transcription failed: %s", exc)
            listener.on_error(NETWORK)
        except Exception:
            logger.exception("Microphone capture failed")
            listener.on_error(AUDIO_CAPTURE)
        finally:
            self._frames = None
            self._close_stream()
            listener.on_end()
            if self.audio_feedback:
                await asyncio.to_thread(play_stop_sound)

    def _interim_due(self, segmenter: UtteranceSegmenter, elapsed: float) -> bool:
        return self.interim_seconds > 0 and segmenter.in_speech and elapsed >= self.interim_seconds

    def _close_stream(self) -> None:
        stream = self._stream
        if stream is None:
            return
        self._stream = None
        try:
            stream.stop()
            stream.close()
        except Exception as exc:
            logger.warning("Failed to close microphone stream: %s", exc)


def _lazy_import_sounddevice():
    try:
        import sounddevice as sd  # type: ignore
    except ImportError as exc:  # pragma: no cover - runtime dependency
        raise RuntimeError("sounddevice is required for microphone capture. Install via pip.") from exc
    return sd
