"""Capture engine that treats typed lines as recognized speech."""

from __future__ import annotations

import logging
from typing import List, Optional

from ..interfaces import CaptureEngine, CaptureListener
from ..models import ResultFragment

logger = logging.getLogger(__name__)


class ConsoleCaptureEngine(CaptureEngine):
    """
    Simulates a continuous recognizer for the CLI harness.

    Each line fed while listening is replayed the way a streaming recognizer
    reports it: a series of growing interim hypotheses, then one final
    result. Results accumulate per session and every event carries the index
    of the first changed result. When integrating a real microphone, use
    :class:`~jarvis_agent.services.capture_microphone.MicrophoneCaptureEngine`.

    Usage:
        engine = ConsoleCaptureEngine()
        controller = CaptureController(engine)
        controller.start()
        engine.feed("turn on the lights")
        controller.stop()
    """

    def __init__(self) -> None:
        self._listener: Optional[CaptureListener] = None
        self._results: List[ResultFragment] = []
        self._listening = False

    def initialize(self, listener: CaptureListener) -> bool:
        self._listener = listener
        return True

    def start(self) -> None:
        self._results = []
        self._listening = True

    def stop(self) -> None:
        if not self._listening:
            return
        self._listening = False
        if self._listener is not None:
            self._listener.on_end()

    async def wait_closed(self) -> None:
        return None

    @property
    def listening(self) -> bool:
        return self._listening

    def feed(self, text: str) -> bool:
        """Deliver one typed utterance. Returns False when not listening."""
        text = text.strip()
        if not self._listening or self._listener is None or not text:
            return False

        index = len(self._results)
        words = text.split()
        for count in range(1, len(words)):
            hypothesis = ResultFragment(" ".join(words[:count]), is_final=False)
            self._listener.on_result(tuple(self._results) + (hypothesis,), index)

        self._results.append(ResultFragment(text, is_final=True))
        logger.debug("Console utterance finalized: %s", text)
        self._listener.on_result(tuple(self._results), index)
        return True
