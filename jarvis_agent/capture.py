"""Speech-capture session state machine."""

from __future__ import annotations

import dataclasses
import logging
from typing import Callable, List, Optional, Sequence

from .interfaces import CaptureEngine
from .models import CaptureSession, CaptureStatus, ResultFragment
from .utils import Listeners

logger = logging.getLogger(__name__)

SENTENCE_DELIMITER = ". "
UNAVAILABLE = "unavailable"
START_FAILED = "start-failed"

IDLE_MESSAGE = "Click the microphone to start."
LISTENING_MESSAGE = "Listening..."
UNAVAILABLE_MESSAGE = "Speech capture is not available on this device."


class CaptureController:
    """
    Owns one capture engine and the transcript it produces.

    The controller is the engine's listener: engine callbacks are applied in
    the order they arrive. Final fragments accumulate in ``final_buffer``
    (each terminated with ". "); interim fragments only ever replace
    ``interim_text`` because the engine revises them on every result.

    States:
        IDLE --start--> LISTENING --stop/end--> IDLE
        LISTENING --error--> ERROR --start--> LISTENING
        ERROR caused by an unavailable engine is terminal.

    Usage:
        controller = CaptureController(engine)
        controller.start()
        ...
        controller.stop()
        text = controller.harvest()
    """

    def __init__(self, engine: CaptureEngine) -> None:
        self._engine = engine
        self._session = CaptureSession()
        self._listeners: Listeners[CaptureSession] = Listeners()
        self._closed = False

        try:
            self._available = bool(engine.initialize(self))
        except Exception:
            logger.exception("Capture engine failed to initialize")
            self._available = False

        if not self._available:
            logger.warning("Speech capture unavailable; listening is disabled for this session.")
            self._session = CaptureSession(status=CaptureStatus.ERROR, last_error=UNAVAILABLE)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Begin a new listening phase. Returns True when listening started."""
        if self._closed or not self._available:
            logger.debug("Ignoring start: capture unavailable or closed")
            return False
        if self._session.status is CaptureStatus.LISTENING:
            logger.debug("Ignoring start: already listening")
            return False

        self._session = CaptureSession(status=CaptureStatus.LISTENING)
        self._changed()
        try:
            self._engine.start()
        except Exception as exc:
            logger.error("Capture engine failed to start: %s", exc)
            self._fail(START_FAILED)
            return False
        logger.info("Listening")
        return True

    def stop(self) -> bool:
        """Ask the engine to finish; buffers are kept for the caller to harvest."""
        if self._session.status is not CaptureStatus.LISTENING:
            logger.debug("Ignoring stop: not listening")
            return False
        try:
            self._engine.stop()
        except Exception as exc:
            logger.error("Capture engine failed to stop: %s", exc)
            self.on_end()
        return True

    def toggle(self) -> bool:
        if self._session.status is CaptureStatus.LISTENING:
            return self.stop()
        return self.start()

    def harvest(self) -> str:
        """Take the finalized transcript, leaving the buffer empty."""
        if self._session.status is CaptureStatus.LISTENING:
            logger.debug("Refusing to harvest while listening")
            return ""
        text = self._session.final_buffer
        if text:
            self._session.final_buffer = ""
            self._changed()
        return text

    def close(self) -> None:
        """Stop a running session and detach from the engine."""
        try:
            if self._session.status is CaptureStatus.LISTENING:
                self._engine.stop()
        finally:
            self._closed = True
            self._listeners.clear()

    async def wait_closed(self) -> None:
        """Wait for the engine to release the microphone after a stop."""
        await self._engine.wait_closed()

    def subscribe(self, callback: Callable[[CaptureSession], None]) -> Callable[[], None]:
        """Call ``callback`` with a copy of the capture session after every change."""
        return self._listeners.add(callback)

    # ------------------------------------------------------------------
    # Engine events
    # ------------------------------------------------------------------

    def on_result(self, results: Sequence[ResultFragment], result_index: int = 0) -> None:
        if self._closed or self._session.status is not CaptureStatus.LISTENING:
            logger.debug("Dropping capture result outside a listening phase")
            return

        final_parts: List[str] = []
        interim_parts: List[str] = []
        for fragment in results[result_index:]:
            if fragment.is_final:
                final_parts.append(fragment.text + SENTENCE_DELIMITER)
                # A final result supersedes the hypotheses reported before it.
                interim_parts = []
            else:
                interim_parts.append(fragment.text)

        if final_parts:
            self._session.final_buffer += "".join(final_parts)
        self._session.interim_text = "".join(interim_parts)
        self._changed()

    def on_error(self, code: str) -> None:
        if self._closed or not self._available:
            return
        logger.warning("Capture engine error: %s", code)
        self._fail(code)

    def on_end(self) -> None:
        if self._closed or not self._available:
            return
        self._session.status = CaptureStatus.IDLE
        self._session.interim_text = ""
        logger.info("Capture ended")
        self._changed()

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    @property
    def session(self) -> CaptureSession:
        return dataclasses.replace(self._session)

    @property
    def status(self) -> CaptureStatus:
        return self._session.status

    @property
    def final_buffer(self) -> str:
        return self._session.final_buffer

    @property
    def interim_text(self) -> str:
        return self._session.interim_text

    @property
    def last_error(self) -> Optional[str]:
        return self._session.last_error

    @property
    def available(self) -> bool:
        return self._available

    @property
    def status_message(self) -> str:
        if self._session.status is CaptureStatus.LISTENING:
            return self._session.interim_text or LISTENING_MESSAGE
        return IDLE_MESSAGE

    @property
    def error_message(self) -> Optional[str]:
        if not self._available:
            return UNAVAILABLE_MESSAGE
        if self._session.last_error:
            return (
                f"Error occurred: {self._session.last_error}. "
                "Please ensure your microphone is connected and you have granted permission."
            )
        return None

    def _fail(self, code: str) -> None:
        self._session.status = CaptureStatus.ERROR
        self._session.last_error = code
        self._session.interim_text = ""
        self._changed()

    def _changed(self) -> None:
        self._listeners.notify(self.session)
