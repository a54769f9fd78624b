"""Chooses which buffer a submitted turn comes from."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .capture import CaptureController
from .dispatch import DispatchController
from .models import CaptureStatus, PromptBuffer

logger = logging.getLogger(__name__)


class TurnComposer:
    """
    Glue between the typed prompt, the capture transcript and dispatch.

    Typed text always wins. The finalized capture transcript is only used
    when the prompt is blank and capture is no longer listening.
    """

    def __init__(self, dispatch: DispatchController, capture: CaptureController) -> None:
        self._dispatch = dispatch
        self._capture = capture

    def submit(self, prompt: PromptBuffer) -> Optional[asyncio.Task]:
        if prompt.text.strip():
            task = self._dispatch.submit(prompt.text)
            if task is not None:
                prompt.clear()
            return task

        if self._capture.status is CaptureStatus.LISTENING:
            logger.debug("Nothing typed and capture still listening; nothing to send")
            return None

        if not self._capture.final_buffer.strip():
            return None
        task = self._dispatch.submit(self._capture.final_buffer)
        if task is not None:
            self._capture.harvest()
        return task

    def adopt_transcript(self, prompt: PromptBuffer) -> bool:
        """Move the finalized transcript into the prompt for editing."""
        text = self._capture.harvest()
        if not text.strip():
            return False
        prompt.append(text)
        return True
