"""Shared dataclasses for the assistant."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Tuple

Role = Literal["user", "model"]

MODEL_ROLE: Role = "model"
USER_ROLE: Role = "user"


@dataclass(frozen=True)
class Turn:
    """Represents a single chat turn."""

    role: Role
    text: str

    def as_content(self) -> Dict[str, Any]:
        """Convert to the `contents` entry shape expected by the generation endpoint."""
        role = MODEL_ROLE if self.role == MODEL_ROLE else USER_ROLE
        return {"role": role, "parts": [{"text": self.text}]}


@dataclass(frozen=True)
class SessionSnapshot:
    """
    Immutable view of the chat history at one point in time.

    Attributes:
        turns: The turns in append order.
        version: History generation; bumped every time the history is cleared.
    """

    turns: Tuple[Turn, ...]
    version: int

    def as_contents(self) -> List[Dict[str, Any]]:
        return [turn.as_content() for turn in self.turns]


@dataclass(frozen=True)
class PendingRequest:
    """The exact history sent to the generation backend for one outstanding turn."""

    snapshot: SessionSnapshot
    contents: Tuple[Dict[str, Any], ...]

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> "PendingRequest":
        return cls(snapshot=snapshot, contents=tuple(snapshot.as_contents()))

    @property
    def version(self) -> int:
        return self.snapshot.version


class CaptureStatus(str, enum.Enum):
    """Lifecycle state of a speech-capture session."""

    IDLE = "idle"
    LISTENING = "listening"
    ERROR = "error"


@dataclass
class CaptureSession:
    """
    State of one speech-capture lifecycle.

    Attributes:
        status: Current capture status.
        final_buffer: Finalized transcript text, each sentence terminated with ". ".
        interim_text: Latest provisional transcript snapshot from the engine.
        last_error: Engine error code of the most recent failure, if any.
    """

    status: CaptureStatus = CaptureStatus.IDLE
    final_buffer: str = ""
    interim_text: str = ""
    last_error: Optional[str] = None


@dataclass(frozen=True)
class ResultFragment:
    """One recognition alternative delivered by a capture engine."""

    text: str
    is_final: bool = False


@dataclass
class PromptBuffer:
    """Typed-input buffer owned by the UI and handed to the turn composer on submit."""

    text: str = ""

    def clear(self) -> None:
        self.text = ""

    def append(self, text: str) -> None:
        text = text.strip()
        if not text:
            return
        self.text = f"{self.text.rstrip()} {text}" if self.text.strip() else text


@dataclass
class CapturedAudio:
    """
    Audio blob captured by the microphone engine.

    Attributes:
        data: Raw 16-bit PCM bytes.
        sample_rate: Sample rate in Hz (e.g., 16000).
        encoding: Audio encoding label.
    """

    data: bytes
    sample_rate: int
    encoding: str = "pcm_s16le"

    @property
    def duration(self) -> float:
        if not self.sample_rate:
            return 0.0
        return len(self.data) / 2 / self.sample_rate
