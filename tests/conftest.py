"""Shared fakes for the orchestrator tests."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from jarvis_agent.exceptions import CaptureEngineError


def candidate(text: str) -> Dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class FakeBackend:
    """Generation backend returning queued payloads (or raising queued exceptions)."""

    def __init__(self, responses: Optional[List[Any]] = None, *, gate: Optional[asyncio.Event] = None) -> None:
        self.calls: List[List[Dict[str, Any]]] = []
        self._responses = list(responses or [])
        self.gate = gate

    async def generate(self, contents):
        self.calls.append(list(contents))
        if self.gate is not None:
            await self.gate.wait()
        response = self._responses.pop(0) if self._responses else candidate("ok")
        if isinstance(response, BaseException):
            raise response
        return response


class FakeCaptureEngine:
    """Capture engine whose events are emitted by the test through ``listener``."""

    def __init__(self, *, available: bool = True, fail_start: bool = False, fail_stop: bool = False) -> None:
        self.available = available
        self.fail_start = fail_start
        self.fail_stop = fail_stop
        self.listener = None
        self.starts = 0
        self.stops = 0

    def initialize(self, listener) -> bool:
        self.listener = listener
        return self.available

    def start(self) -> None:
        if self.fail_start:
            raise CaptureEngineError("microphone busy")
        self.starts += 1

    def stop(self) -> None:
        self.stops += 1
        if self.fail_stop:
            raise CaptureEngineError("device vanished")

    async def wait_closed(self) -> None:
        return None


@pytest.fixture
def engine():
    return FakeCaptureEngine()


@pytest.fixture
def backend():
    return FakeBackend()
