"""
Tests for the turn composer.
"""

import asyncio

from jarvis_agent.capture import CaptureController
from jarvis_agent.composer import TurnComposer
from jarvis_agent.dispatch import DispatchController
from jarvis_agent.models import PromptBuffer, ResultFragment
from jarvis_agent.session import SessionStore

from .conftest import FakeBackend, FakeCaptureEngine, candidate


def make(backend=None):
    backend = backend or FakeBackend()
    engine = FakeCaptureEngine()
    store = SessionStore("hi")
    dispatch = DispatchController(store, backend)
    capture = CaptureController(engine)
    return store, dispatch, capture, engine, TurnComposer(dispatch, capture)


def capture_text(capture, engine, text):
    capture.start()
    engine.listener.on_result([ResultFragment(text, is_final=True)])
    engine.listener.on_end()


def test_typed_text_is_sent_verbatim_and_buffer_cleared():
    async def run():
        store, _, _, _, composer = make()
        prompt = PromptBuffer("What time is it?")

        task = composer.submit(prompt)
        await task

        assert prompt.text == ""
        assert store.turns[1].text == "What time is it?"

    asyncio.run(run())


def test_typed_text_wins_over_transcript():
    async def run():
        store, _, capture, engine, composer = make()
        capture_text(capture, engine, "spoken words")

        await composer.submit(PromptBuffer("typed words"))

        assert store.turns[1].text == "typed words"
        assert capture.final_buffer == "spoken words. "

    asyncio.run(run())


def test_transcript_used_when_nothing_typed():
    async def run():
        store, _, capture, engine, composer = make()
        capture_text(capture, engine, "open the door")

        await composer.submit(PromptBuffer())

        assert store.turns[1].text == "open the door."
        assert capture.final_buffer == ""

    asyncio.run(run())


def test_transcript_not_used_while_listening():
    async def run():
        store, _, capture, engine, composer = make()
        capture.start()
        engine.listener.on_result([ResultFragment("half a thought", is_final=True)])

        assert composer.submit(PromptBuffer()) is None
        assert len(store) == 1

    asyncio.run(run())


def test_busy_rejection_keeps_typed_text():
    async def run():
        gate = asyncio.Event()
        backend = FakeBackend([candidate("one")], gate=gate)
        _, dispatch, _, _, composer = make(backend)

        first = composer.submit(PromptBuffer("first"))
        prompt = PromptBuffer("second")
        assert composer.submit(prompt) is None
        assert prompt.text == "second"

        gate.set()
        await first

    asyncio.run(run())


def test_adopt_transcript_populates_prompt():
    _, _, capture, engine, composer = make()
    capture_text(capture, engine, "remind me tomorrow")
    prompt = PromptBuffer("Please")

    assert composer.adopt_transcript(prompt) is True
    assert prompt.text == "Please remind me tomorrow."
    assert capture.final_buffer == ""
    assert composer.adopt_transcript(prompt) is False
