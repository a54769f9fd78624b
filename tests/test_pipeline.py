"""
Tests for the conversation orchestrator.
"""

import asyncio

from jarvis_agent.dispatch import TRANSPORT_FALLBACK
from jarvis_agent.exceptions import GenerationTransportError
from jarvis_agent.models import PromptBuffer, ResultFragment, Turn
from jarvis_agent.pipeline import DEFAULT_CLEAR_MESSAGE, DEFAULT_GREETING, ConversationOrchestrator

from .conftest import FakeBackend, FakeCaptureEngine, candidate


def test_spoken_turn_round_trip():
    async def run():
        backend = FakeBackend([candidate("It is sunny.")])
        engine = FakeCaptureEngine()
        async with ConversationOrchestrator(backend=backend, capture_engine=engine) as orchestrator:
            assert orchestrator.history == (Turn("model", DEFAULT_GREETING),)

            orchestrator.start_listening()
            engine.listener.on_result([ResultFragment("what's the", is_final=False)])
            assert orchestrator.capture_session.interim_text == "what's the"
            engine.listener.on_result([ResultFragment("what's the weather", is_final=True)])
            orchestrator.stop_listening()
            engine.listener.on_end()

            task = orchestrator.submit(PromptBuffer())
            assert orchestrator.pending
            await task

            assert [turn.text for turn in orchestrator.history] == [
                DEFAULT_GREETING,
                "what's the weather.",
                "It is sunny.",
            ]
            assert not orchestrator.pending

    asyncio.run(run())


def test_clear_uses_configured_message():
    async def run():
        orchestrator = ConversationOrchestrator(backend=FakeBackend(), capture_engine=FakeCaptureEngine())
        await orchestrator.send("hello")
        orchestrator.clear()

        assert orchestrator.history == (Turn("model", DEFAULT_CLEAR_MESSAGE),)
        orchestrator.clear("Start over.")
        assert orchestrator.history == (Turn("model", "Start over."),)

    asyncio.run(run())


def test_failure_never_escapes():
    async def run():
        backend = FakeBackend([GenerationTransportError("unreachable")])
        async with ConversationOrchestrator(backend=backend, capture_engine=FakeCaptureEngine()) as orchestrator:
            await orchestrator.send("hello")
            assert orchestrator.history[-1].text == TRANSPORT_FALLBACK

    asyncio.run(run())


def test_close_stops_capture_and_waits_for_reply():
    async def run():
        engine = FakeCaptureEngine()
        backend = FakeBackend([candidate("done")])
        orchestrator = ConversationOrchestrator(backend=backend, capture_engine=engine)
        orchestrator.toggle_listening()
        orchestrator.send("typed while listening")

        await orchestrator.aclose()
        await orchestrator.aclose()

        assert engine.stops == 1
        assert orchestrator.history[-1].text == "done"

    asyncio.run(run())


def test_close_survives_engine_stop_failure():
    async def run():
        engine = FakeCaptureEngine(fail_stop=True)
        orchestrator = ConversationOrchestrator(backend=FakeBackend(), capture_engine=engine)
        orchestrator.start_listening()

        await orchestrator.aclose()
        assert engine.stops == 1

    asyncio.run(run())
