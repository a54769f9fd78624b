"""
Tests for the console capture engine.
"""

from jarvis_agent.capture import CaptureController
from jarvis_agent.models import CaptureStatus
from jarvis_agent.services.capture_console import ConsoleCaptureEngine


def test_feed_reports_interim_then_final():
    engine = ConsoleCaptureEngine()
    controller = CaptureController(engine)
    interims = []
    controller.subscribe(lambda session: interims.append(session.interim_text))

    controller.start()
    assert engine.feed("turn on the lights") is True

    assert interims[1:] == ["turn", "turn on", "turn on the", ""]
    assert controller.final_buffer == "turn on the lights. "


def test_results_accumulate_across_utterances():
    engine = ConsoleCaptureEngine()
    controller = CaptureController(engine)
    controller.start()

    engine.feed("hello")
    engine.feed("how are you")
    controller.stop()

    assert controller.status is CaptureStatus.IDLE
    assert controller.final_buffer == "hello. how are you. "


def test_feed_ignored_when_not_listening():
    engine = ConsoleCaptureEngine()
    controller = CaptureController(engine)

    assert engine.feed("hello") is False
    controller.start()
    assert engine.feed("   ") is False
    assert controller.final_buffer == ""


def test_restart_begins_new_result_list():
    engine = ConsoleCaptureEngine()
    controller = CaptureController(engine)

    controller.start()
    engine.feed("first")
    controller.stop()
    controller.start()
    engine.feed("second")

    assert controller.final_buffer == "second. "
