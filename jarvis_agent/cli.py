"""CLI harness for the Jarvis assistant."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Callable, Optional, Sequence, Tuple

from .config import AppConfig
from .interfaces import CaptureEngine, SpeechToText
from .models import MODEL_ROLE, CaptureSession, CaptureStatus, PromptBuffer, Turn
from .pipeline import ConversationOrchestrator
from .services.capture_console import ConsoleCaptureEngine
from .services.capture_microphone import MicrophoneCaptureEngine
from .services.gemini_client import GeminiClient
from .services.stt_remote import RemoteSpeechToText
from .services.stt_whisper import WhisperSpeechToText
from .services.stt_wyoming import WyomingSpeechToText

logger = logging.getLogger(__name__)

HELP = """Commands:
  /listen   start or stop speech capture
  /stop     stop speech capture
  /send     send the typed prompt, or the captured transcript
  /edit     move the captured transcript into the prompt
  /clear    start a new conversation
  /history  print the conversation
  /quit     exit"""


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


class ConsoleChat:
    """
    Console UI for the orchestrator.

    Renders history, the loading state and the microphone state from
    subscriptions, and only calls the orchestrator's action methods. While a
    console capture session is listening, typed lines are treated as speech.

    Usage:
        chat = ConsoleChat(orchestrator, console_engine=engine)
        await chat.run()
    """

    def __init__(
        self,
        orchestrator: ConversationOrchestrator,
        *,
        console_engine: Optional[ConsoleCaptureEngine] = None,
        read_line: Callable[[str], str] = input,
        write: Callable[[str], None] = print,
    ) -> None:
        self._orchestrator = orchestrator
        self._console_engine = console_engine
        self._read_line = read_line
        self._write = write
        self.prompt = PromptBuffer()
        self._rendered = 0
        self._version = orchestrator.store.version
        self._capture_status = orchestrator.capture.status
        self._interim = ""

        orchestrator.store.subscribe(self._render_history)
        orchestrator.dispatch.subscribe(self._render_pending)
        orchestrator.capture.subscribe(self._render_capture)

    async def run(self) -> None:
        self._render_history(self._orchestrator.history)
        if self._orchestrator.capture.error_message:
            self._write(f"[mic] {self._orchestrator.capture.error_message}")
        self._write("Type a message, or /help for commands.")
        while True:
            try:
                line = await asyncio.to_thread(self._read_line, "You: ")
            except EOFError:
                break
            if not self.handle(line):
                break

    def handle(self, line: str) -> bool:
        """Process one input line. Returns False when the user asked to quit."""
        text = line.strip()
        if not text:
            return True
        if text.startswith("/"):
            return self._command(text.lower())

        engine = self._console_engine
        if engine is not None and engine.listening:
            engine.feed(text)
            return True

        self.prompt.append(text)
        self._submit()
        return True

    def _command(self, command: str) -> bool:
        orchestrator = self._orchestrator
        if command in {"/quit", "/exit"}:
            return False
        if command == "/listen":
            if not orchestrator.toggle_listening() and orchestrator.capture.error_message:
                self._write(f"[mic] {orchestrator.capture.error_message}")
        elif command == "/stop":
            orchestrator.stop_listening()
        elif command == "/send":
            self._submit()
        elif command == "/edit":
            if orchestrator.adopt_transcript(self.prompt):
                self._write(f"Prompt: {self.prompt.text}")
            else:
                self._write("[mic] No transcript to edit.")
        elif command == "/clear":
            orchestrator.clear()
        elif command == "/history":
            for turn in orchestrator.history:
                self._write(_format_turn(turn))
        else:
            self._write(HELP)
        return True

    def _submit(self) -> None:
        if self._orchestrator.submit(self.prompt) is None and self._orchestrator.pending:
            self._write("[jarvis] Still working on the previous message...")

    def _render_history(self, turns: Sequence[Turn]) -> None:
        version = self._orchestrator.store.version
        if version != self._version:
            self._version = version
            self._rendered = 0
        for turn in turns[self._rendered:]:
            self._write(_format_turn(turn))
        self._rendered = len(turns)

    def _render_pending(self, pending: bool) -> None:
        if pending:
            self._write("[jarvis] Thinking...")

    def _render_capture(self, session: CaptureSession) -> None:
        if session.status is not self._capture_status:
            self._capture_status = session.status
            if session.status is CaptureStatus.LISTENING:
                self._write("[mic] Listening... (/listen again to stop)")
            elif session.status is CaptureStatus.ERROR:
                self._write(f"[mic] {self._orchestrator.capture.error_message}")
            elif session.final_buffer:
                self._write(f"[mic] Transcript: {session.final_buffer.strip()} (/send or /edit)")
            else:
                self._write("[mic] Stopped.")
        if session.interim_text and session.interim_text != self._interim:
            self._write(f"[mic] ... {session.interim_text}")
        self._interim = session.interim_text


def _format_turn(turn: Turn) -> str:
    speaker = "Jarvis" if turn.role == MODEL_ROLE else "You"
    return f"{speaker}: {turn.text}"


def build_transcriber(config: AppConfig) -> SpeechToText:
    if config.stt_mode == "remote":
        if not config.whisper_url:
            raise RuntimeError("JARVIS_WHISPER_URL must be set when JARVIS_STT_MODE=remote.")
        return RemoteSpeechToText(base_url=config.whisper_url, timeout=config.request_timeout)
    if config.stt_mode == "wyoming":
        return WyomingSpeechToText(host=config.whisper_host, port=config.whisper_port, timeout=config.request_timeout)
    return WhisperSpeechToText(model_size=config.whisper_model, device=config.whisper_device)


def build_orchestrator(config: AppConfig) -> Tuple[ConversationOrchestrator, Optional[ConsoleCaptureEngine]]:
    """Wire up the orchestrator with the console or microphone capture engine."""
    backend = GeminiClient(
        config.api_base_url,
        api_key=config.api_key,
        model=config.model,
        timeout=config.request_timeout,
    )

    console_engine: Optional[ConsoleCaptureEngine] = None
    engine: CaptureEngine
    if config.mode == "audio":
        engine = MicrophoneCaptureEngine(
            build_transcriber(config),
            language=config.language,
            sample_rate=config.sample_rate,
            silence_duration=config.silence_duration,
            silence_threshold=config.silence_threshold,
            max_utterance_seconds=config.max_utterance_seconds,
            interim_seconds=config.interim_seconds,
            audio_feedback=config.audio_feedback,
        )
    else:
        console_engine = ConsoleCaptureEngine()
        engine = console_engine

    orchestrator = ConversationOrchestrator(
        backend=backend,
        capture_engine=engine,
        greeting=config.greeting,
        clear_message=config.clear_message,
    )
    return orchestrator, console_engine


async def _run(config: AppConfig) -> None:
    if not config.api_key:
        logger.warning("JARVIS_API_KEY is not set; requests will likely be rejected.")
    orchestrator, console_engine = build_orchestrator(config)
    async with orchestrator:
        await ConsoleChat(orchestrator, console_engine=console_engine).run()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat with the Jarvis assistant from the terminal.")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--mode",
        choices=["console", "audio"],
        help="Override JARVIS_MODE (console/audio).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    config = AppConfig.from_env()
    if args.mode:
        config.mode = args.mode
    try:
        asyncio.run(_run(config))
    except KeyboardInterrupt:
        print("\nGoodbye.")


if __name__ == "__main__":
    main()
