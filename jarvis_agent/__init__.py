"""
Jarvis conversational assistant package.

This package contains the conversation and speech-capture orchestrator that
sits between a chat UI, a Gemini-style generation service and a continuous
speech recognizer. The default entrypoint for local experiments is
``python main.py`` (or the ``jarvis-agent`` script).
"""

__all__ = [
    "capture",
    "composer",
    "config",
    "dispatch",
    "interfaces",
    "models",
    "pipeline",
    "session",
]
