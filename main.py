"""
Convenience entrypoint for the Jarvis assistant.

Allows running `python main.py` in addition to the `jarvis-agent` script.
"""

from jarvis_agent.cli import main


if __name__ == "__main__":
    main()
