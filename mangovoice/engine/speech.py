"""Speech output sink.

Playback is owned by the client app; the pipeline only needs somewhere to
send the lines it wants spoken.
"""

import logging
from typing import List, Protocol

logger = logging.getLogger(__name__)


class Speaker(Protocol):
    def speak(self, text: str) -> None:
        ...


class LoggingSpeaker:
    """Default speaker: records the line in the log."""

    def speak(self, text: str) -> None:
        if not text:
            return
        logger.info(f"Speaking: {text!r}")


class RecordingSpeaker:
    """Keeps every spoken line in memory (tests, API inspection)."""

    def __init__(self):
        self.spoken: List[str] = []

    def speak(self, text: str) -> None:
        if not text:
            return
        self.spoken.append(text)
