"""Character-by-character reveal of bot replies with reading-rhythm pacing."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import logging
from typing import Any

from .state import create_message_id
from .task_manager import TaskManager
from .transcript import Transcript, TranscriptEntry

LOGGER = logging.getLogger(__name__)

SENTENCE_END = frozenset(".?!")
CLAUSE_BREAK = frozenset(",;:")
SENTENCE_PAUSE_MS = 80
CLAUSE_PAUSE_MS = 50
LINE_BREAK_PAUSE_MS = 120
SPACE_SPEEDUP_MS = 6
MIN_DELAY_MS = 8


def base_delay_ms(total_length: int) -> int:
    """Short replies type slower so they don't flash by; long ones type faster."""
    if total_length > 160:
        return 10
    if total_length > 80:
        return 14
    return 20


def delay_after_ms(character: str, base_delay: int) -> int:
    """Return the pause that follows ``character``."""
    if character in SENTENCE_END:
        return base_delay + SENTENCE_PAUSE_MS
    if character in CLAUSE_BREAK:
        return base_delay + CLAUSE_PAUSE_MS
    if character == "\n":
        return base_delay + LINE_BREAK_PAUSE_MS
    if character == " ":
        return max(MIN_DELAY_MS, base_delay - SPACE_SPEEDUP_MS)
    return base_delay


class TypingAnimator:
    """Reveal text into a transcript entry one character at a time.

    Every call stamps the entry with a fresh typing id.  A reveal stops at its
    next step once the entry carries another id or has been detached from the
    transcript, so starting a new reveal on the same entry supersedes the old
    one without an explicit cancel.
    """

    def __init__(
        self,
        transcript: Transcript,
        task_manager: TaskManager,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.transcript = transcript
        self.task_manager = task_manager
        self._sleep = sleep

    def animate(self, entry: TranscriptEntry, text: str) -> asyncio.Task[None] | None:
        """Start revealing ``text`` into ``entry``; returns the reveal task."""
        characters = list(text)
        if not characters:
            entry.typing_id = None
            self.transcript.set_text(entry, "")
            return None

        typing_id = create_message_id()
        entry.typing_id = typing_id
        self.transcript.set_text(entry, "")
        return self.task_manager.spawn(
            self._reveal(entry, characters, typing_id),
            name=f"typing-{typing_id}",
        )

    def _is_stale(self, entry: TranscriptEntry, typing_id: str) -> bool:
        return entry.typing_id != typing_id or not self.transcript.contains(entry)

    async def _reveal(
        self, entry: TranscriptEntry, characters: list[str], typing_id: str
    ) -> None:
        total_length = len(characters)
        base_delay = base_delay_ms(total_length)

        for index, character in enumerate(characters):
            if self._is_stale(entry, typing_id):
                if entry.typing_id == typing_id:
                    entry.typing_id = None
                LOGGER.debug(
                    "typing.superseded",
                    extra={"event": "typing.superseded", "revealed": index},
                )
                return

            self.transcript.set_text(entry, "".join(characters[: index + 1]))

            if index == total_length - 1:
                entry.typing_id = None
                return

            await self._sleep(delay_after_ms(character, base_delay) / 1000)
