"""Display-free transcript model that the Textual layer projects."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
import logging
from typing import Literal
from uuid import uuid4

LOGGER = logging.getLogger(__name__)

Role = Literal["user", "bot"]
TranscriptEvent = Literal["added", "removed", "changed", "activated", "scroll"]
TranscriptListener = Callable[[TranscriptEvent, "TranscriptEntry | None"], None]


@dataclass(eq=False)
class TranscriptEntry:
    """A single rendered message in the conversation.

    ``message_id`` is only set on user entries and links them to their
    pending conversation state.  ``typing_id`` is owned by the typing
    animator and marks which reveal is allowed to write ``text``.
    """

    role: Role
    text: str = ""
    message_id: str | None = None
    attachment_label: str | None = None
    thinking: bool = False
    is_error: bool = False
    editing: bool = False
    show_edit_action: bool = False
    typing_id: str | None = None
    entry_id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def is_user(self) -> bool:
        return self.role == "user"

    @property
    def is_bot(self) -> bool:
        return self.role == "bot"


class Transcript:
    """Ordered sequence of entries with change notifications."""

    def __init__(self) -> None:
        self._entries: list[TranscriptEntry] = []
        self._listeners: list[TranscriptListener] = []
        self.active = False

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))

    @property
    def entries(self) -> list[TranscriptEntry]:
        return list(self._entries)

    def subscribe(self, listener: TranscriptListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: TranscriptListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _emit(self, event: TranscriptEvent, entry: TranscriptEntry | None) -> None:
        for listener in list(self._listeners):
            listener(event, entry)

    def contains(self, entry: TranscriptEntry | None) -> bool:
        """Return True while ``entry`` is attached to the transcript."""
        if entry is None:
            return False
        return any(existing is entry for existing in self._entries)

    def index_of(self, entry: TranscriptEntry) -> int:
        for index, existing in enumerate(self._entries):
            if existing is entry:
                return index
        return -1

    def next_entry(self, entry: TranscriptEntry) -> TranscriptEntry | None:
        """Return the entry directly following ``entry`` or ``None``."""
        index = self.index_of(entry)
        if index < 0 or index + 1 >= len(self._entries):
            return None
        return self._entries[index + 1]

    def append(self, entry: TranscriptEntry) -> TranscriptEntry:
        self._entries.append(entry)
        self._emit("added", entry)
        return entry

    def insert_after(
        self, anchor: TranscriptEntry | None, entry: TranscriptEntry
    ) -> TranscriptEntry:
        """Insert ``entry`` right after ``anchor``; append when the anchor is gone."""
        index = self.index_of(anchor) if anchor is not None else -1
        if index < 0:
            return self.append(entry)
        self._entries.insert(index + 1, entry)
        self._emit("added", entry)
        return entry

    def remove(self, entry: TranscriptEntry) -> bool:
        index = self.index_of(entry)
        if index < 0:
            return False
        del self._entries[index]
        self._emit("removed", entry)
        return True

    def touch(self, entry: TranscriptEntry) -> None:
        """Notify listeners that ``entry`` changed in place."""
        if self.contains(entry):
            self._emit("changed", entry)

    def set_text(self, entry: TranscriptEntry, text: str) -> None:
        entry.text = text
        entry.is_error = False
        entry.thinking = False
        self.touch(entry)

    def show_error(self, entry: TranscriptEntry, message: str) -> None:
        entry.typing_id = None
        entry.text = message
        entry.is_error = True
        entry.thinking = False
        self.touch(entry)

    def clear_edit_actions(self) -> None:
        """Drop the edit affordance from every user entry."""
        for entry in self._entries:
            if entry.is_user and entry.show_edit_action:
                entry.show_edit_action = False
                self._emit("changed", entry)

    def activate(self) -> None:
        """Reveal the transcript surface; fires once on the first message."""
        if self.active:
            return
        self.active = True
        LOGGER.debug("transcript.activated", extra={"event": "transcript.activated"})
        self._emit("activated", None)

    def request_scroll(self) -> None:
        self._emit("scroll", None)
