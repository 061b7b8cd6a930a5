"""Scrollable conversation view widget."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from textual.containers import VerticalScroll

from ..transcript import Transcript, TranscriptEntry, TranscriptEvent
from .message import MessageBubble

EditRowsProvider = Callable[[TranscriptEntry], int]


class ConversationView(VerticalScroll):
    """A scrollable container that mirrors a transcript as message bubbles."""

    DEFAULT_CSS = """
    ConversationView.hidden {
        display: none;
    }
    """

    def __init__(
        self,
        transcript: Transcript,
        *,
        edit_rows: EditRowsProvider | None = None,
        error_color: str = "#ae2727",
        user_color: str = "#7aa2f7",
        bot_color: str = "#c0caf5",
        save_key: str = "ctrl+enter",
        cancel_key: str = "escape",
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.transcript = transcript
        self._edit_rows = edit_rows
        self.error_color = error_color
        self.user_color = user_color
        self.bot_color = bot_color
        self.save_key = save_key
        self.cancel_key = cancel_key
        self._bubbles: dict[str, MessageBubble] = {}
        if not transcript.active:
            self.add_class("hidden")

    def on_mount(self) -> None:
        self.transcript.subscribe(self._on_transcript_event)
        for entry in self.transcript:
            self._mount_entry(entry)

    def on_unmount(self) -> None:
        self.transcript.unsubscribe(self._on_transcript_event)

    def bubble_for(self, entry: TranscriptEntry) -> MessageBubble | None:
        return self._bubbles.get(entry.entry_id)

    @property
    def bubbles(self) -> list[MessageBubble]:
        """Bubbles in transcript order."""
        return [
            self._bubbles[entry.entry_id]
            for entry in self.transcript
            if entry.entry_id in self._bubbles
        ]

    def _rows_for(self, entry: TranscriptEntry) -> int | None:
        if self._edit_rows is None or not entry.editing:
            return None
        return self._edit_rows(entry)

    def _on_transcript_event(
        self, event: TranscriptEvent, entry: TranscriptEntry | None
    ) -> None:
        if event == "activated":
            self.remove_class("hidden")
        elif event == "scroll":
            self.scroll_end(animate=True)
        elif entry is None:
            return
        elif event == "added":
            self._mount_entry(entry)
        elif event == "removed":
            bubble = self._bubbles.pop(entry.entry_id, None)
            if bubble is not None:
                bubble.remove()
        elif event == "changed":
            bubble = self._bubbles.get(entry.entry_id)
            if bubble is not None:
                bubble.refresh_from_entry(self._rows_for(entry))

    def _mount_entry(self, entry: TranscriptEntry) -> None:
        if entry.entry_id in self._bubbles:
            return
        bubble = MessageBubble(
            entry,
            error_color=self.error_color,
            text_color=self.user_color if entry.is_user else self.bot_color,
            edit_rows=self._rows_for(entry) or 2,
            save_key=self.save_key,
            cancel_key=self.cancel_key,
        )
        self._bubbles[entry.entry_id] = bubble

        following = self.transcript.next_entry(entry)
        before = self._bubbles.get(following.entry_id) if following is not None else None
        if before is not None and before.parent is self:
            self.mount(bubble, before=before)
        else:
            self.mount(bubble)
