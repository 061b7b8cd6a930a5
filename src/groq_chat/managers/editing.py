"""Inline editing of sent user messages."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging

from ..schemas import ChatRequest
from ..state import ConversationState, create_message_id
from ..transcript import Transcript, TranscriptEntry
from .registry import ConversationRegistry

LOGGER = logging.getLogger(__name__)

ReplyScheduler = Callable[[ConversationState, TranscriptEntry], None]


@dataclass
class EditBuffer:
    """Transient state kept while one entry is in edit mode."""

    original_text: str
    detached_reply: TranscriptEntry | None = None
    rows: int = 2


class MessageEditingController:
    """Turn a sent message into an editor and resubmit it on save.

    At most one entry is in edit mode.  Starting an edit tears down the
    entry's pending conversation and detaches its settled reply so that
    cancelling can put everything back where it was.
    """

    def __init__(
        self,
        transcript: Transcript,
        registry: ConversationRegistry,
        schedule_reply: ReplyScheduler,
        *,
        min_rows: int = 2,
        max_rows: int = 8,
    ) -> None:
        self.transcript = transcript
        self.registry = registry
        self._schedule_reply = schedule_reply
        self.min_rows = min_rows
        self.max_rows = max_rows
        self._active: TranscriptEntry | None = None
        self._buffer: EditBuffer | None = None

    @property
    def active_entry(self) -> TranscriptEntry | None:
        return self._active

    def buffer_for(self, entry: TranscriptEntry) -> EditBuffer | None:
        return self._buffer if self._active is entry else None

    def _rows_for(self, text: str) -> int:
        return min(self.max_rows, max(self.min_rows, len(text.split("\n"))))

    def start_edit(self, entry: TranscriptEntry) -> EditBuffer | None:
        """Put ``entry`` into edit mode; no-op when it already is."""
        if not entry.is_user or entry.editing:
            return None

        if self._active is not None and self._active is not entry:
            self.cancel_edit(self._active)

        message_id = entry.message_id or create_message_id()
        entry.message_id = message_id
        self.registry.cancel(message_id)

        detached: TranscriptEntry | None = None
        following = self.transcript.next_entry(entry)
        if following is not None and following.is_bot:
            detached = following
            self.transcript.remove(following)

        buffer = EditBuffer(
            original_text=entry.text,
            detached_reply=detached,
            rows=self._rows_for(entry.text),
        )
        self._active = entry
        self._buffer = buffer

        entry.editing = True
        entry.show_edit_action = False
        self.transcript.touch(entry)
        LOGGER.debug(
            "edit.start",
            extra={
                "event": "edit.start",
                "message_id": message_id,
                "detached_reply": detached is not None,
            },
        )
        return buffer

    def cancel_edit(
        self, entry: TranscriptEntry, *, suppress_affordance: bool = False
    ) -> bool:
        """Leave edit mode, restoring the original text and any detached reply."""
        buffer = self.buffer_for(entry)
        if buffer is None:
            return False

        self._active = None
        self._buffer = None
        entry.text = buffer.original_text
        entry.editing = False

        if buffer.detached_reply is not None and self.transcript.contains(entry):
            self.transcript.insert_after(entry, buffer.detached_reply)

        if not suppress_affordance:
            entry.show_edit_action = True
        self.transcript.touch(entry)
        return True

    def save_edit(
        self, entry: TranscriptEntry, new_text: str
    ) -> ConversationState | None:
        """Commit ``new_text`` and request a fresh reply.

        Returns ``None`` when the trimmed text is empty; the editor stays open.
        Edited messages are resubmitted as text only.
        """
        trimmed = new_text.strip()
        if not trimmed:
            return None

        if self._active is entry:
            self._active = None
            self._buffer = None

        entry.text = trimmed
        entry.editing = False
        self.transcript.clear_edit_actions()
        entry.show_edit_action = True
        self.transcript.touch(entry)

        message_id = entry.message_id or create_message_id()
        entry.message_id = message_id
        state = ConversationState(
            message_id=message_id,
            payload=ChatRequest(message=trimmed, file=None),
        )
        self.registry.register(state)
        self._schedule_reply(state, entry)
        LOGGER.info(
            "edit.saved",
            extra={"event": "edit.saved", "message_id": message_id},
        )
        return state
