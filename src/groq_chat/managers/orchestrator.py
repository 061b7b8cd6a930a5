"""Top-level flow from a submitted prompt to a typed (or failed) reply."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Protocol

from ..exceptions import CompletionError, EmptyResponseError, SubmissionRejected
from ..schemas import ChatRequest, FilePayload
from ..state import (
    ConversationState,
    Settlement,
    SubmissionPhase,
    create_message_id,
)
from ..task_manager import TaskManager
from ..transcript import Transcript, TranscriptEntry
from ..typing_animator import TypingAnimator
from .attachment import AttachmentStore
from .registry import ConversationRegistry

LOGGER = logging.getLogger(__name__)

_BOLD_PATTERN = re.compile(r"\*\*(.*?)\*\*")
_BULLET_PATTERN = re.compile(r"^\s*\*\s+", re.MULTILINE)


class CompletionClient(Protocol):
    async def complete(self, payload: ChatRequest) -> str: ...


def clean_reply_text(text: str) -> str:
    """Drop ``**bold**`` markers, normalise ``*`` bullets to ``-`` and trim."""
    cleaned = _BOLD_PATTERN.sub(r"\1", text)
    cleaned = _BULLET_PATTERN.sub("- ", cleaned)
    return cleaned.strip()


class ConversationOrchestrator:
    """Coordinate submission, the thinking delay, the request and settlement.

    Responsibilities:
    - Validate and render outgoing user messages
    - Register per-message state and schedule the delayed reply
    - Route the completion (or its failure) back into the transcript
    """

    def __init__(
        self,
        transcript: Transcript,
        registry: ConversationRegistry,
        attachments: AttachmentStore,
        gateway: CompletionClient,
        animator: TypingAnimator,
        task_manager: TaskManager,
        *,
        thinking_delay: float = 0.6,
        default_image_prompt: str = "What's in this image?",
    ) -> None:
        self.transcript = transcript
        self.registry = registry
        self.attachments = attachments
        self.gateway = gateway
        self.animator = animator
        self.task_manager = task_manager
        self.thinking_delay = thinking_delay
        self.default_image_prompt = default_image_prompt

    def outgoing_text_for_send(self, text: str) -> str:
        """Fill in the image prompt when Send is pressed with only images staged."""
        if not text.strip() and len(self.attachments) > 0:
            return self.default_image_prompt
        return text

    def _validate(self, text: str) -> tuple[str, FilePayload | None]:
        message = text.strip()
        file_payload = self.attachments.get_primary_payload()
        if not message and file_payload is None:
            raise SubmissionRejected("Nothing to send.")
        return message, file_payload

    def submit(self, text: str) -> TranscriptEntry | None:
        """Render a user message and schedule its reply.

        Returns the new user entry, or ``None`` when there is nothing to send
        (the caller keeps its input untouched in that case).
        """
        try:
            message, file_payload = self._validate(text)
        except SubmissionRejected:
            LOGGER.debug("conversation.rejected", extra={"event": "conversation.rejected"})
            return None

        primary = self.attachments.primary
        self.transcript.activate()
        self.transcript.clear_edit_actions()

        message_id = create_message_id()
        entry = TranscriptEntry(
            role="user",
            text=message,
            message_id=message_id,
            attachment_label=primary.name if primary is not None else None,
            show_edit_action=file_payload is None,
        )
        self.transcript.append(entry)
        self.transcript.request_scroll()

        state = ConversationState(
            message_id=message_id,
            payload=ChatRequest(message=message, file=file_payload),
        )
        self.registry.register(state)
        self.schedule_reply(state, entry)
        self.attachments.clear()

        LOGGER.info(
            "conversation.submit",
            extra={
                "event": "conversation.submit",
                "message_id": message_id,
                "has_attachment": file_payload is not None,
            },
        )
        return entry

    def schedule_reply(self, state: ConversationState, anchor: TranscriptEntry) -> None:
        """Show the thinking placeholder and start the request after the delay."""
        loop = asyncio.get_running_loop()
        state.phase = SubmissionPhase.RENDERED
        state.timer = loop.call_later(
            self.thinking_delay, self._on_thinking_delay_elapsed, state, anchor
        )

    def _on_thinking_delay_elapsed(
        self, state: ConversationState, anchor: TranscriptEntry
    ) -> None:
        state.timer = None
        if not self.registry.is_current(state):
            return

        reply = TranscriptEntry(role="bot", thinking=True)
        state.pending_reply = reply
        state.phase = SubmissionPhase.AWAITING_REPLY
        self.transcript.insert_after(anchor, reply)
        self.transcript.request_scroll()

        task = self.task_manager.spawn(
            self._generate_reply(state, reply), name=f"reply-{state.message_id}"
        )
        state.cancellation.bind(task)

    async def _generate_reply(
        self, state: ConversationState, reply: TranscriptEntry
    ) -> None:
        try:
            raw_text = await self.gateway.complete(state.payload)
            cleaned = clean_reply_text(raw_text)
            if not cleaned:
                raise EmptyResponseError(
                    "The completion service returned an empty response."
                )
        except asyncio.CancelledError:
            LOGGER.debug(
                "conversation.cancelled",
                extra={"event": "conversation.cancelled", "message_id": state.message_id},
            )
            raise
        except CompletionError as exc:
            LOGGER.warning(
                "conversation.error",
                extra={
                    "event": "conversation.error",
                    "message_id": state.message_id,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            self._settle_with_error(state, reply, str(exc))
            return
        except Exception as exc:  # noqa: BLE001 - every failure resolves in the reply slot.
            LOGGER.exception(
                "conversation.unexpected_error",
                extra={"event": "conversation.unexpected_error", "message_id": state.message_id},
            )
            self._settle_with_error(state, reply, str(exc) or type(exc).__name__)
            return

        if not self.registry.is_current(state):
            return
        if self.transcript.contains(reply):
            self.animator.animate(reply, cleaned)
        else:
            reply.thinking = False
        self._finish(state, reply, Settlement.SUCCESS)

    def _settle_with_error(
        self, state: ConversationState, reply: TranscriptEntry, message: str
    ) -> None:
        if not self.registry.is_current(state):
            return
        self.transcript.show_error(reply, message)
        self._finish(state, reply, Settlement.ERROR)

    def _finish(
        self, state: ConversationState, reply: TranscriptEntry, outcome: Settlement
    ) -> None:
        state.settle(outcome)
        self.registry.retire(state.message_id)
        if self.transcript.contains(reply):
            self.transcript.request_scroll()
        LOGGER.info(
            "conversation.settled",
            extra={
                "event": "conversation.settled",
                "message_id": state.message_id,
                "outcome": outcome.value,
            },
        )
