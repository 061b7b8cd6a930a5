"""Registry of in-flight conversations keyed by message id."""

from __future__ import annotations

import logging

from ..state import ConversationState, Settlement
from ..transcript import Transcript

LOGGER = logging.getLogger(__name__)


class ConversationRegistry:
    """Map message ids to their pending :class:`ConversationState`.

    Timer and network callbacks check membership before acting, so deleting
    an entry here is what makes every stale callback for that id a no-op.
    Both :meth:`cancel` and :meth:`retire` ignore unknown ids.
    """

    def __init__(self, transcript: Transcript) -> None:
        self.transcript = transcript
        self._states: dict[str, ConversationState] = {}

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._states

    def register(self, state: ConversationState) -> None:
        """Track ``state``; an older state under the same id is cancelled first."""
        existing = self._states.get(state.message_id)
        if existing is not None and existing is not state:
            self.cancel(state.message_id)
        self._states[state.message_id] = state
        LOGGER.debug(
            "registry.register",
            extra={"event": "registry.register", "message_id": state.message_id},
        )

    def get(self, message_id: str | None) -> ConversationState | None:
        if not message_id:
            return None
        return self._states.get(message_id)

    def is_current(self, state: ConversationState) -> bool:
        """Return True while ``state`` is the registered state for its id."""
        return self._states.get(state.message_id) is state

    def cancel(self, message_id: str | None) -> bool:
        """Tear down a pending conversation.

        Clears the scheduled timer, aborts the request, and removes the
        unsettled reply from the transcript.
        """
        if not message_id:
            return False
        state = self._states.pop(message_id, None)
        if state is None:
            return False

        if state.timer is not None:
            state.timer.cancel()
            state.timer = None
        state.cancellation.cancel()

        reply = state.pending_reply
        if reply is not None and self.transcript.contains(reply):
            self.transcript.remove(reply)
        state.settle(Settlement.CANCELLED)

        LOGGER.info(
            "registry.cancel",
            extra={"event": "registry.cancel", "message_id": message_id},
        )
        return True

    def retire(self, message_id: str | None) -> bool:
        """Forget a settled conversation without touching the transcript."""
        if not message_id:
            return False
        return self._states.pop(message_id, None) is not None
