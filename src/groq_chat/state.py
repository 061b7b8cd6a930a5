"""Per-submission conversation state and its cancellation handle."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
import time
from typing import Any
from uuid import uuid4

from .schemas import ChatRequest
from .transcript import TranscriptEntry


class SubmissionPhase(str, Enum):
    """Lifecycle of a single submission."""

    IDLE = "IDLE"
    VALIDATING = "VALIDATING"
    RENDERED = "RENDERED"
    AWAITING_REPLY = "AWAITING_REPLY"
    SETTLED = "SETTLED"


class Settlement(str, Enum):
    """Terminal outcome of a pending reply."""

    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    CANCELLED = "CANCELLED"


def create_message_id() -> str:
    """Return an opaque id: hex millisecond clock plus a six-character random suffix."""
    return f"{int(time.time() * 1000):x}-{uuid4().hex[:6]}"


class CancellationToken:
    """Abort signal for one in-flight request.

    The request task is bound once it exists; cancelling before that simply
    marks the token so the task is never started.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._task: asyncio.Task[Any] | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def bind(self, task: asyncio.Task[Any]) -> None:
        self._task = task
        if self._cancelled and not task.done():
            task.cancel()

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()


@dataclass(eq=False)
class ConversationState:
    """Everything needed to finish, or tear down, one pending reply."""

    message_id: str
    payload: ChatRequest
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    timer: asyncio.TimerHandle | None = None
    pending_reply: TranscriptEntry | None = None
    phase: SubmissionPhase = SubmissionPhase.RENDERED
    settlement: Settlement | None = None

    def settle(self, outcome: Settlement) -> None:
        self.phase = SubmissionPhase.SETTLED
        self.settlement = outcome
