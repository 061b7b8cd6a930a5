"""Tests for the in-flight conversation registry."""

from __future__ import annotations

import asyncio
import unittest

from groq_chat.managers.registry import ConversationRegistry
from groq_chat.schemas import ChatRequest
from groq_chat.state import (
    ConversationState,
    Settlement,
    SubmissionPhase,
    create_message_id,
)
from groq_chat.transcript import Transcript, TranscriptEntry


def _state(message_id: str = "m1") -> ConversationState:
    return ConversationState(message_id=message_id, payload=ChatRequest(message="hi"))


class ConversationRegistryTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.transcript = Transcript()
        self.registry = ConversationRegistry(self.transcript)

    async def test_cancel_clears_timer_and_removes_pending_reply(self) -> None:
        fired: list[bool] = []
        loop = asyncio.get_running_loop()
        state = _state()
        state.timer = loop.call_later(0.01, fired.append, True)
        reply = self.transcript.append(TranscriptEntry(role="bot", thinking=True))
        state.pending_reply = reply
        self.registry.register(state)

        self.assertTrue(self.registry.cancel("m1"))
        await asyncio.sleep(0.03)

        self.assertEqual(fired, [])
        self.assertFalse(self.transcript.contains(reply))
        self.assertNotIn("m1", self.registry)
        self.assertEqual(state.phase, SubmissionPhase.SETTLED)
        self.assertEqual(state.settlement, Settlement.CANCELLED)
        self.assertTrue(state.cancellation.cancelled)

    async def test_cancel_aborts_bound_task(self) -> None:
        state = _state()
        self.registry.register(state)
        task = asyncio.create_task(asyncio.sleep(10))
        state.cancellation.bind(task)

        self.registry.cancel("m1")
        with self.assertRaises(asyncio.CancelledError):
            await task

    def test_unknown_and_missing_ids_are_ignored(self) -> None:
        self.assertFalse(self.registry.cancel("nope"))
        self.assertFalse(self.registry.cancel(None))
        self.assertFalse(self.registry.retire("nope"))
        self.assertIsNone(self.registry.get(None))

    def test_register_over_existing_id_cancels_older_state(self) -> None:
        older = _state()
        newer = _state()
        self.registry.register(older)
        self.registry.register(newer)

        self.assertEqual(older.settlement, Settlement.CANCELLED)
        self.assertIs(self.registry.get("m1"), newer)
        self.assertTrue(self.registry.is_current(newer))
        self.assertFalse(self.registry.is_current(older))

    def test_retire_keeps_transcript_untouched(self) -> None:
        state = _state()
        reply = self.transcript.append(TranscriptEntry(role="bot", text="done"))
        state.pending_reply = reply
        self.registry.register(state)

        self.assertTrue(self.registry.retire("m1"))
        self.assertTrue(self.transcript.contains(reply))
        self.assertEqual(len(self.registry), 0)

    async def test_token_cancelled_before_bind_cancels_on_bind(self) -> None:
        state = _state()
        state.cancellation.cancel()

        task = asyncio.create_task(asyncio.sleep(10))
        state.cancellation.bind(task)
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertTrue(task.cancelled())



class CreateMessageIdTests(unittest.TestCase):
    def test_id_is_hex_clock_and_random_suffix(self) -> None:
        clock, suffix = create_message_id().split("-")
        self.assertGreater(int(clock, 16), 0)
        self.assertEqual(len(suffix), 6)
        int(suffix, 16)

    def test_ids_are_unique(self) -> None:
        ids = {create_message_id() for _ in range(50)}
        self.assertEqual(len(ids), 50)


if __name__ == "__main__":
    unittest.main()
