"""Tests for the display-free transcript model."""

from __future__ import annotations

import unittest

from groq_chat.transcript import Transcript, TranscriptEntry


class TranscriptTests(unittest.TestCase):
    def setUp(self) -> None:
        self.transcript = Transcript()
        self.events: list[tuple[str, TranscriptEntry | None]] = []
        self.transcript.subscribe(lambda event, entry: self.events.append((event, entry)))

    def test_insert_after_places_entry_behind_anchor(self) -> None:
        first = self.transcript.append(TranscriptEntry(role="user", text="a"))
        last = self.transcript.append(TranscriptEntry(role="user", text="b"))
        reply = self.transcript.insert_after(first, TranscriptEntry(role="bot"))
        self.assertEqual(self.transcript.entries, [first, reply, last])
        self.assertIs(self.transcript.next_entry(first), reply)
        self.assertIsNone(self.transcript.next_entry(last))

    def test_insert_after_missing_anchor_appends(self) -> None:
        orphan = TranscriptEntry(role="user")
        reply = self.transcript.insert_after(orphan, TranscriptEntry(role="bot"))
        self.assertEqual(self.transcript.entries, [reply])

    def test_remove_and_touch_detached_entry(self) -> None:
        entry = self.transcript.append(TranscriptEntry(role="bot"))
        self.assertTrue(self.transcript.remove(entry))
        self.assertFalse(self.transcript.remove(entry))
        self.events.clear()
        self.transcript.touch(entry)
        self.assertEqual(self.events, [])

    def test_show_error_replaces_thinking(self) -> None:
        entry = self.transcript.append(TranscriptEntry(role="bot", thinking=True))
        entry.typing_id = "t1"
        self.transcript.show_error(entry, "boom")
        self.assertTrue(entry.is_error)
        self.assertFalse(entry.thinking)
        self.assertIsNone(entry.typing_id)
        self.assertEqual(entry.text, "boom")

    def test_clear_edit_actions_only_touches_flagged_users(self) -> None:
        flagged = self.transcript.append(
            TranscriptEntry(role="user", show_edit_action=True)
        )
        self.transcript.append(TranscriptEntry(role="user"))
        self.events.clear()
        self.transcript.clear_edit_actions()
        self.assertFalse(flagged.show_edit_action)
        self.assertEqual(self.events, [("changed", flagged)])

    def test_activate_fires_once(self) -> None:
        self.transcript.activate()
        self.transcript.activate()
        self.assertTrue(self.transcript.active)
        self.assertEqual([event for event, _ in self.events], ["activated"])


if __name__ == "__main__":
    unittest.main()
