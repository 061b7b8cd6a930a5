"""Integration tests for the Textual chat app."""

from __future__ import annotations

import asyncio
from copy import deepcopy
import logging
import unittest

from textual.widgets import Button, Input

from groq_chat.app import GroqChatApp
from groq_chat.config import DEFAULT_CONFIG
from groq_chat.schemas import ChatRequest
from groq_chat.typing_animator import TypingAnimator
from groq_chat.widgets import ConversationView, Greeting, MessageBubble


class EchoGateway:
    """Fake completion client that echoes the prompt."""

    def __init__(self) -> None:
        self.payloads: list[ChatRequest] = []
        self.closed = False

    async def complete(self, payload: ChatRequest) -> str:
        self.payloads.append(payload)
        return f"echo {payload.message}"

    async def aclose(self) -> None:
        self.closed = True


def _config() -> dict:
    config = deepcopy(DEFAULT_CONFIG)
    config["client"]["thinking_delay_ms"] = 0
    config["ui"]["suggestions"] = ["Tell me a joke"]
    return config


class GroqChatAppTests(unittest.IsolatedAsyncioTestCase):
    """Drive the app through submit, suggestion and edit flows."""

    def setUp(self) -> None:
        root = logging.getLogger()
        self._original_level = root.level
        self._original_handlers = list(root.handlers)
        self.gateway = EchoGateway()
        self.app = GroqChatApp(config=_config(), gateway=self.gateway)

    def tearDown(self) -> None:
        root = logging.getLogger()
        root.setLevel(self._original_level)
        root.handlers.clear()
        root.handlers.extend(self._original_handlers)

    async def _settle(self, pilot) -> None:  # noqa: ANN001
        await pilot.pause(0.05)
        await self.app._task_manager.await_all()
        await pilot.pause()

    async def _send(self, pilot, text: str) -> None:  # noqa: ANN001
        prompt = self.app.query_one("#prompt_input", Input)
        prompt.value = text
        await prompt.action_submit()
        await self._settle(pilot)

    async def test_submit_hides_greeting_and_types_reply(self) -> None:
        async with self.app.run_test() as pilot:
            greeting = self.app.query_one(Greeting)
            view = self.app.query_one(ConversationView)
            self.assertFalse(greeting.has_class("hidden"))
            self.assertTrue(view.has_class("hidden"))

            await self._send(pilot, "hello")

            self.assertTrue(greeting.has_class("hidden"))
            self.assertFalse(view.has_class("hidden"))
            self.assertEqual(self.app.query_one("#prompt_input", Input).value, "")
            entries = self.app.transcript.entries
            self.assertEqual([entry.text for entry in entries], ["hello", "echo hello"])
            self.assertEqual(len(view.query(MessageBubble)), 2)
        self.assertTrue(self.gateway.closed)

    async def test_enter_on_blank_prompt_sends_nothing(self) -> None:
        async with self.app.run_test() as pilot:
            await self._send(pilot, "   ")
            self.assertEqual(len(self.app.transcript), 0)
            self.assertEqual(self.gateway.payloads, [])

    async def test_send_button_with_blank_prompt_and_no_images_is_noop(self) -> None:
        async with self.app.run_test() as pilot:
            self.app.query_one("#send_button", Button).press()
            await self._settle(pilot)
            self.assertEqual(len(self.app.transcript), 0)

    async def test_suggestion_fills_prompt(self) -> None:
        async with self.app.run_test() as pilot:
            self.app.query_one(".suggestion-card", Button).press()
            await pilot.pause()
            prompt = self.app.query_one("#prompt_input", Input)
            self.assertEqual(prompt.value, "Tell me a joke")
            self.assertEqual(len(self.app.transcript), 0)

    async def test_edit_save_replaces_reply(self) -> None:
        async with self.app.run_test() as pilot:
            await self._send(pilot, "hello")
            view = self.app.query_one(ConversationView)
            user = self.app.transcript.entries[0]
            bubble = view.bubble_for(user)
            assert bubble is not None

            bubble.query_one("#edit-button", Button).press()
            await pilot.pause()
            self.assertTrue(user.editing)
            self.assertEqual(len(self.app.transcript), 1)
            editor = bubble.editor
            assert editor is not None
            self.assertEqual(editor.text, "hello")

            editor.load_text("goodbye")
            bubble.query_one("#save-edit-button", Button).press()
            await self._settle(pilot)

            self.assertFalse(user.editing)
            self.assertIsNone(bubble.editor)
            texts = [entry.text for entry in self.app.transcript.entries]
            self.assertEqual(texts, ["goodbye", "echo goodbye"])

    async def test_edit_cancel_restores_reply(self) -> None:
        async with self.app.run_test() as pilot:
            await self._send(pilot, "hello")
            view = self.app.query_one(ConversationView)
            user, reply = self.app.transcript.entries
            bubble = view.bubble_for(user)
            assert bubble is not None

            bubble.query_one("#edit-button", Button).press()
            await pilot.pause()
            bubble.query_one("#cancel-edit-button", Button).press()
            await pilot.pause()

            self.assertFalse(user.editing)
            self.assertEqual(self.app.transcript.entries, [user, reply])
            self.assertIsNotNone(view.bubble_for(reply))
            self.assertEqual(len(self.gateway.payloads), 1)

    async def test_empty_edit_save_keeps_editor_open(self) -> None:
        async with self.app.run_test() as pilot:
            await self._send(pilot, "hello")
            view = self.app.query_one(ConversationView)
            user = self.app.transcript.entries[0]
            bubble = view.bubble_for(user)
            assert bubble is not None

            bubble.query_one("#edit-button", Button).press()
            await pilot.pause()
            assert bubble.editor is not None
            bubble.editor.load_text("   ")
            bubble.query_one("#save-edit-button", Button).press()
            await pilot.pause()

            self.assertTrue(user.editing)
            self.assertIsNotNone(bubble.editor)
            self.assertEqual(len(self.gateway.payloads), 1)

    def test_construction_keeps_textual_animator(self) -> None:
        app = GroqChatApp(config=_config(), gateway=EchoGateway())
        self.assertIsInstance(app.typing_animator, TypingAnimator)
        self.assertIs(app.orchestrator.animator, app.typing_animator)
        self.assertNotIsInstance(app.animator, TypingAnimator)

    def test_bindings_come_from_keybind_config(self) -> None:
        keys = {binding.action: binding.key for binding in self.app._binding_specs}
        self.assertEqual(keys, {"attach_image": "ctrl+o", "quit": "ctrl+q"})


if __name__ == "__main__":
    unittest.main()
