"""Greeting panel with clickable prompt suggestions."""

from __future__ import annotations

from typing import Any

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.widgets import Button, Static


class SuggestionCard(Button):
    """Button carrying a canned prompt."""

    def __init__(self, prompt: str, **kwargs: Any) -> None:
        super().__init__(prompt, classes="suggestion-card", **kwargs)
        self.prompt = prompt


class Greeting(Vertical):
    """Shown until the first message is sent."""

    DEFAULT_CSS = """
    Greeting {
        height: auto;
        padding: 1 2;
    }
    Greeting.hidden {
        display: none;
    }
    Greeting > #greeting-text {
        text-style: bold;
        padding-bottom: 1;
    }
    Greeting > .suggestion-card {
        width: 100%;
        margin-bottom: 1;
    }
    """

    class SuggestionSelected(Message):
        def __init__(self, prompt: str) -> None:
            super().__init__()
            self.prompt = prompt

    def __init__(self, text: str, suggestions: list[str], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.text = text
        self.suggestions = list(suggestions)

    def compose(self) -> ComposeResult:
        yield Static(self.text, id="greeting-text")
        for prompt in self.suggestions:
            yield SuggestionCard(prompt)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if isinstance(event.button, SuggestionCard):
            event.stop()
            self.post_message(self.SuggestionSelected(event.button.prompt))
