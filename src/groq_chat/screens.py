"""Modal screens used by the chat app."""

from __future__ import annotations

import shlex
from typing import Any

from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Input, Static


def split_paths(value: str) -> list[str]:
    """Split user input into paths, honouring shell-style quoting."""
    try:
        tokens = shlex.split(value)
    except ValueError:
        tokens = value.split()
    paths: list[str] = []
    for token in tokens:
        cleaned = token.strip()
        if cleaned.startswith("file://"):
            cleaned = cleaned[len("file://") :]
        if cleaned:
            paths.append(cleaned)
    return paths


class ImageAttachScreen(ModalScreen[list[str] | None]):
    """Modal for collecting one or more image paths."""

    CSS = """
    ImageAttachScreen {
        align: center middle;
    }

    #image-attach-dialog {
        width: 70;
        height: auto;
        padding: 1 3;
        border: round $panel;
        background: $surface;
    }

    #image-attach-title {
        padding-bottom: 1;
        text-style: bold;
    }

    #image-attach-input {
        width: 100%;
        margin: 1 0;
    }

    #image-attach-help {
        padding-top: 1;
        text-align: center;
    }
    """

    def compose(self) -> ComposeResult:
        with Container(id="image-attach-dialog"):
            yield Static("Attach images", id="image-attach-title")
            yield Input(
                placeholder="One or more image paths, space separated...",
                id="image-attach-input",
            )
            yield Static("Enter to confirm  |  Esc to cancel", id="image-attach-help")

    def on_mount(self) -> None:
        self.query_one("#image-attach-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "image-attach-input":
            return
        event.stop()
        paths = split_paths(event.value)
        self.dismiss(paths if paths else None)

    def on_key(self, event: Any) -> None:  # noqa: ANN401
        if str(getattr(event, "key", "")).lower() == "escape":
            self.dismiss(None)
