"""Input row containing the prompt field, attach button and send button."""

from __future__ import annotations

from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Input


class InputBox(Vertical):
    """Prompt input region with upload and send buttons."""

    DEFAULT_CSS = """
    InputBox {
        height: auto;
    }
    InputBox > #input_row {
        height: auto;
    }
    InputBox #prompt_input {
        width: 1fr;
    }
    """

    class AttachRequested(Message):
        """Posted when the user clicks the upload button."""

    class SendRequested(Message):
        """Posted when the user clicks the send button."""

        def __init__(self, text: str) -> None:
            super().__init__()
            self.text = text

    def compose(self):  # type: ignore[override]
        with Horizontal(id="input_row"):
            yield Input(
                placeholder="Message... (paste image paths to attach)",
                id="prompt_input",
            )
            yield Button("Image", id="upload_button", variant="default")
            yield Button("Send", id="send_button", variant="success")

    @property
    def prompt(self) -> Input:
        return self.query_one("#prompt_input", Input)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Forward button clicks as AttachRequested / SendRequested messages."""
        if event.button.id == "upload_button":
            event.stop()
            self.post_message(self.AttachRequested())
        elif event.button.id == "send_button":
            event.stop()
            self.post_message(self.SendRequested(self.prompt.value))
