"""Message bubble widget and its inline editor."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Static, TextArea

from ..transcript import TranscriptEntry

THINKING_TEXT = "● ● ●"


class MessageEditor(TextArea):
    """Text area that turns the save/cancel shortcuts into messages."""

    class Save(Message):
        """Posted when the save shortcut is pressed."""

    class Cancel(Message):
        """Posted when the cancel shortcut is pressed."""

    def __init__(
        self,
        text: str,
        *,
        save_key: str = "ctrl+enter",
        cancel_key: str = "escape",
        **kwargs: Any,
    ) -> None:
        super().__init__(text, **kwargs)
        self.save_key = save_key
        self.cancel_key = cancel_key

    def on_key(self, event: events.Key) -> None:
        if event.key == self.save_key:
            event.stop()
            event.prevent_default()
            self.post_message(self.Save())
        elif event.key == self.cancel_key:
            event.stop()
            event.prevent_default()
            self.post_message(self.Cancel())


class MessageBubble(Vertical):
    """Render one transcript entry: text, thinking dots, edit affordance, editor."""

    DEFAULT_CSS = """
    MessageBubble {
        height: auto;
    }
    MessageBubble > #header-block {
        text-style: bold;
    }
    MessageBubble > #attachment-block {
        color: $text-muted;
    }
    MessageBubble > #content-block {
        height: auto;
    }
    MessageBubble > #message-actions {
        height: auto;
        align-horizontal: right;
    }
    MessageBubble .message-edit-container {
        height: auto;
    }
    MessageBubble .message-edit-actions {
        height: auto;
        align-horizontal: right;
    }
    """

    class EditRequested(Message):
        """Posted when the Edit button of a user message is pressed."""

        def __init__(self, entry: TranscriptEntry) -> None:
            super().__init__()
            self.entry = entry

    class SaveRequested(Message):
        """Posted when an inline edit is confirmed."""

        def __init__(self, entry: TranscriptEntry, text: str) -> None:
            super().__init__()
            self.entry = entry
            self.text = text

    class CancelRequested(Message):
        """Posted when an inline edit is abandoned."""

        def __init__(self, entry: TranscriptEntry) -> None:
            super().__init__()
            self.entry = entry

    def __init__(
        self,
        entry: TranscriptEntry,
        *,
        error_color: str = "#ae2727",
        text_color: str = "",
        edit_rows: int = 2,
        save_key: str = "ctrl+enter",
        cancel_key: str = "escape",
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.entry = entry
        self.error_color = error_color
        self.text_color = text_color
        self.edit_rows = edit_rows
        self.save_key = save_key
        self.cancel_key = cancel_key
        self.add_class(f"message-{entry.role}")

        self._attachment_widget: Static | None = None
        self._content_widget: Static | None = None
        self._actions_widget: Horizontal | None = None
        self._editor_container: Vertical | None = None
        self._editor: MessageEditor | None = None

    @property
    def role_prefix(self) -> str:
        return "You" if self.entry.is_user else "Assistant"

    @property
    def editor(self) -> MessageEditor | None:
        return self._editor

    def compose(self) -> ComposeResult:
        self._attachment_widget = Static("", id="attachment-block")
        self._content_widget = Static("", id="content-block")
        self._actions_widget = Horizontal(
            Button("Edit", id="edit-button", classes="message-action-btn"),
            id="message-actions",
        )
        yield Static(self.role_prefix, id="header-block")
        yield self._attachment_widget
        yield self._content_widget
        yield self._actions_widget

    def on_mount(self) -> None:
        self.refresh_from_entry()

    def render_content(self) -> Text:
        """Return the rich text shown in the content block."""
        entry = self.entry
        if entry.thinking:
            return Text(THINKING_TEXT, style="dim italic")
        if entry.is_error:
            return Text(entry.text, style=self.error_color)
        return Text(entry.text, style=self.text_color)

    def refresh_from_entry(self, edit_rows: int | None = None) -> None:
        """Project the entry's current state onto the child widgets."""
        if edit_rows is not None:
            self.edit_rows = edit_rows
        if self._content_widget is None:
            return
        entry = self.entry

        if self._attachment_widget is not None:
            if entry.attachment_label:
                label = Text(f"[image] {entry.attachment_label}")
                self._attachment_widget.update(label)
                self._attachment_widget.display = True
            else:
                self._attachment_widget.display = False

        self._content_widget.update(self.render_content())
        self._content_widget.display = not entry.editing and (
            bool(entry.text) or entry.thinking
        )
        self.set_class(entry.thinking, "thinking")
        self.set_class(entry.is_error, "error")

        if self._actions_widget is not None:
            self._actions_widget.display = entry.show_edit_action and not entry.editing

        if entry.editing and self._editor_container is None:
            self._open_editor()
        elif not entry.editing and self._editor_container is not None:
            self._close_editor()

    def _open_editor(self) -> None:
        self._editor = MessageEditor(
            self.entry.text,
            save_key=self.save_key,
            cancel_key=self.cancel_key,
            classes="message-edit-input",
        )
        self._editor.styles.height = self.edit_rows + 2
        self._editor_container = Vertical(
            self._editor,
            Horizontal(
                Button("Cancel", id="cancel-edit-button", classes="message-action-btn"),
                Button(
                    "Save",
                    id="save-edit-button",
                    variant="success",
                    classes="message-action-btn",
                ),
                classes="message-edit-actions",
            ),
            classes="message-edit-container",
        )
        self.mount(self._editor_container)
        self.call_after_refresh(self._focus_editor)

    def _focus_editor(self) -> None:
        editor = self._editor
        if editor is None:
            return
        editor.focus()
        editor.move_cursor(editor.document.end)

    def _close_editor(self) -> None:
        if self._editor_container is not None:
            self._editor_container.remove()
        self._editor_container = None
        self._editor = None

    def refocus_editor(self) -> None:
        if self._editor is not None:
            self._editor.focus()

    def _request_save(self) -> None:
        if self._editor is not None:
            self.post_message(self.SaveRequested(self.entry, self._editor.text))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "edit-button":
            event.stop()
            self.post_message(self.EditRequested(self.entry))
        elif button_id == "save-edit-button":
            event.stop()
            self._request_save()
        elif button_id == "cancel-edit-button":
            event.stop()
            self.post_message(self.CancelRequested(self.entry))

    def on_message_editor_save(self, event: MessageEditor.Save) -> None:
        event.stop()
        self._request_save()

    def on_message_editor_cancel(self, event: MessageEditor.Cancel) -> None:
        event.stop()
        self.post_message(self.CancelRequested(self.entry))
