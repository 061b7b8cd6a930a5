"""Main Textual application for chatting through the completion proxy."""

from __future__ import annotations

import logging
from pathlib import Path
import sys
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import Paste
from textual.widgets import Footer, Header, Input

from .config import load_config
from .gateway import CompletionGateway
from .logging_utils import configure_logging
from .managers import (
    AttachmentStore,
    ConversationOrchestrator,
    ConversationRegistry,
    MessageEditingController,
)
from .managers.attachment import guess_image_mime_type
from .managers.orchestrator import CompletionClient
from .screens import ImageAttachScreen, split_paths
from .task_manager import TaskManager
from .transcript import Transcript, TranscriptEntry, TranscriptEvent
from .typing_animator import TypingAnimator
from .widgets import (
    AttachmentPreview,
    ConversationView,
    Greeting,
    InputBox,
    MessageBubble,
)

LOGGER = logging.getLogger(__name__)


class GroqChatApp(App[None]):
    """Single-conversation chat client with typed replies and inline edits."""

    CSS = """
    Screen {
        layout: vertical;
        background: $background;
    }

    #app-root {
        layout: vertical;
        width: 100%;
        height: 1fr;
        background: $background;
    }

    Header {
        border-bottom: solid $panel;
        background: $surface;
    }

    Footer {
        border-top: solid $panel;
        background: $surface;
    }

    #conversation {
        height: 1fr;
        padding: 1;
    }

    #greeting {
        height: 1fr;
    }

    InputBox {
        padding: 0 1 1 1;
        border-top: solid $panel;
        background: $surface;
    }

    #upload_button {
        margin-left: 1;
        min-width: 10;
    }

    #send_button {
        margin-left: 1;
        min-width: 10;
    }

    #attachment_preview {
        padding: 0 1;
        background: $surface;
    }

    MessageBubble {
        width: 85%;
        margin: 1 0;
        padding: 1 2;
        border: round $panel;
    }

    .message-user {
        align-horizontal: right;
        background: $primary;
    }

    .message-bot {
        align-horizontal: left;
        background: $surface;
    }
    """

    DEFAULT_ACTION_DESCRIPTIONS: dict[str, str] = {
        "attach_image": "Attach",
        "quit": "Quit",
    }

    def __init__(
        self,
        *,
        config: dict[str, dict[str, Any]] | None = None,
        gateway: CompletionClient | None = None,
    ) -> None:
        self.config = config if config is not None else load_config()
        self.window_title = str(self.config["app"]["title"])
        configure_logging(self.config["logging"])
        LOGGER.info(
            "app.python",
            extra={
                "event": "app.python",
                "executable": sys.executable,
                "version": sys.version.split()[0],
            },
        )

        client_cfg = self.config["client"]
        ui_cfg = self.config["ui"]
        keybinds = self.config["keybinds"]

        self._task_manager = TaskManager()
        self.transcript = Transcript()
        self.registry = ConversationRegistry(self.transcript)
        self.attachments = AttachmentStore(
            max_image_bytes=int(self.config["attachments"]["max_image_bytes"])
        )
        self.gateway: CompletionClient = gateway or CompletionGateway(
            str(client_cfg["api_url"]), timeout=float(client_cfg["timeout"])
        )
        self.typing_animator = TypingAnimator(self.transcript, self._task_manager)
        self.orchestrator = ConversationOrchestrator(
            self.transcript,
            self.registry,
            self.attachments,
            self.gateway,
            self.typing_animator,
            self._task_manager,
            thinking_delay=int(client_cfg["thinking_delay_ms"]) / 1000,
            default_image_prompt=str(client_cfg["default_image_prompt"]),
        )
        self.editing = MessageEditingController(
            self.transcript,
            self.registry,
            self.orchestrator.schedule_reply,
            min_rows=int(ui_cfg["edit_min_rows"]),
            max_rows=int(ui_cfg["edit_max_rows"]),
        )

        self._save_key = str(keybinds["save_edit"])
        self._cancel_key = str(keybinds["cancel_edit"])
        self._binding_specs = self._binding_specs_from_config(self.config)

        self._w_input: Input | None = None
        self._w_conversation: ConversationView | None = None
        self._w_greeting: Greeting | None = None
        self._w_preview: AttachmentPreview | None = None
        super().__init__()

    @classmethod
    def _binding_specs_from_config(
        cls, config: dict[str, dict[str, Any]]
    ) -> list[Binding]:
        keybinds = config.get("keybinds", {})
        bindings: list[Binding] = []
        for action_name in cls.DEFAULT_ACTION_DESCRIPTIONS:
            binding_key = keybinds.get(action_name)
            if isinstance(binding_key, str) and binding_key.strip():
                bindings.append(
                    Binding(
                        key=binding_key.strip(),
                        action=action_name,
                        description=cls.DEFAULT_ACTION_DESCRIPTIONS[action_name],
                        show=True,
                    )
                )
        return bindings

    def _edit_rows_for(self, entry: TranscriptEntry) -> int:
        buffer = self.editing.buffer_for(entry)
        return buffer.rows if buffer is not None else self.editing.min_rows

    def compose(self) -> ComposeResult:
        """Compose app widgets."""
        ui_cfg = self.config["ui"]
        yield Header(name=self.window_title)
        with Container(id="app-root"):
            yield Greeting(
                str(ui_cfg["greeting"]),
                list(ui_cfg["suggestions"]),
                id="greeting",
            )
            yield ConversationView(
                self.transcript,
                edit_rows=self._edit_rows_for,
                error_color=str(ui_cfg["error_color"]),
                user_color=str(ui_cfg["user_message_color"]),
                bot_color=str(ui_cfg["bot_message_color"]),
                save_key=self._save_key,
                cancel_key=self._cancel_key,
                id="conversation",
            )
            yield AttachmentPreview(self.attachments, id="attachment_preview")
            yield InputBox()
        yield Footer()

    async def on_mount(self) -> None:
        """Register runtime keybindings and hook model notifications."""
        self.title = self.window_title
        for binding in self._binding_specs:
            self.bind(
                binding.key,
                binding.action,
                description=binding.description,
                show=binding.show,
                key_display=binding.key_display,
            )

        self._w_input = self.query_one("#prompt_input", Input)
        self._w_conversation = self.query_one(ConversationView)
        self._w_greeting = self.query_one(Greeting)
        self._w_preview = self.query_one(AttachmentPreview)

        self.transcript.subscribe(self._on_transcript_event)
        self.attachments.on_change(self._on_attachments_changed)
        self._w_input.focus()

    async def on_unmount(self) -> None:
        """Cancel and await all background tasks during shutdown."""
        self.transcript.unsubscribe(self._on_transcript_event)
        await self._task_manager.cancel_all()
        close = getattr(self.gateway, "aclose", None)
        if close is not None:
            await close()

    def _on_transcript_event(
        self, event: TranscriptEvent, entry: TranscriptEntry | None
    ) -> None:
        if event == "activated" and self._w_greeting is not None:
            self._w_greeting.add_class("hidden")

    def _on_attachments_changed(self) -> None:
        if self._w_preview is not None:
            self.call_later(self._w_preview.show)

    def _clear_prompt(self) -> None:
        if self._w_input is not None:
            self._w_input.value = ""

    def _submit(self, text: str) -> None:
        entry = self.orchestrator.submit(text)
        if entry is not None:
            self._clear_prompt()
            self.sub_title = ""

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        """Enter sends typed text; staged images alone need the Send button."""
        if event.input.id != "prompt_input":
            return
        event.stop()
        if not event.value.strip():
            return
        self._submit(event.value)

    def on_input_box_send_requested(self, event: InputBox.SendRequested) -> None:
        event.stop()
        self._submit(self.orchestrator.outgoing_text_for_send(event.text))

    def on_input_box_attach_requested(self, event: InputBox.AttachRequested) -> None:
        event.stop()
        self.action_attach_image()

    def action_attach_image(self) -> None:
        """Open the image path prompt."""
        self.push_screen(ImageAttachScreen(), callback=self._on_attach_dismissed)

    def _on_attach_dismissed(self, paths: list[str] | None) -> None:
        if not paths:
            return
        self._task_manager.spawn(self._attach_paths(paths), name="attach-images")

    async def _attach_paths(self, paths: list[str]) -> None:
        errors = await self.attachments.add_many(paths)
        if errors:
            self.sub_title = "; ".join(errors)
        else:
            self.sub_title = f"Attached {len(paths)} image(s)"

    def on_paste(self, event: Paste) -> None:
        """Stage pasted or dropped image paths."""
        if not event.text:
            return
        paths = [
            path
            for path in split_paths(event.text)
            if Path(path).expanduser().is_file()
            and guess_image_mime_type(Path(path)) is not None
        ]
        if not paths:
            return
        event.stop()
        self._task_manager.spawn(self._attach_paths(paths), name="paste-images")

    def on_attachment_preview_remove_requested(
        self, event: AttachmentPreview.RemoveRequested
    ) -> None:
        event.stop()
        self.attachments.remove(event.attachment_id)

    def on_greeting_suggestion_selected(self, event: Greeting.SuggestionSelected) -> None:
        event.stop()
        if self._w_input is None:
            return
        self._w_input.value = event.prompt
        self._w_input.cursor_position = len(event.prompt)
        self._w_input.focus()

    def on_message_bubble_edit_requested(
        self, event: MessageBubble.EditRequested
    ) -> None:
        event.stop()
        self.editing.start_edit(event.entry)

    def on_message_bubble_save_requested(
        self, event: MessageBubble.SaveRequested
    ) -> None:
        event.stop()
        state = self.editing.save_edit(event.entry, event.text)
        if state is None and self._w_conversation is not None:
            bubble = self._w_conversation.bubble_for(event.entry)
            if bubble is not None:
                bubble.refocus_editor()

    def on_message_bubble_cancel_requested(
        self, event: MessageBubble.CancelRequested
    ) -> None:
        event.stop()
        self.editing.cancel_edit(event.entry)

    async def action_quit(self) -> None:
        """Exit the app."""
        self.exit()
