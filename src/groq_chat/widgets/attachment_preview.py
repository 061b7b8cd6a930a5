"""Strip of staged image attachments shown above the prompt."""

from __future__ import annotations

from typing import Any

from textual.containers import Horizontal
from textual.message import Message
from textual.widgets import Button, Static

from ..managers.attachment import AttachmentStore


class RemoveImageButton(Button):
    """Remove button bound to a single staged attachment."""

    def __init__(self, attachment_id: str, **kwargs: Any) -> None:
        super().__init__("x", classes="remove-image-btn", **kwargs)
        self.attachment_id = attachment_id


class AttachmentPreview(Horizontal):
    """One chip per staged image; hidden while the store is empty."""

    DEFAULT_CSS = """
    AttachmentPreview {
        height: auto;
        display: none;
    }
    AttachmentPreview.visible {
        display: block;
    }
    AttachmentPreview > .image-chip {
        width: auto;
        padding: 0 1;
    }
    """

    class RemoveRequested(Message):
        """Posted when a chip's remove button is pressed."""

        def __init__(self, attachment_id: str) -> None:
            super().__init__()
            self.attachment_id = attachment_id

    def __init__(self, store: AttachmentStore, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.store = store

    async def show(self) -> None:
        """Rebuild the chips from the store's current contents."""
        await self.remove_children()
        chips = []
        for attachment in self.store.attachments:
            chips.append(Static(attachment.name, classes="image-chip"))
            chips.append(RemoveImageButton(attachment.attachment_id))
        if chips:
            await self.mount_all(chips)
        self.set_class(self.store.preview_visible, "visible")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if isinstance(event.button, RemoveImageButton):
            event.stop()
            self.post_message(self.RemoveRequested(event.button.attachment_id))
