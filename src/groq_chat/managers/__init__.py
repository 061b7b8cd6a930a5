"""Conversation lifecycle managers.

Available managers:
- AttachmentStore: staged image attachments and the primary pick
- ConversationRegistry: in-flight conversations keyed by message id
- MessageEditingController: inline editing and resubmission of sent messages
- ConversationOrchestrator: submission, thinking delay, request and settlement
"""

from __future__ import annotations

from .attachment import IMAGE_EXTENSIONS, Attachment, AttachmentStore
from .editing import EditBuffer, MessageEditingController
from .orchestrator import ConversationOrchestrator, clean_reply_text
from .registry import ConversationRegistry

__all__ = [
    "Attachment",
    "AttachmentStore",
    "ConversationOrchestrator",
    "ConversationRegistry",
    "EditBuffer",
    "IMAGE_EXTENSIONS",
    "MessageEditingController",
    "clean_reply_text",
]
