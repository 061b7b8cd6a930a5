"""Widget exports for the groq_chat UI."""

from .attachment_preview import AttachmentPreview, RemoveImageButton
from .conversation import ConversationView
from .greeting import Greeting, SuggestionCard
from .input_box import InputBox
from .message import MessageBubble, MessageEditor

__all__ = [
    "AttachmentPreview",
    "ConversationView",
    "Greeting",
    "InputBox",
    "MessageBubble",
    "MessageEditor",
    "RemoveImageButton",
    "SuggestionCard",
]
