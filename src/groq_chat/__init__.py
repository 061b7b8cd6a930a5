"""Top-level package for groqchat."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .app import GroqChatApp
    from .config import ensure_config_dir, load_config
    from .exceptions import (
        AttachmentError,
        CompletionError,
        ConfigValidationError,
        GroqChatError,
        SubmissionRejected,
        UpstreamError,
    )
    from .gateway import CompletionGateway
    from .proxy import create_app
    from .transcript import Transcript, TranscriptEntry

__all__ = [
    "AttachmentError",
    "CompletionError",
    "CompletionGateway",
    "ConfigValidationError",
    "GroqChatApp",
    "GroqChatError",
    "SubmissionRejected",
    "Transcript",
    "TranscriptEntry",
    "UpstreamError",
    "create_app",
    "ensure_config_dir",
    "load_config",
]

_EXCEPTION_NAMES = {
    "AttachmentError",
    "CompletionError",
    "ConfigValidationError",
    "GroqChatError",
    "SubmissionRejected",
    "UpstreamError",
}


def __getattr__(name: str) -> Any:
    """Lazily import symbols so the proxy does not pull in Textual and vice versa."""
    if name in {"ensure_config_dir", "load_config"}:
        from .config import ensure_config_dir, load_config

        return {"ensure_config_dir": ensure_config_dir, "load_config": load_config}[name]
    if name in _EXCEPTION_NAMES:
        from . import exceptions

        return getattr(exceptions, name)
    if name in {"Transcript", "TranscriptEntry"}:
        from .transcript import Transcript, TranscriptEntry

        return {"Transcript": Transcript, "TranscriptEntry": TranscriptEntry}[name]
    if name == "CompletionGateway":
        from .gateway import CompletionGateway

        return CompletionGateway
    if name == "create_app":
        from .proxy import create_app

        return create_app
    if name == "GroqChatApp":
        from .app import GroqChatApp

        return GroqChatApp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
