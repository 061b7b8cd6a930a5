"""Domain exception hierarchy for the Groq chat client and proxy."""

from __future__ import annotations


class GroqChatError(RuntimeError):
    """Base class for all domain-level chat errors."""


class ConfigValidationError(GroqChatError):
    """Raised when configuration cannot be validated safely."""


class SubmissionRejected(GroqChatError):
    """Raised when a submission has neither text nor an attachment."""


class AttachmentError(GroqChatError):
    """Raised when a file cannot be staged as an image attachment."""


class CompletionError(GroqChatError):
    """Base class for failures resolving a completion request."""


class GatewayTransportError(CompletionError):
    """Raised when the completion gateway cannot be reached or read."""


class EmptyResponseError(GatewayTransportError):
    """Raised when the gateway answers with an empty body or empty reply."""


class MalformedResponseError(GatewayTransportError):
    """Raised when the gateway answers with a body that is not valid JSON."""


class UpstreamError(CompletionError):
    """Raised when the gateway reports an explicit ``{"error": {...}}`` payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
