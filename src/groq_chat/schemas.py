"""Wire models shared by the completion gateway client and the proxy."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class FilePayload(BaseModel):
    """Base64 image data sent alongside a message."""

    model_config = ConfigDict(populate_by_name=True)
    data: str
    mime_type: str = Field(
        validation_alias=AliasChoices("mimeType", "mime_type"),
        serialization_alias="mimeType",
    )


class ChatRequest(BaseModel):
    """Body of ``POST /api/chat``."""

    message: str = ""
    file: FilePayload | None = None

    @field_validator("message", mode="before")
    @classmethod
    def _coerce_missing_message(cls, value: Any) -> Any:
        return "" if value is None else value

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ErrorDetail(BaseModel):
    message: str


class ErrorBody(BaseModel):
    """The ``{"error": {"message": ...}}`` failure shape."""

    error: ErrorDetail

    @classmethod
    def of(cls, message: str) -> dict[str, Any]:
        return cls(error=ErrorDetail(message=message)).model_dump()


def extract_error_message(data: Any, fallback: str) -> str:
    """Return ``data["error"]["message"]`` when present, else ``fallback``."""
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message.strip():
                return message
        elif isinstance(error, str) and error.strip():
            return error
    return fallback


def extract_completion_text(data: Any) -> str:
    """Return ``choices[0].message.content`` or an empty string."""
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""
