"""Staging area for image attachments.

Images are validated, read off the event loop, and base64-encoded.  Several
may be staged at once; only the primary one (the first staged, or the first
remaining after removals) travels with the next request.
"""

from __future__ import annotations

import asyncio
import base64
from collections.abc import Callable, Iterable
from dataclasses import dataclass
import logging
import mimetypes
from pathlib import Path
from uuid import uuid4

from ..exceptions import AttachmentError
from ..schemas import FilePayload

LOGGER = logging.getLogger(__name__)

# Image file extensions accepted when the platform mimetypes table is sparse
IMAGE_EXTENSIONS: frozenset[str] = frozenset(
    {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp", ".tiff", ".tif"}
)

_FALLBACK_MIME_TYPES: dict[str, str] = {
    ".webp": "image/webp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".bmp": "image/bmp",
}


@dataclass(frozen=True)
class Attachment:
    """A decoded image ready for preview and submission."""

    attachment_id: str
    name: str
    mime_type: str
    data: str

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    def to_payload(self) -> FilePayload:
        return FilePayload(data=self.data, mime_type=self.mime_type)


def guess_image_mime_type(path: Path) -> str | None:
    """Return an ``image/*`` MIME type for ``path`` or ``None``."""
    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type is None:
        mime_type = _FALLBACK_MIME_TYPES.get(path.suffix.lower())
    if mime_type is None or not mime_type.startswith("image/"):
        return None
    return mime_type


class AttachmentStore:
    """Ordered collection of staged image attachments with a primary pick."""

    def __init__(self, *, max_image_bytes: int = 10 * 1024 * 1024) -> None:
        self.max_image_bytes = max_image_bytes
        self._items: list[Attachment] = []
        self._primary_id: str | None = None
        self.preview_visible = False
        self._listeners: list[Callable[[], None]] = []

    def __len__(self) -> int:
        return len(self._items)

    @property
    def attachments(self) -> tuple[Attachment, ...]:
        return tuple(self._items)

    @property
    def primary(self) -> Attachment | None:
        for item in self._items:
            if item.attachment_id == self._primary_id:
                return item
        return None

    def on_change(self, callback: Callable[[], None]) -> None:
        """Register a callback fired after every add, remove or clear."""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    def validate_image(self, raw_path: str) -> tuple[Path, str]:
        """Resolve ``raw_path`` and check it is a readable image within limits.

        Raises:
            AttachmentError: When the path is missing, not an image, or too large.
        """
        try:
            resolved = Path(raw_path).expanduser().resolve()
        except (OSError, RuntimeError) as exc:
            raise AttachmentError(f"Error validating image: {exc}") from exc

        if not resolved.exists():
            raise AttachmentError(f"Image not found: {raw_path}")
        if not resolved.is_file():
            raise AttachmentError(f"Not a file: {raw_path}")

        mime_type = guess_image_mime_type(resolved)
        if mime_type is None:
            exts = ", ".join(sorted(IMAGE_EXTENSIONS))
            raise AttachmentError(f"Invalid image type. Allowed: {exts}")

        size = resolved.stat().st_size
        if size > self.max_image_bytes:
            max_mb = self.max_image_bytes / (1024 * 1024)
            raise AttachmentError(f"Image too large (max {max_mb:.1f}MB)")
        return resolved, mime_type

    async def add(self, raw_path: str) -> Attachment:
        """Validate, decode and stage one image.

        The first staged image becomes primary.
        """
        resolved, mime_type = self.validate_image(raw_path)
        try:
            raw = await asyncio.to_thread(resolved.read_bytes)
        except OSError as exc:
            raise AttachmentError(f"Unable to read image: {exc}") from exc

        attachment = Attachment(
            attachment_id=uuid4().hex,
            name=resolved.name,
            mime_type=mime_type,
            data=base64.b64encode(raw).decode("ascii"),
        )
        self._items.append(attachment)
        if len(self._items) == 1:
            self._primary_id = attachment.attachment_id
        self.preview_visible = True
        LOGGER.info(
            "attachment.added",
            extra={
                "event": "attachment.added",
                "attachment_id": attachment.attachment_id,
                "mime_type": mime_type,
                "count": len(self._items),
            },
        )
        self._notify()
        return attachment

    async def add_many(self, raw_paths: Iterable[str]) -> list[str]:
        """Stage several images concurrently; returns error messages.

        Each image is appended as soon as its own decode finishes, so the
        staging order can differ from the order of ``raw_paths``.
        """
        results = await asyncio.gather(
            *(self.add(path) for path in raw_paths), return_exceptions=True
        )
        errors: list[str] = []
        for result in results:
            if isinstance(result, AttachmentError):
                LOGGER.warning(f"Image validation failed: {result}")
                errors.append(str(result))
            elif isinstance(result, BaseException):
                raise result
        return errors

    def remove(self, attachment_id: str) -> bool:
        """Remove one image, promoting the next one to primary if needed."""
        remaining = [item for item in self._items if item.attachment_id != attachment_id]
        if len(remaining) == len(self._items):
            return False
        self._items = remaining

        if self._items:
            if self._primary_id == attachment_id:
                self._primary_id = self._items[0].attachment_id
        else:
            self._primary_id = None
            self.preview_visible = False
        self._notify()
        return True

    def clear(self) -> None:
        self._items = []
        self._primary_id = None
        self.preview_visible = False
        self._notify()

    def get_primary_payload(self) -> FilePayload | None:
        primary = self.primary
        return primary.to_payload() if primary is not None else None
