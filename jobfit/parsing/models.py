from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable

TEXT_PLAIN = "text/plain"
PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

SOURCE_TYPES = {
    TEXT_PLAIN: "txt",
    PDF: "pdf",
    DOCX: "docx",
}


@dataclass(frozen=True)
class IncomingFile:
    """An uploaded file whose bytes are only read once validation passes."""

    filename: str
    content_type: str
    size: int
    read: Callable[[], Awaitable[bytes]]

    @classmethod
    def from_bytes(cls, filename: str, content_type: str, content: bytes) -> "IncomingFile":
        async def _read() -> bytes:
            return content

        return cls(filename=filename, content_type=content_type, size=len(content), read=_read)
