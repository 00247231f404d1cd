from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from typing import Any, Awaitable, Callable

from docx import Document
from docx.table import Table
from pypdf import PdfReader

from jobfit.core.config import settings
from jobfit.core.errors import EmptyDocumentError, ExtractionError, JobFitError, ValidationError
from jobfit.schemas.analysis import ExtractedDocument

from .models import DOCX, PDF, SOURCE_TYPES, TEXT_PLAIN, IncomingFile

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]
PDF_WORKERS = 4

Strategy = Callable[[bytes, ProgressCallback | None], Awaitable[tuple[str, dict[str, Any]]]]


def _report(progress: ProgressCallback | None, message: str) -> None:
    if progress is None:
        return
    try:
        progress(message)
    except Exception:  # noqa: BLE001 - progress is advisory
        logger.debug("extraction_progress_callback_failed", exc_info=True)


def _normalize_content_type(value: str | None) -> str:
    return (value or "").split(";")[0].strip().lower()


def file_too_large(max_bytes: int) -> ValidationError:
    return ValidationError(
        "File too large",
        f"Maximum allowed size is {max_bytes // (1024 * 1024)} MB. Please upload a smaller file.",
    )


def validate_upload(file: IncomingFile, max_bytes: int | None = None) -> str:
    """Check size and declared type without touching the file contents."""
    max_bytes = settings.max_upload_bytes if max_bytes is None else max_bytes
    if file.size > max_bytes:
        raise file_too_large(max_bytes)
    content_type = _normalize_content_type(file.content_type)
    if content_type not in _STRATEGIES:
        raise ValidationError("Unsupported file format", "Please upload a PDF, DOCX, or TXT file.")
    return content_type


async def _extract_plain_text(content: bytes, progress: ProgressCallback | None) -> tuple[str, dict[str, Any]]:
    text = content.decode("utf-8", errors="replace")
    if not text.strip():
        raise EmptyDocumentError("Text file is empty.")
    return text, {}


def _page_text(page: Any) -> str:
    runs: list[str] = []
    page.extract_text(visitor_text=lambda text, *_: runs.append(text))
    # pypdf reports line breaks as runs of their own; each page becomes one line.
    cleaned = (" ".join(run.split()) for run in runs)
    return " ".join(run for run in cleaned if run)


def _page_batches(page_count: int, workers: int) -> list[range]:
    size = max(1, -(-page_count // max(1, workers)))
    return [range(start, min(start + size, page_count)) for start in range(0, page_count, size)]


def _read_batch(content: bytes, pages: range, reader: Any = None) -> list[str]:
    # pypdf readers share one stream and are not thread-safe; each batch gets its own.
    reader = reader or PdfReader(BytesIO(content))
    return [_page_text(reader.pages[index]) for index in pages]


async def _extract_pdf(content: bytes, progress: ProgressCallback | None) -> tuple[str, dict[str, Any]]:
    try:
        _report(progress, "Initializing PDF engine...")
        reader = await asyncio.to_thread(PdfReader, BytesIO(content))
        total_pages = len(reader.pages)
        pages_to_process = min(total_pages, settings.pdf_max_pages)

        _report(progress, f"Reading {pages_to_process} pages in parallel...")
        batches = _page_batches(pages_to_process, PDF_WORKERS)
        # gather returns results in submission order, whatever order batches finish in.
        batch_texts = await asyncio.gather(
            *(
                asyncio.to_thread(_read_batch, content, batch, reader if position == 0 else None)
                for position, batch in enumerate(batches)
            )
        )
    except Exception as exc:
        logger.warning("pdf_extraction_failed: %s", exc)
        raise ExtractionError(f"PDF Error: {exc}") from exc

    text = "\n".join(page for batch in batch_texts for page in batch)
    if not text.strip():
        raise EmptyDocumentError("PDF seems to be empty or image-only.")
    details = {
        "pages_processed": pages_to_process,
        "total_pages": total_pages,
        "truncated": total_pages > pages_to_process,
    }
    return text, details


def _block_chunks(container: Any) -> list[str]:
    """Paragraph text of ``container`` in document order, descending into tables."""
    chunks: list[str] = []
    for block in container.iter_inner_content():
        if isinstance(block, Table):
            # Merged cells come back once per grid slot they span.
            seen: set[Any] = set()
            for row in block.rows:
                for cell in row.cells:
                    if cell._tc in seen:
                        continue
                    seen.add(cell._tc)
                    chunks.extend(_block_chunks(cell))
        else:
            chunks.append(block.text)
    return chunks


def _docx_text(content: bytes) -> str:
    document = Document(BytesIO(content))
    return "\n".join(chunk for chunk in _block_chunks(document) if chunk.strip())


async def _extract_docx(content: bytes, progress: ProgressCallback | None) -> tuple[str, dict[str, Any]]:
    try:
        _report(progress, "Processing DOCX file...")
        text = await asyncio.to_thread(_docx_text, content)
    except Exception as exc:
        logger.warning("docx_extraction_failed: %s", exc)
        raise ExtractionError(f"DOCX Error: {exc}") from exc

    if not text.strip():
        raise EmptyDocumentError("DOCX file is empty.")
    return text, {}


_STRATEGIES: dict[str, Strategy] = {
    TEXT_PLAIN: _extract_plain_text,
    PDF: _extract_pdf,
    DOCX: _extract_docx,
}


async def extract_document(file: IncomingFile, progress: ProgressCallback | None = None) -> ExtractedDocument:
    max_bytes = settings.max_upload_bytes
    content_type = validate_upload(file, max_bytes)

    try:
        content = await file.read()
    except JobFitError:
        raise
    except Exception as exc:
        raise ExtractionError(f"Could not read the uploaded file: {exc}") from exc
    if len(content) > max_bytes:
        raise file_too_large(max_bytes)

    text, details = await _STRATEGIES[content_type](content, progress)
    text = text.strip()
    logger.info(
        "document_extracted filename=%s content_type=%s chars=%s truncated=%s",
        file.filename,
        content_type,
        len(text),
        details.get("truncated", False),
    )
    return ExtractedDocument(
        filename=file.filename,
        content_type=content_type,
        source_type=SOURCE_TYPES[content_type],
        text=text,
        characters=len(text),
        **details,
    )


async def extract_text(file: IncomingFile, progress: ProgressCallback | None = None) -> str:
    document = await extract_document(file, progress)
    return document.text
