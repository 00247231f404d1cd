import asyncio
from typing import Any

from fastapi import APIRouter, File, Request, UploadFile
from fastapi.responses import StreamingResponse

from jobfit.core.config import settings
from jobfit.core.errors import JobFitError
from jobfit.core.rate_limit import client_key, rate_limit
from jobfit.core.single_flight import extraction_flight
from jobfit.parsing import IncomingFile, extract_document, file_too_large, validate_upload
from jobfit.schemas.analysis import ExtractedDocument
from jobfit.utils.sse import sse_event

router = APIRouter()


def _incoming_file(upload: UploadFile) -> IncomingFile:
    async def _read() -> bytes:
        chunks: list[bytes] = []
        total = 0
        while True:
            chunk = await upload.read(1024 * 64)
            if not chunk:
                break
            total += len(chunk)
            if total > settings.max_upload_bytes:
                raise file_too_large(settings.max_upload_bytes)
            chunks.append(chunk)
        return b"".join(chunks)

    return IncomingFile(
        filename=upload.filename or "uploaded-file",
        content_type=upload.content_type or "",
        size=upload.size or 0,
        read=_read,
    )


@router.post("/extract-text", response_model=ExtractedDocument)
@rate_limit()
async def extract_text_from_upload(request: Request, file: UploadFile = File(...)):
    incoming = _incoming_file(file)
    async with extraction_flight.acquire(client_key(request)):
        return await extract_document(incoming)


@router.post("/extract-text/stream")
@rate_limit()
async def extract_text_stream(request: Request, file: UploadFile = File(...)):
    incoming = _incoming_file(file)
    validate_upload(incoming)
    # The upload is closed once this handler returns, so buffer it before streaming.
    buffered = IncomingFile.from_bytes(incoming.filename, incoming.content_type, await incoming.read())
    key = client_key(request)

    async def event_stream():
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

        def push_progress(message: str) -> None:
            queue.put_nowait({"kind": "progress", "payload": {"message": message}})

        async def worker() -> None:
            try:
                async with extraction_flight.acquire(key):
                    document = await extract_document(buffered, progress=push_progress)
                queue.put_nowait({"kind": "result", "payload": document.model_dump(mode="json", by_alias=True)})
            except JobFitError as exc:
                queue.put_nowait({"kind": "error", "payload": {**exc.to_payload(), "status": exc.status_code}})
            finally:
                queue.put_nowait({"kind": "done", "payload": {}})

        task = asyncio.create_task(worker())

        try:
            yield sse_event("connected", {"ok": True})
            while True:
                if await request.is_disconnected():
                    break
                event = await queue.get()
                kind = event.get("kind")
                if kind == "done":
                    break
                yield sse_event(kind, event.get("payload", {}))
        finally:
            if not task.done():
                task.cancel()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
