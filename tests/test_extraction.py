import sys
import time
import unittest
from dataclasses import replace
from io import BytesIO
from pathlib import Path
from unittest.mock import AsyncMock, patch

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
for path in (PROJECT_ROOT, TESTS_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from sample_data import configure_test_env  # noqa: E402

configure_test_env()

from docx import Document  # noqa: E402

from jobfit.core.errors import EmptyDocumentError, ExtractionError, ValidationError  # noqa: E402
from jobfit.parsing import DOCX, PDF, TEXT_PLAIN, IncomingFile, extract_document, extract_text  # noqa: E402
from jobfit.parsing import parse as parse_module  # noqa: E402


class _FakePage:
    def __init__(self, runs: list[str], delay: float = 0.0, finished: list[str] | None = None):
        self._runs = runs
        self._delay = delay
        self._finished = finished

    def extract_text(self, visitor_text=None):
        time.sleep(self._delay)
        for run in self._runs:
            if visitor_text is not None:
                visitor_text(run, None, None, None, None)
        if self._finished is not None:
            self._finished.append(self._runs[0] if self._runs else "")
        return " ".join(self._runs)


class _FakeReader:
    def __init__(self, pages):
        self.pages = pages


def _fake_pdf_reader(pages):
    return patch.object(parse_module, "PdfReader", side_effect=lambda stream: _FakeReader(pages))


def _pdf_bytes(pages: list[list[str]]) -> bytes:
    """A minimal PDF with one Helvetica text line per entry, laid out top to bottom."""
    bodies: dict[int, bytes] = {
        1: b"<< /Type /Catalog /Pages 2 0 R >>",
        3: b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    }
    page_ids: list[int] = []
    next_id = 4
    for lines in pages:
        page_id, content_id = next_id, next_id + 1
        next_id += 2
        ops = ["BT", "/F1 12 Tf", "72 720 Td"]
        for index, line in enumerate(lines):
            if index:
                ops.append("0 -20 Td")
            ops.append(f"({line}) Tj")
        ops.append("ET")
        stream = "\n".join(ops).encode("latin-1")
        bodies[content_id] = b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream"
        bodies[page_id] = (
            "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {content_id} 0 R >>"
        ).encode("latin-1")
        page_ids.append(page_id)
    kids = " ".join(f"{page_id} 0 R" for page_id in page_ids)
    bodies[2] = f"<< /Type /Pages /Kids [{kids}] /Count {len(page_ids)} >>".encode("latin-1")

    out = BytesIO()
    out.write(b"%PDF-1.4\n")
    offsets: dict[int, int] = {}
    for object_id in range(1, next_id):
        offsets[object_id] = out.tell()
        out.write(b"%d 0 obj\n" % object_id + bodies[object_id] + b"\nendobj\n")
    xref_at = out.tell()
    out.write(b"xref\n0 %d\n" % next_id)
    out.write(b"0000000000 65535 f \n")
    for object_id in range(1, next_id):
        out.write(b"%010d 00000 n \n" % offsets[object_id])
    out.write(b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (next_id, xref_at))
    return out.getvalue()


def _docx_bytes(paragraphs: list[str], table: list[list[str]] | None = None) -> bytes:
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for row_index, row in enumerate(table):
            for col_index, value in enumerate(row):
                grid.cell(row_index, col_index).text = value
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class UploadValidationTests(unittest.IsolatedAsyncioTestCase):
    async def test_oversized_file_is_rejected_before_reading(self):
        reader = AsyncMock(return_value=b"%PDF-1.7")
        upload = IncomingFile(filename="resume.pdf", content_type=PDF, size=6 * 1024 * 1024, read=reader)

        with self.assertRaises(ValidationError) as ctx:
            await extract_text(upload)

        reader.assert_not_awaited()
        self.assertEqual(ctx.exception.message, "File too large")
        self.assertIn("5 MB", ctx.exception.detail)

    async def test_unsupported_content_type_is_rejected(self):
        reader = AsyncMock(return_value=b"\x89PNG\r\n\x1a\n")
        upload = IncomingFile(filename="photo.png", content_type="image/png", size=8, read=reader)

        with self.assertRaises(ValidationError) as ctx:
            await extract_text(upload)

        reader.assert_not_awaited()
        self.assertEqual(ctx.exception.message, "Unsupported file format")

    async def test_content_read_larger_than_declared_size_is_rejected(self):
        content = b"a" * (5 * 1024 * 1024 + 1)
        upload = IncomingFile(filename="notes.txt", content_type=TEXT_PLAIN, size=10, read=AsyncMock(return_value=content))

        with self.assertRaises(ValidationError):
            await extract_text(upload)


class PlainTextExtractionTests(unittest.IsolatedAsyncioTestCase):
    async def test_text_is_decoded_and_trimmed(self):
        upload = IncomingFile.from_bytes("resume.txt", TEXT_PLAIN, "  Jane Doe\nPython · SQL  \n".encode("utf-8"))
        self.assertEqual(await extract_text(upload), "Jane Doe\nPython · SQL")

    async def test_content_type_parameters_are_ignored(self):
        upload = IncomingFile.from_bytes("resume.txt", "text/plain; charset=utf-8", b"Jane Doe")
        document = await extract_document(upload)
        self.assertEqual(document.source_type, "txt")
        self.assertEqual(document.characters, 8)

    async def test_whitespace_only_text_is_empty_document(self):
        upload = IncomingFile.from_bytes("resume.txt", TEXT_PLAIN, b" \n\t ")
        with self.assertRaises(EmptyDocumentError):
            await extract_text(upload)


class PdfExtractionTests(unittest.IsolatedAsyncioTestCase):
    async def test_pages_join_in_order_despite_out_of_order_completion(self):
        finished: list[str] = []
        pages = [
            _FakePage(["Page", "one"], delay=0.06, finished=finished),
            _FakePage(["Page", "two"], delay=0.03, finished=finished),
            _FakePage(["Page", "three"], delay=0.0, finished=finished),
        ]
        with _fake_pdf_reader(pages):
            text = await extract_text(IncomingFile.from_bytes("resume.pdf", PDF, b"%PDF-1.7"))

        self.assertEqual(text, "Page one\nPage two\nPage three")
        self.assertEqual(len(finished), 3)

    async def test_only_first_ten_pages_are_used(self):
        pages = [_FakePage([f"page-{index}"]) for index in range(1, 13)]
        with _fake_pdf_reader(pages):
            document = await extract_document(IncomingFile.from_bytes("long.pdf", PDF, b"%PDF-1.7"))

        self.assertEqual(document.text.splitlines(), [f"page-{index}" for index in range(1, 11)])
        self.assertNotIn("page-11", document.text)
        self.assertEqual(document.pages_processed, 10)
        self.assertEqual(document.total_pages, 12)
        self.assertTrue(document.truncated)

    async def test_page_cap_follows_settings(self):
        pages = [_FakePage([f"page-{index}"]) for index in range(1, 5)]
        capped = replace(parse_module.settings, pdf_max_pages=2)
        with _fake_pdf_reader(pages), patch.object(parse_module, "settings", capped):
            text = await extract_text(IncomingFile.from_bytes("cv.pdf", PDF, b"%PDF-1.7"))
        self.assertEqual(text, "page-1\npage-2")

    async def test_image_only_pdf_is_empty_document(self):
        pages = [_FakePage([]), _FakePage([" "])]
        with _fake_pdf_reader(pages):
            with self.assertRaises(EmptyDocumentError) as ctx:
                await extract_text(IncomingFile.from_bytes("scan.pdf", PDF, b"%PDF-1.7"))
        self.assertIn("image-only", ctx.exception.detail)

    async def test_corrupt_pdf_is_wrapped_as_extraction_error(self):
        with self.assertRaises(ExtractionError) as ctx:
            await extract_text(IncomingFile.from_bytes("broken.pdf", PDF, b"this is not a pdf"))
        self.assertNotIsInstance(ctx.exception, EmptyDocumentError)
        self.assertTrue(ctx.exception.detail.startswith("PDF Error:"))

    async def test_progress_messages_are_reported(self):
        messages: list[str] = []
        pages = [_FakePage(["one"]), _FakePage(["two"])]
        with _fake_pdf_reader(pages):
            await extract_text(IncomingFile.from_bytes("cv.pdf", PDF, b"%PDF-1.7"), progress=messages.append)
        self.assertEqual(messages, ["Initializing PDF engine...", "Reading 2 pages in parallel..."])

    async def test_failing_progress_callback_does_not_affect_output(self):
        def broken(message: str) -> None:
            raise RuntimeError("observer crashed")

        with _fake_pdf_reader([_FakePage(["Hello", "world"])]):
            text = await extract_text(IncomingFile.from_bytes("cv.pdf", PDF, b"%PDF-1.7"), progress=broken)
        self.assertEqual(text, "Hello world")

    async def test_real_pdf_lines_join_into_one_line_per_page(self):
        content = _pdf_bytes([[f"Page {n} line one", f"Page {n} line two"] for n in range(1, 13)])
        document = await extract_document(IncomingFile.from_bytes("resume.pdf", PDF, content))

        self.assertEqual(
            document.text.split("\n"),
            [f"Page {n} line one Page {n} line two" for n in range(1, 11)],
        )
        self.assertEqual(document.pages_processed, 10)
        self.assertEqual(document.total_pages, 12)
        self.assertTrue(document.truncated)

    async def test_pdf_is_parsed_once_per_worker_batch(self):
        content = _pdf_bytes([[f"Page {n}"] for n in range(1, 11)])
        with patch.object(parse_module, "PdfReader", wraps=parse_module.PdfReader) as reader:
            text = await extract_text(IncomingFile.from_bytes("resume.pdf", PDF, content))

        self.assertEqual(text.split("\n"), [f"Page {n}" for n in range(1, 11)])
        self.assertEqual(reader.call_count, parse_module.PDF_WORKERS)


class DocxExtractionTests(unittest.IsolatedAsyncioTestCase):
    async def test_paragraphs_and_tables_are_extracted(self):
        content = _docx_bytes(["Jane Doe", "Senior Engineer"], table=[["Python", "SQL"]])
        text = await extract_text(IncomingFile.from_bytes("resume.docx", DOCX, content))
        self.assertEqual(text, "Jane Doe\nSenior Engineer\nPython\nSQL")

    async def test_empty_docx_is_empty_document(self):
        content = _docx_bytes([])
        with self.assertRaises(EmptyDocumentError):
            await extract_text(IncomingFile.from_bytes("blank.docx", DOCX, content))

    async def test_corrupt_docx_is_wrapped_as_extraction_error(self):
        with self.assertRaises(ExtractionError) as ctx:
            await extract_text(IncomingFile.from_bytes("broken.docx", DOCX, b"not a zip archive"))
        self.assertTrue(ctx.exception.detail.startswith("DOCX Error:"))

    async def test_tables_keep_their_place_in_the_document(self):
        document = Document()
        document.add_paragraph("Summary")
        grid = document.add_table(rows=1, cols=2)
        grid.cell(0, 0).text = "Skills"
        grid.cell(0, 1).text = "Python"
        document.add_paragraph("Experience")
        buffer = BytesIO()
        document.save(buffer)

        text = await extract_text(IncomingFile.from_bytes("resume.docx", DOCX, buffer.getvalue()))
        self.assertEqual(text, "Summary\nSkills\nPython\nExperience")

    async def test_merged_cells_are_emitted_once(self):
        document = Document()
        grid = document.add_table(rows=2, cols=3)
        header = grid.cell(0, 0).merge(grid.cell(0, 2))
        header.text = "Jane Doe - Senior Engineer"
        for index, value in enumerate(["a", "b", "c"]):
            grid.cell(1, index).text = value
        buffer = BytesIO()
        document.save(buffer)

        text = await extract_text(IncomingFile.from_bytes("resume.docx", DOCX, buffer.getvalue()))
        self.assertEqual(text, "Jane Doe - Senior Engineer\na\nb\nc")


if __name__ == "__main__":
    unittest.main()
