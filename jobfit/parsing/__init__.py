from .models import DOCX, PDF, TEXT_PLAIN, IncomingFile
from .parse import extract_document, extract_text, file_too_large, validate_upload

__all__ = [
    "DOCX",
    "PDF",
    "TEXT_PLAIN",
    "IncomingFile",
    "extract_document",
    "extract_text",
    "file_too_large",
    "validate_upload",
]
