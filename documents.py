"""Read uploaded syllabus documents (plain text or PDF) into a single string."""
import io
from pathlib import Path
from typing import BinaryIO, Union

import pdfplumber

TEXT_EXTENSIONS = {".txt"}
PDF_EXTENSIONS = {".pdf"}
ALLOWED_EXTENSIONS = TEXT_EXTENSIONS | PDF_EXTENSIONS
ALLOWED_MIME_TYPES = {"text/plain", "application/pdf"}


class UnsupportedDocumentError(ValueError):
    pass


def extract_pdf_text(source: Union[str, Path, BinaryIO]) -> str:
    text = ""
    with pdfplumber.open(source) as pdf:
        for page in pdf.pages:
            # Image-only pages have no text layer
            text += (page.extract_text() or "") + "\n"
    return text


def is_pdf(filename: str = "", mimetype: str = "") -> bool:
    return mimetype == "application/pdf" or Path(filename).suffix.lower() in PDF_EXTENSIONS


def is_supported(filename: str = "", mimetype: str = "") -> bool:
    return mimetype in ALLOWED_MIME_TYPES or Path(filename).suffix.lower() in ALLOWED_EXTENSIONS


def extract_text_from_bytes(data: bytes, filename: str = "", mimetype: str = "") -> str:
    if not is_supported(filename, mimetype):
        raise UnsupportedDocumentError(f"Unsupported file type: {filename or mimetype}")
    if is_pdf(filename, mimetype):
        return extract_pdf_text(io.BytesIO(data))
    return data.decode("utf-8", errors="replace")


def read_document_text(path: Union[str, Path]) -> str:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if p.suffix.lower() in PDF_EXTENSIONS:
        return extract_pdf_text(p)
    if p.suffix.lower() in TEXT_EXTENSIONS or not p.suffix:
        return p.read_text(encoding="utf-8")
    raise UnsupportedDocumentError(f"Unsupported file type: {p.suffix}")
