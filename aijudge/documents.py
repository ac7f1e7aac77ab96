"""Text extraction for uploaded case documents.

Each supported MIME type maps to one library call; whatever comes back is
collapsed to single-spaced text by ``clean_text`` before it is stored on the
case and fed to the model.
"""
import io
import re
from pathlib import Path
from typing import Optional

import pytesseract
from docx import Document as DocxDocument
from pdfminer.high_level import extract_text as pdf_extract_text
from pdfminer.pdfpage import PDFPage
from PIL import Image

from .errors import DocumentParseError, UnsupportedFileTypeError
from .logger import get_logger

logger = get_logger(__name__)

PDF = "application/pdf"
DOC = "application/msword"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TXT = "text/plain"

IMAGE_TYPES = {"image/png", "image/jpeg", "image/tiff", "image/bmp"}
SUPPORTED_TYPES = {PDF, DOC, DOCX, TXT} | IMAGE_TYPES

EXTENSION_TYPES = {
    ".pdf": PDF,
    ".doc": DOC,
    ".docx": DOCX,
    ".txt": TXT,
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".bmp": "image/bmp",
}

_WHITESPACE = re.compile(r"\s+")


def clean_text(text: Optional[str]) -> str:
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def count_words(text: str) -> int:
    return len(text.split())


def resolve_mimetype(filename: str, declared: Optional[str]) -> str:
    """Trust the declared type when we support it, otherwise go by extension."""
    declared = (declared or "").split(";")[0].strip().lower()
    if declared in SUPPORTED_TYPES:
        return declared
    guessed = EXTENSION_TYPES.get(Path(filename or "").suffix.lower())
    if guessed:
        return guessed
    raise UnsupportedFileTypeError(f"Unsupported file type: {declared or filename}")


# -------------------------------
# Format-specific extractors
# -------------------------------
def _parse_pdf(data: bytes) -> str:
    text = pdf_extract_text(io.BytesIO(data))
    if not text or not text.strip():
        raise DocumentParseError("No text content found in PDF")
    return text


def _parse_word(data: bytes) -> str:
    doc = DocxDocument(io.BytesIO(data))
    parts = [p.text for p in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            parts.extend(cell.text for cell in row.cells)
    text = "\n".join(parts)
    if not text.strip():
        raise DocumentParseError("No text content found in Word document")
    return text


def _parse_plain_text(data: bytes) -> str:
    text = data.decode("utf-8", errors="replace")
    if not text.strip():
        raise DocumentParseError("Text file is empty")
    return text


def _parse_image(data: bytes) -> str:
    img = Image.open(io.BytesIO(data))
    text = pytesseract.image_to_string(img)
    if not text or not text.strip():
        raise DocumentParseError("No text recognised in image")
    return text


def extract_text(data: bytes, mimetype: str) -> str:
    """Extract normalised text from an in-memory document."""
    if mimetype == PDF:
        parser = _parse_pdf
    elif mimetype in (DOC, DOCX):
        parser = _parse_word
    elif mimetype == TXT:
        parser = _parse_plain_text
    elif mimetype in IMAGE_TYPES:
        parser = _parse_image
    else:
        raise UnsupportedFileTypeError(f"Unsupported file type: {mimetype}")

    try:
        raw = parser(data)
    except DocumentParseError:
        raise
    except Exception as e:
        logger.error(f"Error parsing {mimetype} document: {e}")
        raise DocumentParseError(f"Failed to parse document: {e}") from e

    return clean_text(raw)


def extract_text_from_file(path: Path, mimetype: Optional[str] = None) -> str:
    path = Path(path)
    mimetype = resolve_mimetype(path.name, mimetype)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise DocumentParseError(f"Cannot read file {path}: {e}") from e
    return extract_text(data, mimetype)


def count_pdf_pages(data: bytes) -> Optional[int]:
    try:
        return sum(1 for _ in PDFPage.get_pages(io.BytesIO(data)))
    except Exception as e:
        logger.warning(f"Could not count PDF pages: {e}")
        return None
