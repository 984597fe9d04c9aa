"""Raw text extraction for uploaded knowledge files.

Dispatch by MIME type, falling back to the filename extension:
  text/plain, text/markdown, .md .markdown .mdx .txt  → UTF-8 decode
  text/html, .html .htm                               → BeautifulSoup + html2text
  application/pdf, .pdf                               → pypdf
  DOCX, .docx                                         → python-docx
  application/msword, .doc                            → rejected (legacy format)

Every successful extraction is passed through ``normalize()``.
"""

from __future__ import annotations

import io
import mimetypes
from pathlib import Path

import docx
import html2text
import pypdf
from bs4 import BeautifulSoup

from sentinel.errors import ExtractionError
from sentinel.ingest.normalize import normalize

_TEXT_MIME_TYPES = {"text/plain", "text/markdown", "text/x-markdown"}
_HTML_MIME_TYPES = {"text/html", "application/xhtml+xml"}
_PDF_MIME_TYPES = {"application/pdf"}
_DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
_LEGACY_DOC_MIME_TYPE = "application/msword"

_TEXT_EXTENSIONS = {".md", ".markdown", ".mdx", ".txt", ".text", ".rst"}
_HTML_EXTENSIONS = {".html", ".htm"}

_h2t = html2text.HTML2Text()
_h2t.ignore_links = True
_h2t.ignore_images = True
_h2t.body_width = 0


def extract_file(path: Path | str) -> str:
    """Read *path* from disk and extract its text."""
    p = Path(path)
    try:
        data = p.read_bytes()
    except FileNotFoundError as exc:
        raise ExtractionError(f"Source file not found: '{p}'.") from exc
    except OSError as exc:
        raise ExtractionError(f"Could not read source file '{p}': {exc.strerror or exc}") from exc
    mime_type, _ = mimetypes.guess_type(p.name)
    return extract_text(data, mime_type=mime_type or "", filename=p.name)


def extract_text(data: bytes, mime_type: str = "", filename: str = "") -> str:
    """Extract normalized plain text from *data*.

    Raises:
        ExtractionError: The payload is empty, in an unsupported or legacy
            format, or the underlying parser failed.
    """
    if not data:
        raise ExtractionError("Source file is empty.")

    mime = mime_type.split(";")[0].strip().lower()
    ext = Path(filename).suffix.lower() if filename else ""

    if mime == _LEGACY_DOC_MIME_TYPE or ext == ".doc":
        raise ExtractionError(
            "Legacy .doc files are not supported. Please upload a .docx document instead."
        )

    try:
        if mime in _TEXT_MIME_TYPES or ext in _TEXT_EXTENSIONS:
            return normalize(_decode(data))
        if mime in _HTML_MIME_TYPES or ext in _HTML_EXTENSIONS:
            return normalize(html_to_text(_decode(data)))
        if mime in _PDF_MIME_TYPES or ext == ".pdf":
            return normalize(_extract_pdf(data))
        if mime == _DOCX_MIME_TYPE or ext == ".docx":
            return normalize(_extract_docx(data))
        if mime.startswith("text/"):
            return normalize(_decode(data))
    except ExtractionError:
        raise
    except Exception as exc:
        raise ExtractionError(f"Failed to extract text from source file: {exc}") from exc

    raise ExtractionError(f"Unsupported file format: {mime or ext or 'unknown mime type'}")


def html_to_text(html: str) -> str:
    """Strip non-content tags from *html* and convert the rest to plain text."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(["script", "style", "nav", "footer", "head"]):
        tag.decompose()
    return _h2t.handle(str(soup)).strip()


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _extract_pdf(data: bytes) -> str:
    reader = pypdf.PdfReader(io.BytesIO(data))
    parts: list[str] = []
    for page in reader.pages:
        page_text = (page.extract_text() or "").strip()
        if page_text:
            parts.append(page_text)
    if not parts:
        raise ExtractionError("Unable to extract text from PDF file.")
    return "\n\n".join(parts)


def _extract_docx(data: bytes) -> str:
    document = docx.Document(io.BytesIO(data))
    paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
    if not paragraphs:
        raise ExtractionError("Unable to extract text from Word document.")
    return "\n\n".join(paragraphs)
