from __future__ import annotations

import codecs
import io
import logging

from pptx import Presentation
from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = logging.getLogger(__name__)

PRESENTATION_EXTS = (".ppt", ".pptx")


class ExtractionFailed(Exception):
    pass


def is_supported_file(file_name: str, content_type: str | None) -> bool:
    name = (file_name or "").lower()
    ctype = (content_type or "").lower()
    return (
        ctype == "application/pdf"
        or "presentation" in ctype
        or ctype.startswith("text/")
        or name.endswith(PRESENTATION_EXTS)
        or name.endswith(".txt")
    )


def resolve_file_type(file_name: str, content_type: str | None) -> str:
    if content_type:
        return content_type
    _, dot, ext = (file_name or "").rpartition(".")
    return ext if dot and ext else "unknown"


def _extract_pdf(data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [(page.extract_text() or "") for page in reader.pages]
    except PdfReadError as e:
        raise ExtractionFailed(f"Could not read PDF: {e}") from e
    return "\n\n".join(pages).strip()


def _extract_pptx(data: bytes) -> str:
    try:
        prs = Presentation(io.BytesIO(data))
    except Exception as e:
        # python-pptx surfaces zip/xml errors of several kinds for legacy .ppt files
        raise ExtractionFailed(f"Could not read presentation: {e}") from e

    slides: list[str] = []
    for slide in prs.slides:
        parts: list[str] = []
        for shape in slide.shapes:
            if not shape.has_text_frame:
                continue
            for para in shape.text_frame.paragraphs:
                line = para.text.strip()
                if line:
                    parts.append(line)
        if parts:
            slides.append("\n".join(parts))
    return "\n\n".join(slides).strip()


def _extract_plain(data: bytes) -> str:
    if data.startswith((codecs.BOM_UTF32_LE, codecs.BOM_UTF32_BE)):
        encoding = "utf-32"
    elif data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        encoding = "utf-16"
    else:
        encoding = "utf-8-sig"
    return data.decode(encoding, errors="replace").strip()


def extract_text(data: bytes, file_name: str, content_type: str | None) -> str:
    """
    Plain text out of an uploaded file. The generation pipeline only ever
    sees the returned string.
    """
    name = (file_name or "").lower()
    ctype = (content_type or "").lower()

    if ctype == "application/pdf" or name.endswith(".pdf"):
        text = _extract_pdf(data)
    elif name.endswith(".pptx") or "openxmlformats-officedocument.presentationml" in ctype:
        text = _extract_pptx(data)
    else:
        # text/*, legacy .ppt and anything else: read as text
        text = _extract_plain(data)

    # Postgres text columns reject NUL
    text = text.replace("\x00", "").strip()
    if not text:
        raise ExtractionFailed(f"No text could be extracted from {file_name}")

    logger.info("extracted %d chars from %s", len(text), file_name)
    return text
