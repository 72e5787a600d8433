"""
Resume text extraction.

PDFs are read locally with pdfplumber first. Scanned (image-only) PDFs and
other supported formats (images, Word, RTF) fall back to Drive OCR.
"""

import io
import logging
import re
from datetime import datetime, timezone
from typing import Optional

import pdfplumber

from applicant_pipeline.exceptions import CollaboratorError
from applicant_pipeline.models.candidate import ExtractedText

logger = logging.getLogger(__name__)

_METHOD_LABELS = {
    "pdfplumber": "PDF Text Layer",
    "google_drive_ocr": "Google Drive OCR",
    "direct_text": "Direct Text",
}


def format_resume_text(text: str, filename: str, method: str) -> str:
    """Wrap extracted text in the header block stored with each applicant."""
    label = _METHOD_LABELS.get(method, method)
    clean_text = re.sub(r"[ \t\r]+", " ", text)
    clean_text = re.sub(r"\n\s*\n+", "\n", clean_text).strip()
    return (
        f"--- RESUME TEXT ({label}) ---\n"
        f"Original File: {filename}\n"
        f"Extraction Method: {label}\n"
        f"Extracted Characters: {len(clean_text)}\n"
        f"Processing Date: {datetime.now(timezone.utc).isoformat()}\n"
        "\n"
        "--- EXTRACTED CONTENT ---\n"
        f"{clean_text}\n"
        "\n"
        "--- END OF RESUME ---"
    )


def extract_pdf_text(content: bytes) -> str:
    """
    Extract the text layer of a PDF using pdfplumber.
    Tables are flattened to pipe-separated rows.
    Returns "" for scanned/image-only PDFs.
    """
    text_parts = []

    with pdfplumber.open(io.BytesIO(content)) as pdf:
        for page in pdf.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)

            for table in page.extract_tables():
                rows = []
                for row in table or []:
                    cells = [str(cell).strip() if cell else "" for cell in row]
                    rows.append(" | ".join(cells))
                if rows:
                    text_parts.append("\n".join(rows))

    return "\n\n".join(text_parts).strip()


class ResumeTextExtractor:
    """
    Local-first text extraction with an optional OCR fallback.

    ``ocr`` is any object with ``extract_text(content, filename, mime_type)``
    returning ExtractedText (normally DriveStorage).
    """

    def __init__(self, ocr=None):
        self.ocr = ocr

    def extract(self, content: bytes, filename: str, mime_type: str, allow_remote: bool = True) -> ExtractedText:
        """
        Raises:
            CollaboratorError: If no method produced any text.
        """
        if mime_type == "text/plain":
            text = content.decode("utf-8", errors="replace")
            return ExtractedText(text=text, char_count=len(text), method="direct_text")

        if mime_type == "application/pdf":
            try:
                text = extract_pdf_text(content)
            except Exception as e:
                # Corrupt or encrypted PDFs still get a chance through OCR.
                logger.warning(f"pdfplumber could not read {filename}: {e}")
                text = ""
            if text:
                return ExtractedText(text=text, char_count=len(text), method="pdfplumber")
            logger.info(f"No text layer in {filename}, falling back to OCR")

        if self.ocr is None or not allow_remote:
            raise CollaboratorError("ocr", f"No text extracted from {filename} and OCR is unavailable")
        return self.ocr.extract_text(content, filename, mime_type)
