"""
Google Drive storage: resume backup and OCR.

Resumes are uploaded into GOOGLE_DRIVE_FOLDER_ID and referenced by their
permanent view link. OCR works by uploading the file with a Google Docs
target mimeType (Drive converts and OCRs it), exporting the resulting doc as
text/plain, and deleting the temporary doc.
"""

import io
import logging
import re
import time
from typing import Any, Callable, Optional

from googleapiclient.http import MediaIoBaseUpload

from applicant_pipeline.config import Settings
from applicant_pipeline.exceptions import CollaboratorError
from applicant_pipeline.models.candidate import ExtractedText
from applicant_pipeline.services.google_auth import DRIVE_SCOPES, build_service
from applicant_pipeline.services.retry import with_retry

logger = logging.getLogger(__name__)

GOOGLE_DOC_MIME_TYPE = "application/vnd.google-apps.document"

# mime type -> extension; text/plain never goes through Drive.
SUPPORTED_OCR_FORMATS = {
    "application/pdf": "pdf",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/msword": "doc",
    "application/rtf": "rtf",
    "text/plain": "txt",
}

MAX_OCR_BYTES = 2 * 1024 * 1024

# Drive finishes OCR asynchronously after the conversion upload returns.
OCR_SETTLE_SECONDS = 2.0


def view_link(file_id: str) -> str:
    return f"https://drive.google.com/file/d/{file_id}/view"


def sanitize_filename(filename: str) -> str:
    return re.sub(r"\s+", "_", re.sub(r'[<>:"/\\|?*]', "_", filename))


def can_process(mime_type: str, size_bytes: int = 0) -> tuple[bool, Optional[str]]:
    """Return (ok, reason) for OCR eligibility."""
    if mime_type not in SUPPORTED_OCR_FORMATS:
        return False, f"Unsupported format: {mime_type}"
    if size_bytes > MAX_OCR_BYTES:
        return False, f"File too large: {size_bytes / 1024 / 1024:.2f}MB (max: 2MB)"
    return True, None


class DriveStorage:
    """Storage/backup collaborator backed by the Drive v3 API."""

    def __init__(self, settings: Settings, service: Any = None, sleep: Callable[[float], None] = time.sleep):
        self.settings = settings
        self.folder_id = settings.google_drive_folder_id
        self.service = service or build_service(settings, "drive", "v3", DRIVE_SCOPES)
        self._sleep = sleep

    def _execute(self, request):
        return with_retry(
            request.execute,
            max_attempts=self.settings.retry_attempts,
            base_delay=self.settings.retry_base_delay,
            sleep=self._sleep,
        )

    def test_connection(self) -> str:
        """Return the folder name; raises if the folder is missing or not shared."""
        folder = self._execute(
            self.service.files().get(fileId=self.folder_id, fields="id, name, createdTime")
        )
        return folder.get("name", "")

    def upload(self, content: bytes, filename: str, mime_type: str = "application/pdf") -> str:
        """Upload a file into the resume folder and return its view link."""
        clean_name = sanitize_filename(filename)
        media = MediaIoBaseUpload(io.BytesIO(content), mimetype=mime_type, resumable=False)
        try:
            created = self._execute(self.service.files().create(
                body={"name": clean_name, "parents": [self.folder_id]},
                media_body=media,
                fields="id,name,webViewLink",
            ))
        except Exception as e:
            raise CollaboratorError("drive", f"Upload failed for {clean_name}: {e}") from e

        logger.info(f"File uploaded to Drive: {clean_name} ({created['id']})")
        return view_link(created["id"])

    def extract_text(self, content: bytes, filename: str, mime_type: str) -> ExtractedText:
        """
        OCR a file through Google Docs conversion.

        Raises:
            CollaboratorError: If the format is unsupported, the file is too
                large, or any Drive call fails.
        """
        ok, reason = can_process(mime_type, len(content))
        if not ok:
            raise CollaboratorError("drive", reason)

        if mime_type == "text/plain":
            text = content.decode("utf-8", errors="replace")
            return ExtractedText(text=text, char_count=len(text), method="direct_text")

        temp_name = f"ocr_{int(time.time() * 1000)}_{re.sub(r'[.][^.]+$', '', filename)}"
        media = MediaIoBaseUpload(io.BytesIO(content), mimetype=mime_type, resumable=False)
        doc_id = None
        try:
            doc = self._execute(self.service.files().create(
                body={"name": temp_name, "parents": [self.folder_id], "mimeType": GOOGLE_DOC_MIME_TYPE},
                media_body=media,
                fields="id,name",
            ))
            doc_id = doc["id"]
            logger.info(f"File converted to Google Doc for OCR: {doc_id}")
            self._sleep(OCR_SETTLE_SECONDS)
            exported = self._execute(self.service.files().export(fileId=doc_id, mimeType="text/plain"))
        except Exception as e:
            raise CollaboratorError("drive", f"Google Drive OCR failed for {filename}: {e}") from e
        finally:
            if doc_id is not None:
                self._delete_temp_doc(doc_id)

        text = exported.decode("utf-8", errors="replace") if isinstance(exported, bytes) else str(exported)
        logger.info(f"Text extracted: {len(text)} characters from {mime_type}")
        return ExtractedText(text=text, char_count=len(text), method="google_drive_ocr")

    def _delete_temp_doc(self, doc_id: str) -> None:
        try:
            self._execute(self.service.files().delete(fileId=doc_id))
        except Exception as e:
            logger.warning(f"Failed to delete temp Doc {doc_id}: {e}")
