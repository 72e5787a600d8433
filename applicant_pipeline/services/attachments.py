"""
Attachment pipeline: pick the resume, back it up, and extract its text.

Best-effort by contract. Any failure degrades ``resume_text`` to a short
placeholder describing what went wrong; it never aborts the message.
"""

import logging
from typing import Optional

from applicant_pipeline.config import Settings
from applicant_pipeline.models.candidate import ResumeResult
from applicant_pipeline.models.message import MessageAttachment, NormalizedMessage
from applicant_pipeline.services.drive import SUPPORTED_OCR_FORMATS
from applicant_pipeline.services.resume_text import ResumeTextExtractor, format_resume_text

logger = logging.getLogger(__name__)


def select_resume(attachments: list[MessageAttachment]) -> Optional[MessageAttachment]:
    """First PDF attachment, else the first attachment in a supported format."""
    for attachment in attachments:
        if attachment.mime_type == "application/pdf" or attachment.filename.lower().endswith(".pdf"):
            return attachment
    for attachment in attachments:
        if attachment.mime_type in SUPPORTED_OCR_FORMATS:
            return attachment
    return None


class AttachmentProcessor:
    """
    ``fetcher`` needs ``get_attachment(message_id, attachment_id)``;
    ``storage`` needs ``upload(content, filename, mime_type)``.
    """

    def __init__(self, settings: Settings, fetcher, storage, text_extractor: ResumeTextExtractor):
        self.settings = settings
        self.fetcher = fetcher
        self.storage = storage
        self.text_extractor = text_extractor

    def process(self, message: NormalizedMessage) -> ResumeResult:
        attachment = select_resume(message.attachments)
        if attachment is None:
            logger.info(f"No resume attachment on message {message.id}")
            return ResumeResult()

        mime_type = attachment.mime_type
        if attachment.filename.lower().endswith(".pdf"):
            mime_type = "application/pdf"
        result = ResumeResult(filename=attachment.filename)
        logger.info(f"Processing resume attachment: {attachment.filename}")

        try:
            content = self.fetcher.get_attachment(message.id, attachment.attachment_id)
        except Exception as e:
            logger.error(f"Error downloading attachment {attachment.filename}: {e}")
            result.resume_text = f"Resume download failed: {e}"
            return result
        logger.info(f"Downloaded attachment: {len(content)} bytes")

        if self.settings.dry_run:
            logger.info(f"DRY RUN: would upload {attachment.filename} to Drive")
        else:
            try:
                result.storage_link = self.storage.upload(content, attachment.filename, mime_type)
            except Exception as e:
                # Text extraction can still succeed without the backup copy.
                logger.error(f"Resume upload failed for {attachment.filename}: {e}")

        if not self.settings.enable_ocr:
            result.resume_text = f"OCR disabled - resume stored at: {result.storage_link or 'not stored'}"
            return result

        try:
            extracted = self.text_extractor.extract(
                content, attachment.filename, mime_type, allow_remote=not self.settings.dry_run
            )
            result.resume_text = format_resume_text(extracted.text, attachment.filename, extracted.method)
            result.text_extracted = True
        except Exception as e:
            logger.warning(f"Resume text extraction failed for {attachment.filename}: {e}")
            result.resume_text = f"Resume text extraction failed: {e}"
            if result.storage_link:
                result.resume_text += f"\nResume stored at: {result.storage_link}"
        return result
