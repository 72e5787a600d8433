"""
Normalized mailbox message model.

The Gmail fetcher decodes the provider's MIME tree into this shape; the
classifier, field extractor, and contact resolver only ever see these models.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class MessageAttachment(BaseModel):
    """Attachment metadata. Content is downloaded on demand by attachment_id."""

    filename: str
    mime_type: str = "application/octet-stream"
    attachment_id: str
    size_bytes: int = 0


class NormalizedMessage(BaseModel):
    """
    A decoded email message.

    ``id`` is the provider's immutable message identifier and the only key
    used for deduplication. ``body_text`` and ``body_html`` are decoded text
    (never base64) and either may be empty.
    """

    id: str
    thread_id: Optional[str] = None
    subject: str = ""
    sender: str = ""
    date: Optional[datetime] = None
    body_text: str = ""
    body_html: str = ""
    attachments: list[MessageAttachment] = []

    def first_attachment(self, mime_type: str) -> Optional[MessageAttachment]:
        for attachment in self.attachments:
            if attachment.mime_type == mime_type:
                return attachment
        return None
