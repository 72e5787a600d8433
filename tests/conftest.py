"""
Shared fixtures. Every external service is faked; no test touches the network.
"""

from datetime import datetime, timezone

import pytest

from applicant_pipeline.config import Settings
from applicant_pipeline.models.message import MessageAttachment, NormalizedMessage

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_message(
    message_id: str = "msg-001",
    subject: str = "New application: Senior Python Developer from John Smith",
    sender: str = "LinkedIn <jobs-noreply@linkedin.com>",
    body_text: str = "",
    body_html: str = "",
    attachments: list | None = None,
    date: datetime | None = NOW,
) -> NormalizedMessage:
    return NormalizedMessage(
        id=message_id,
        thread_id=f"thread-{message_id}",
        subject=subject,
        sender=sender,
        date=date,
        body_text=body_text,
        body_html=body_html,
        attachments=attachments or [],
    )


def pdf_attachment(filename: str = "John_Smith_Resume.pdf") -> MessageAttachment:
    return MessageAttachment(
        filename=filename,
        mime_type="application/pdf",
        attachment_id="att-1",
        size_bytes=48213,
    )


@pytest.fixture
def settings() -> Settings:
    """Fully configured settings with fast retries."""
    return Settings(
        supabase_url="https://test.supabase.co",
        supabase_key="test-service-key",
        google_client_id="client-id",
        google_client_secret="client-secret",
        google_refresh_token="refresh-token",
        google_sheet_id="sheet-123",
        google_drive_folder_id="folder-456",
        openai_api_key="sk-test",
        retry_attempts=3,
        retry_base_delay=0.0,
        detail_batch_delay=0.0,
        run_trigger_secret="test-run-secret",
    )
