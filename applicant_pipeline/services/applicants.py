"""
Applicant persistence in Supabase.

Rows are upserted on the configured conflict key (``email`` by default, or
``email,project_id``), so a re-processed applicant updates their existing
row. ``exists`` is the soft candidate-level duplicate check: it answers
False when the lookup itself fails, so a database hiccup never drops a valid
applicant.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from applicant_pipeline.config import Settings
from applicant_pipeline.models.candidate import CandidateRecord
from applicant_pipeline.services.retry import with_retry

logger = logging.getLogger(__name__)


def build_applicant_row(record: CandidateRecord, message_id: str, processed_at: Optional[str] = None) -> dict:
    """Map a CandidateRecord onto the applicant_details schema."""
    return {
        "message_id": message_id,
        "email": record.email,
        "name": record.name.strip() if record.name else None,
        "title": record.title,
        "location": record.location,
        "expected_compensation": record.expected_compensation,
        "project_id": record.project_id,
        "screening_questions": record.screening_questions,
        "resume_raw_text": record.resume_text,
        "resume_drive_link": record.resume_storage_link,
        "mobile_number": record.mobile_number,
        "linkedin_url": record.linkedin_url,
        "processed_at": processed_at or datetime.now(timezone.utc).isoformat(),
    }


class ApplicantRepository:
    """Relational sink for applicant rows."""

    def __init__(self, client: Any, settings: Settings):
        self.client = client
        self.table = settings.applicants_table
        self.conflict_columns = settings.conflict_columns
        self.settings = settings

    def _execute(self, query):
        return with_retry(
            query.execute,
            max_attempts=self.settings.retry_attempts,
            base_delay=self.settings.retry_base_delay,
        )

    def test_connection(self) -> None:
        self._execute(self.client.table(self.table).select("email").limit(1))

    def upsert(self, record: CandidateRecord, message_id: str, processed_at: Optional[str] = None) -> dict:
        """
        Insert or update the applicant row. Returns the row that was written.

        Raises:
            ValueError: If the record is missing name or email.
        """
        if not record.is_persistable:
            raise ValueError("Applicant record requires both name and email")

        row = build_applicant_row(record, message_id, processed_at)
        result = self._execute(
            self.client.table(self.table).upsert(row, on_conflict=",".join(self.conflict_columns))
        )
        logger.info(f"Applicant upserted in Supabase: {row['email']}")
        return result.data[0] if result.data else row

    def exists(self, email: str, project_id: Optional[str] = None) -> bool:
        """Soft duplicate check on (email, project_id)."""
        try:
            query = self.client.table(self.table).select("email, project_id").eq("email", email)
            if project_id:
                query = query.eq("project_id", project_id)
            result = self._execute(query.limit(1))
        except Exception as e:
            logger.warning(f"Duplicate check failed for {email}, assuming not duplicate: {e}")
            return False
        return bool(result.data)

    def count(self) -> int:
        result = self._execute(self.client.table(self.table).select("email", count="exact").limit(1))
        return result.count or 0
