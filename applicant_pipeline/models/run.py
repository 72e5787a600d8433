"""
Run-level statistics accumulated by the orchestrator.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from applicant_pipeline.models.candidate import EXTRACTED_FIELDS


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FieldHitRate(BaseModel):
    hits: int = 0
    attempts: int = 0

    @property
    def rate(self) -> float:
        if not self.attempts:
            return 0.0
        return round(self.hits / self.attempts * 100, 1)


class RunStats(BaseModel):
    """
    Counters for one pipeline run.

    Only the orchestrator's processing loop mutates this object.
    ``field_hits`` counts, per extracted field, how many messages that
    reached extraction produced a non-null value.
    """

    started_at: datetime = Field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None
    dry_run: bool = False

    found: int = 0
    processed: int = 0
    skipped: int = 0
    duplicates: int = 0
    errors: int = 0
    already_processed: int = 0
    resumes_extracted: int = 0

    skip_reasons: dict[str, int] = {}
    field_hits: dict[str, FieldHitRate] = Field(
        default_factory=lambda: {name: FieldHitRate() for name in EXTRACTED_FIELDS}
    )
    error_messages: list[str] = []

    def record_skip(self, reason: str) -> None:
        self.skipped += 1
        self.skip_reasons[reason] = self.skip_reasons.get(reason, 0) + 1

    def record_extraction(self, fields: dict[str, Optional[str]]) -> None:
        for name, value in fields.items():
            bucket = self.field_hits.setdefault(name, FieldHitRate())
            bucket.attempts += 1
            if value:
                bucket.hits += 1

    def record_error(self, message_id: str, error: str) -> None:
        self.errors += 1
        self.error_messages.append(f"{message_id}: {error}")

    def finish(self) -> None:
        self.finished_at = _utcnow()

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return round((self.finished_at - self.started_at).total_seconds(), 2)

    def hit_rates(self) -> dict[str, float]:
        return {name: bucket.rate for name, bucket in self.field_hits.items()}
