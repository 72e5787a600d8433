"""
Message-level idempotency ledger.

Per message id the state machine is:

    unseen -> {success | duplicate | skipped | error}

Any recorded status makes ``is_processed`` return True, and the orchestrator
skips the message on every later run. ``mark_processed`` upserts on the
message id, so re-marking the same id overwrites the row instead of adding
one. Rows are only ever removed by ``cleanup``.

``is_duplicate_applicant`` is the looser, candidate-level guard keyed on
(email, project_id). It answers False whenever it cannot tell.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from applicant_pipeline.models.ledger import LedgerStats, LedgerStatus, ProcessingLedgerEntry

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DedupTracker:
    """
    ``store`` is a ledger store (see ledger_store); ``applicants`` is
    anything with ``exists(email, project_id) -> bool``, or None to disable
    the candidate-level check.
    """

    def __init__(self, store, applicants=None, clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self.applicants = applicants
        self._clock = clock

    def is_processed(self, message_id: str) -> bool:
        """True once any terminal status has been recorded for ``message_id``."""
        try:
            entry = self.store.get(message_id)
        except Exception as e:
            logger.error(f"Ledger lookup failed for {message_id}, treating as not processed: {e}")
            return False
        if entry is None:
            logger.debug(f"Message ready for processing: {message_id}")
            return False
        logger.info(f"Message already tracked: {message_id} ({entry.status.value}) at {entry.processed_at}")
        return True

    def mark_processed(
        self,
        message_id: str,
        status: LedgerStatus,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ProcessingLedgerEntry:
        status = LedgerStatus(status)
        entry = ProcessingLedgerEntry(
            message_id=message_id,
            status=status,
            processed_at=self._clock().isoformat(),
            metadata=metadata or None,
            error_details=(metadata or {}).get("error") if status == LedgerStatus.ERROR else None,
        )
        self.store.upsert(entry)
        logger.info(f"Marked message {message_id} as {status.value}")
        return entry

    def is_duplicate_applicant(self, email: Optional[str], project_id: Optional[str] = None) -> bool:
        if self.applicants is None or not email:
            return False
        try:
            duplicate = self.applicants.exists(email, project_id)
        except Exception as e:
            logger.warning(f"Applicant duplicate check failed for {email}: {e}")
            return False
        if duplicate:
            logger.info(f"Duplicate applicant: {email} (project {project_id or 'n/a'})")
        return duplicate

    def stats(self) -> LedgerStats:
        counts = self.store.status_counts()
        recent = self.store.recent(1)
        return LedgerStats(
            total=sum(counts.values()),
            success=counts.get(LedgerStatus.SUCCESS.value, 0),
            duplicate=counts.get(LedgerStatus.DUPLICATE.value, 0),
            skipped=counts.get(LedgerStatus.SKIPPED.value, 0),
            error=counts.get(LedgerStatus.ERROR.value, 0),
            latest=recent[0] if recent else None,
        )

    def recent(self, limit: int = 10) -> list[ProcessingLedgerEntry]:
        return self.store.recent(limit)

    def cleanup(self, days_to_keep: int = 30) -> int:
        """Age-based retention sweep; returns the number of rows removed."""
        if days_to_keep < 1:
            raise ValueError("days_to_keep must be at least 1")
        cutoff = self._clock() - timedelta(days=days_to_keep)
        deleted = self.store.delete_older_than(cutoff)
        logger.info(f"Cleaned up {deleted} processed message records older than {days_to_keep} days")
        return deleted
