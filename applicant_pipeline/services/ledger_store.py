"""
Storage backends for the processed-message ledger.

All stores share one interface:

    get(message_id)            -> ProcessingLedgerEntry | None
    upsert(entry)              -> None   (keyed on message_id)
    entries()                  -> list[ProcessingLedgerEntry]
    status_counts()            -> dict[status, int]
    recent(limit)              -> list[ProcessingLedgerEntry], newest first
    delete_older_than(cutoff)  -> int    (rows removed)

SupabaseLedgerStore is the production store. InMemoryLedgerStore backs tests
and offline runs. DryRunLedgerStore reads through to a real store but keeps
its own writes in memory, so a dry run sees real history without changing it.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from applicant_pipeline.config import Settings
from applicant_pipeline.models.ledger import LedgerStatus, ProcessingLedgerEntry
from applicant_pipeline.services.retry import with_retry

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _newest_first(entries: list[ProcessingLedgerEntry]) -> list[ProcessingLedgerEntry]:
    return sorted(entries, key=lambda e: _parse_timestamp(e.processed_at), reverse=True)


class SupabaseLedgerStore:
    """Ledger rows in the ``processed_messages`` table (PK: message_id)."""

    def __init__(self, client: Any, settings: Settings):
        self.client = client
        self.table = settings.ledger_table
        self.settings = settings

    def _execute(self, query):
        return with_retry(
            query.execute,
            max_attempts=self.settings.retry_attempts,
            base_delay=self.settings.retry_base_delay,
        )

    def test_connection(self) -> None:
        self._execute(self.client.table(self.table).select("message_id").limit(1))

    def get(self, message_id: str) -> Optional[ProcessingLedgerEntry]:
        result = self._execute(
            self.client.table(self.table)
            .select("*")
            .eq("message_id", message_id)
            .limit(1)
        )
        if not result.data:
            return None
        return ProcessingLedgerEntry(**result.data[0])

    def upsert(self, entry: ProcessingLedgerEntry) -> None:
        self._execute(
            self.client.table(self.table).upsert(
                entry.model_dump(mode="json"), on_conflict="message_id"
            )
        )

    def entries(self) -> list[ProcessingLedgerEntry]:
        result = self._execute(self.client.table(self.table).select("*"))
        return [ProcessingLedgerEntry(**row) for row in result.data or []]

    def status_counts(self) -> dict[str, int]:
        counts = {}
        for status in LedgerStatus:
            result = self._execute(
                self.client.table(self.table)
                .select("message_id", count="exact")
                .eq("status", status.value)
                .limit(1)
            )
            counts[status.value] = result.count or 0
        return counts

    def recent(self, limit: int = 10) -> list[ProcessingLedgerEntry]:
        result = self._execute(
            self.client.table(self.table)
            .select("*")
            .order("processed_at", desc=True)
            .limit(limit)
        )
        return [ProcessingLedgerEntry(**row) for row in result.data or []]

    def delete_older_than(self, cutoff: datetime) -> int:
        result = self._execute(
            self.client.table(self.table)
            .delete()
            .lt("processed_at", cutoff.isoformat())
        )
        return len(result.data or [])


class InMemoryLedgerStore:
    """Dict-backed ledger; one entry per message id."""

    def __init__(self):
        self._rows: dict[str, ProcessingLedgerEntry] = {}

    def test_connection(self) -> None:
        return None

    def get(self, message_id: str) -> Optional[ProcessingLedgerEntry]:
        return self._rows.get(message_id)

    def upsert(self, entry: ProcessingLedgerEntry) -> None:
        self._rows[entry.message_id] = entry.model_copy(deep=True)

    def entries(self) -> list[ProcessingLedgerEntry]:
        return list(self._rows.values())

    def status_counts(self) -> dict[str, int]:
        counts = {status.value: 0 for status in LedgerStatus}
        for entry in self._rows.values():
            counts[entry.status.value] += 1
        return counts

    def recent(self, limit: int = 10) -> list[ProcessingLedgerEntry]:
        return _newest_first(self.entries())[:limit]

    def delete_older_than(self, cutoff: datetime) -> int:
        stale = [mid for mid, e in self._rows.items() if _parse_timestamp(e.processed_at) < cutoff]
        for message_id in stale:
            del self._rows[message_id]
        return len(stale)


class DryRunLedgerStore:
    """Read-through overlay: reads hit ``backing``, writes stay local."""

    def __init__(self, backing):
        self.backing = backing
        self.overlay = InMemoryLedgerStore()

    def test_connection(self) -> None:
        self.backing.test_connection()

    def get(self, message_id: str) -> Optional[ProcessingLedgerEntry]:
        return self.overlay.get(message_id) or self.backing.get(message_id)

    def upsert(self, entry: ProcessingLedgerEntry) -> None:
        logger.info(f"DRY RUN: would mark message {entry.message_id} as {entry.status.value}")
        self.overlay.upsert(entry)

    def entries(self) -> list[ProcessingLedgerEntry]:
        merged = {e.message_id: e for e in self.backing.entries()}
        merged.update({e.message_id: e for e in self.overlay.entries()})
        return list(merged.values())

    def status_counts(self) -> dict[str, int]:
        counts = {status.value: 0 for status in LedgerStatus}
        for entry in self.entries():
            counts[entry.status.value] += 1
        return counts

    def recent(self, limit: int = 10) -> list[ProcessingLedgerEntry]:
        return _newest_first(self.entries())[:limit]

    def delete_older_than(self, cutoff: datetime) -> int:
        stale = [e for e in self.entries() if _parse_timestamp(e.processed_at) < cutoff]
        logger.info(f"DRY RUN: would delete {len(stale)} ledger entries older than {cutoff.isoformat()}")
        return len(stale)
