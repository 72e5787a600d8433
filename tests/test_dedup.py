"""
Processed-message ledger tests.

Coverage:
  - Ledger state machine and upsert semantics
  - Candidate-level duplicate check (soft, fails open)
  - Stats, recent, retention cleanup
  - Supabase store query shapes (mocked client)
  - Dry-run overlay store
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from applicant_pipeline.models.ledger import LedgerStatus, ProcessingLedgerEntry
from applicant_pipeline.services.dedup import DedupTracker
from applicant_pipeline.services.ledger_store import (
    DryRunLedgerStore,
    InMemoryLedgerStore,
    SupabaseLedgerStore,
)

from conftest import NOW


def _tracker(store=None, applicants=None):
    return DedupTracker(store or InMemoryLedgerStore(), applicants=applicants, clock=lambda: NOW)


def _entry(message_id, status=LedgerStatus.SUCCESS, age_days=0):
    return ProcessingLedgerEntry(
        message_id=message_id,
        status=status,
        processed_at=(NOW - timedelta(days=age_days)).isoformat(),
    )


class TestLedgerStateMachine:
    def test_unseen_message_is_not_processed(self):
        assert _tracker().is_processed("msg-1") is False

    @pytest.mark.parametrize("status", list(LedgerStatus))
    def test_any_status_marks_processed(self, status):
        tracker = _tracker()
        tracker.mark_processed("msg-1", status)
        assert tracker.is_processed("msg-1") is True

    def test_upsert_keeps_single_row_with_latest_status(self):
        store = InMemoryLedgerStore()
        tracker = _tracker(store)

        tracker.mark_processed("msg-1", LedgerStatus.ERROR, {"error": "timeout"})
        tracker.mark_processed("msg-1", LedgerStatus.SUCCESS)

        rows = store.entries()
        assert len(rows) == 1
        assert rows[0].status == LedgerStatus.SUCCESS
        assert rows[0].error_details is None

    def test_error_status_fills_error_details(self):
        entry = _tracker().mark_processed("msg-1", "error", {"error": "Sheets quota exceeded"})
        assert entry.status == LedgerStatus.ERROR
        assert entry.error_details == "Sheets quota exceeded"
        assert entry.processed_at == NOW.isoformat()

    def test_lookup_failure_treated_as_not_processed(self):
        store = MagicMock()
        store.get.side_effect = ConnectionError("supabase unreachable")
        assert _tracker(store).is_processed("msg-1") is False


class TestDuplicateApplicant:
    def test_existing_applicant_is_duplicate(self):
        applicants = MagicMock()
        applicants.exists.return_value = True
        tracker = _tracker(applicants=applicants)

        assert tracker.is_duplicate_applicant("jane@example.com", "3912345678") is True
        applicants.exists.assert_called_once_with("jane@example.com", "3912345678")

    def test_lookup_failure_is_not_duplicate(self):
        applicants = MagicMock()
        applicants.exists.side_effect = RuntimeError("boom")
        assert _tracker(applicants=applicants).is_duplicate_applicant("jane@example.com") is False

    def test_without_repository_never_duplicate(self):
        assert _tracker().is_duplicate_applicant("jane@example.com") is False


class TestStatsAndRetention:
    def test_stats_counts_each_status(self):
        tracker = _tracker()
        tracker.mark_processed("a", LedgerStatus.SUCCESS)
        tracker.mark_processed("b", LedgerStatus.SUCCESS)
        tracker.mark_processed("c", LedgerStatus.SKIPPED, {"reason": "no_name"})
        tracker.mark_processed("d", LedgerStatus.ERROR, {"error": "x"})

        stats = tracker.stats()

        assert stats.total == 4
        assert stats.success == 2
        assert stats.skipped == 1
        assert stats.error == 1
        assert stats.duplicate == 0
        assert stats.latest is not None

    def test_recent_is_newest_first(self):
        store = InMemoryLedgerStore()
        store.upsert(_entry("old", age_days=3))
        store.upsert(_entry("new", age_days=0))
        store.upsert(_entry("mid", age_days=1))

        assert [e.message_id for e in _tracker(store).recent(2)] == ["new", "mid"]

    def test_cleanup_removes_only_old_rows(self):
        store = InMemoryLedgerStore()
        store.upsert(_entry("stale", age_days=45))
        store.upsert(_entry("fresh", age_days=2))

        deleted = _tracker(store).cleanup(30)

        assert deleted == 1
        assert [e.message_id for e in store.entries()] == ["fresh"]

    def test_cleanup_rejects_non_positive_window(self):
        with pytest.raises(ValueError):
            _tracker().cleanup(0)


class TestSupabaseLedgerStore:
    def _store(self, settings, client):
        return SupabaseLedgerStore(client, settings)

    def test_upsert_on_message_id(self, settings):
        client = MagicMock()
        store = self._store(settings, client)

        store.upsert(_entry("msg-1"))

        client.table.assert_called_with("processed_messages")
        upsert = client.table.return_value.upsert
        row = upsert.call_args[0][0]
        assert row["message_id"] == "msg-1"
        assert row["status"] == "success"
        assert upsert.call_args[1]["on_conflict"] == "message_id"

    def test_get_parses_row(self, settings):
        client = MagicMock()
        query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value = MagicMock(data=[{
            "message_id": "msg-1",
            "status": "skipped",
            "processed_at": "2025-03-10T12:00:00+00:00",
            "metadata": '{"reason": "no_name"}',
            "error_details": None,
        }])

        entry = self._store(settings, client).get("msg-1")

        assert entry.status == LedgerStatus.SKIPPED
        assert entry.metadata == {"reason": "no_name"}

    def test_get_missing_row(self, settings):
        client = MagicMock()
        query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value = MagicMock(data=[])
        assert self._store(settings, client).get("msg-1") is None

    def test_delete_older_than_counts_rows(self, settings):
        client = MagicMock()
        query = client.table.return_value.delete.return_value.lt.return_value
        query.execute.return_value = MagicMock(data=[{"message_id": "a"}, {"message_id": "b"}])

        deleted = self._store(settings, client).delete_older_than(NOW)

        assert deleted == 2
        client.table.return_value.delete.return_value.lt.assert_called_once_with("processed_at", NOW.isoformat())


class TestDryRunLedgerStore:
    def test_reads_through_but_never_writes_backing(self):
        backing = InMemoryLedgerStore()
        backing.upsert(_entry("seen"))
        tracker = _tracker(DryRunLedgerStore(backing))

        assert tracker.is_processed("seen") is True
        tracker.mark_processed("new", LedgerStatus.SUCCESS)

        assert tracker.is_processed("new") is True
        assert backing.get("new") is None

    def test_cleanup_only_counts(self):
        backing = InMemoryLedgerStore()
        backing.upsert(_entry("stale", age_days=90))

        assert _tracker(DryRunLedgerStore(backing)).cleanup(30) == 1
        assert backing.get("stale") is not None
