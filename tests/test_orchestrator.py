"""
Applicant processor tests.

All collaborators are faked: an in-memory ledger, mocked sinks, and a
mocked attachment pipeline. Covers the per-message sequence, idempotence,
error isolation, dry runs, and the run wrapper.
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from applicant_pipeline.exceptions import ConfigError, CriticalServiceError
from applicant_pipeline.models.candidate import ResumeResult
from applicant_pipeline.models.ledger import LedgerStatus
from applicant_pipeline.services.contact_resolver import ContactResolver
from applicant_pipeline.services.dedup import DedupTracker
from applicant_pipeline.services.health import HealthReport, ServiceCheck
from applicant_pipeline.services.ledger_store import InMemoryLedgerStore
from applicant_pipeline.services.orchestrator import ApplicantProcessor, build_processor

from conftest import NOW, make_message, pdf_attachment

RESUME_TEXT = "--- RESUME TEXT (PDF Text Layer) ---\nJohn Smith\njohn.smith@example.com\n--- END OF RESUME ---"


def _resume(text=RESUME_TEXT, extracted=True):
    return ResumeResult(
        resume_text=text,
        storage_link="https://drive.google.com/file/d/f1/view",
        filename="John_Smith_Resume.pdf",
        text_extracted=extracted,
    )


def _application(message_id="msg-001", **overrides):
    values = dict(
        body_text="Bangalore, Karnataka, India\nCurrent CTC 12 LPA",
        attachments=[pdf_attachment()],
    )
    values.update(overrides)
    return make_message(message_id, **values)


class Harness:
    """Processor plus handles on every fake collaborator."""

    def __init__(self, settings, resume=None, llm=None, duplicate=False, messages=()):
        self.store = InMemoryLedgerStore()
        self.applicants = MagicMock()
        self.applicants.exists.return_value = duplicate
        self.sheets = MagicMock()
        self.fetcher = MagicMock()
        self.fetcher.fetch_messages.return_value = list(messages)
        self.attachments = MagicMock()
        self.attachments.process.return_value = resume if resume is not None else _resume()
        self.llm = llm
        self.processor = ApplicantProcessor(
            settings,
            fetcher=self.fetcher,
            dedup=DedupTracker(self.store, applicants=self.applicants, clock=lambda: NOW),
            attachments=self.attachments,
            contact_resolver=ContactResolver(llm=llm),
            sheets=self.sheets,
            applicants=self.applicants,
            clock=lambda: NOW,
        )

    def status_of(self, message_id):
        entry = self.store.get(message_id)
        return entry.status if entry else None


class TestHappyPath:
    def test_john_smith_end_to_end(self, settings):
        h = Harness(settings)

        status = h.processor.process_message(_application())

        assert status == LedgerStatus.SUCCESS
        h.sheets.append_candidate.assert_called_once()
        record, message_id, processed_at = h.sheets.append_candidate.call_args[0]
        assert record.name == "John Smith"
        assert "Developer" in record.title
        assert record.location == "Bangalore, Karnataka, India"
        assert record.expected_compensation == "12"
        assert record.email == "john.smith@example.com"
        assert record.resume_storage_link == "https://drive.google.com/file/d/f1/view"
        assert message_id == "msg-001"
        assert processed_at == NOW.isoformat()

        h.applicants.upsert.assert_called_once()
        assert h.applicants.upsert.call_args[0][0].email == "john.smith@example.com"
        assert h.status_of("msg-001") == LedgerStatus.SUCCESS
        assert h.processor.stats.processed == 1
        assert h.processor.stats.resumes_extracted == 1

    def test_duplicate_check_uses_email_and_project(self, settings):
        h = Harness(settings)
        msg = _application(body_html='<a href="https://www.linkedin.com/comm/jobs/view/3912345678">job</a>')

        h.processor.process_message(msg)

        h.applicants.exists.assert_called_once_with("john.smith@example.com", "3912345678")


class TestIdempotence:
    def test_second_call_is_a_no_op(self, settings):
        h = Harness(settings)
        msg = _application()

        assert h.processor.process_message(msg) == LedgerStatus.SUCCESS
        assert h.processor.process_message(msg) is None

        assert h.sheets.append_candidate.call_count == 1
        assert h.applicants.upsert.call_count == 1
        assert h.processor.stats.already_processed == 1

    def test_errored_message_is_not_retried(self, settings):
        h = Harness(settings)
        h.sheets.append_candidate.side_effect = RuntimeError("quota exceeded")
        msg = _application()

        assert h.processor.process_message(msg) == LedgerStatus.ERROR
        assert h.processor.process_message(msg) is None
        assert h.sheets.append_candidate.call_count == 1


class TestSkips:
    def test_too_old(self, settings):
        h = Harness(settings)
        msg = _application(date=NOW - timedelta(days=settings.max_email_age_days + 1))

        assert h.processor.process_message(msg) == LedgerStatus.SKIPPED
        assert h.store.get("msg-001").metadata["reason"] == "too_old"
        h.attachments.process.assert_not_called()

    def test_not_an_application(self, settings):
        h = Harness(settings)
        msg = make_message(subject="Lunch?", sender="friend@gmail.com", body_text="Pizza or tacos?")

        assert h.processor.process_message(msg) == LedgerStatus.SKIPPED
        assert h.processor.stats.skip_reasons == {"not_application": 1}

    def test_no_name(self, settings):
        h = Harness(settings)
        msg = make_message(subject="Your job has a new applicant", body_text="")

        assert h.processor.process_message(msg) == LedgerStatus.SKIPPED
        assert h.store.get("msg-001").metadata["reason"] == "no_name"
        h.attachments.process.assert_not_called()

    def test_no_email(self, settings):
        h = Harness(settings, resume=ResumeResult())

        assert h.processor.process_message(_application(attachments=[])) == LedgerStatus.SKIPPED
        assert h.store.get("msg-001").metadata["reason"] == "no_email"
        h.sheets.append_candidate.assert_not_called()

    def test_duplicate_applicant(self, settings):
        h = Harness(settings, duplicate=True)

        assert h.processor.process_message(_application()) == LedgerStatus.DUPLICATE
        assert h.processor.stats.duplicates == 1
        h.sheets.append_candidate.assert_not_called()
        h.applicants.upsert.assert_not_called()


class TestContactResolution:
    def test_placeholder_resume_text_not_sent_to_llm(self, settings):
        llm = MagicMock()
        h = Harness(
            settings,
            resume=_resume("Resume download failed: gone", extracted=False),
            llm=llm,
        )

        status = h.processor.process_message(_application(body_text="Bangalore, Karnataka, India\nreach me: john@site.io"))

        llm.extract_contact.assert_not_called()
        assert status == LedgerStatus.SUCCESS

    def test_llm_contact_fields_reach_sinks(self, settings):
        llm = MagicMock()
        llm.extract_contact.return_value = {
            "email": "john.smith@example.com",
            "mobile_number": "+91-9876543210",
            "linkedin_url": "https://www.linkedin.com/in/jsmith",
        }
        h = Harness(settings, llm=llm)

        h.processor.process_message(_application())

        record = h.sheets.append_candidate.call_args[0][0]
        assert record.mobile_number == "+91-9876543210"
        assert record.linkedin_url == "https://www.linkedin.com/in/jsmith"


class TestErrorsAndBatches:
    def test_persistence_error_marks_ledger_and_batch_continues(self, settings):
        first = _application("msg-1")
        second = _application("msg-2")
        h = Harness(settings, messages=[first, second])
        h.applicants.upsert.side_effect = [RuntimeError("duplicate key value"), {"email": "x"}]

        stats = h.processor.process_batch()

        assert h.status_of("msg-1") == LedgerStatus.ERROR
        assert h.store.get("msg-1").error_details == "duplicate key value"
        assert h.status_of("msg-2") == LedgerStatus.SUCCESS
        assert stats.found == 2
        assert stats.errors == 1
        assert stats.processed == 1
        assert stats.error_messages == ["msg-1: duplicate key value"]
        assert stats.finished_at is not None

    def test_ledger_write_failure_does_not_abort(self, settings):
        h = Harness(settings)
        h.processor.dedup.store = MagicMock()
        h.processor.dedup.store.get.return_value = None
        h.processor.dedup.store.upsert.side_effect = ConnectionError("down")

        assert h.processor.process_message(_application()) == LedgerStatus.SUCCESS

    def test_field_hit_rates_recorded(self, settings):
        h = Harness(settings, messages=[_application("a"), _application("b", body_text="")])

        stats = h.processor.process_batch()

        assert stats.field_hits["name"].hits == 2
        assert stats.field_hits["location"].hits == 1
        assert stats.field_hits["location"].attempts == 2

    def test_dry_run_writes_nothing(self, settings):
        settings.dry_run = True
        h = Harness(settings)

        assert h.processor.process_message(_application()) == LedgerStatus.SUCCESS
        h.sheets.append_candidate.assert_not_called()
        h.applicants.upsert.assert_not_called()


class TestRun:
    def _healthy(self, h):
        for collaborator in (h.applicants, h.sheets, h.fetcher):
            collaborator.test_connection.return_value = "ok"

    def test_run_checks_services_initializes_and_reports(self, settings, mocker):
        write_report = mocker.patch("applicant_pipeline.services.orchestrator.write_report")
        h = Harness(settings, messages=[_application()])
        self._healthy(h)

        stats = h.processor.run()

        h.sheets.initialize.assert_called_once()
        write_report.assert_called_once_with(stats, settings)
        assert stats.processed == 1

    def test_critical_failure_stops_run(self, settings):
        h = Harness(settings, messages=[_application()])
        self._healthy(h)
        h.fetcher.test_connection.side_effect = PermissionError("invalid_grant")

        with pytest.raises(CriticalServiceError) as exc_info:
            h.processor.run()

        assert exc_info.value.failed == ["Gmail"]
        h.fetcher.fetch_messages.assert_not_called()

    def test_health_report_includes_optional_drive(self, settings):
        h = Harness(settings)
        self._healthy(h)
        h.processor.storage = MagicMock()
        h.processor.storage.test_connection.side_effect = RuntimeError("folder not shared")

        report = h.processor.check_services()

        assert isinstance(report, HealthReport)
        drive = next(c for c in report.checks if c.name == "Google Drive")
        assert drive == ServiceCheck(name="Google Drive", critical=False, ok=False, error="folder not shared")


class TestBuildProcessor:
    def test_missing_configuration(self):
        from applicant_pipeline.config import Settings

        with pytest.raises(ConfigError) as exc_info:
            build_processor(Settings())
        assert "SUPABASE_URL" in exc_info.value.missing

    def test_wires_collaborators(self, settings, mocker):
        for name in ("GmailMessageFetcher", "DriveStorage", "SheetsSink", "create_contact_extractor"):
            mocker.patch(f"applicant_pipeline.services.orchestrator.{name}")

        processor = build_processor(settings, supabase_client=MagicMock())

        assert processor.contact_resolver.enable_llm is True
        assert processor.dedup.applicants is processor.applicants
