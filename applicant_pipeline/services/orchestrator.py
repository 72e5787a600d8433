"""
Applicant processor: drives one ingestion run.

Each message goes through the same fixed sequence:

    ledger check -> age filter -> classify -> extract (needs a name)
    -> resume attachment -> contact resolution (needs an email)
    -> applicant duplicate check -> sheet + database -> ledger success

Every message that gets past the ledger check ends with exactly one ledger
status. An exception anywhere in the sequence marks the message ``error``
and the batch moves on to the next message.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from applicant_pipeline.config import Settings
from applicant_pipeline.db import create_supabase_client
from applicant_pipeline.models.ledger import LedgerStatus
from applicant_pipeline.models.message import NormalizedMessage
from applicant_pipeline.models.run import RunStats
from applicant_pipeline.services.applicants import ApplicantRepository
from applicant_pipeline.services.attachments import AttachmentProcessor
from applicant_pipeline.services.classifier import Classifier
from applicant_pipeline.services.contact_resolver import ContactResolver
from applicant_pipeline.services.dedup import DedupTracker
from applicant_pipeline.services.drive import DriveStorage
from applicant_pipeline.services.field_extractor import FieldExtractor
from applicant_pipeline.services.gmail import GmailMessageFetcher
from applicant_pipeline.services.health import HealthReport, require_critical_services, run_health_checks
from applicant_pipeline.services.ledger_store import DryRunLedgerStore, SupabaseLedgerStore
from applicant_pipeline.services.llm import create_contact_extractor
from applicant_pipeline.services.report import write_report
from applicant_pipeline.services.resume_text import ResumeTextExtractor
from applicant_pipeline.services.sheets import SheetsSink

logger = logging.getLogger(__name__)

# Skip reasons recorded in ledger metadata and run stats.
SKIP_TOO_OLD = "too_old"
SKIP_NOT_APPLICATION = "not_application"
SKIP_NO_NAME = "no_name"
SKIP_NO_EMAIL = "no_email"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ApplicantProcessor:
    """Sequential message processor; owns the RunStats for one run."""

    def __init__(
        self,
        settings: Settings,
        *,
        fetcher: Any,
        dedup: DedupTracker,
        attachments: AttachmentProcessor,
        contact_resolver: ContactResolver,
        sheets: Any,
        applicants: Any,
        classifier: Optional[Classifier] = None,
        extractor: Optional[FieldExtractor] = None,
        storage: Any = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings
        self.fetcher = fetcher
        self.dedup = dedup
        self.attachments = attachments
        self.contact_resolver = contact_resolver
        self.sheets = sheets
        self.applicants = applicants
        self.classifier = classifier or Classifier()
        self.extractor = extractor or FieldExtractor()
        self.storage = storage
        self._clock = clock
        self.stats = RunStats(dry_run=settings.dry_run)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def health_report(self) -> HealthReport:
        return run_health_checks(
            supabase=self.applicants,
            sheets=self.sheets,
            gmail=self.fetcher,
            drive=self.storage,
            llm=self.contact_resolver.llm if self.contact_resolver.enable_llm else None,
        )

    def check_services(self) -> HealthReport:
        """Run connectivity checks; raises CriticalServiceError on a critical failure."""
        report = self.health_report()
        require_critical_services(report)
        return report

    def run(self) -> RunStats:
        """Health checks, header init, one batch, then the stats report."""
        self.check_services()
        if self.settings.dry_run:
            logger.info("DRY RUN: sheet headers not checked")
        else:
            self.sheets.initialize()

        self.process_batch()
        write_report(self.stats, self.settings)
        return self.stats

    def process_batch(self, limit: Optional[int] = None) -> RunStats:
        messages = self.fetcher.fetch_messages(limit or self.settings.batch_size)
        self.stats.found += len(messages)
        logger.info(f"Processing {len(messages)} messages")

        for index, message in enumerate(messages, start=1):
            logger.info(f"[{index}/{len(messages)}] {message.subject!r} ({message.id})")
            self.process_message(message)

        self.stats.finish()
        return self.stats

    # ------------------------------------------------------------------
    # Per message
    # ------------------------------------------------------------------

    def process_message(self, message: NormalizedMessage) -> Optional[LedgerStatus]:
        """
        Process one message and return the ledger status it ended with.

        Returns None when the ledger already holds the message.
        """
        if self.dedup.is_processed(message.id):
            self.stats.already_processed += 1
            return None

        try:
            return self._process(message)
        except Exception as e:
            logger.error(f"Error processing message {message.id}: {e}")
            self.stats.record_error(message.id, str(e))
            self._mark(message, LedgerStatus.ERROR, {"error": str(e)})
            return LedgerStatus.ERROR

    def _process(self, message: NormalizedMessage) -> LedgerStatus:
        if self._is_too_old(message):
            return self._skip(message, SKIP_TOO_OLD)

        if not self.classifier.is_application(message):
            return self._skip(message, SKIP_NOT_APPLICATION)

        record = self.extractor.extract(message)
        self.stats.record_extraction(record.extracted_fields())
        if not record.name:
            return self._skip(message, SKIP_NO_NAME)

        resume = self.attachments.process(message)
        if resume.text_extracted:
            self.stats.resumes_extracted += 1
        record.resume_text = resume.resume_text
        record.resume_storage_link = resume.storage_link

        contact = self.contact_resolver.resolve(
            message, resume.resume_text if resume.text_extracted else None
        )
        record.apply_contact(contact)
        if not record.email:
            return self._skip(message, SKIP_NO_EMAIL)

        if self.dedup.is_duplicate_applicant(record.email, record.project_id):
            self.stats.duplicates += 1
            self._mark(message, LedgerStatus.DUPLICATE, {"email": record.email, "project_id": record.project_id})
            return LedgerStatus.DUPLICATE

        processed_at = self._clock().isoformat()
        if self.settings.dry_run:
            logger.info(f"DRY RUN: would write applicant {record.name} <{record.email}>")
        else:
            self.sheets.append_candidate(record, message.id, processed_at)
            self.applicants.upsert(record, message.id, processed_at)

        self.stats.processed += 1
        self._mark(message, LedgerStatus.SUCCESS, {"email": record.email, "name": record.name})
        logger.info(f"Processed applicant: {record.name} ({record.email})")
        return LedgerStatus.SUCCESS

    def _is_too_old(self, message: NormalizedMessage) -> bool:
        if message.date is None:
            return False
        return message.date < self._clock() - timedelta(days=self.settings.max_email_age_days)

    def _skip(self, message: NormalizedMessage, reason: str) -> LedgerStatus:
        logger.info(f"Skipping message {message.id}: {reason}")
        self.stats.record_skip(reason)
        self._mark(message, LedgerStatus.SKIPPED, {"reason": reason})
        return LedgerStatus.SKIPPED

    def _mark(self, message: NormalizedMessage, status: LedgerStatus, metadata: dict) -> None:
        metadata = {"subject": message.subject, **metadata}
        try:
            self.dedup.mark_processed(message.id, status, metadata)
        except Exception as e:
            # The message will be picked up again on the next run.
            logger.error(f"Failed to record {status.value} for message {message.id}: {e}")


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------

def build_dedup_tracker(
    settings: Settings,
    supabase_client: Any = None,
    applicants: Optional[ApplicantRepository] = None,
) -> DedupTracker:
    client = supabase_client or create_supabase_client(settings)
    store = SupabaseLedgerStore(client, settings)
    if settings.dry_run:
        store = DryRunLedgerStore(store)
    return DedupTracker(store, applicants=applicants or ApplicantRepository(client, settings))


def build_processor(settings: Settings, supabase_client: Any = None) -> ApplicantProcessor:
    """
    Wire every production collaborator from ``settings``.

    Raises:
        ConfigError: If required configuration is missing.
    """
    settings.validate_required()
    client = supabase_client or create_supabase_client(settings)

    fetcher = GmailMessageFetcher(settings)
    storage = DriveStorage(settings)
    applicants = ApplicantRepository(client, settings)
    llm = create_contact_extractor(settings) if settings.enable_gpt else None

    return ApplicantProcessor(
        settings,
        fetcher=fetcher,
        dedup=build_dedup_tracker(settings, client, applicants),
        attachments=AttachmentProcessor(settings, fetcher, storage, ResumeTextExtractor(ocr=storage)),
        contact_resolver=ContactResolver(llm=llm, enable_llm=settings.enable_gpt),
        sheets=SheetsSink(settings),
        applicants=applicants,
        storage=storage,
    )
