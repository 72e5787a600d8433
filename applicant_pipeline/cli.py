"""
Command-line entry point.

    applicant-pipeline run            process one batch (default)
    applicant-pipeline health         connectivity checks only
    applicant-pipeline ledger-stats   ledger counts per status
    applicant-pipeline cleanup [--days N]

Exit status is 0 on success and 1 on any fatal error.
"""

import argparse
import json
import logging
import sys
from typing import Optional

from applicant_pipeline.config import Settings
from applicant_pipeline.exceptions import PipelineError
from applicant_pipeline.logging_config import configure_logging
from applicant_pipeline.services.orchestrator import build_dedup_tracker, build_processor

logger = logging.getLogger(__name__)


def _run(settings: Settings, args: argparse.Namespace) -> int:
    logger.info("===== APPLICANT PROCESSOR STARTING =====")
    logger.info(
        f"Batch size: {settings.batch_size}, max age: {settings.max_email_age_days}d, "
        f"OCR: {settings.enable_ocr}, GPT: {settings.enable_gpt}, dry run: {settings.dry_run}"
    )
    stats = build_processor(settings).run()
    logger.info(f"Run complete: {stats.processed} processed, {stats.errors} errors")
    return 0


def _health(settings: Settings, args: argparse.Namespace) -> int:
    report = build_processor(settings).health_report()
    if report.healthy:
        logger.info("All systems operational")
    elif report.failed_critical:
        logger.error(f"Critical services failing: {', '.join(report.failed_critical)}")
        return 1
    else:
        logger.warning("Some non-critical services need attention")
    return 0


def _ledger_stats(settings: Settings, args: argparse.Namespace) -> int:
    stats = build_dedup_tracker(settings).stats()
    print(json.dumps(stats.model_dump(mode="json"), indent=2))
    return 0


def _cleanup(settings: Settings, args: argparse.Namespace) -> int:
    days = args.days or settings.ledger_retention_days
    deleted = build_dedup_tracker(settings).cleanup(days)
    print(f"Deleted {deleted} ledger entries older than {days} days")
    return 0


_COMMANDS = {
    "run": _run,
    "health": _health,
    "ledger-stats": _ledger_stats,
    "cleanup": _cleanup,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="applicant-pipeline",
        description="Ingest LinkedIn application emails into Google Sheets and Supabase.",
    )
    parser.add_argument("command", nargs="?", default="run", choices=sorted(_COMMANDS))
    parser.add_argument("--days", type=int, help="retention window for cleanup (default LEDGER_RETENTION_DAYS)")
    parser.add_argument("--no-log-files", action="store_true", help="log to the console only")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.days is not None and args.days < 1:
        print("--days must be at least 1", file=sys.stderr)
        return 1

    try:
        settings = Settings.from_env()
    except (PipelineError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    configure_logging(settings, log_to_files=not args.no_log_files)

    try:
        return _COMMANDS[args.command](settings, args)
    except PipelineError as e:
        logger.error(f"Fatal: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected fatal error: {e}")
        return 1
