"""
End-of-run report: stats.json plus a log summary.
"""

import json
import logging
import platform
from pathlib import Path
from typing import Optional

from applicant_pipeline.config import Settings
from applicant_pipeline.models.run import RunStats

logger = logging.getLogger(__name__)

# Fields extracted less often than this are flagged for pattern review.
LOW_HIT_RATE_THRESHOLD = 70.0


def build_report(stats: RunStats, settings: Settings) -> dict:
    success_rate = round(stats.processed / stats.found * 100, 1) if stats.found else 0.0
    return {
        **stats.model_dump(mode="json", exclude={"field_hits"}),
        "duration_seconds": stats.duration_seconds,
        "success_rate": success_rate,
        "field_hit_rates": stats.hit_rates(),
        "field_hits": {name: bucket.model_dump() for name, bucket in stats.field_hits.items()},
        "environment": {
            "python_version": platform.python_version(),
            "platform": platform.system().lower(),
            "ci": settings.is_ci,
            "debug_mode": settings.debug_mode,
            "dry_run": settings.dry_run,
            "llm_provider": settings.llm_provider if settings.enable_gpt else None,
        },
    }


def low_hit_rate_fields(stats: RunStats, threshold: float = LOW_HIT_RATE_THRESHOLD) -> dict[str, float]:
    """Fields below ``threshold`` percent, ignoring fields never attempted."""
    return {
        name: bucket.rate
        for name, bucket in stats.field_hits.items()
        if bucket.attempts and bucket.rate < threshold
    }


def log_summary(stats: RunStats) -> None:
    logger.info("===== PROCESSING SUMMARY =====")
    logger.info(f"Emails found: {stats.found}")
    logger.info(f"Applicants processed: {stats.processed}")
    logger.info(f"Skipped: {stats.skipped} {stats.skip_reasons or ''}")
    logger.info(f"Already processed: {stats.already_processed}")
    logger.info(f"Resumes with extracted text: {stats.resumes_extracted}")
    logger.info(f"Duplicates: {stats.duplicates}")
    logger.info(f"Errors: {stats.errors}")
    if stats.duration_seconds is not None:
        logger.info(f"Duration: {stats.duration_seconds}s")

    for name, bucket in stats.field_hits.items():
        logger.info(f"{name} extraction: {bucket.rate}% ({bucket.hits}/{bucket.attempts})")

    for index, error in enumerate(stats.error_messages, start=1):
        logger.warning(f"  {index}. {error}")

    for name, rate in low_hit_rate_fields(stats).items():
        logger.warning(f"Low extraction rate for {name}: {rate}% - consider reviewing its patterns")


def write_report(stats: RunStats, settings: Settings, path: Optional[str] = None) -> Path:
    """Write the JSON report and log the summary. Returns the report path."""
    target = Path(path or settings.report_path)
    if target.parent != Path("."):
        target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(build_report(stats, settings), indent=2))
    log_summary(stats)
    logger.info(f"Run report written to {target}")
    return target
