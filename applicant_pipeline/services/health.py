"""
Startup connectivity checks.

Each collaborator exposes ``test_connection()``. Supabase, Sheets, Gmail and
(when GPT extraction is on) the LLM are critical: any failure among them
stops the run. Drive is only needed for resume backup and OCR, so a Drive
failure is reported but does not block processing.
"""

import logging
from typing import Any, Callable, Optional

from pydantic import BaseModel

from applicant_pipeline.exceptions import CriticalServiceError

logger = logging.getLogger(__name__)


class ServiceCheck(BaseModel):
    name: str
    critical: bool
    ok: bool
    detail: Optional[str] = None
    error: Optional[str] = None


class HealthReport(BaseModel):
    checks: list[ServiceCheck] = []

    @property
    def healthy(self) -> bool:
        return all(c.ok for c in self.checks)

    @property
    def failed_critical(self) -> list[str]:
        return [c.name for c in self.checks if c.critical and not c.ok]


def _check(name: str, probe: Callable[[], Any], critical: bool) -> ServiceCheck:
    logger.info(f"Testing {name}...")
    try:
        detail = probe()
    except Exception as e:
        if critical:
            logger.error(f"{name}: {e}")
        else:
            logger.warning(f"{name} unavailable (non-critical): {e}")
        return ServiceCheck(name=name, critical=critical, ok=False, error=str(e))
    logger.info(f"{name}: OK")
    return ServiceCheck(name=name, critical=critical, ok=True, detail=str(detail) if detail else None)


def run_health_checks(
    *,
    supabase: Any,
    sheets: Any,
    gmail: Any,
    drive: Any = None,
    llm: Any = None,
) -> HealthReport:
    """
    Check every collaborator and return the report without raising.

    ``llm`` is None when GPT extraction is disabled; ``drive`` is None when
    no Drive folder is configured.
    """
    probes: list[tuple[str, Any, bool]] = [
        ("Supabase", supabase, True),
        ("Google Sheets", sheets, True),
        ("Gmail", gmail, True),
    ]
    if llm is not None:
        probes.append(("LLM", llm, True))
    if drive is not None:
        probes.append(("Google Drive", drive, False))

    report = HealthReport(checks=[_check(name, svc.test_connection, critical) for name, svc, critical in probes])
    healthy = sum(1 for c in report.checks if c.ok)
    logger.info(f"Health check complete: {healthy}/{len(report.checks)} services healthy")
    return report


def require_critical_services(report: HealthReport) -> None:
    """Raise CriticalServiceError if any critical check failed."""
    failed = report.failed_critical
    if failed:
        raise CriticalServiceError(failed)
