"""
Processed-message ledger endpoints.

Endpoints:
  GET  /stats     counts per status and the latest entry
  GET  /recent    newest ledger entries (?limit=N, 1-100)
  POST /cleanup   delete entries older than ?days=N (auth: X-Run-Secret)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from applicant_pipeline.auth import verify_run_secret
from applicant_pipeline.config import Settings
from applicant_pipeline.dependencies import get_dedup_tracker, get_settings
from applicant_pipeline.models.ledger import LedgerStats, ProcessingLedgerEntry
from applicant_pipeline.services.dedup import DedupTracker

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/stats", response_model=LedgerStats)
def ledger_stats(dedup: DedupTracker = Depends(get_dedup_tracker)) -> LedgerStats:
    try:
        return dedup.stats()
    except Exception as e:
        logger.error(f"Ledger stats query failed: {e}")
        raise HTTPException(status_code=503, detail=f"Ledger unavailable: {e}")


@router.get("/recent", response_model=list[ProcessingLedgerEntry])
def ledger_recent(
    limit: int = Query(10, ge=1, le=100),
    dedup: DedupTracker = Depends(get_dedup_tracker),
) -> list[ProcessingLedgerEntry]:
    try:
        return dedup.recent(limit)
    except Exception as e:
        logger.error(f"Ledger recent query failed: {e}")
        raise HTTPException(status_code=503, detail=f"Ledger unavailable: {e}")


@router.post("/cleanup")
def ledger_cleanup(
    days: Optional[int] = Query(None, ge=1),
    _: None = Depends(verify_run_secret),
    settings: Settings = Depends(get_settings),
    dedup: DedupTracker = Depends(get_dedup_tracker),
) -> dict:
    days_to_keep = days or settings.ledger_retention_days
    deleted = dedup.cleanup(days_to_keep)
    return {"deleted": deleted, "days_to_keep": days_to_keep}
