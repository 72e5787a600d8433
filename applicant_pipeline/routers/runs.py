"""
Run trigger endpoint.

POST / starts one ingestion run in a background task and returns 202
immediately. The run itself logs its outcome and writes the stats report;
failures never surface in the HTTP response.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from applicant_pipeline.auth import verify_run_secret
from applicant_pipeline.config import Settings
from applicant_pipeline.dependencies import get_settings
from applicant_pipeline.services.orchestrator import build_processor

logger = logging.getLogger(__name__)

router = APIRouter()


def execute_run(settings: Settings) -> None:
    """Background task body: one full run, errors logged."""
    try:
        stats = build_processor(settings).run()
    except Exception as e:
        logger.error(f"Triggered run failed: {e}")
        return
    logger.info(f"Triggered run finished: {stats.processed} processed, {stats.errors} errors")


@router.post("", status_code=202)
def trigger_run(
    background_tasks: BackgroundTasks,
    _: None = Depends(verify_run_secret),
    settings: Settings = Depends(get_settings),
) -> dict:
    missing = settings.missing_required()
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing configuration: {', '.join(missing)}")

    background_tasks.add_task(execute_run, settings)
    logger.info("Ingestion run queued")
    return {"status": "queued", "dry_run": settings.dry_run, "batch_size": settings.batch_size}
