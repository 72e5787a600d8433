"""
Applicant Pipeline API
FastAPI application exposing health checks, ledger views and a run trigger.
"""

import logging

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse

from applicant_pipeline import __version__
from applicant_pipeline.config import Settings
from applicant_pipeline.dependencies import get_settings
from applicant_pipeline.exceptions import ConfigError
from applicant_pipeline.logging_config import LOG_FORMAT
from applicant_pipeline.routers import ledger, runs
from applicant_pipeline.services.orchestrator import build_processor

# Configure logging to output to console
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Applicant Pipeline API",
    description="LinkedIn application email ingestion into Google Sheets and Supabase",
    version=__version__,
)

# Include routers
app.include_router(ledger.router, prefix="/api/ledger", tags=["ledger"])
app.include_router(runs.router, prefix="/api/runs", tags=["runs"])


@app.get("/")
async def root():
    return {"message": "Applicant Pipeline API", "version": __version__}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/health/services")
def health_services(settings: Settings = Depends(get_settings)):
    """
    Run the startup connectivity checks against every external service.

    Returns 503 when a critical service (Supabase, Sheets, Gmail, LLM) fails;
    a Drive failure is reported but keeps the status at 200.
    """
    try:
        processor = build_processor(settings)
    except ConfigError as e:
        logger.error(f"Service health check not possible: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    report = processor.health_report()
    body = {
        "status": "ok" if not report.failed_critical else "error",
        "failed_critical": report.failed_critical,
        "checks": [check.model_dump() for check in report.checks],
    }
    return JSONResponse(status_code=503 if report.failed_critical else 200, content=body)
