"""
Shared-secret check for the endpoints that trigger work.

Callers send the secret in the ``X-Run-Secret`` header; it must equal
RUN_TRIGGER_SECRET. With no secret configured every such request is rejected.
"""

import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException

from applicant_pipeline.config import Settings
from applicant_pipeline.dependencies import get_settings

logger = logging.getLogger(__name__)


def verify_run_secret(
    x_run_secret: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Raises:
        HTTPException: 401 if the secret is unconfigured, missing, or wrong.
    """
    expected = settings.run_trigger_secret
    if not expected:
        logger.warning("RUN_TRIGGER_SECRET is not configured - all run requests will be rejected")
        raise HTTPException(status_code=401, detail="Run secret not configured")

    if not x_run_secret or not hmac.compare_digest(x_run_secret, expected):
        raise HTTPException(status_code=401, detail="Invalid run secret")
