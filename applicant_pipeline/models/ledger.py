"""
Pydantic models for the processed-message ledger.
"""

import json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, field_validator


class LedgerStatus(str, Enum):
    SUCCESS = "success"
    DUPLICATE = "duplicate"
    SKIPPED = "skipped"
    ERROR = "error"


class ProcessingLedgerEntry(BaseModel):
    """
    One row per distinct message id.

    Written on the first processing attempt and overwritten (upserted) by any
    later attempt for the same message id.
    """
    model_config = {"from_attributes": True}

    message_id: str
    status: LedgerStatus
    processed_at: str
    metadata: Optional[dict[str, Any]] = None
    error_details: Optional[str] = None

    @field_validator("metadata", mode="before")
    @classmethod
    def parse_metadata(cls, v):
        # Older rows stored metadata as a JSON-encoded string.
        if isinstance(v, str):
            if not v.strip():
                return None
            return json.loads(v)
        return v


class LedgerStats(BaseModel):
    """Aggregate counts over the whole ledger."""
    total: int = 0
    success: int = 0
    duplicate: int = 0
    skipped: int = 0
    error: int = 0
    latest: Optional[ProcessingLedgerEntry] = None
