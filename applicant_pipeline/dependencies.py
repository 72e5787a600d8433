"""
FastAPI dependencies shared by the routers.

Settings are read from the environment once per process; tests replace
these providers through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends

from applicant_pipeline.config import Settings
from applicant_pipeline.services.dedup import DedupTracker
from applicant_pipeline.services.orchestrator import build_dedup_tracker


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


def get_dedup_tracker(settings: Settings = Depends(get_settings)) -> DedupTracker:
    return build_dedup_tracker(settings)
