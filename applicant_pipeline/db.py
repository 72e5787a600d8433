"""
Database client configuration.
Uses Supabase (PostgREST) for the applicant table and the processed-message ledger.
"""

from supabase import create_client, Client

from applicant_pipeline.config import Settings
from applicant_pipeline.exceptions import ConfigError


def create_supabase_client(settings: Settings) -> Client:
    """Build a Supabase client from settings. Raises ConfigError when unconfigured."""
    if not settings.supabase_url or not settings.supabase_key:
        raise ConfigError(
            "SUPABASE_URL and SUPABASE_KEY must be set in environment variables",
            missing=[n for n, v in (("SUPABASE_URL", settings.supabase_url),
                                    ("SUPABASE_KEY", settings.supabase_key)) if not v],
        )
    return create_client(settings.supabase_url, settings.supabase_key)
