"""
Google API credentials and service construction.

Two credential modes:
  - Service account (GOOGLE_SERVICE_ACCOUNT_JSON), optionally impersonating
    GMAIL_USER_EMAIL through domain-wide delegation.
  - OAuth2 refresh token (GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET /
    GOOGLE_REFRESH_TOKEN) for a personal mailbox.
"""

import json
import logging
from typing import Any

import httplib2
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build

from applicant_pipeline.config import Settings
from applicant_pipeline.exceptions import ConfigError

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"

GMAIL_SCOPES = [
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.modify",
]
DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]
SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

ALL_SCOPES = GMAIL_SCOPES + DRIVE_SCOPES + SHEETS_SCOPES


def make_credentials(settings: Settings, scopes: list[str], impersonate: bool = False):
    """
    Create Google credentials from settings.

    ``impersonate`` applies only to service accounts: the credentials act as
    GMAIL_USER_EMAIL, which Gmail requires for a delegated mailbox.
    """
    if settings.uses_service_account:
        try:
            info = json.loads(settings.google_service_account_json)
        except json.JSONDecodeError as e:
            raise ConfigError("Invalid GOOGLE_SERVICE_ACCOUNT_JSON") from e
        creds = service_account.Credentials.from_service_account_info(info, scopes=scopes)
        if impersonate and settings.gmail_user_email:
            creds = creds.with_subject(settings.gmail_user_email)
        return creds

    if not all([settings.google_client_id, settings.google_client_secret, settings.google_refresh_token]):
        raise ConfigError(
            "Google OAuth credentials not configured: set GOOGLE_CLIENT_ID, "
            "GOOGLE_CLIENT_SECRET and GOOGLE_REFRESH_TOKEN, or GOOGLE_SERVICE_ACCOUNT_JSON",
        )
    # Access token is fetched lazily on the first request.
    return Credentials(
        token=None,
        refresh_token=settings.google_refresh_token,
        token_uri=TOKEN_URI,
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        scopes=scopes,
    )


def build_service(settings: Settings, name: str, version: str, scopes: list[str], impersonate: bool = False) -> Any:
    creds = make_credentials(settings, scopes, impersonate=impersonate)
    logger.debug(f"Building Google {name} {version} client")
    # Per-request socket timeout; the default client waits indefinitely.
    http = AuthorizedHttp(creds, http=httplib2.Http(timeout=settings.request_timeout_seconds))
    return build(name, version, http=http, cache_discovery=False)
