"""
Pipeline configuration.

Settings are read from the environment (and a local .env file) exactly once
at process start by ``Settings.from_env()``. The resulting object is passed
into every component constructor; nothing below this module reads
``os.environ`` directly.

Environment variables
---------------------
BATCH_SIZE              Messages fetched per run (default 10 locally, 200 on CI).
MAX_EMAIL_AGE_DAYS      Skip messages older than this (default 14 locally, 7 on CI).
ENABLE_OCR              Extract resume text from attachments (default true).
ENABLE_GPT              Use the LLM for contact extraction (default true).
DRY_RUN                 Skip every write: sheet, database, and ledger (default false).
DEBUG_MODE              Debug-level logging (default false).
"""

import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from applicant_pipeline.exceptions import ConfigError

# Header row for the applicant sheet; also the column order of every appended row.
SHEET_HEADERS = [
    "Name",
    "Title",
    "Location",
    "Expected Compensation",
    "Project ID",
    "Screening Questions",
    "Resume Text",
    "Resume Link",
    "Mobile Number",
    "Email",
    "LinkedIn URL",
    "Processed At",
    "Source Message ID",
]

CONTACT_EXTRACTION_PROMPT = """\
Extract contact information from this resume text. Return ONLY a valid JSON object with these exact fields:

{
  "mobile_number": "phone number (include country code if present, format: +91-9876543210 or 9876543210)",
  "email": "email address (must be valid email format)",
  "linkedin_url": "LinkedIn profile URL (complete URL starting with https://)"
}

IMPORTANT RULES:
1. Return ONLY the JSON object, no markdown formatting, no code blocks, no explanatory text
2. If any field is not found, use null
3. For mobile_number: extract complete phone number with country code if available
4. For email: must be a valid email address format
5. For linkedin_url: must be complete LinkedIn profile URL

Resume text:"""

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def _env_str(env: Mapping[str, str], name: str, default: Optional[str] = None) -> Optional[str]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip()


class Settings(BaseModel):
    """Runtime configuration for one pipeline process."""

    # Run behaviour
    batch_size: int = Field(default=10, ge=1)
    max_email_age_days: int = Field(default=14, ge=1)
    enable_ocr: bool = True
    enable_gpt: bool = True
    dry_run: bool = False
    debug_mode: bool = False
    is_ci: bool = False

    # Supabase
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    applicants_table: str = "applicant_details"
    ledger_table: str = "processed_messages"
    # "email" or "email,project_id"
    applicant_conflict_key: str = "email"
    ledger_retention_days: int = 30

    # Google
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    google_refresh_token: Optional[str] = None
    google_service_account_json: Optional[str] = None
    gmail_user_email: Optional[str] = None
    google_sheet_id: Optional[str] = None
    google_drive_folder_id: Optional[str] = None
    sheet_name: str = "Sheet1"

    # LLM
    llm_provider: str = "openai"
    # None selects the provider default (gpt-4o-mini / Claude Sonnet)
    llm_model: Optional[str] = None
    llm_max_tokens: int = 200
    llm_temperature: float = 0.1
    llm_timeout_seconds: float = 20.0
    llm_max_resume_chars: int = 12000
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    contact_prompt: str = CONTACT_EXTRACTION_PROMPT

    # Network / retry
    request_timeout_seconds: float = 30.0
    retry_attempts: int = Field(default=3, ge=1)
    retry_base_delay: float = 1.0
    detail_batch_size: int = Field(default=50, ge=1, le=100)
    detail_batch_delay: float = 1.0

    # Output
    report_path: str = "stats.json"
    log_dir: str = "logs"
    run_trigger_secret: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        When ``env`` is omitted, a ``.env`` file in the working directory is
        loaded first (existing variables win) and ``os.environ`` is used.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        is_ci = bool(env.get("GITHUB_ACTIONS"))

        return cls(
            batch_size=_env_int(env, "BATCH_SIZE", 200 if is_ci else 10),
            max_email_age_days=_env_int(env, "MAX_EMAIL_AGE_DAYS", 7 if is_ci else 14),
            enable_ocr=_env_bool(env, "ENABLE_OCR", True),
            enable_gpt=_env_bool(env, "ENABLE_GPT", True),
            dry_run=_env_bool(env, "DRY_RUN", False),
            debug_mode=_env_bool(env, "DEBUG_MODE", False),
            is_ci=is_ci,
            supabase_url=_env_str(env, "SUPABASE_URL"),
            supabase_key=_env_str(env, "SUPABASE_KEY"),
            applicants_table=_env_str(env, "APPLICANTS_TABLE", "applicant_details"),
            ledger_table=_env_str(env, "LEDGER_TABLE", "processed_messages"),
            applicant_conflict_key=_env_str(env, "APPLICANT_CONFLICT_KEY", "email"),
            ledger_retention_days=_env_int(env, "LEDGER_RETENTION_DAYS", 30),
            google_client_id=_env_str(env, "GOOGLE_CLIENT_ID"),
            google_client_secret=_env_str(env, "GOOGLE_CLIENT_SECRET"),
            google_refresh_token=_env_str(env, "GOOGLE_REFRESH_TOKEN"),
            google_service_account_json=_env_str(env, "GOOGLE_SERVICE_ACCOUNT_JSON"),
            gmail_user_email=_env_str(env, "GMAIL_USER_EMAIL"),
            google_sheet_id=_env_str(env, "GOOGLE_SHEET_ID"),
            google_drive_folder_id=_env_str(env, "GOOGLE_DRIVE_FOLDER_ID"),
            sheet_name=_env_str(env, "GOOGLE_SHEET_NAME", "Sheet1"),
            llm_provider=_env_str(env, "LLM_PROVIDER", "openai").lower(),
            llm_model=_env_str(env, "LLM_MODEL"),
            llm_max_tokens=_env_int(env, "LLM_MAX_TOKENS", 200),
            llm_temperature=_env_float(env, "LLM_TEMPERATURE", 0.1),
            llm_timeout_seconds=_env_float(env, "LLM_TIMEOUT_SECONDS", 20.0),
            openai_api_key=_env_str(env, "OPENAI_API_KEY"),
            anthropic_api_key=_env_str(env, "ANTHROPIC_API_KEY"),
            request_timeout_seconds=_env_float(env, "REQUEST_TIMEOUT_SECONDS", 30.0),
            retry_attempts=_env_int(env, "RETRY_ATTEMPTS", 3),
            retry_base_delay=_env_float(env, "RETRY_BASE_DELAY", 1.0),
            detail_batch_size=_env_int(env, "DETAIL_BATCH_SIZE", 50),
            detail_batch_delay=_env_float(env, "DETAIL_BATCH_DELAY", 1.0),
            report_path=_env_str(env, "REPORT_PATH", "stats.json"),
            log_dir=_env_str(env, "LOG_DIR", "logs"),
            run_trigger_secret=_env_str(env, "RUN_TRIGGER_SECRET"),
        )

    @property
    def uses_service_account(self) -> bool:
        return bool(self.google_service_account_json)

    @property
    def conflict_columns(self) -> list[str]:
        return [c.strip() for c in self.applicant_conflict_key.split(",") if c.strip()]

    def missing_required(self) -> list[str]:
        """
        Return the names of required environment variables that are unset.

        Google access needs either a service account or the OAuth trio
        (client id, client secret, refresh token). The LLM key is only
        required when GPT extraction is enabled.
        """
        missing = []
        required = {
            "SUPABASE_URL": self.supabase_url,
            "SUPABASE_KEY": self.supabase_key,
            "GOOGLE_SHEET_ID": self.google_sheet_id,
            "GOOGLE_DRIVE_FOLDER_ID": self.google_drive_folder_id,
        }
        if not self.uses_service_account:
            required.update({
                "GOOGLE_CLIENT_ID": self.google_client_id,
                "GOOGLE_CLIENT_SECRET": self.google_client_secret,
                "GOOGLE_REFRESH_TOKEN": self.google_refresh_token,
            })
        if self.enable_gpt:
            if self.llm_provider == "anthropic":
                required["ANTHROPIC_API_KEY"] = self.anthropic_api_key
            else:
                required["OPENAI_API_KEY"] = self.openai_api_key

        for name, value in required.items():
            if not value:
                missing.append(name)
        return missing

    def validate_required(self) -> None:
        """Raise ConfigError naming every missing required variable."""
        missing = self.missing_required()
        if missing:
            raise ConfigError(
                f"Missing {len(missing)} required environment variable(s): {', '.join(missing)}",
                missing=missing,
            )
