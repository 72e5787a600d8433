"""
Exception types raised by the applicant pipeline.

Extraction and classification never raise; these cover configuration,
startup connectivity, and failed calls to external services.
"""


class PipelineError(Exception):
    """Base class for pipeline errors."""


class ConfigError(PipelineError):
    """Required configuration is missing or invalid."""

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []


class CollaboratorError(PipelineError):
    """An external service call failed (Gmail, Drive, Sheets, Supabase, LLM)."""

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}")
        self.service = service


class CriticalServiceError(PipelineError):
    """One or more critical services failed the startup connectivity check."""

    def __init__(self, failed: list[str]):
        super().__init__(
            f"{len(failed)} critical service(s) failed - cannot proceed: {', '.join(failed)}"
        )
        self.failed = failed
