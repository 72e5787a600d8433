"""
LLM-backed contact extraction.

Sends resume text to a chat model with a fixed instruction to return a JSON
object ``{mobile_number, email, linkedin_url}`` and parses the reply.

Supported providers (``LLM_PROVIDER``):
  openai     OpenAI chat completions (default model gpt-4o-mini)
  anthropic  Anthropic messages API

To add a provider:
  1. Write a class with ``extract_contact(resume_text) -> dict``.
  2. Register it in _PROVIDERS.
"""

import json
import logging
from typing import Any, Callable, Optional

import anthropic
from openai import OpenAI

from applicant_pipeline.config import Settings
from applicant_pipeline.exceptions import CollaboratorError, ConfigError
from applicant_pipeline.services.retry import with_retry
from applicant_pipeline.services.text import truncate

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ("mobile_number", "email", "linkedin_url")

OPENAI_DEFAULT_MODEL = "gpt-4o-mini"
ANTHROPIC_DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

SYSTEM_PROMPT = (
    "You are a contact information extraction expert. "
    "Return only valid JSON objects without any markdown formatting."
)


def strip_code_fences(raw_text: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```) if present."""
    json_text = raw_text.strip()
    if json_text.startswith("```"):
        lines = json_text.split("\n")
        lines = [l for l in lines if not l.strip().startswith("```")]
        json_text = "\n".join(lines)
    return json_text.strip()


def parse_contact_json(raw_text: str) -> dict[str, Optional[str]]:
    """
    Parse the model reply into a contact dict.

    Missing keys, JSON nulls, empty strings and the literal string "null"
    all map to None. Raises ValueError if the reply is not a JSON object.
    """
    data = json.loads(strip_code_fences(raw_text))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

    contact: dict[str, Optional[str]] = {}
    for field in CONTACT_FIELDS:
        value = data.get(field)
        if value is None:
            contact[field] = None
            continue
        value = str(value).strip()
        contact[field] = None if value.lower() in ("", "null", "none", "n/a") else value
    return contact


def _build_prompt(settings: Settings, resume_text: str) -> str:
    return f"{settings.contact_prompt}\n{truncate(resume_text, settings.llm_max_resume_chars)}"


class OpenAIContactExtractor:
    """Contact extraction through OpenAI chat completions."""

    provider = "openai"

    def __init__(self, settings: Settings, client: Any = None):
        self.settings = settings
        self.model = settings.llm_model or OPENAI_DEFAULT_MODEL
        # The SDK's own retries are disabled; with_retry owns backoff.
        self.client = client or OpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.llm_timeout_seconds,
            max_retries=0,
        )

    def complete(self, prompt: str) -> str:
        response = with_retry(
            lambda: self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.settings.llm_max_tokens,
                temperature=self.settings.llm_temperature,
            ),
            max_attempts=self.settings.retry_attempts,
            base_delay=self.settings.retry_base_delay,
        )
        return response.choices[0].message.content or ""

    def test_connection(self) -> None:
        self.client.models.list()

    def extract_contact(self, resume_text: str) -> dict[str, Optional[str]]:
        return _extract(self, resume_text)


class AnthropicContactExtractor:
    """Contact extraction through the Anthropic messages API."""

    provider = "anthropic"

    def __init__(self, settings: Settings, client: Any = None):
        self.settings = settings
        self.model = settings.llm_model or ANTHROPIC_DEFAULT_MODEL
        self.client = client or anthropic.Anthropic(
            api_key=settings.anthropic_api_key,
            timeout=settings.llm_timeout_seconds,
            max_retries=0,
        )

    def complete(self, prompt: str) -> str:
        response = with_retry(
            lambda: self.client.messages.create(
                model=self.model,
                max_tokens=self.settings.llm_max_tokens,
                temperature=self.settings.llm_temperature,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            ),
            max_attempts=self.settings.retry_attempts,
            base_delay=self.settings.retry_base_delay,
        )
        return response.content[0].text

    def test_connection(self) -> None:
        self.client.models.list()

    def extract_contact(self, resume_text: str) -> dict[str, Optional[str]]:
        return _extract(self, resume_text)


def _extract(extractor, resume_text: str) -> dict[str, Optional[str]]:
    """
    Shared request/parse path for every provider.

    Raises CollaboratorError on any failure (transport, timeout, non-2xx,
    malformed JSON); the contact resolver decides what to do with it.
    """
    prompt = _build_prompt(extractor.settings, resume_text)
    try:
        raw_text = extractor.complete(prompt)
    except Exception as e:
        raise CollaboratorError(extractor.provider, f"Contact extraction request failed: {e}") from e

    try:
        contact = parse_contact_json(raw_text)
    except ValueError as e:
        # json.JSONDecodeError is a ValueError subclass
        raise CollaboratorError(extractor.provider, f"Unparseable contact JSON: {e}") from e

    logger.debug(f"LLM contact fields: {[k for k, v in contact.items() if v]}")
    return contact


_PROVIDERS: dict[str, Callable[..., Any]] = {
    "openai": OpenAIContactExtractor,
    "anthropic": AnthropicContactExtractor,
}


def create_contact_extractor(settings: Settings, client: Any = None):
    """
    Build the configured contact extractor.

    Raises:
        ConfigError: If LLM_PROVIDER names an unknown provider.
    """
    factory = _PROVIDERS.get(settings.llm_provider)
    if factory is None:
        raise ConfigError(
            f"Unknown LLM_PROVIDER '{settings.llm_provider}'. "
            f"Supported providers: {sorted(_PROVIDERS)}"
        )
    return factory(settings, client=client)
