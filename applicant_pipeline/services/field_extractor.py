"""
Applicant field extraction.

``FieldExtractor.extract`` turns a classified message into a partially
populated CandidateRecord. Each field is resolved independently by walking
its ordered rules (see ``patterns.FIELD_SPECS``) against the message sources;
the first cleaned value that passes the field's validator wins. A field with
no accepted match stays None. Extraction never raises.
"""

import logging
from typing import Iterable, Optional

from applicant_pipeline.models.candidate import CandidateRecord
from applicant_pipeline.models.message import NormalizedMessage
from applicant_pipeline.services.patterns import (
    BODY,
    FIELD_SPECS,
    HTML,
    RAW_HTML,
    SUBJECT,
    FieldSpec,
)
from applicant_pipeline.services.text import html_to_text

logger = logging.getLogger(__name__)


def message_sources(message: NormalizedMessage) -> dict[str, str]:
    """Build the named text sources the extraction rules run against."""
    return {
        SUBJECT: message.subject or "",
        BODY: message.body_text or "",
        HTML: html_to_text(message.body_html or ""),
        RAW_HTML: message.body_html or "",
    }


def extract_field(spec: FieldSpec, sources: dict[str, str]) -> Optional[str]:
    """
    Return the first validated value for one field, or None.

    Rules are tried in order; within a rule, sources are tried in the
    rule's source order. Empty sources are skipped.
    """
    for rule in spec.rules:
        for source_name in rule.sources:
            text = sources.get(source_name)
            if not text:
                continue
            match = rule.pattern.search(text)
            if not match or not match.group(1):
                continue
            value = spec.clean(match.group(1))
            if value and spec.validate(value):
                logger.debug(f"{spec.field}: matched rule '{rule.label}' in {source_name}: {value!r}")
                return value
            logger.debug(f"{spec.field}: rule '{rule.label}' in {source_name} rejected {match.group(1)!r}")
    logger.debug(f"{spec.field}: no match")
    return None


class FieldExtractor:
    """Applies the field registry to a message."""

    def __init__(self, specs: Iterable[FieldSpec] = FIELD_SPECS):
        self.specs = {spec.field: spec for spec in specs}

    def _field(self, field: str, message: NormalizedMessage, sources: Optional[dict[str, str]] = None) -> Optional[str]:
        spec = self.specs.get(field)
        if spec is None:
            return None
        try:
            return extract_field(spec, sources if sources is not None else message_sources(message))
        except Exception as e:
            logger.debug(f"{field}: extraction error on message {message.id}: {e}")
            return None

    def extract_name(self, message: NormalizedMessage) -> Optional[str]:
        return self._field("name", message)

    def extract_title(self, message: NormalizedMessage) -> Optional[str]:
        return self._field("title", message)

    def extract_location(self, message: NormalizedMessage) -> Optional[str]:
        return self._field("location", message)

    def extract_compensation(self, message: NormalizedMessage) -> Optional[str]:
        return self._field("expected_compensation", message)

    def extract_project_id(self, message: NormalizedMessage) -> Optional[str]:
        return self._field("project_id", message)

    def extract_screening_questions(self, message: NormalizedMessage) -> Optional[str]:
        return self._field("screening_questions", message)

    def extract(self, message: NormalizedMessage) -> CandidateRecord:
        sources = message_sources(message)
        values = {field: self._field(field, message, sources) for field in self.specs}
        record = CandidateRecord(**values)

        found = [name for name, value in values.items() if value]
        logger.info(f"Extracted {len(found)}/{len(values)} fields from message {message.id}: {', '.join(found) or 'none'}")
        return record
