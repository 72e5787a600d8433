"""
Contact resolution: email, mobile number, and LinkedIn URL for an applicant.

Two stages:

1. Direct scan of the message HTML, message text, and resume text for an
   email address. ``mailto:`` links win over plain addresses, which win over
   obfuscated "email: jane [at] site [dot] com" mentions. Notification and
   platform addresses are never accepted.
2. LLM extraction over the resume text, when GPT is enabled and there is
   resume text. A well-formed LLM email that passes the same system-address
   filter overrides the direct-scan email; mobile number and LinkedIn URL
   come only from the LLM.

Resolution never raises. An LLM failure is logged and the direct-scan
result is returned.
"""

import logging
import re
from typing import Iterable, Iterator, Optional

from applicant_pipeline.models.candidate import ContactInfo
from applicant_pipeline.models.message import NormalizedMessage

logger = logging.getLogger(__name__)

EMAIL_SHAPE = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

SYSTEM_EMAIL_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"noreply|no-reply|donotreply|do-not-reply",
        r"linkedin\.com$",
        r"^jobs-(?:listings|noreply)@",
        r"^notifications?@",
        r"^alerts?@",
        r"^system@",
        r"^mailer-daemon@",
        r"^postmaster@",
    )
]

_MAILTO = re.compile(r"mailto:([^\"'?>\s]+)", re.IGNORECASE)
_PLAIN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
_CONTEXTUAL = re.compile(
    r"(?:e-?mail|contact)\s*[:\-]?\s*"
    r"([A-Za-z0-9._%+-]+)\s*(?:\[at\]|\(at\)|\s+at\s+)\s*"
    r"([A-Za-z0-9-]+(?:\s*(?:\[dot\]|\(dot\)|\s+dot\s+|\.)\s*[A-Za-z0-9-]+)*)"
    r"\s*(?:\[dot\]|\(dot\)|\s+dot\s+|\.)\s*([A-Za-z]{2,})\b",
    re.IGNORECASE,
)
_DOT = re.compile(r"\s*(?:\[dot\]|\(dot\)|\s+dot\s+)\s*", re.IGNORECASE)


def is_valid_applicant_email(email: Optional[str]) -> bool:
    """RFC-shaped and not a system, notification, or platform address."""
    if not email or not EMAIL_SHAPE.match(email):
        return False
    return not any(p.search(email) for p in SYSTEM_EMAIL_PATTERNS)


def _mailto_candidates(content: str) -> Iterator[str]:
    for match in _MAILTO.finditer(content):
        yield match.group(1)


def _plain_candidates(content: str) -> Iterator[str]:
    for match in _PLAIN.finditer(content):
        yield match.group(0)


def _contextual_candidates(content: str) -> Iterator[str]:
    for match in _CONTEXTUAL.finditer(content):
        local, domain, tld = match.groups()
        domain = _DOT.sub(".", domain).replace(" ", "")
        yield f"{local}@{domain}.{tld}"


# Finder order is precedence order.
_FINDERS = (
    ("mailto", _mailto_candidates),
    ("plain", _plain_candidates),
    ("contextual", _contextual_candidates),
)


def find_email(contents: Iterable[Optional[str]]) -> Optional[str]:
    """Return the highest-precedence valid applicant email in ``contents``."""
    texts = [c for c in contents if c]
    for label, finder in _FINDERS:
        for text in texts:
            for candidate in finder(text):
                email = candidate.strip().strip(".").lower()
                if is_valid_applicant_email(email):
                    logger.debug(f"Email found by {label} scan: {email}")
                    return email
    return None


class ContactResolver:
    """
    Combines the direct scan with an optional LLM contact extractor.

    ``llm`` is any object with ``extract_contact(resume_text) -> dict``;
    pass None to disable the LLM stage.
    """

    def __init__(self, llm=None, enable_llm: bool = True):
        self.llm = llm
        self.enable_llm = enable_llm and llm is not None

    def resolve(self, message: NormalizedMessage, resume_text: Optional[str]) -> ContactInfo:
        contact = ContactInfo(
            email=find_email([message.body_html, message.body_text, resume_text])
        )

        if not self.enable_llm or not resume_text or not resume_text.strip():
            return contact

        try:
            llm_contact = self.llm.extract_contact(resume_text)
        except Exception as e:
            logger.warning(f"LLM contact extraction failed for message {message.id}, using direct scan: {e}")
            return contact

        llm_email = (llm_contact.get("email") or "").strip().lower()
        if is_valid_applicant_email(llm_email):
            if contact.email and contact.email != llm_email:
                logger.debug(f"LLM email {llm_email} overrides direct-scan email {contact.email}")
            contact.email = llm_email
        contact.mobile_number = llm_contact.get("mobile_number")
        contact.linkedin_url = llm_contact.get("linkedin_url")
        return contact
