"""
Job-application classifier.

Decides whether a normalized message is a LinkedIn job-application
notification. The checks run in a fixed order and short-circuit:

  1. Sender is one of LinkedIn's job-notification addresses -> True.
  2. Subject carries a strong application phrase            -> True.
  3. Combined text matches a promotional/billing exclusion   -> False.
  4. Otherwise True iff a LinkedIn application phrase is present, or job and
     application keywords co-occur, or the message has attachments and a job
     keyword.
"""

import logging
import re

from applicant_pipeline.models.message import NormalizedMessage
from applicant_pipeline.services.text import html_to_text

logger = logging.getLogger(__name__)

JOB_SENDER_PATTERN = re.compile(
    r"(?<![\w.-])(?:jobs-listings|jobs-noreply|noreply)@linkedin\.com", re.IGNORECASE
)

STRONG_SUBJECT_PATTERN = re.compile(
    r"new application|job application|your job has a new applicant|application.*from"
    r"|applicant|candidate.*applied",
    re.IGNORECASE,
)

EXCLUSION_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"linkedin.*premium.*upgrade",
        r"linkedin.*subscription",
        r"linkedin.*billing",
        r"linkedin.*payment",
        r"unsubscribe.*marketing",
        r"promotional.*offer",
        r"advertisement.*sponsored",
        r"newsletter.*weekly",
        r"(?:upgrade|subscribe|premium).*(?:now|today|offer)",
        r"(?:billing|payment).*(?:failed|due|overdue)",
    )
]

BRAND_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"linkedin.*appl(?:y|ied|ication)",
        r"easy apply",
        r"application (?:received|submitted)",
        r"thank you for applying",
        r"(?:resume|cv) received",
        r"applied (?:to|for)",
        r"applied.*(?:position|role|job)",
    )
]

JOB_KEYWORD_PATTERN = re.compile(r"\b(?:job|position|role|career|opportunity)", re.IGNORECASE)
APPLICATION_KEYWORD_PATTERN = re.compile(
    r"\b(?:application|apply|applied|candidate|resume|cv|applicant)", re.IGNORECASE
)


class Classifier:
    """Pure function of message content; holds no state."""

    def is_application(self, message: NormalizedMessage) -> bool:
        sender = message.sender or ""
        subject = message.subject or ""

        if JOB_SENDER_PATTERN.search(sender):
            logger.debug(f"Job notification sender: {sender}")
            return True

        if STRONG_SUBJECT_PATTERN.search(subject):
            logger.debug(f"Application subject: {subject}")
            return True

        combined = " ".join(
            part for part in (subject, message.body_text, html_to_text(message.body_html, " "), sender) if part
        )

        if any(p.search(combined) for p in EXCLUSION_PATTERNS):
            logger.debug(f"Excluded promotional message: {subject}")
            return False

        is_brand = any(p.search(combined) for p in BRAND_PATTERNS)
        has_job = JOB_KEYWORD_PATTERN.search(combined) is not None
        has_application = APPLICATION_KEYWORD_PATTERN.search(combined) is not None
        has_attachments = bool(message.attachments)

        result = is_brand or (has_job and has_application) or (has_attachments and has_job)
        logger.debug(f"{'Job application' if result else 'Not a job application'}: {subject}")
        return result
