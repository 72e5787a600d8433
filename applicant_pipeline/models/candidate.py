"""
Pydantic models for extracted applicant data.
"""

from typing import Optional

from pydantic import BaseModel

# Fields filled by the field extractor, in report order.
EXTRACTED_FIELDS = (
    "name",
    "title",
    "location",
    "expected_compensation",
    "project_id",
    "screening_questions",
)


class ContactInfo(BaseModel):
    """Contact details resolved from the message and resume text."""
    email: Optional[str] = None
    mobile_number: Optional[str] = None
    linkedin_url: Optional[str] = None


class CandidateRecord(BaseModel):
    """
    Best-effort applicant record; every field may be None.

    The field extractor fills the first six fields, the contact resolver
    fills email / mobile_number / linkedin_url, and the attachment pipeline
    fills resume_text / resume_storage_link.
    """

    name: Optional[str] = None
    title: Optional[str] = None
    location: Optional[str] = None
    expected_compensation: Optional[str] = None
    project_id: Optional[str] = None
    screening_questions: Optional[str] = None

    email: Optional[str] = None
    mobile_number: Optional[str] = None
    linkedin_url: Optional[str] = None

    resume_text: Optional[str] = None
    resume_storage_link: Optional[str] = None

    @property
    def is_persistable(self) -> bool:
        """A record may be written only once both name and email are known."""
        return bool(self.name and self.name.strip()) and bool(self.email and self.email.strip())

    def extracted_fields(self) -> dict[str, Optional[str]]:
        return {field: getattr(self, field) for field in EXTRACTED_FIELDS}

    def apply_contact(self, contact: ContactInfo) -> None:
        self.email = contact.email
        self.mobile_number = contact.mobile_number
        self.linkedin_url = contact.linkedin_url


class ExtractedText(BaseModel):
    """Text pulled out of a resume attachment."""
    text: str
    char_count: int
    method: str


class ResumeResult(BaseModel):
    """Outcome of the attachment pipeline for one message."""
    resume_text: Optional[str] = None
    storage_link: Optional[str] = None
    filename: Optional[str] = None
    # False when resume_text is a failure placeholder
    text_extracted: bool = False
