"""
Gmail message fetcher.

Wraps the three Gmail operations the pipeline depends on (search, full
message get, attachment get) and decodes Gmail's MIME tree into
NormalizedMessage. Detail fetches for a search result page are grouped into
Gmail batch requests of ``detail_batch_size`` with ``detail_batch_delay``
seconds between batches.
"""

import base64
import logging
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Optional

from applicant_pipeline.config import Settings
from applicant_pipeline.exceptions import CollaboratorError
from applicant_pipeline.models.message import MessageAttachment, NormalizedMessage
from applicant_pipeline.services.google_auth import GMAIL_SCOPES, build_service
from applicant_pipeline.services.retry import with_retry

logger = logging.getLogger(__name__)

# Gmail caps messages.list at 500 per page.
MAX_PAGE_SIZE = 500


def build_search_query(max_age_days: int) -> str:
    """Fixed sender/subject heuristic plus the age window."""
    return " ".join([
        "from:(linkedin.com OR jobs-noreply@linkedin.com)",
        'subject:("new application" OR "job application")',
        f"newer_than:{max_age_days}d",
    ])


# ---------------------------------------------------------------------------
# MIME decoding
# ---------------------------------------------------------------------------

def decode_body(data: Optional[str]) -> str:
    """Decode a Gmail base64url body part to text."""
    if not data:
        return ""
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")


def _header(headers: list[dict], name: str) -> str:
    lowered = name.lower()
    for header in headers:
        if header.get("name", "").lower() == lowered:
            return header.get("value", "")
    return ""


def _parse_date(raw_date: str, internal_date: Optional[str]) -> Optional[datetime]:
    if raw_date:
        try:
            parsed = parsedate_to_datetime(raw_date)
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
        except (TypeError, ValueError):
            logger.debug(f"Unparseable Date header: {raw_date!r}")
    if internal_date:
        return datetime.fromtimestamp(int(internal_date) / 1000, tz=timezone.utc)
    return None


def _walk_parts(part: dict, bodies: dict[str, str], attachments: list[MessageAttachment]) -> None:
    """Depth-first walk; keeps the first text/plain and text/html bodies."""
    mime_type = part.get("mimeType", "")
    body = part.get("body") or {}
    filename = part.get("filename") or ""

    if filename and body.get("attachmentId"):
        attachments.append(MessageAttachment(
            filename=filename,
            mime_type=mime_type or "application/octet-stream",
            attachment_id=body["attachmentId"],
            size_bytes=body.get("size", 0) or 0,
        ))
    elif mime_type in ("text/plain", "text/html") and body.get("data"):
        bodies.setdefault(mime_type, decode_body(body["data"]))

    for child in part.get("parts") or []:
        _walk_parts(child, bodies, attachments)


def parse_message(resource: dict) -> NormalizedMessage:
    """Convert a Gmail ``format=full`` message resource to NormalizedMessage."""
    payload = resource.get("payload") or {}
    headers = payload.get("headers") or []

    bodies: dict[str, str] = {}
    attachments: list[MessageAttachment] = []
    _walk_parts(payload, bodies, attachments)

    return NormalizedMessage(
        id=resource["id"],
        thread_id=resource.get("threadId"),
        subject=_header(headers, "Subject"),
        sender=_header(headers, "From"),
        date=_parse_date(_header(headers, "Date"), resource.get("internalDate")),
        body_text=bodies.get("text/plain", ""),
        body_html=bodies.get("text/html", ""),
        attachments=attachments,
    )


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------

class GmailMessageFetcher:
    """Mailbox collaborator backed by the Gmail v1 API."""

    def __init__(self, settings: Settings, service: Any = None, sleep: Callable[[float], None] = time.sleep):
        self.settings = settings
        self.service = service or build_service(settings, "gmail", "v1", GMAIL_SCOPES, impersonate=True)
        self._sleep = sleep

    def _execute(self, request):
        return with_retry(
            request.execute,
            max_attempts=self.settings.retry_attempts,
            base_delay=self.settings.retry_base_delay,
            sleep=self._sleep,
        )

    def test_connection(self) -> str:
        """Return the mailbox address; raises on any failure."""
        profile = self._execute(self.service.users().getProfile(userId="me"))
        return profile.get("emailAddress", "")

    def search(self, query: str, max_results: int, page_token: Optional[str] = None) -> dict:
        """
        One page of message ids matching ``query``.

        Returns ``{"messages": [id, ...], "next_page_token": str | None}``.
        """
        kwargs = {"userId": "me", "q": query, "maxResults": min(max_results, MAX_PAGE_SIZE)}
        if page_token:
            kwargs["pageToken"] = page_token
        response = self._execute(self.service.users().messages().list(**kwargs))
        return {
            "messages": [m["id"] for m in response.get("messages", [])],
            "next_page_token": response.get("nextPageToken"),
        }

    def get_full(self, message_id: str) -> dict:
        return self._execute(
            self.service.users().messages().get(userId="me", id=message_id, format="full")
        )

    def get_attachment(self, message_id: str, attachment_id: str) -> bytes:
        response = self._execute(
            self.service.users().messages().attachments().get(
                userId="me", messageId=message_id, id=attachment_id
            )
        )
        data = response.get("data", "")
        return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))

    def list_message_ids(self, query: str, limit: int) -> list[str]:
        """Follow nextPageToken until ``limit`` ids are collected."""
        ids: list[str] = []
        page_token = None
        while len(ids) < limit:
            page = self.search(query, limit - len(ids), page_token)
            ids.extend(page["messages"])
            page_token = page["next_page_token"]
            if not page_token or not page["messages"]:
                break
        return ids[:limit]

    def _fetch_details(self, message_ids: list[str]) -> list[dict]:
        """
        Fetch full resources in Gmail batch requests.

        A message whose individual request fails is logged and left out;
        a failure of the batch HTTP call itself propagates.
        """
        resources: dict[str, dict] = {}
        chunk_size = self.settings.detail_batch_size

        def on_response(request_id, response, exception):
            if exception is not None:
                logger.error(f"Error fetching message {request_id}: {exception}")
                return
            resources[request_id] = response

        for start in range(0, len(message_ids), chunk_size):
            if start:
                self._sleep(self.settings.detail_batch_delay)
            chunk = message_ids[start:start + chunk_size]
            batch = self.service.new_batch_http_request(callback=on_response)
            for message_id in chunk:
                batch.add(
                    self.service.users().messages().get(userId="me", id=message_id, format="full"),
                    request_id=message_id,
                )
            self._execute(batch)
            logger.debug(f"Fetched details batch {start // chunk_size + 1} ({len(chunk)} messages)")

        return [resources[mid] for mid in message_ids if mid in resources]

    def fetch_messages(self, limit: Optional[int] = None, query: Optional[str] = None) -> list[NormalizedMessage]:
        """Search, fetch details, and decode up to ``limit`` messages."""
        limit = limit or self.settings.batch_size
        query = query or build_search_query(self.settings.max_email_age_days)
        logger.info(f"Searching emails with query: {query}")

        try:
            message_ids = self.list_message_ids(query, limit)
        except Exception as e:
            raise CollaboratorError("gmail", f"Message search failed: {e}") from e

        if not message_ids:
            logger.info("No matching emails found")
            return []
        logger.info(f"Found {len(message_ids)} potential emails")

        messages = []
        for resource in self._fetch_details(message_ids):
            try:
                messages.append(parse_message(resource))
            except (KeyError, ValueError) as e:
                logger.error(f"Error parsing message {resource.get('id')}: {e}")
        return messages
