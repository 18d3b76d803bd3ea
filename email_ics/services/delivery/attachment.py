from __future__ import annotations

import base64
from dataclasses import dataclass
import re
from typing import Sequence

from pydantic import BaseModel

from email_ics.domain.schemas.event import EventRecord

ICS_CONTENT_TYPE = "text/calendar; charset=utf-8"
DEFAULT_ATTACHMENT_NAME = "event.ics"

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class IcsAttachment:
    filename: str
    content: bytes
    content_type: str = ICS_CONTENT_TYPE

    def as_base64(self) -> str:
        return base64.b64encode(self.content).decode("ascii")

    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'


class ReviewPayload(BaseModel):
    """What a review cache stores under a confirmation token until it is sent."""

    ics_content: str
    recipient_email: str
    email_subject: str


def email_subject(events: Sequence[EventRecord]) -> str:
    if len(events) == 1:
        return f"Calendar Invite: {events[0].summary}"
    return f"Calendar Invites: {len(events)} events"


def attachment_filename(summary: str | None = None) -> str:
    if not summary:
        return DEFAULT_ATTACHMENT_NAME
    slug = _UNSAFE_FILENAME_RE.sub("-", summary.strip()).strip("-.").lower()
    return f"{slug[:60]}.ics" if slug else DEFAULT_ATTACHMENT_NAME


def build_attachment(ics_content: str, filename: str = DEFAULT_ATTACHMENT_NAME) -> IcsAttachment:
    return IcsAttachment(filename=filename, content=ics_content.encode("utf-8"))


def build_review_payload(
    ics_content: str,
    recipient_email: str,
    events: Sequence[EventRecord],
) -> ReviewPayload:
    return ReviewPayload(
        ics_content=ics_content,
        recipient_email=recipient_email,
        email_subject=email_subject(events),
    )
