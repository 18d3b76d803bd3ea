from __future__ import annotations

from datetime import date, datetime, timezone
import logging
from typing import Callable

from email_ics.config import IcsConfig
from email_ics.core.errors import SerializationError, ValidationError
from email_ics.domain.schemas.event import (
    DEFAULT_ORGANIZER_NAME,
    CalendarDocument,
    EventRecord,
)
from email_ics.services.ics.duration import default_all_day_end, default_timed_end
from email_ics.services.ics.text import (
    CRLF,
    MAX_LINE_OCTETS,
    escape_text,
    fold_line,
    octet_length,
    unfold,
)
from email_ics.services.ics.uid import UidGenerator

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class IcsSerializer:
    def __init__(self, config: IcsConfig, clock: Callable[[], datetime] = utc_now) -> None:
        self.config = config
        self.clock = clock
        self.uid_generator = UidGenerator(config.uid_domain_suffix, config.uid_policy)

    def serialize(self, document: CalendarDocument, from_email: str | None = None) -> str:
        """Render ``document`` as a CRLF-terminated text/calendar string.

        Either the whole document is returned or an error is raised.
        """
        method = document.method or self.config.method
        prod_id = _require_single_line(document.prod_id or self.config.prod_id, "prod_id")
        lines = [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            f"PRODID:{prod_id}",
            "CALSCALE:GREGORIAN",
            f"METHOD:{method.value}",
        ]

        stamp = _format_utc(self.clock())
        organizer_email = from_email or self.config.from_email
        seen_uids: set[str] = set()
        for record in document.events:
            uid = self._assign_uid(record, seen_uids)
            lines.extend(self._event_lines(record, uid, stamp, organizer_email))
        lines.append("END:VCALENDAR")

        output = CRLF.join(_fold_checked(line) for line in lines) + CRLF
        logger.debug(
            "Serialized %s event(s) method=%s octets=%s",
            len(document.events),
            method.value,
            octet_length(output),
        )
        return output

    def resolve_end(self, record: EventRecord) -> date | datetime:
        if record.dtend is not None:
            return record.dtend
        if record.is_all_day:
            return default_all_day_end(record.dtstart, self.config.all_day_end_policy)
        return default_timed_end(record.dtstart, record.summary, record.zone)

    def _assign_uid(self, record: EventRecord, seen: set[str]) -> str:
        uid = self.uid_generator.generate(record)
        if record.uid:
            _require_single_line(uid, "uid")
            if uid in seen:
                raise ValidationError(["uid"], f"Duplicate uid in document: {uid}")
        else:
            salt = 0
            while uid in seen:
                salt += 1
                uid = self.uid_generator.generate(record, salt=salt)
        seen.add(uid)
        return uid

    def _event_lines(
        self,
        record: EventRecord,
        uid: str,
        stamp: str,
        organizer_email: str | None,
    ) -> list[str]:
        lines = [
            "BEGIN:VEVENT",
            f"UID:{uid}",
            f"DTSTAMP:{stamp}",
            f"SUMMARY:{escape_text(record.summary)}",
        ]
        if record.description:
            lines.append(f"DESCRIPTION:{escape_text(record.description)}")
        if record.location:
            lines.append(f"LOCATION:{escape_text(record.location)}")
        if record.url:
            lines.append(f"URL:{_single_line(record.url)}")
        lines.append(_date_property("DTSTART", record.dtstart, record))
        lines.append(_date_property("DTEND", self.resolve_end(record), record))
        lines.append(f"STATUS:{record.status.value.upper()}")

        organizer = _organizer_line(record, organizer_email)
        if organizer:
            lines.append(organizer)
        if record.html_description:
            lines.append(f"X-ALT-DESC;FMTTYPE=text/html:{escape_text(record.html_description.strip())}")
        lines.append("END:VEVENT")
        return lines


def _date_property(name: str, value: date | datetime, record: EventRecord) -> str:
    if record.is_all_day:
        return f"{name};VALUE=DATE:{_format_date(value)}"
    if record.is_utc:
        return f"{name}:{_format_datetime(value)}Z"
    return f"{name};TZID={record.timezone}:{_format_datetime(value)}"


def _organizer_line(record: EventRecord, fallback_email: str | None) -> str | None:
    if record.organizer is not None:
        email = record.organizer.email
        name = record.organizer.name or DEFAULT_ORGANIZER_NAME
    elif fallback_email:
        email = fallback_email
        name = DEFAULT_ORGANIZER_NAME
    else:
        return None

    email = _single_line(email)
    if email.lower().startswith("mailto:"):
        email = email[len("mailto:") :]
    return f"ORGANIZER;CN={_param_value(name)}:mailto:{email}"


def _param_value(value: str) -> str:
    cleaned = _single_line(value).replace('"', "")
    if any(ch in cleaned for ch in ":;,"):
        return f'"{cleaned}"'
    return cleaned


def _require_single_line(value: str, field: str) -> str:
    if "\r" in value or "\n" in value:
        raise ValidationError([field], f"{field} must not contain line breaks: {value!r}")
    return value


def _single_line(value: str) -> str:
    return " ".join(value.replace("\r", " ").replace("\n", " ").split())


def _format_date(value: date | datetime) -> str:
    return f"{value.year:04d}{value.month:02d}{value.day:02d}"


def _format_datetime(value: datetime) -> str:
    return f"{_format_date(value)}T{value.hour:02d}{value.minute:02d}{value.second:02d}"


def _format_utc(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return f"{_format_datetime(value)}Z"


def _fold_checked(line: str) -> str:
    if "\r" in line or "\n" in line:
        raise SerializationError(f"Content line contains a raw line break: {line[:40]!r}")
    folded = fold_line(line)
    chunks = folded.split(CRLF)
    for index, chunk in enumerate(chunks):
        if octet_length(chunk) > MAX_LINE_OCTETS:
            raise SerializationError(f"Folded line exceeds {MAX_LINE_OCTETS} octets: {chunk[:40]!r}")
        if index < len(chunks) - 1 and _ends_with_open_escape(chunk):
            raise SerializationError(f"Fold split an escape sequence: {chunk[-20:]!r}")
    if unfold(folded) != line:
        raise SerializationError(f"Folded line does not unfold to its source: {line[:40]!r}")
    return folded


def _ends_with_open_escape(chunk: str) -> bool:
    trailing = len(chunk) - len(chunk.rstrip("\\"))
    return trailing % 2 == 1
