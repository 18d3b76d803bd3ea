from __future__ import annotations

from datetime import date, datetime, timedelta
import logging
from typing import Any

from icalendar import Calendar

from email_ics.core.errors import IcsError, MalformedInputError, ParseError
from email_ics.domain.schemas.event import DEFAULT_TIMEZONE, EventRecord

logger = logging.getLogger(__name__)

TEXT_PROPERTIES = {
    "SUMMARY": "summary",
    "DESCRIPTION": "description",
    "LOCATION": "location",
    "X-ALT-DESC": "htmlDescription",
}


def parse_ics(ics_content: str, default_timezone: str = DEFAULT_TIMEZONE) -> list[EventRecord]:
    """Read the VEVENT components of a calendar document back into records.

    Unsupported properties are ignored; an event that lacks a summary or a
    usable start is dropped and logged instead of failing the whole parse.
    """
    try:
        calendar = Calendar.from_ical(ics_content)
    except Exception as exc:
        raise ParseError(f"Not a readable calendar document: {exc}") from exc
    if calendar.name != "VCALENDAR":
        raise ParseError(f"Not a calendar document: top-level component is {calendar.name}")

    records: list[EventRecord] = []
    dropped = 0
    for index, component in enumerate(calendar.walk("VEVENT"), start=1):
        if component.errors:
            logger.debug("Event %s has unreadable properties errors=%s", index, component.errors)
        try:
            data = event_data(component)
            records.append(EventRecord.from_data(data, default_timezone=default_timezone))
        except IcsError as exc:
            dropped += 1
            logger.info("Dropping event %s from parsed document reason=%s", index, exc)

    if dropped:
        logger.info("Parsed %s event(s), dropped %s", len(records), dropped)
    return records


def event_data(component: Any) -> dict[str, Any]:
    """Map a VEVENT component onto ``EventRecord`` input data.

    Date-times keep the zone icalendar resolved for them, so a DTEND written
    in another zone than DTSTART is converted by the record, not reinterpreted.
    """
    data: dict[str, Any] = {}
    for name, key in TEXT_PROPERTIES.items():
        value = _first(component, name)
        if value is not None:
            data[key] = str(value)

    start_prop = _first(component, "DTSTART")
    if start_prop is not None:
        start = _temporal(start_prop, "dtstart")
        data["dtstart"] = start
        data["isAllDay"] = not isinstance(start, datetime)
        zone = _zone_name(start_prop, start)
        if zone:
            data["timezone"] = zone

    end_prop = _first(component, "DTEND")
    if end_prop is not None:
        data["dtend"] = _temporal(end_prop, "dtend")

    uid = _first(component, "UID")
    if uid is not None:
        data["uid"] = str(uid).strip()
    url = _first(component, "URL")
    if url is not None:
        data["url"] = str(url).strip()

    status = _first(component, "STATUS")
    if status is not None and str(status).strip().lower() in ("confirmed", "tentative"):
        data["status"] = str(status).strip().lower()

    organizer = _first(component, "ORGANIZER")
    if organizer is not None:
        email = str(organizer).strip()
        if email.lower().startswith("mailto:"):
            email = email[len("mailto:") :]
        if email:
            name = getattr(organizer, "params", {}).get("CN")
            data["organizer"] = {"email": email, "name": str(name) if name else None}
    return data


def _first(component: Any, name: str) -> Any:
    value = component.get(name)
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _temporal(prop: Any, field: str) -> date | datetime:
    value = getattr(prop, "dt", None)
    if isinstance(value, date):
        return value
    raise MalformedInputError(field, value if value is not None else str(prop))


def _zone_name(prop: Any, value: date | datetime) -> str | None:
    if isinstance(value, datetime) and value.tzinfo is not None:
        key = getattr(value.tzinfo, "key", None)
        if key:
            return key
        if "TZID" not in prop.params and value.utcoffset() == timedelta(0):
            return "UTC"
    tzid = prop.params.get("TZID")
    return str(tzid) if tzid else None
