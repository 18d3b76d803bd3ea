from datetime import datetime, timedelta, timezone
import re

import pytest

from email_ics.config import IcsConfig
from email_ics.core.errors import ValidationError
from email_ics.domain.schemas.event import CalendarDocument, EventRecord, Method
from email_ics.services.ics.duration import AllDayEndPolicy
from email_ics.services.ics.serializer import IcsSerializer
from email_ics.services.ics.text import unfold

FIXED_NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _make_serializer(**overrides) -> IcsSerializer:
    config = IcsConfig(uid_domain_suffix="example.test", **overrides)
    return IcsSerializer(config, clock=lambda: FIXED_NOW)


def _serialize(*records: EventRecord, **overrides) -> str:
    from_email = overrides.pop("from_email", "events@example.com")
    return _make_serializer(**overrides).serialize(CalendarDocument.of(list(records)), from_email=from_email)


def _lines(ics: str) -> list[str]:
    return unfold(ics).split("\r\n")


def test_document_header_footer_and_crlf() -> None:
    ics = _serialize(EventRecord(summary="Team Sync", dtstart="2024-01-15T14:00:00"))
    lines = ics.split("\r\n")
    assert lines[:5] == [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Email-to-ICS//Python//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]
    assert ics.endswith("END:VCALENDAR\r\n")
    assert "\n" not in ics.replace("\r\n", "")


def test_event_property_order() -> None:
    record = EventRecord(
        summary="Launch",
        description="Details",
        location="HQ",
        url="https://example.com/launch",
        dtstart="2024-01-15T14:00:00",
        timezone="America/New_York",
        htmlDescription="<p>Details</p>",
    )
    names = [re.split("[;:]", line, maxsplit=1)[0] for line in _lines(_serialize(record))]
    assert names[5:] == [
        "BEGIN",
        "UID",
        "DTSTAMP",
        "SUMMARY",
        "DESCRIPTION",
        "LOCATION",
        "URL",
        "DTSTART",
        "DTEND",
        "STATUS",
        "ORGANIZER",
        "X-ALT-DESC",
        "END",
        "END",
        "",
    ]


def test_team_sync_defaults_to_two_hours_and_confirmed() -> None:
    ics = _serialize(
        EventRecord(summary="Team Sync", dtstart="2024-01-15T14:00:00", timezone="America/New_York")
    )
    lines = _lines(ics)
    assert "DTSTART;TZID=America/New_York:20240115T140000" in lines
    assert "DTEND;TZID=America/New_York:20240115T160000" in lines
    assert "STATUS:CONFIRMED" in lines


def test_doctor_appointment_defaults_to_thirty_minutes() -> None:
    ics = _serialize(
        EventRecord(
            summary="Dr. Smith Appointment",
            dtstart="2024-01-15T14:00:00",
            timezone="America/Los_Angeles",
        )
    )
    assert "DTEND;TZID=America/Los_Angeles:20240115T143000" in _lines(ics)


def test_opera_defaults_to_three_hours() -> None:
    ics = _serialize(EventRecord(summary="SF Opera: Carmen", dtstart="2024-06-01T19:00:00"))
    lines = _lines(ics)
    start = next(line for line in lines if line.startswith("DTSTART"))
    end = next(line for line in lines if line.startswith("DTEND"))
    fmt = "%Y%m%dT%H%M%S"
    duration = datetime.strptime(end.split(":")[1], fmt) - datetime.strptime(start.split(":")[1], fmt)
    assert duration == timedelta(hours=3)
    assert start == "DTSTART;TZID=America/Los_Angeles:20240601T190000"


def test_all_day_event_has_no_tzid_or_time() -> None:
    ics = _serialize(EventRecord(summary="Holiday", dtstart="2024-07-04", timezone="Europe/Berlin"))
    lines = _lines(ics)
    assert "DTSTART;VALUE=DATE:20240704" in lines
    assert "DTEND;VALUE=DATE:20240705" in lines
    assert not any("TZID" in line for line in lines)


def test_all_day_same_day_policy() -> None:
    ics = _serialize(
        EventRecord(summary="Holiday", dtstart="2024-07-04"),
        all_day_end_policy=AllDayEndPolicy.SAME_DAY,
    )
    assert "DTEND;VALUE=DATE:20240704" in _lines(ics)


def test_utc_event_uses_z_suffix() -> None:
    ics = _serialize(EventRecord(summary="Call", dtstart="2024-01-15T14:00:00Z"))
    lines = _lines(ics)
    assert "DTSTART:20240115T140000Z" in lines
    assert "DTEND:20240115T160000Z" in lines


def test_dtstamp_uses_clock_in_utc() -> None:
    ics = _serialize(EventRecord(summary="Call", dtstart="2024-01-15T14:00:00"))
    assert "DTSTAMP:20240101T120000Z" in _lines(ics)


def test_text_values_are_escaped() -> None:
    record = EventRecord(
        summary="Dinner; drinks, fun",
        description="Line one\r\nLine two \\ end",
        location="Main St, Suite 5",
        dtstart="2024-01-15T19:00:00",
    )
    lines = _lines(_serialize(record))
    assert "SUMMARY:Dinner\\; drinks\\, fun" in lines
    assert "DESCRIPTION:Line one\\nLine two \\\\ end" in lines
    assert "LOCATION:Main St\\, Suite 5" in lines


def test_long_lines_are_folded_within_75_octets() -> None:
    record = EventRecord(
        summary="Résumé workshop " * 10,
        description="Ünïcödé, text; with escapes\n" * 20,
        dtstart="2024-01-15T19:00:00",
    )
    ics = _serialize(record)
    for line in ics.split("\r\n"):
        assert len(line.encode("utf-8")) <= 75
    assert "SUMMARY:" + ("Résumé workshop " * 10).strip() in _lines(ics)


def test_organizer_defaults_to_from_email() -> None:
    ics = _serialize(EventRecord(summary="Call", dtstart="2024-01-15T14:00:00"))
    assert "ORGANIZER;CN=Email-to-ICS:mailto:events@example.com" in _lines(ics)


def test_explicit_organizer_and_quoted_name() -> None:
    record = EventRecord(
        summary="Call",
        dtstart="2024-01-15T14:00:00",
        organizer={"email": "host@example.com", "name": "Smith, Jane"},
    )
    assert 'ORGANIZER;CN="Smith, Jane":mailto:host@example.com' in _lines(_serialize(record))


def test_organizer_omitted_without_any_email() -> None:
    ics = _serialize(EventRecord(summary="Call", dtstart="2024-01-15T14:00:00"), from_email=None)
    assert not any(line.startswith("ORGANIZER") for line in _lines(ics))


def test_tentative_status_and_request_method() -> None:
    record = EventRecord(summary="Maybe", dtstart="2024-01-15T14:00:00", status="tentative")
    serializer = _make_serializer(method=Method.REQUEST)
    lines = _lines(serializer.serialize(CalendarDocument.of(record)))
    assert "METHOD:REQUEST" in lines
    assert "STATUS:TENTATIVE" in lines


def test_three_events_keep_order_and_distinct_uids() -> None:
    records = [
        EventRecord(summary=f"Event {n}", dtstart=f"2024-01-1{n}T10:00:00") for n in range(1, 4)
    ]
    lines = _lines(_serialize(*records))
    assert lines.count("BEGIN:VEVENT") == 3
    assert lines.count("END:VEVENT") == 3
    summaries = [line for line in lines if line.startswith("SUMMARY:")]
    assert summaries == ["SUMMARY:Event 1", "SUMMARY:Event 2", "SUMMARY:Event 3"]
    uids = [line for line in lines if line.startswith("UID:")]
    assert len(set(uids)) == 3


def test_identical_events_get_distinct_generated_uids() -> None:
    record = EventRecord(summary="Same", dtstart="2024-01-15T10:00:00")
    lines = _lines(_serialize(record, record))
    uids = [line for line in lines if line.startswith("UID:")]
    assert len(set(uids)) == 2


def test_duplicate_caller_uids_are_rejected() -> None:
    first = EventRecord(uid="fixed@example", summary="A", dtstart="2024-01-15T10:00:00")
    second = EventRecord(uid="fixed@example", summary="B", dtstart="2024-01-16T10:00:00")
    with pytest.raises(ValidationError) as excinfo:
        _serialize(first, second)
    assert excinfo.value.fields == ("uid",)


def test_caller_uid_is_emitted_unchanged() -> None:
    record = EventRecord(uid="abc-123@caller", summary="A", dtstart="2024-01-15T10:00:00")
    assert "UID:abc-123@caller" in _lines(_serialize(record))


def test_document_prod_id_overrides_config() -> None:
    record = EventRecord(summary="A", dtstart="2024-01-15T10:00:00")
    document = CalendarDocument.of(record, prod_id="-//Custom//EN")
    assert "PRODID:-//Custom//EN" in _lines(_make_serializer().serialize(document))


def test_caller_uid_with_line_break_is_rejected() -> None:
    record = EventRecord(uid="a\r\nEND:VEVENT", summary="A", dtstart="2024-01-15T10:00:00")
    with pytest.raises(ValidationError) as excinfo:
        _serialize(record)
    assert excinfo.value.fields == ("uid",)


def test_prod_id_with_line_break_is_rejected() -> None:
    record = EventRecord(summary="A", dtstart="2024-01-15T10:00:00")
    document = CalendarDocument.of(record, prod_id="-//Custom//EN\nX-INJECTED:1")
    with pytest.raises(ValidationError) as excinfo:
        _make_serializer().serialize(document)
    assert excinfo.value.fields == ("prod_id",)
