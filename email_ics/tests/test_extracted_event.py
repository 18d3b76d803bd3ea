from datetime import date, datetime

from email_ics.config import IcsConfig
from email_ics.domain.schemas.extracted import ExtractedEvent, looks_extracted
from email_ics.services.ics.engine import IcsEngine


def test_extracted_timed_event_builds_record() -> None:
    engine = IcsEngine(IcsConfig())
    record = engine.build_record(
        {
            "summary": "Concert",
            "location": "Hall",
            "start_date": "2024-05-01",
            "start_time": "19:30",
            "end_time": "22:00",
            "timezone": "Europe/Berlin",
            "description": "Doors open 19:00\\nNo re-entry",
        }
    )
    assert record.is_all_day is False
    assert record.dtstart == datetime(2024, 5, 1, 19, 30)
    assert record.dtend == datetime(2024, 5, 1, 22, 0)
    assert record.timezone == "Europe/Berlin"
    assert record.description == "Doors open 19:00\nNo re-entry"


def test_extracted_event_without_time_is_all_day() -> None:
    data = ExtractedEvent(
        summary="Festival",
        location="Park",
        start_date="2024-08-10",
        end_date="2024-08-12",
    ).to_record_data()
    record = IcsEngine(IcsConfig()).build_record(data)
    assert record.is_all_day is True
    assert record.dtstart == date(2024, 8, 10)
    assert record.dtend == date(2024, 8, 12)


def test_blank_fields_become_none() -> None:
    extracted = ExtractedEvent(summary="  ", location="", start_date="2024-08-10", timezone=" ")
    assert extracted.summary is None
    assert extracted.location is None
    assert extracted.timezone is None


def test_looks_extracted_distinguishes_shapes() -> None:
    assert looks_extracted({"start_date": "2024-01-01"}) is True
    assert looks_extracted({"dtstart": "2024-01-01"}) is False
