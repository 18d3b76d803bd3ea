from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from enum import Enum
from zoneinfo import ZoneInfo

DEFAULT_DURATION = timedelta(hours=2)
OPERA_DURATION = timedelta(hours=3)
APPOINTMENT_DURATION = timedelta(minutes=30)


class AllDayEndPolicy(str, Enum):
    NEXT_DAY = "next_day"
    SAME_DAY = "same_day"


def default_duration(summary: str) -> timedelta:
    lowered = summary.lower()
    if "opera" in lowered:
        return OPERA_DURATION
    if "doctor" in lowered or "appointment" in lowered:
        return APPOINTMENT_DURATION
    return DEFAULT_DURATION


def default_timed_end(start: datetime, summary: str, zone: ZoneInfo) -> datetime:
    """End of a timed event with no explicit end, as wall time in ``zone``.

    The duration is elapsed time, so a DST change inside the event shifts the
    wall-clock end.
    """
    aware = start.replace(tzinfo=zone).astimezone(timezone.utc)
    end = aware + default_duration(summary)
    return end.astimezone(zone).replace(tzinfo=None)


def default_all_day_end(start: date, policy: AllDayEndPolicy = AllDayEndPolicy.NEXT_DAY) -> date:
    if policy == AllDayEndPolicy.SAME_DAY:
        return start
    return start + timedelta(days=1)
