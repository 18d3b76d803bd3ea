from datetime import date, datetime, time, timedelta
from enum import Enum
import logging
from typing import Any, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationInfo, model_validator
from pydantic import ValidationError as PydanticValidationError

from email_ics.core.errors import MalformedInputError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/Los_Angeles"
DEFAULT_ORGANIZER_NAME = "Email-to-ICS"
UTC_ZONE_IDS = {"UTC", "Etc/UTC", "Etc/GMT", "GMT", "Z"}

_FLAG_ADAPTER = TypeAdapter(bool)


class EventStatus(str, Enum):
    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"


class Method(str, Enum):
    PUBLISH = "PUBLISH"
    REQUEST = "REQUEST"


class Organizer(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str
    name: str | None = None


class EventRecord(BaseModel):
    """One calendar event, normalized and immutable.

    ``dtstart``/``dtend`` are stored as wall time in ``timezone`` (naive
    datetimes) or as plain dates for all-day events. A timezone that fails
    IANA lookup is replaced by the default and kept in ``invalid_timezone``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uid: str | None = None
    summary: str
    description: str | None = None
    html_description: str | None = Field(default=None, alias="htmlDescription")
    location: str | None = None
    url: str | None = None
    dtstart: datetime | date
    dtend: datetime | date | None = None
    timezone: str = DEFAULT_TIMEZONE
    is_all_day: bool = Field(default=False, alias="isAllDay")
    status: EventStatus = EventStatus.CONFIRMED
    organizer: Organizer | None = None
    invalid_timezone: str | None = None

    @classmethod
    def from_data(cls, data: dict[str, Any], default_timezone: str = DEFAULT_TIMEZONE) -> "EventRecord":
        try:
            return cls.model_validate(data, context={"default_timezone": default_timezone})
        except PydanticValidationError as exc:
            fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
            raise ValidationError(fields or ["event"], f"Invalid event data: {exc}") from exc

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any, info: ValidationInfo) -> Any:
        if not isinstance(data, dict):
            return data

        values = dict(data)
        missing = []
        summary = values.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            missing.append("summary")
        if values.get("dtstart") in (None, ""):
            missing.append("dtstart")
        if missing:
            raise ValidationError(missing)

        context = info.context or {}
        default_timezone = context.get("default_timezone", DEFAULT_TIMEZONE)

        dtstart = parse_temporal(values["dtstart"], "dtstart")
        raw_end = values.get("dtend")
        dtend = parse_temporal(raw_end, "dtend") if raw_end not in (None, "") else None

        zone_name, invalid = _resolve_timezone(values.get("timezone"), dtstart, default_timezone)
        if invalid is not None:
            logger.warning(
                "Replacing invalid timezone=%r with default=%s for summary=%r",
                invalid,
                zone_name,
                summary,
            )
        zone = zone_for(zone_name)
        dtstart = _to_wall_time(dtstart, zone)
        dtend = _to_wall_time(dtend, zone) if dtend is not None else None

        all_day = _pick(values, "is_all_day", "isAllDay")
        if all_day is None:
            all_day = not isinstance(dtstart, datetime)
        else:
            all_day = _coerce_flag(all_day, "is_all_day")

        if all_day:
            dtstart = _as_date(dtstart)
            dtend = _as_date(dtend) if dtend is not None else None
        else:
            dtstart = _as_datetime(dtstart)
            dtend = _as_datetime(dtend) if dtend is not None else None

        if dtend is not None and dtend < dtstart:
            raise ValidationError(["dtend"], "dtend must not precede dtstart")

        status = values.get("status")
        if isinstance(status, str):
            status = status.strip().lower() or None

        normalized = {
            "uid": values.get("uid") or None,
            "summary": summary.strip(),
            "description": values.get("description") or None,
            "html_description": _pick(values, "html_description", "htmlDescription") or None,
            "location": values.get("location") or None,
            "url": values.get("url") or None,
            "dtstart": dtstart,
            "dtend": dtend,
            "timezone": zone_name,
            "is_all_day": all_day,
            "organizer": values.get("organizer") or None,
            "invalid_timezone": invalid,
        }
        if status is not None:
            normalized["status"] = status
        return normalized

    @property
    def timezone_substituted(self) -> bool:
        return self.invalid_timezone is not None

    @property
    def is_utc(self) -> bool:
        return self.timezone in UTC_ZONE_IDS

    @property
    def zone(self) -> ZoneInfo:
        return zone_for(self.timezone)


class CalendarDocument(BaseModel):
    """An ordered, non-empty run of events plus document-level attributes.

    ``prod_id`` and ``method`` fall back to the engine configuration when unset.
    """

    model_config = ConfigDict(frozen=True)

    events: list[EventRecord] = Field(min_length=1)
    prod_id: str | None = None
    method: Method | None = None

    @classmethod
    def of(
        cls,
        events: EventRecord | Sequence[EventRecord],
        prod_id: str | None = None,
        method: Method | None = None,
    ) -> "CalendarDocument":
        items = [events] if isinstance(events, EventRecord) else list(events)
        if not items:
            raise ValidationError(["events"], "A calendar document needs at least one event")
        return cls(events=items, prod_id=prod_id, method=method)


def is_valid_timezone(name: str) -> bool:
    if name in UTC_ZONE_IDS:
        return True
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        # OSError covers directory names such as "America".
        return False
    return True


def zone_for(name: str) -> ZoneInfo:
    if name in UTC_ZONE_IDS:
        return ZoneInfo("UTC")
    return ZoneInfo(name)


def parse_temporal(value: Any, field: str) -> date | datetime:
    if isinstance(value, (date, datetime)):
        return value
    if not isinstance(value, str):
        raise MalformedInputError(field, value)

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise MalformedInputError(field, value) from exc


def _coerce_flag(value: Any, field: str) -> bool:
    try:
        return _FLAG_ADAPTER.validate_python(value)
    except PydanticValidationError as exc:
        raise ValidationError([field], f"{field} is not a boolean: {value!r}") from exc


def _pick(values: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if values.get(key) is not None:
            return values[key]
    return None


def _resolve_timezone(
    raw: Any,
    dtstart: date | datetime,
    default_timezone: str,
) -> tuple[str, str | None]:
    if isinstance(raw, str) and raw.strip():
        name = raw.strip()
        if is_valid_timezone(name):
            return ("UTC" if name == "Z" else name), None
        return default_timezone, name
    if raw not in (None, ""):
        return default_timezone, str(raw)

    if isinstance(dtstart, datetime) and dtstart.tzinfo is not None:
        key = getattr(dtstart.tzinfo, "key", None)
        if key:
            return key, None
        if dtstart.utcoffset() == timedelta(0):
            return "UTC", None
    return default_timezone, None


def _to_wall_time(value: date | datetime, zone: ZoneInfo) -> date | datetime:
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(zone).replace(tzinfo=None)
    return value


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time())
