from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from email_ics.core.errors import ValidationError


class ExtractedEvent(BaseModel):
    """Event fields as returned by the upstream extraction step.

    Dates and times arrive split (``start_date`` + ``start_time``); anything the
    extractor omits is defaulted when the record is built.
    """

    model_config = ConfigDict(extra="ignore")

    summary: str | None = None
    location: str | None = None
    start_date: str | None = None
    start_time: str | None = None
    end_date: str | None = None
    end_time: str | None = None
    description: str | None = None
    html_description: str | None = None
    timezone: str | None = None
    url: str | None = None
    status: str | None = None

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> "ExtractedEvent":
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
            raise ValidationError(fields or ["event"], f"Invalid extracted event: {exc}") from exc

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    def to_record_data(self) -> dict[str, Any]:
        is_all_day = not self.start_time
        data: dict[str, Any] = {
            "summary": self.summary,
            "location": self.location,
            "dtstart": _combine(self.start_date, self.start_time),
            "timezone": self.timezone,
            "isAllDay": is_all_day,
            "url": self.url,
            "status": self.status,
        }

        end_date = self.end_date or (self.start_date if self.end_time else None)
        if end_date:
            data["dtend"] = _combine(end_date, None if is_all_day else self.end_time)

        if self.description:
            data["description"] = self.description.replace("\\n", "\n")
        if self.html_description:
            data["htmlDescription"] = self.html_description
        return data


def looks_extracted(item: dict[str, Any]) -> bool:
    return "start_date" in item and "dtstart" not in item


def _combine(day: str | None, clock: str | None) -> str | None:
    if not day:
        return None
    if not clock:
        return day
    if len(clock) == 5:
        clock = f"{clock}:00"
    return f"{day}T{clock}"
