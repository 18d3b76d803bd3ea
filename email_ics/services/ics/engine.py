from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Callable, Sequence

from email_ics.config import IcsConfig
from email_ics.domain.schemas.event import CalendarDocument, EventRecord, Method
from email_ics.domain.schemas.extracted import ExtractedEvent, looks_extracted
from email_ics.services.ics.parser import parse_ics
from email_ics.services.ics.serializer import IcsSerializer, utc_now
from email_ics.services.ics.validator import ValidationResult, validate_ics

logger = logging.getLogger(__name__)


class IcsEngine:
    """Serialize, validate and parse calendar documents under one configuration.

    Holds no mutable state; a single instance can be shared across threads.
    """

    def __init__(self, config: IcsConfig | None = None, clock: Callable[[], datetime] = utc_now) -> None:
        self.config = config or IcsConfig()
        self.serializer = IcsSerializer(self.config, clock=clock)

    def build_record(self, data: dict[str, Any] | EventRecord) -> EventRecord:
        if isinstance(data, EventRecord):
            return data
        if looks_extracted(data):
            data = ExtractedEvent.from_data(data).to_record_data()
        return EventRecord.from_data(data, default_timezone=self.config.default_timezone)

    def build_document(
        self,
        events: dict[str, Any] | EventRecord | Sequence[dict[str, Any] | EventRecord],
        method: Method | None = None,
    ) -> CalendarDocument:
        items = [events] if isinstance(events, (dict, EventRecord)) else list(events)
        records = [self.build_record(item) for item in items]
        return CalendarDocument.of(records, method=method)

    def serialize(self, document: CalendarDocument, from_email: str | None = None) -> str:
        return self.serializer.serialize(document, from_email=from_email)

    def validate(self, ics_content: str) -> ValidationResult:
        result = validate_ics(ics_content)
        if not result.valid:
            logger.warning("Calendar document failed validation errors=%s", result.errors)
        return result

    def parse(self, ics_content: str) -> list[EventRecord]:
        return parse_ics(ics_content, default_timezone=self.config.default_timezone)

    def generate_uid(self, record: EventRecord) -> str:
        return self.serializer.uid_generator.generate(record)
