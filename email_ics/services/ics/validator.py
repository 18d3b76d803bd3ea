from __future__ import annotations

from dataclasses import dataclass, field

from email_ics.services.ics.text import content_lines


@dataclass(frozen=True)
class ValidationResult:
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def validate_ics(ics_content: str) -> ValidationResult:
    """Structural check of a calendar document.

    Only the container layout and the required VEVENT properties are checked;
    date values are not re-validated. Names and markers compare case-insensitively.
    """
    errors: list[str] = []
    lines = [line.strip().upper() for line in content_lines(ics_content)]
    names = [_property_name(line) for line in lines]

    begin_calendar = lines.count("BEGIN:VCALENDAR")
    end_calendar = lines.count("END:VCALENDAR")
    if begin_calendar == 0:
        errors.append("Missing BEGIN:VCALENDAR")
    if end_calendar == 0:
        errors.append("Missing END:VCALENDAR")
    if begin_calendar > 1 or end_calendar > 1:
        errors.append("Multiple VCALENDAR blocks")
    if begin_calendar == 1 and end_calendar == 1:
        if lines.index("END:VCALENDAR") < lines.index("BEGIN:VCALENDAR"):
            errors.append("END:VCALENDAR precedes BEGIN:VCALENDAR")

    if "VERSION:2.0" not in lines:
        errors.append("Missing VERSION:2.0")

    begin_events = lines.count("BEGIN:VEVENT")
    end_events = lines.count("END:VEVENT")
    if begin_events != end_events:
        errors.append(f"Mismatched VEVENT blocks: {begin_events} BEGIN vs {end_events} END")
    if begin_events == 0:
        errors.append("No events found")

    for index, block in enumerate(_event_blocks(lines, names), start=1):
        for required in ("UID", "DTSTART", "SUMMARY"):
            if required not in block:
                errors.append(f"Event {index}: Missing {required}")

    return ValidationResult(errors=errors)


def _event_blocks(lines: list[str], names: list[str]) -> list[set[str]]:
    blocks: list[set[str]] = []
    current: set[str] | None = None
    for line, name in zip(lines, names):
        if line == "BEGIN:VEVENT":
            current = set()
            blocks.append(current)
        elif line == "END:VEVENT":
            current = None
        elif current is not None:
            current.add(name)
    return blocks


def _property_name(line: str) -> str:
    cut = len(line)
    for sep in (";", ":"):
        pos = line.find(sep)
        if pos != -1:
            cut = min(cut, pos)
    return line[:cut].upper()
