from __future__ import annotations

import argparse
from datetime import datetime
from pathlib import Path
import sys

from email_ics.config import IcsConfig, Settings
from email_ics.core.env import load_env
from email_ics.core.errors import ParseError
from email_ics.domain.schemas.event import EventRecord
from email_ics.logging import configure_logging
from email_ics.services.ics.engine import IcsEngine


def format_event(record: EventRecord) -> str:
    if record.is_all_day:
        when = record.dtstart.isoformat()
        if record.dtend is not None:
            when = f"{when} -> {record.dtend.isoformat()}"
        when = f"{when} (all day)"
    else:
        when = record.dtstart.isoformat(sep=" ")
        if isinstance(record.dtend, datetime):
            when = f"{when} -> {record.dtend.isoformat(sep=' ')}"
        when = f"{when} {record.timezone}"

    parts = [f"- {record.summary}", f"  when: {when}", f"  status: {record.status.value}"]
    if record.location:
        parts.append(f"  location: {record.location}")
    if record.url:
        parts.append(f"  url: {record.url}")
    if record.organizer:
        parts.append(f"  organizer: {record.organizer.name or ''} <{record.organizer.email}>")
    if record.description:
        parts.append(f"  description: {record.description}")
    return "\n".join(parts)


def preview(ics_content: str, engine: IcsEngine) -> list[str]:
    result = engine.validate(ics_content)
    lines = [f"valid={result.valid}"]
    lines.extend(f"! {error}" for error in result.errors)
    records = engine.parse(ics_content)
    lines.append(f"events={len(records)}")
    lines.extend(format_event(record) for record in records)
    return lines


def main() -> None:
    parser = argparse.ArgumentParser(description="Print the events of an .ics file for review.")
    parser.add_argument("path", help=".ics file to read")
    parser.add_argument("--env-file", default=None, help="dotenv file to load before reading settings")
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args()

    load_env(args.env_file)
    configure_logging(args.log_level)

    engine = IcsEngine(IcsConfig.from_settings(Settings()))
    try:
        lines = preview(Path(args.path).read_text(encoding="utf-8"), engine)
    except ParseError as exc:
        print(f"Not a calendar file: {exc}")
        sys.exit(1)
    print("\n".join(lines))


if __name__ == "__main__":
    main()
