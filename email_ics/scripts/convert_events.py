from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys
from typing import Any

from email_ics.config import IcsConfig, Settings
from email_ics.core.env import is_strict_validation_enabled, load_env
from email_ics.core.errors import IcsError
from email_ics.domain.schemas.event import Method
from email_ics.logging import configure_logging
from email_ics.services.delivery.attachment import email_subject
from email_ics.services.ics.engine import IcsEngine


def convert_events(
    payload: Any,
    engine: IcsEngine,
    method: Method | None = None,
    from_email: str | None = None,
    strict: bool = False,
) -> dict[str, Any]:
    if isinstance(payload, dict) and isinstance(payload.get("events"), list):
        payload = payload["events"]
    document = engine.build_document(payload, method=method)
    ics_content = engine.serialize(document, from_email=from_email)
    result = engine.validate(ics_content)
    if strict and not result.valid:
        raise IcsError(f"Generated calendar failed validation: {'; '.join(result.errors)}")

    return {
        "ics_content": ics_content,
        "subject": email_subject(document.events),
        "events_count": len(document.events),
        "valid": result.valid,
        "errors": result.errors,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Convert event JSON into an .ics calendar file.")
    parser.add_argument("input", help="JSON file with one event object or a list of events")
    parser.add_argument("output", help="Path of the .ics file to write")
    parser.add_argument("--method", choices=[m.value for m in Method], default=None)
    parser.add_argument("--from-email", default=None, help="Organizer email when events carry none")
    parser.add_argument("--env-file", default=None, help="dotenv file to load before reading settings")
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args()

    load_env(args.env_file)
    configure_logging(args.log_level)

    payload = json.loads(Path(args.input).read_text(encoding="utf-8"))
    engine = IcsEngine(IcsConfig.from_settings(Settings()))
    try:
        summary = convert_events(
            payload,
            engine,
            method=Method(args.method) if args.method else None,
            from_email=args.from_email,
            strict=is_strict_validation_enabled(),
        )
    except IcsError as exc:
        print(f"Conversion failed: {exc}")
        sys.exit(1)

    Path(args.output).write_bytes(summary["ics_content"].encode("utf-8"))
    print(
        f"wrote={args.output} events={summary['events_count']} "
        f"valid={summary['valid']} subject={summary['subject']!r}"
    )
    for error in summary["errors"]:
        print(f"- {error}")


if __name__ == "__main__":
    main()
