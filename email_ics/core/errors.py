from __future__ import annotations

from typing import Iterable


class IcsError(Exception):
    """Base class for calendar engine errors."""


class ValidationError(IcsError):
    def __init__(self, fields: Iterable[str], message: str | None = None) -> None:
        self.fields = tuple(fields)
        self.message = message or f"Missing or invalid event field(s): {', '.join(self.fields)}"
        super().__init__(self.message)


class MalformedInputError(IcsError):
    def __init__(self, field: str, value: object, message: str | None = None) -> None:
        self.field = field
        self.value = value
        self.message = message or f"Unparseable value for {field}: {value!r}"
        super().__init__(self.message)


class SerializationError(IcsError):
    pass


class ParseError(IcsError):
    pass
