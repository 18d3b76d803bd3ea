from __future__ import annotations

from enum import Enum
import hashlib
from typing import TYPE_CHECKING
from uuid import uuid4

if TYPE_CHECKING:
    from email_ics.domain.schemas.event import EventRecord

UID_HASH_LENGTH = 32


class UidPolicy(str, Enum):
    CONTENT_HASH = "content_hash"
    RANDOM = "random"


class UidGenerator:
    def __init__(self, domain_suffix: str, policy: UidPolicy = UidPolicy.CONTENT_HASH) -> None:
        self.domain_suffix = domain_suffix
        self.policy = policy

    def generate(self, record: "EventRecord", salt: int = 0) -> str:
        """Return ``record.uid`` if set, otherwise a new uid under the policy.

        ``salt`` re-derives a content-hash uid when an earlier event in the
        same document already produced it.
        """
        if record.uid:
            return record.uid
        if self.policy == UidPolicy.RANDOM:
            return f"{uuid4().hex}@{self.domain_suffix}"
        return f"{_content_hash(record, salt)}@{self.domain_suffix}"


def _content_hash(record: "EventRecord", salt: int) -> str:
    raw = f"{record.summary}|{record.dtstart.isoformat()}|{record.location or ''}"
    if salt:
        raw = f"{raw}|{salt}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:UID_HASH_LENGTH]
