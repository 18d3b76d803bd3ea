from __future__ import annotations

import re

CRLF = "\r\n"
MAX_LINE_OCTETS = 75

_UNFOLD_RE = re.compile(r"\r?\n[ \t]")
_UNESCAPE_MAP = {"n": "\n", "N": "\n", ";": ";", ",": ",", "\\": "\\"}


def escape_text(value: str) -> str:
    """Escape a TEXT value (RFC 5545 section 3.3.11)."""
    value = value.replace("\r", "")
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def unescape_text(value: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "\\" and i + 1 < len(value):
            nxt = value[i + 1]
            out.append(_UNESCAPE_MAP.get(nxt, nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def fold_line(line: str, limit: int = MAX_LINE_OCTETS) -> str:
    """Fold one content line at ``limit`` UTF-8 octets.

    Continuation lines start with a single space, which counts toward the
    limit. Multi-byte characters and backslash escape pairs are never split.
    """
    if len(line.encode("utf-8")) <= limit:
        return line

    parts: list[str] = []
    current: list[str] = []
    used = 0
    budget = limit
    for token in _tokens(line):
        size = len(token.encode("utf-8"))
        if used + size > budget and current:
            parts.append("".join(current))
            current = []
            used = 0
            budget = limit - 1
        current.append(token)
        used += size
    if current:
        parts.append("".join(current))
    return f"{CRLF} ".join(parts)


def unfold(text: str) -> str:
    return _UNFOLD_RE.sub("", text)


def content_lines(text: str) -> list[str]:
    """Unfold ``text`` and split it into non-empty content lines."""
    return [line for line in unfold(text).replace("\r\n", "\n").split("\n") if line.strip()]


def octet_length(line: str) -> int:
    return len(line.encode("utf-8"))


def _tokens(line: str):
    i = 0
    while i < len(line):
        if line[i] == "\\" and i + 1 < len(line):
            yield line[i : i + 2]
            i += 2
        else:
            yield line[i]
            i += 1
