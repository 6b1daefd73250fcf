"""Sanitize user-supplied values before they reach a log record."""

import re

_MAX_LOG_CHARS = 200

_CONTROL_CHARS = re.compile(r"[\r\n\t\x00\x08\x0b\x0c\x1b]")
_SECRET_HEADERS = re.compile(r"(authorization|set-cookie|x-csrf-token)\s*:\s*[^,\n]+", re.IGNORECASE)
_BEARER = re.compile(r"(Bearer)\s+[A-Za-z0-9\-_.]+")


def redact(text: str) -> str:
    """Mask authorization headers and bearer tokens."""
    out = _SECRET_HEADERS.sub(r"\1: [REDACTED]", text)
    return _BEARER.sub(r"\1 [REDACTED]", out)


def sanitize_for_log(value: object, max_chars: int = _MAX_LOG_CHARS) -> str:
    """
    Render any value as a single-line, redacted, truncated string.
    Control characters become spaces so a value cannot forge extra log lines.
    """
    text = _CONTROL_CHARS.sub(" ", redact(str(value)))
    if len(text) > max_chars:
        return text[:max_chars] + "..."
    return text
