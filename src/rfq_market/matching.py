"""Shared text normalization and tokenization for keywords, search and trends."""

import re

MAX_KEYWORD_CHARS = 50

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")
# Unicode letters and digits; underscore splits words
_TOKEN = re.compile(r"[^\W_]+")

# Dropped from free-text queries, like plainto_tsquery('english', ...)
STOPWORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "in",
        "is", "it", "of", "on", "or", "that", "the", "to", "was", "with",
    }
)


def clean_text(text: str | None, max_chars: int | None = None) -> str:
    """Strip surrounding whitespace, drop control characters, optionally truncate."""
    cleaned = _CONTROL_CHARS.sub("", text or "").strip()
    if max_chars is not None:
        cleaned = cleaned[:max_chars].rstrip()
    return cleaned


def normalize_keyword(keyword: object) -> str:
    """
    Canonical keyword form: trimmed, lower-cased, inner whitespace collapsed,
    at most 50 chars. Returns "" for values that normalize to nothing.
    """
    text = clean_text(str(keyword)).lower()
    text = _WHITESPACE.sub(" ", text)
    return text[:MAX_KEYWORD_CHARS].strip()


def normalize_keywords(keywords: list) -> list[str]:
    """Normalize a batch, dropping empties and duplicates while keeping first-seen order."""
    seen: dict[str, None] = {}
    for kw in keywords or []:
        norm = normalize_keyword(kw)
        if norm:
            seen.setdefault(norm, None)
    return list(seen)


def query_tokens(text: str | None) -> list[str]:
    """Case-folded word tokens of a free-text query, stopwords removed, order kept, no repeats."""
    tokens = _TOKEN.findall((text or "").casefold())
    return list(dict.fromkeys(t for t in tokens if t not in STOPWORDS))


def document_tokens(text: str | None) -> list[str]:
    """All case-folded word tokens of a document (stopwords included, for length)."""
    return _TOKEN.findall((text or "").casefold())


def whitespace_tokens(text: str | None) -> list[str]:
    """Split a search query on whitespace the way the trend counters expect."""
    return (text or "").strip().lower().split()

