"""Free-text relevance over RFQ title and description. Bag-of-words, no heavy deps."""

import math
from collections import Counter

from rfq_market.matching import document_tokens, query_tokens

_SUFFIXES = ("ing", "es", "ed", "s")


def stem(token: str) -> str:
    """
    Strip one common English suffix, then a trailing 'e', so that
    'designs'/'designing' meet 'design' and 'services' meets 'service'.
    The stem is always a prefix of the token.
    """
    for suffix in _SUFFIXES:
        if token.endswith(suffix) and len(token) - len(suffix) >= 3:
            if suffix == "s" and token.endswith("ss"):
                break
            token = token[: -len(suffix)]
            break
    if token.endswith("e") and len(token) > 3:
        token = token[:-1]
    return token


def query_terms(query: str | None) -> list[str]:
    """Stemmed, de-duplicated, stopword-free terms of a search query."""
    return list(dict.fromkeys(stem(t) for t in query_tokens(query)))


def _tf(text: str) -> Counter:
    """Stemmed term frequency for text."""
    return Counter(stem(t) for t in document_tokens(text))


def relevance(terms: list[str], title: str, description: str) -> float:
    """
    Score a document against query terms. Title hits weigh double; the sum
    is damped by log document length so long descriptions don't dominate.
    Returns 0.0 when any term is missing (every term must match).
    """
    if not terms:
        return 0.0
    title_tf = _tf(title)
    body_tf = _tf(description)
    if any(title_tf[t] == 0 and body_tf[t] == 0 for t in terms):
        return 0.0
    hits = sum(2 * title_tf[t] + body_tf[t] for t in terms)
    length = sum(title_tf.values()) + sum(body_tf.values())
    return round(hits / (1.0 + math.log(max(length, 1))), 6)

