"""Unit tests for text normalization and tokenization."""

from rfq_market.matching import (
    MAX_KEYWORD_CHARS,
    clean_text,
    normalize_keyword,
    normalize_keywords,
    query_tokens,
    whitespace_tokens,
)


class TestNormalizeKeyword:
    """Tests for keyword canonical form."""

    def test_trim_and_lower(self) -> None:
        assert normalize_keyword("  Web Design ") == "web design"

    def test_collapse_inner_whitespace(self) -> None:
        assert normalize_keyword("web \t  design") == "web design"

    def test_truncated_to_max(self) -> None:
        assert len(normalize_keyword("x" * 80)) == MAX_KEYWORD_CHARS

    def test_blank_normalizes_to_empty(self) -> None:
        assert normalize_keyword("   ") == ""

    def test_batch_dedupes_in_first_seen_order(self) -> None:
        """Case and whitespace variants collapse to one entry."""
        assert normalize_keywords(["Design", "design ", "Logo", "", "  "]) == ["design", "logo"]

    def test_batch_of_nothing(self) -> None:
        assert normalize_keywords([]) == []
        assert normalize_keywords(None) == []


class TestTokens:
    def test_query_tokens_drop_stopwords(self) -> None:
        assert query_tokens("The design of a Logo") == ["design", "logo"]

    def test_query_tokens_no_repeats(self) -> None:
        assert query_tokens("logo logo LOGO") == ["logo"]

    def test_query_tokens_unicode_words(self) -> None:
        assert query_tokens("Café in ZÜRICH, snake_case") == ["café", "zürich", "snake", "case"]

    def test_whitespace_tokens(self) -> None:
        assert whitespace_tokens("  Web   Design ") == ["web", "design"]
        assert whitespace_tokens(None) == []

    def test_clean_text(self) -> None:
        assert clean_text("  a\x00b\x1fc  ") == "abc"
        assert clean_text("abcdef", 3) == "abc"
        assert clean_text(None) == ""

