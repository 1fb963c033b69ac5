"""Unit tests for shared utilities."""

import pytest

from rateit.models import Bookmark, ContentType
from rateit.utils import group_by_category, normalize_title, optimistic_update, title_score, titles_match, truncate


class TestNormalizeTitle:
    def test_strips_articles_and_punctuation(self) -> None:
        assert normalize_title("The Lord of the Rings!") == "lord of the rings"

    def test_empty(self) -> None:
        assert normalize_title("") == ""


class TestTitlesMatch:
    def test_exact_after_normalization(self) -> None:
        assert titles_match("The Best Pizza", "best pizza")

    def test_reordered_words(self) -> None:
        assert titles_match("pizza best", "Best Pizza")

    def test_different_titles(self) -> None:
        assert not titles_match("Grandma's lasagna", "Uncle's barbecue")

    def test_missing_title(self) -> None:
        assert not titles_match(None, "Something")


class TestTitleScore:
    def test_substring_scores_full(self) -> None:
        assert title_score("lasagna", "Grandma's Lasagna") == 100.0

    def test_empty_query(self) -> None:
        assert title_score("", "Anything") == 0.0


class TestGroupByCategory:
    def test_groups_in_first_seen_order(self) -> None:
        items = [
            Bookmark(id="1", user_id="u", content_type=ContentType.BOOK, content_id="b", content_title="B"),
            Bookmark(id="2", user_id="u", content_type=ContentType.MOVIE, content_id="m", content_title="M"),
            Bookmark(id="3", user_id="u", content_type=ContentType.BOOK, content_id="c", content_title="C"),
        ]
        grouped = group_by_category(items)
        assert list(grouped) == ["book", "movie"]
        assert [b.id for b in grouped["book"]] == ["1", "3"]


class TestOptimisticUpdate:
    def test_applies_tentative_then_confirmed(self) -> None:
        shown: list[bool] = []
        result = optimistic_update(False, True, shown.append, lambda: True)
        assert result is True
        assert shown == [True, True]

    def test_restores_on_failure(self) -> None:
        shown: list[bool] = []

        def fail() -> bool:
            raise RuntimeError("network down")

        with pytest.raises(RuntimeError):
            optimistic_update(False, True, shown.append, fail)
        assert shown == [True, False]


class TestTruncate:
    def test_short_text_unchanged(self) -> None:
        assert truncate("short", 10) == "short"

    def test_long_text_cut(self) -> None:
        assert truncate("a" * 20, 10) == "a" * 9 + "…"

    def test_none(self) -> None:
        assert truncate(None, 10) == ""
