"""Unit tests for the profile summary module."""

from collections.abc import Callable

from rateit.challenges import create_challenge
from rateit.cli_status import format_distribution, format_profile_text, get_profile_summary
from rateit.context import AppContext
from rateit.models import ContentKey, ContentType, Profile
from rateit.pins import pin
from rateit.social import follow


class TestGetProfileSummary:
    def test_empty_profile(self, app: AppContext):
        result = get_profile_summary(app, "alice")

        assert result["profile"]["username"] == "alice"
        assert result["stats"]["total_ratings"] == 0
        assert result["stats"]["average_score"] is None
        assert result["distribution"] is None
        assert result["pinned"] == []
        assert result["challenges"] == []

    def test_with_ratings(self, app: AppContext, store_rating: Callable):
        for i, score in enumerate([8.0, 8.0, 6.5]):
            store_rating("alice", str(i), score=score)

        result = get_profile_summary(app, "alice")

        assert result["stats"]["total_ratings"] == 3
        assert result["stats"]["average_score"] == 7.5
        assert result["distribution"]["total_ratings"] == 3
        assert result["stats"]["categories"][0]["content_type"] == "movie"

    def test_follows_pins_and_challenges(self, app: AppContext, bob: Profile):
        follow(app, "bob")
        pin(app, ContentKey(ContentType.BOOK, "b1"), "Dune")
        create_challenge(app, 2024, "book", 10)

        result = get_profile_summary(app, "alice", year=2024)

        assert result["follows"] == {"followers": 0, "following": 1}
        assert result["pinned"] == [{"position": 1, "content_type": "book", "title": "Dune"}]
        assert result["challenges"][0]["progress"] == 0
        assert result["challenges"][0]["completed"] is False


class TestFormatProfileText:
    def test_empty_profile(self, app: AppContext):
        output = format_profile_text(app, "alice")

        assert "Alice (@alice)" in output
        assert "Ratings: 0  Average: -" in output
        assert "Score distribution" not in output

    def test_with_distribution(self, app: AppContext, store_rating: Callable):
        for i in range(3):
            store_rating("alice", str(i), score=9.0)

        output = format_profile_text(app, "alice")

        assert "Average: 9.0/10" in output
        assert "Score distribution:" in output
        assert " 9.0 " in output


class TestFormatDistribution:
    def test_skips_empty_buckets(self):
        data = {
            "max_count": 4,
            "buckets": [
                {"score": 0.0, "total_count": 0},
                {"score": 5.0, "total_count": 4},
                {"score": 7.5, "total_count": 1},
            ],
        }
        lines = format_distribution(data, width=8)

        assert lines == ["   5.0 ######## 4", "   7.5 ## 1"]
