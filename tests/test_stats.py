"""Tests for score distribution and profile statistics."""

from datetime import date, datetime, timedelta

from rateit.context import AppContext
from rateit.db import Database
from rateit.models import ContentKey, ContentType, Rating
from rateit.ratings import RatingFields, upsert_rating
from rateit.stats import (
    build_distribution,
    build_profile_stats,
    community_score,
    compute_streak,
    diary,
    score_distribution,
    streak,
)


def _store(db: Database, rating_id: str, user_id: str, content_id: str, score: float, created_at: datetime, **kw) -> None:
    db.upsert_rating(
        Rating(
            id=rating_id,
            user_id=user_id,
            content_type=kw.get("content_type", ContentType.MOVIE),
            content_id=content_id,
            content_title=f"Title {content_id}",
            score=score,
            created_at=created_at,
            updated_at=created_at,
        )
    )


class TestScoreDistribution:
    def test_zero_ratings(self, app: AppContext) -> None:
        dist = score_distribution(app, "alice")
        assert len(dist.buckets) == 21
        assert all(b.total_count == 0 and b.segments == [] for b in dist.buckets)
        assert dist.total_ratings == 0
        assert dist.max_count == 1
        assert dist.should_render is False

    def test_counts_and_segments(self) -> None:
        rows = [(8.0, "movie"), (8.0, "book"), (8.0, "movie"), (3.5, "game"), (10.0, "music")]
        dist = build_distribution(rows)

        by_score = {b.score: b for b in dist.buckets}
        assert by_score[8.0].total_count == 3
        assert [(s.content_type, s.count) for s in by_score[8.0].segments] == [("movie", 2), ("book", 1)]
        assert by_score[3.5].total_count == 1
        assert by_score[10.0].total_count == 1
        assert dist.max_count == 3
        assert dist.total_ratings == 5
        assert dist.should_render is True

    def test_sums_are_consistent(self) -> None:
        rows = [(i * 0.37 % 10, t.value) for i, t in zip(range(60), list(ContentType) * 9)]
        dist = build_distribution(rows)
        assert sum(b.total_count for b in dist.buckets) == len(rows)
        for bucket in dist.buckets:
            assert sum(s.count for s in bucket.segments) == bucket.total_count

    def test_legacy_scores_resnapped(self) -> None:
        dist = build_distribution([(7.3, "movie"), (7.1, "movie"), (12.0, "book")])
        by_score = {b.score: b.total_count for b in dist.buckets}
        assert by_score[7.5] == 1
        assert by_score[7.0] == 1
        assert by_score[10.0] == 1

    def test_segment_ties_follow_type_order(self) -> None:
        dist = build_distribution([(5.0, "game"), (5.0, "movie")])
        bucket = next(b for b in dist.buckets if b.score == 5.0)
        assert [s.content_type for s in bucket.segments] == ["movie", "game"]

    def test_below_render_threshold(self) -> None:
        assert build_distribution([(5.0, "movie"), (6.0, "movie")]).should_render is False


class TestProfileStats:
    def test_empty(self) -> None:
        stats = build_profile_stats([])
        assert stats.total_ratings == 0
        assert stats.average_score is None
        assert stats.categories == []

    def test_averages_and_order(self) -> None:
        stats = build_profile_stats([(8.0, "book"), (7.0, "book"), (9.0, "movie"), (6.5, "book")])
        assert stats.total_ratings == 4
        assert stats.average_score == 7.6
        assert [(c.content_type, c.count, c.average) for c in stats.categories] == [("book", 3, 7.2), ("movie", 1, 9.0)]


class TestCommunityScore:
    def test_average_across_users(self, db: Database, app: AppContext) -> None:
        now = datetime(2024, 5, 1)
        _store(db, "r1", "alice", "42", 8.0, now)
        _store(db, "r2", "bob", "42", 7.0, now)
        _store(db, "r3", "carol", "42", 9.5, now)
        _store(db, "r4", "carol", "43", 1.0, now)

        score = community_score(app, ContentType.MOVIE, "42")
        assert score.count == 3
        assert score.average == 8.2

    def test_unrated(self, app: AppContext) -> None:
        score = community_score(app, ContentType.BOOK, "nothing")
        assert score.count == 0
        assert score.average is None


class TestStreak:
    def test_consecutive_days(self) -> None:
        today = date(2024, 5, 10)
        stamps = [datetime(2024, 5, 10, 9), datetime(2024, 5, 9, 23), datetime(2024, 5, 8, 1), datetime(2024, 5, 6)]
        assert compute_streak(stamps, today) == 3

    def test_no_rating_today(self) -> None:
        assert compute_streak([datetime(2024, 5, 9)], date(2024, 5, 10)) == 0

    def test_streak_for_user(self, app: AppContext) -> None:
        upsert_rating(app, ContentKey(ContentType.MOVIE, "1"), RatingFields(content_title="One", score=5.0))
        assert streak(app, "alice") == 1


class TestDiary:
    def test_groups_by_day(self, db: Database, app: AppContext) -> None:
        _store(db, "r1", "alice", "1", 5.0, datetime(2024, 3, 1, 10))
        _store(db, "r2", "alice", "2", 6.0, datetime(2024, 3, 1, 22))
        _store(db, "r3", "alice", "3", 7.0, datetime(2024, 3, 15))
        _store(db, "r4", "alice", "4", 7.0, datetime(2024, 4, 1))
        _store(db, "r5", "alice", "5", 7.0, datetime(2024, 2, 29, 23, 59))

        days = diary(app, "alice", 2024, 3)
        assert sorted(days) == ["2024-03-01", "2024-03-15"]
        assert [r.id for r in days["2024-03-01"]] == ["r1", "r2"]

    def test_december(self, db: Database, app: AppContext) -> None:
        _store(db, "r1", "alice", "1", 5.0, datetime(2024, 12, 31, 23))
        _store(db, "r2", "alice", "2", 5.0, datetime(2025, 1, 1) + timedelta(seconds=1))
        assert list(diary(app, "alice", 2024, 12)) == ["2024-12-31"]
