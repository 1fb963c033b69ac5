"""Rating statistics: score distribution, profile stats, streaks, diary."""

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from .config import MIN_RATINGS_FOR_DISTRIBUTION
from .context import AppContext
from .models import ContentType, Rating, utcnow
from .scoring import BUCKETS, clamp, round1

_TYPE_ORDER = {t.value: i for i, t in enumerate(ContentType)}


@dataclass
class Segment:
    content_type: str
    count: int


@dataclass
class Bucket:
    score: float
    total_count: int = 0
    segments: list[Segment] = field(default_factory=list)


@dataclass
class ScoreDistribution:
    buckets: list[Bucket]
    max_count: int
    total_ratings: int

    @property
    def should_render(self) -> bool:
        return self.total_ratings >= MIN_RATINGS_FOR_DISTRIBUTION

    def to_dict(self) -> dict[str, Any]:
        return {
            "buckets": [
                {
                    "score": b.score,
                    "total_count": b.total_count,
                    "segments": [{"content_type": s.content_type, "count": s.count} for s in b.segments],
                }
                for b in self.buckets
            ],
            "max_count": self.max_count,
            "total_ratings": self.total_ratings,
        }


@dataclass
class CategoryStats:
    content_type: str
    count: int
    average: float


@dataclass
class ProfileStats:
    total_ratings: int
    average_score: float | None
    categories: list[CategoryStats]


@dataclass
class CommunityScore:
    average: float | None
    count: int


def _snap_bucket(score: float) -> float:
    # round(score * 2) / 2 with half-up so legacy values land deterministically
    doubled = score * 2
    return clamp(int(doubled + 0.5) / 2 if doubled >= 0 else 0.0)


def build_distribution(rows: list[tuple[float, str]]) -> ScoreDistribution:
    """Bucket (score, content_type) pairs into the 21 fixed score bins.

    Args:
        rows: Score and content type of each rating

    Returns:
        ScoreDistribution with buckets in ascending score order
    """
    counts: Counter[tuple[float, str]] = Counter((_snap_bucket(score), ctype) for score, ctype in rows)

    buckets = []
    for value in BUCKETS:
        segments = [Segment(ctype, n) for (bucket, ctype), n in counts.items() if bucket == value]
        segments.sort(key=lambda s: (-s.count, _TYPE_ORDER.get(s.content_type, len(_TYPE_ORDER))))
        buckets.append(Bucket(score=value, total_count=sum(s.count for s in segments), segments=segments))

    max_count = max([b.total_count for b in buckets] + [1])
    return ScoreDistribution(buckets=buckets, max_count=max_count, total_ratings=len(rows))


def score_distribution(ctx: AppContext, user_id: str) -> ScoreDistribution:
    return ctx.cache.get_or_compute(
        ("score-distribution", user_id),
        lambda: build_distribution(ctx.db.get_score_rows(user_id)),
    )


def build_profile_stats(rows: list[tuple[float, str]]) -> ProfileStats:
    if not rows:
        return ProfileStats(total_ratings=0, average_score=None, categories=[])

    by_type: dict[str, list[float]] = defaultdict(list)
    for score, ctype in rows:
        by_type[ctype].append(score)

    categories = [CategoryStats(ctype, len(scores), round1(sum(scores) / len(scores))) for ctype, scores in by_type.items()]
    categories.sort(key=lambda c: (-c.count, _TYPE_ORDER.get(c.content_type, len(_TYPE_ORDER))))

    total = sum(score for score, _ in rows)
    return ProfileStats(total_ratings=len(rows), average_score=round1(total / len(rows)), categories=categories)


def profile_stats(ctx: AppContext, user_id: str) -> ProfileStats:
    return ctx.cache.get_or_compute(
        ("profile-stats", user_id),
        lambda: build_profile_stats(ctx.db.get_score_rows(user_id)),
    )


def community_score(ctx: AppContext, content_type: ContentType, content_id: str) -> CommunityScore:
    """Average score of a content item across all users."""

    def compute() -> CommunityScore:
        scores = ctx.db.get_content_scores(content_type, content_id)
        if not scores:
            return CommunityScore(average=None, count=0)
        return CommunityScore(average=round1(sum(scores) / len(scores)), count=len(scores))

    return ctx.cache.get_or_compute(("community-score", content_type.value, content_id), compute)


def compute_streak(timestamps: list[datetime], today: date) -> int:
    """Count consecutive days ending today with at least one rating."""
    days = {ts.date() for ts in timestamps}
    streak = 0
    current = today
    while current in days:
        streak += 1
        current -= timedelta(days=1)
    return streak


def streak(ctx: AppContext, user_id: str, today: date | None = None) -> int:
    day = today or utcnow().date()
    return ctx.cache.get_or_compute(
        ("streak", user_id, day),
        lambda: compute_streak(ctx.db.get_rating_timestamps(user_id), day),
    )


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


def diary(ctx: AppContext, user_id: str, year: int, month: int) -> dict[str, list[Rating]]:
    """Ratings of one month grouped by UTC day (``YYYY-MM-DD``), days ascending."""

    def compute() -> dict[str, list[Rating]]:
        start, end = month_bounds(year, month)
        grouped: dict[str, list[Rating]] = defaultdict(list)
        for rating in ctx.db.get_ratings_in_range(user_id, start, end):
            grouped[rating.created_at.strftime("%Y-%m-%d")].append(rating)
        return dict(grouped)

    return ctx.cache.get_or_compute(("diary", user_id, year, month), compute)
