"""Trending lists and friend suggestions built from the follow graph."""

from dataclasses import dataclass
from datetime import timedelta

from .config import (
    FRIENDS_TRENDING_DAYS,
    FRIENDS_TRENDING_FETCH,
    GLOBAL_TRENDING_DAYS,
    GLOBAL_TRENDING_FETCH,
    SUGGESTION_DAYS,
    SUGGESTION_FETCH,
    SUGGESTION_MIN_SCORE,
    TRENDING_LIMIT,
)
from .context import AppContext
from .models import ContentType, Profile, Rating, utcnow
from .ratings import public_view
from .scoring import round1


@dataclass
class TrendingFriendItem:
    rating: Rating
    author: Profile | None
    like_count: int


@dataclass
class GlobalTrendingItem:
    content_type: ContentType
    content_id: str
    content_title: str
    content_image_url: str | None
    rating_count: int
    average_score: float


@dataclass
class SuggestedItem:
    content_type: ContentType
    content_id: str
    content_title: str
    content_image_url: str | None
    best_score: float
    friend_count: int


def _friend_ids(ctx: AppContext, user_id: str) -> list[str]:
    return [fid for fid in ctx.db.get_following_ids(user_id) if fid != user_id]


def friends_trending(ctx: AppContext, user_id: str, limit: int = TRENDING_LIMIT) -> list[TrendingFriendItem]:
    """Recent ratings by followed users, most liked first."""

    def compute() -> list[TrendingFriendItem]:
        friends = _friend_ids(ctx, user_id)
        if not friends:
            return []
        since = utcnow() - timedelta(days=FRIENDS_TRENDING_DAYS)
        ratings = ctx.db.get_ratings_by_users(friends, since=since, limit=FRIENDS_TRENDING_FETCH)
        likes = ctx.db.count_likes([r.id for r in ratings])
        authors = ctx.db.get_profiles(list({r.user_id for r in ratings}))
        items = [TrendingFriendItem(public_view(r), authors.get(r.user_id), likes.get(r.id, 0)) for r in ratings]
        # Stable sort keeps newest first among equal like counts
        items.sort(key=lambda i: -i.like_count)
        return items[:limit]

    return ctx.cache.get_or_compute(("trending", user_id, "friends", limit), compute)


def global_trending(ctx: AppContext, limit: int = TRENDING_LIMIT) -> list[GlobalTrendingItem]:
    """Most rated content of the last month across all users."""

    def compute() -> list[GlobalTrendingItem]:
        since = utcnow() - timedelta(days=GLOBAL_TRENDING_DAYS)
        ratings = ctx.db.get_recent_ratings(since, GLOBAL_TRENDING_FETCH)

        groups: dict[tuple[str, ContentType], list[Rating]] = {}
        for rating in ratings:
            groups.setdefault((rating.content_id, rating.content_type), []).append(rating)

        items = []
        for (content_id, content_type), group in groups.items():
            newest = group[0]
            items.append(
                GlobalTrendingItem(
                    content_type=content_type,
                    content_id=content_id,
                    content_title=newest.content_title,
                    content_image_url=newest.content_image_url,
                    rating_count=len(group),
                    average_score=round1(sum(r.score for r in group) / len(group)),
                )
            )
        items.sort(key=lambda i: -i.rating_count)
        return items[:limit]

    return ctx.cache.get_or_compute(("trending", None, "global", limit), compute)


def suggestions(ctx: AppContext, user_id: str, limit: int = TRENDING_LIMIT) -> list[SuggestedItem]:
    """Content highly rated by friends that the user has not rated yet."""

    def compute() -> list[SuggestedItem]:
        friends = _friend_ids(ctx, user_id)
        if not friends:
            return []
        since = utcnow() - timedelta(days=SUGGESTION_DAYS)
        ratings = ctx.db.get_ratings_by_users(
            friends,
            since=since,
            min_score=SUGGESTION_MIN_SCORE,
            limit=SUGGESTION_FETCH,
        )
        own = {r.key for r in ctx.db.get_user_ratings(user_id)}

        groups: dict[tuple[str, ContentType], list[Rating]] = {}
        for rating in ratings:
            if rating.key in own:
                continue
            groups.setdefault((rating.content_id, rating.content_type), []).append(rating)

        items = [
            SuggestedItem(
                content_type=content_type,
                content_id=content_id,
                content_title=group[0].content_title,
                content_image_url=group[0].content_image_url,
                best_score=max(r.score for r in group),
                friend_count=len({r.user_id for r in group}),
            )
            for (content_id, content_type), group in groups.items()
        ]
        items.sort(key=lambda i: (-i.friend_count, -i.best_score))
        return items[:limit]

    return ctx.cache.get_or_compute(("suggestions", user_id, limit), compute)
