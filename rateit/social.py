"""Follows, likes, the social feed, notifications and recommendations."""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass

import duckdb

from .config import PAGE_SIZE
from .context import AppContext
from .errors import NotFoundError, RateItError, ValidationError
from .models import ContentKey, Follow, Notification, NotificationType, Profile, Rating, utcnow
from .ratings import get_rating_by_id, public_view
from .utils import optimistic_update

logger = logging.getLogger(__name__)

GRAPH_FAMILIES = ("feed", "trending", "suggestions", "follows")


@dataclass
class FeedItem:
    rating: Rating
    author: Profile | None
    like_count: int
    liked_by_me: bool


@dataclass
class FeedPage:
    items: list[FeedItem]
    page: int
    has_more: bool


def _notify(ctx: AppContext, recipient_id: str, sender_id: str, kind: NotificationType, reference_id: str | None) -> None:
    if recipient_id == sender_id:
        return
    ctx.db.insert_notification(
        Notification(
            id=str(uuid.uuid4()),
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=kind,
            reference_id=reference_id,
            created_at=utcnow(),
        )
    )
    ctx.cache.invalidate("notifications", recipient_id)


def _resolve_profile(ctx: AppContext, user: str) -> Profile:
    profile = ctx.db.get_profile(user) or ctx.db.get_profile_by_username(user)
    if not profile:
        raise NotFoundError(f"No such user: {user}")
    return profile


def follow(ctx: AppContext, target: str) -> bool:
    """Follow a user by id or username. Returns False if already following.

    Raises:
        ValidationError: On an attempt to follow yourself
    """
    me = ctx.require_user()
    other = _resolve_profile(ctx, target)
    if other.id == me.id:
        raise ValidationError("You cannot follow yourself")

    created = ctx.db.insert_follow(Follow(follower_id=me.id, following_id=other.id))
    if created:
        logger.info("%s followed %s", me.username, other.username)
        _notify(ctx, other.id, me.id, NotificationType.FOLLOW, me.id)
        ctx.invalidate_user(me.id, GRAPH_FAMILIES)
        ctx.cache.invalidate("follows", other.id)
    return created


def unfollow(ctx: AppContext, target: str) -> bool:
    me = ctx.require_user()
    other = _resolve_profile(ctx, target)
    removed = ctx.db.delete_follow(me.id, other.id)
    if removed:
        logger.info("%s unfollowed %s", me.username, other.username)
        ctx.invalidate_user(me.id, GRAPH_FAMILIES)
        ctx.cache.invalidate("follows", other.id)
    return removed


def followers(ctx: AppContext, user_id: str) -> list[Profile]:
    ids = ctx.db.get_follower_ids(user_id)
    profiles = ctx.db.get_profiles(ids)
    return [profiles[i] for i in ids if i in profiles]


def following(ctx: AppContext, user_id: str) -> list[Profile]:
    ids = ctx.db.get_following_ids(user_id)
    profiles = ctx.db.get_profiles(ids)
    return [profiles[i] for i in ids if i in profiles]


def follow_counts(ctx: AppContext, user_id: str) -> dict[str, int]:
    return ctx.cache.get_or_compute(("follows", user_id), lambda: ctx.db.get_follow_counts(user_id))


def like(ctx: AppContext, rating_id: str) -> bool:
    """Like a rating. Returns False if already liked."""
    me = ctx.require_user()
    rating = get_rating_by_id(ctx, rating_id)

    created = ctx.db.insert_like(str(uuid.uuid4()), me.id, rating_id, utcnow())
    if created:
        _notify(ctx, rating.user_id, me.id, NotificationType.LIKE, rating_id)
        ctx.cache.invalidate("feed")
        ctx.cache.invalidate("trending")
    return created


def unlike(ctx: AppContext, rating_id: str) -> bool:
    me = ctx.require_user()
    removed = ctx.db.delete_like(me.id, rating_id)
    if removed:
        ctx.cache.invalidate("feed")
        ctx.cache.invalidate("trending")
    return removed


def toggle_like(ctx: AppContext, rating_id: str, on_change: Callable[[bool], None] | None = None) -> bool:
    """Flip the like on a rating, showing the new state before the write lands.

    Returns:
        Whether the rating is liked afterwards
    """
    me = ctx.require_user()
    current = ctx.db.has_liked(me.id, rating_id)

    def mutate() -> bool:
        if current:
            unlike(ctx, rating_id)
            return False
        like(ctx, rating_id)
        return True

    return optimistic_update(current, not current, on_change or (lambda _: None), mutate)


def feed(ctx: AppContext, page: int = 0, page_size: int = PAGE_SIZE) -> FeedPage:
    """Ratings by followed users, newest first, without private notes."""
    me = ctx.require_user()
    if page < 0:
        raise ValidationError("Page must not be negative")

    def compute() -> FeedPage:
        friends = [fid for fid in ctx.db.get_following_ids(me.id) if fid != me.id]
        if not friends:
            return FeedPage(items=[], page=page, has_more=False)
        rows = ctx.db.get_ratings_by_users(friends, limit=page_size + 1, offset=page * page_size)
        ratings = rows[:page_size]
        likes = ctx.db.count_likes([r.id for r in ratings])
        liked = ctx.db.get_liked_ids(me.id, [r.id for r in ratings])
        authors = ctx.db.get_profiles(list({r.user_id for r in ratings}))
        items = [
            FeedItem(
                rating=public_view(r),
                author=authors.get(r.user_id),
                like_count=likes.get(r.id, 0),
                liked_by_me=r.id in liked,
            )
            for r in ratings
        ]
        return FeedPage(items=items, page=page, has_more=len(rows) > page_size)

    return ctx.cache.get_or_compute(("feed", me.id, page, page_size), compute)


def notifications(ctx: AppContext, limit: int = PAGE_SIZE) -> list[Notification]:
    me = ctx.require_user()
    return ctx.db.get_notifications(me.id, limit)


def unread_count(ctx: AppContext) -> int:
    me = ctx.require_user()
    return ctx.db.count_unread_notifications(me.id)


def mark_all_read(ctx: AppContext) -> None:
    me = ctx.require_user()
    ctx.db.mark_notifications_read(me.id)
    ctx.cache.invalidate("notifications", me.id)


def recommend(ctx: AppContext, key: ContentKey, recipients: list[str]) -> int:
    """Recommend content to followed users.

    Best effort: a failed delivery is logged and skipped.

    Returns:
        Number of recommendations delivered
    """
    me = ctx.require_user()
    followed = set(ctx.db.get_following_ids(me.id))
    delivered = 0
    for recipient in recipients:
        try:
            profile = _resolve_profile(ctx, recipient)
            if profile.id not in followed:
                raise ValidationError(f"{profile.username} is not someone you follow")
            _notify(ctx, profile.id, me.id, NotificationType.RECOMMENDATION, str(key))
            delivered += 1
        except (RateItError, duckdb.Error) as e:
            logger.warning("Could not recommend %s to %s: %s", key, recipient, e)
    return delivered
