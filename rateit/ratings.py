"""Rating store accessor: read and write ratings with upsert semantics."""

import logging
import uuid
from dataclasses import dataclass

from .cache import RATING_FAMILIES
from .config import MAX_PRIVATE_NOTE_LENGTH, PAGE_SIZE, TOP_RATED_LIMIT
from .context import AppContext
from .errors import NotFoundError, ValidationError
from .models import ContentKey, ContentStatus, ContentSubtype, Rating, StatusEntry, TrackRating, utcnow
from .scoring import snap_score

logger = logging.getLogger(__name__)


@dataclass
class RatingFields:
    """Mutable fields of a rating as entered by the user."""

    content_title: str
    score: float
    content_image_url: str | None = None
    review_text: str | None = None
    private_note: str | None = None
    has_spoiler: bool = False
    content_subtype: ContentSubtype | None = None
    track_ratings: list[TrackRating] | None = None


@dataclass
class RatingPage:
    ratings: list[Rating]
    page: int
    has_more: bool


def _clean_text(text: str | None) -> str | None:
    if text is None:
        return None
    text = text.strip()
    return text or None


def _build_rating(ctx: AppContext, user_id: str, key: ContentKey, fields: RatingFields) -> Rating:
    private_note = _clean_text(fields.private_note)
    if private_note and len(private_note) > MAX_PRIVATE_NOTE_LENGTH:
        raise ValidationError(f"Private note is limited to {MAX_PRIVATE_NOTE_LENGTH} characters")

    tracks = None
    if fields.content_subtype == ContentSubtype.ALBUM and fields.track_ratings is not None:
        tracks = [
            TrackRating(t.track_id, t.track_name, t.track_number, snap_score(t.score)) for t in fields.track_ratings
        ]

    now = utcnow()
    existing = ctx.db.get_rating(user_id, key.content_type, key.content_id)
    return Rating(
        id=existing.id if existing else str(uuid.uuid4()),
        user_id=user_id,
        content_type=key.content_type,
        content_id=key.content_id,
        content_title=fields.content_title,
        content_image_url=fields.content_image_url,
        score=snap_score(fields.score),
        review_text=_clean_text(fields.review_text),
        private_note=private_note,
        has_spoiler=fields.has_spoiler,
        content_subtype=fields.content_subtype,
        track_ratings=tracks,
        created_at=existing.created_at if existing else now,
        updated_at=now,
    )


def invalidate_rating_views(ctx: AppContext, user_id: str) -> None:
    """Drop every cached aggregate that depends on a user's ratings.

    Feeds and trending of other users also read these rows, so those
    families are dropped for everyone.
    """
    ctx.invalidate_user(user_id, RATING_FAMILIES)
    for family in ("feed", "trending", "suggestions", "community-score"):
        ctx.cache.invalidate(family)


def upsert_rating(
    ctx: AppContext,
    key: ContentKey,
    fields: RatingFields,
    status: ContentStatus | None = None,
) -> Rating:
    """Create or overwrite the signed-in user's rating for a content item.

    When a status is given it is written in the same transaction.

    Args:
        ctx: Application context
        key: Content identity
        fields: Rating fields
        status: Optional consumption status to store alongside

    Returns:
        The persisted rating

    Raises:
        NotAuthenticatedError: If nobody is signed in
        ValidationError: If a text field is too long
    """
    user = ctx.require_user()
    rating = _build_rating(ctx, user.id, key, fields)

    with ctx.db.transaction():
        ctx.db.upsert_rating(rating)
        if status is not None:
            existing_status = ctx.db.get_status(user.id, key.content_type, key.content_id)
            ctx.db.upsert_status(
                StatusEntry(
                    id=existing_status.id if existing_status else str(uuid.uuid4()),
                    user_id=user.id,
                    content_type=key.content_type,
                    content_id=key.content_id,
                    content_title=fields.content_title,
                    content_image_url=fields.content_image_url,
                    status=status,
                    created_at=existing_status.created_at if existing_status else rating.updated_at,
                    updated_at=rating.updated_at,
                )
            )

    logger.info("Saved rating %s for %s: %.1f", rating.id, key, rating.score)
    invalidate_rating_views(ctx, user.id)
    return ctx.db.get_rating(user.id, key.content_type, key.content_id) or rating


def get_rating(ctx: AppContext, key: ContentKey, user_id: str | None = None) -> Rating | None:
    """Get a user's rating for a content item (the signed-in user by default)."""
    owner = user_id or ctx.require_user().id
    return ctx.db.get_rating(owner, key.content_type, key.content_id)


def get_rating_by_id(ctx: AppContext, rating_id: str) -> Rating:
    rating = ctx.db.get_rating_by_id(rating_id)
    if not rating:
        raise NotFoundError(f"Rating not found: {rating_id}")
    return rating


def delete_rating(ctx: AppContext, rating_id: str) -> None:
    """Delete one of the signed-in user's ratings.

    Raises:
        NotFoundError: If the rating does not exist or belongs to someone else
    """
    user = ctx.require_user()
    rating = ctx.db.get_rating_by_id(rating_id)
    if not rating or rating.user_id != user.id:
        raise NotFoundError(f"Rating not found: {rating_id}")

    ctx.db.delete_rating(rating_id)
    logger.info("Deleted rating %s for %s", rating_id, rating.key)
    invalidate_rating_views(ctx, user.id)


def list_ratings(ctx: AppContext, user_id: str) -> list[Rating]:
    return ctx.cache.get_or_compute(("ratings", user_id), lambda: ctx.db.get_user_ratings(user_id))


def rating_history(ctx: AppContext, user_id: str, page: int = 0, page_size: int = PAGE_SIZE) -> RatingPage:
    """One page of a user's ratings, newest first."""
    if page < 0:
        raise ValidationError("Page must not be negative")

    def compute() -> RatingPage:
        # Fetch one extra row to learn whether another page exists
        rows = ctx.db.get_rating_history(user_id, limit=page_size + 1, offset=page * page_size)
        return RatingPage(ratings=rows[:page_size], page=page, has_more=len(rows) > page_size)

    return ctx.cache.get_or_compute(("rating-history", user_id, page, page_size), compute)


def top_rated(ctx: AppContext, user_id: str, limit: int = TOP_RATED_LIMIT) -> list[Rating]:
    return ctx.cache.get_or_compute(("top-rated", user_id, limit), lambda: ctx.db.get_top_rated(user_id, limit))


def public_view(rating: Rating) -> Rating:
    """Copy of a rating safe to show to other users (no private note)."""
    return Rating(
        id=rating.id,
        user_id=rating.user_id,
        content_type=rating.content_type,
        content_id=rating.content_id,
        content_title=rating.content_title,
        content_image_url=rating.content_image_url,
        score=rating.score,
        review_text=rating.review_text,
        private_note=None,
        has_spoiler=rating.has_spoiler,
        content_subtype=rating.content_subtype,
        track_ratings=rating.track_ratings,
        created_at=rating.created_at,
        updated_at=rating.updated_at,
    )
