"""Pinned favorites: up to five slots per profile."""

import logging
import uuid

from .config import MAX_PINNED, TOP_RATED_LIMIT
from .context import AppContext
from .errors import ConflictError, MaxPinnedError, NotFoundError, ValidationError
from .models import ContentKey, PinnedItem, PinnedMode, utcnow
from .ratings import top_rated

logger = logging.getLogger(__name__)


def list_pins(ctx: AppContext, user_id: str) -> list[PinnedItem]:
    return ctx.cache.get_or_compute(("pins", user_id), lambda: ctx.db.get_pins(user_id))


def pin(ctx: AppContext, key: ContentKey, title: str, image_url: str | None = None) -> PinnedItem:
    """Pin content to the first free slot of the signed-in user's profile.

    Raises:
        MaxPinnedError: If all five slots are taken
        ConflictError: If the content is already pinned
    """
    user = ctx.require_user()
    if ctx.db.find_pin(user.id, key.content_type, key.content_id):
        raise ConflictError(f"{title} is already pinned")

    taken = {p.position for p in ctx.db.get_pins(user.id)}
    free = [slot for slot in range(1, MAX_PINNED + 1) if slot not in taken]
    if not free:
        raise MaxPinnedError()

    item = PinnedItem(
        id=str(uuid.uuid4()),
        user_id=user.id,
        content_type=key.content_type,
        content_id=key.content_id,
        content_title=title,
        content_image_url=image_url,
        position=free[0],
        created_at=utcnow(),
    )
    ctx.db.insert_pin(item)
    logger.info("Pinned %s at position %d", key, item.position)
    ctx.cache.invalidate("pins", user.id)
    return item


def unpin(ctx: AppContext, pin_id: str) -> None:
    user = ctx.require_user()
    item = ctx.db.get_pin(pin_id)
    if not item or item.user_id != user.id:
        raise NotFoundError(f"Pinned item not found: {pin_id}")
    ctx.db.delete_pin(pin_id)
    logger.info("Unpinned %s", pin_id)
    ctx.cache.invalidate("pins", user.id)


def move_pin(ctx: AppContext, pin_id: str, position: int) -> list[PinnedItem]:
    """Move a pin to another slot, swapping with whatever occupies it.

    Returns:
        The user's pins after the move
    """
    user = ctx.require_user()
    if not 1 <= position <= MAX_PINNED:
        raise ValidationError(f"Position must be between 1 and {MAX_PINNED}")

    pins = ctx.db.get_pins(user.id)
    moving = next((p for p in pins if p.id == pin_id), None)
    if not moving:
        raise NotFoundError(f"Pinned item not found: {pin_id}")

    occupant = next((p for p in pins if p.position == position and p.id != pin_id), None)
    with ctx.db.transaction():
        if occupant:
            ctx.db.update_pin_position(occupant.id, moving.position)
        ctx.db.update_pin_position(moving.id, position)

    ctx.cache.invalidate("pins", user.id)
    return ctx.db.get_pins(user.id)


def showcase(ctx: AppContext, user_id: str) -> list[PinnedItem]:
    """What the profile shows: manual pins, or the top rated items in auto mode."""
    profile = ctx.db.get_profile(user_id)
    if profile and profile.pinned_mode == PinnedMode.AUTO:
        return [
            PinnedItem(
                id=r.id,
                user_id=user_id,
                content_type=r.content_type,
                content_id=r.content_id,
                content_title=r.content_title,
                content_image_url=r.content_image_url,
                position=i,
                created_at=r.created_at,
            )
            for i, r in enumerate(top_rated(ctx, user_id, TOP_RATED_LIMIT), start=1)
        ]
    return list_pins(ctx, user_id)
