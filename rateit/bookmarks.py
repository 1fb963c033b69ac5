"""Saved-for-later bookmarks."""

import logging
import uuid
from collections.abc import Callable

from .config import PAGE_SIZE
from .context import AppContext
from .models import Bookmark, ContentKey, utcnow
from .utils import group_by_category, optimistic_update

logger = logging.getLogger(__name__)


def is_bookmarked(ctx: AppContext, key: ContentKey) -> bool:
    user = ctx.require_user()
    return ctx.db.find_bookmark(user.id, key.content_type, key.content_id) is not None


def toggle_bookmark(
    ctx: AppContext,
    key: ContentKey,
    title: str,
    image_url: str | None = None,
    on_change: Callable[[bool], None] | None = None,
) -> bool:
    """Add or remove a bookmark.

    ``on_change`` sees the new state before the write and the old state
    again if the write fails.

    Returns:
        Whether the content is bookmarked afterwards
    """
    user = ctx.require_user()
    existing = ctx.db.find_bookmark(user.id, key.content_type, key.content_id)

    def mutate() -> bool:
        if existing:
            ctx.db.delete_bookmark(existing.id)
            logger.info("Removed bookmark for %s", key)
            result = False
        else:
            ctx.db.insert_bookmark(
                Bookmark(
                    id=str(uuid.uuid4()),
                    user_id=user.id,
                    content_type=key.content_type,
                    content_id=key.content_id,
                    content_title=title,
                    content_image_url=image_url,
                    created_at=utcnow(),
                )
            )
            logger.info("Bookmarked %s", key)
            result = True
        ctx.cache.invalidate("bookmarks", user.id)
        return result

    current = existing is not None
    return optimistic_update(current, not current, on_change or (lambda _: None), mutate)


def list_bookmarks(ctx: AppContext, user_id: str, page: int = 0, page_size: int = PAGE_SIZE) -> list[Bookmark]:
    return ctx.cache.get_or_compute(
        ("bookmarks", user_id, page, page_size),
        lambda: ctx.db.get_bookmarks(user_id, limit=page_size, offset=page * page_size),
    )


def grouped_bookmarks(ctx: AppContext, user_id: str) -> dict[str, list[Bookmark]]:
    """All bookmarks of a user grouped by content type, newest first within a group."""
    return ctx.cache.get_or_compute(
        ("bookmarks", user_id, "grouped"),
        lambda: group_by_category(ctx.db.get_bookmarks(user_id)),
    )
