"""Community-authored "anything" items."""

import logging
import uuid

import duckdb

from .config import MAX_ANYTHING_DESCRIPTION_LENGTH, MAX_ANYTHING_TITLE_LENGTH
from .context import AppContext
from .errors import ConflictError, DuplicateTitleError, NotFoundError, ValidationError
from .models import AnythingItem, Content, ContentType, utcnow
from .utils import DEFAULT_DISPLAY_LIMIT, title_score, titles_match

logger = logging.getLogger(__name__)

MIN_SEARCH_SCORE = 60


def to_content(item: AnythingItem) -> Content:
    return Content(
        id=item.id,
        content_type=ContentType.ANYTHING,
        title=item.title,
        description=item.description,
        genres=[item.category_tag] if item.category_tag else [],
        metadata={"created_by": item.created_by},
    )


def find_similar(ctx: AppContext, title: str) -> list[AnythingItem]:
    """Existing items whose titles look like the given one."""
    return [item for item in ctx.db.get_all_anything_items() if titles_match(item.title, title)]


def create_item(
    ctx: AppContext,
    title: str,
    description: str | None = None,
    category_tag: str | None = None,
) -> AnythingItem:
    """Create an anything item.

    Raises:
        ValidationError: If the title is empty or a field is too long
        DuplicateTitleError: If an item with this title already exists
    """
    user = ctx.require_user()
    title = title.strip()
    if not title:
        raise ValidationError("Title is required")
    if len(title) > MAX_ANYTHING_TITLE_LENGTH:
        raise ValidationError(f"Title is limited to {MAX_ANYTHING_TITLE_LENGTH} characters")
    description = (description or "").strip() or None
    if description and len(description) > MAX_ANYTHING_DESCRIPTION_LENGTH:
        raise ValidationError(f"Description is limited to {MAX_ANYTHING_DESCRIPTION_LENGTH} characters")

    item = AnythingItem(
        id=str(uuid.uuid4()),
        created_by=user.id,
        title=title,
        description=description,
        category_tag=(category_tag or "").strip() or None,
        created_at=utcnow(),
    )
    try:
        ctx.db.insert_anything_item(item)
    except duckdb.ConstraintException as e:
        raise DuplicateTitleError(f'"{title}" already exists') from e

    logger.info("Created anything item %s: %s", item.id, title)
    return item


def get_item(ctx: AppContext, item_id: str) -> AnythingItem:
    item = ctx.db.get_anything_item(item_id)
    if not item:
        raise NotFoundError(f"Item not found: {item_id}")
    return item


def search_items(ctx: AppContext, query: str, limit: int = DEFAULT_DISPLAY_LIMIT) -> list[AnythingItem]:
    """Fuzzy title search over anything items, best match first."""
    scored = [(title_score(query, item.title), item) for item in ctx.db.get_all_anything_items()]
    scored = [(score, item) for score, item in scored if score >= MIN_SEARCH_SCORE]
    scored.sort(key=lambda pair: (-pair[0], pair[1].title))
    return [item for _, item in scored[:limit]]


def report_item(ctx: AppContext, item_id: str, reason: str) -> int:
    """Report an item for moderation.

    Returns:
        Total number of reports on the item

    Raises:
        ConflictError: If the user already reported this item
    """
    user = ctx.require_user()
    get_item(ctx, item_id)
    reason = reason.strip()
    if not reason:
        raise ValidationError("A reason is required")

    try:
        ctx.db.insert_report(str(uuid.uuid4()), user.id, item_id, reason, utcnow())
    except duckdb.ConstraintException as e:
        raise ConflictError("You already reported this item") from e

    logger.info("Item %s reported by %s", item_id, user.username)
    return ctx.db.count_reports(item_id)
