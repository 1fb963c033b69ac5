"""Shared utilities for RateIt."""

import logging
import re
from collections import defaultdict
from collections.abc import Callable
from typing import TypeVar

from rapidfuzz import fuzz

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Display limits
DEFAULT_DISPLAY_LIMIT = 10


def normalize_title(title: str) -> str:
    """Normalize a title for comparison.

    Args:
        title: The title to normalize

    Returns:
        Normalized title string
    """
    if not title:
        return ""

    normalized = title.lower()

    # Remove common prefixes
    for prefix in ("the ", "a ", "an "):
        if normalized.startswith(prefix):
            normalized = normalized[len(prefix) :]

    # Remove punctuation and extra whitespace
    normalized = re.sub(r"[^\w\s]", "", normalized)
    normalized = re.sub(r"\s+", " ", normalized).strip()

    return normalized


def titles_match(title1: str | None, title2: str | None, threshold: int = 90) -> bool:
    """Check if two titles match using fuzzy comparison.

    Uses exact normalized match first, then rapidfuzz token_set_ratio.

    Args:
        title1: First title
        title2: Second title
        threshold: Minimum fuzzy match score (0-100) for non-exact matches

    Returns:
        True if titles are considered a match
    """
    if not title1 or not title2:
        return False

    norm1 = normalize_title(title1)
    norm2 = normalize_title(title2)

    if norm1 == norm2:
        return True

    return fuzz.token_set_ratio(norm1, norm2) >= threshold


def title_score(query: str, title: str) -> float:
    """Relevance of a title for a search query (0-100)."""
    norm_query = normalize_title(query)
    norm_title = normalize_title(title)
    if not norm_query:
        return 0.0
    if norm_query in norm_title:
        return 100.0
    return fuzz.partial_ratio(norm_query, norm_title)


def group_by_category(items: list) -> dict[str, list]:
    """Group items by their content type value.

    Args:
        items: List of items with a content_type attribute

    Returns:
        Dict mapping content type value to list of items, in first-seen order
    """
    by_category: dict[str, list] = defaultdict(list)
    for item in items:
        by_category[item.content_type.value].append(item)
    return dict(by_category)


def optimistic_update(current: T, tentative: T, apply: Callable[[T], None], mutate: Callable[[], T]) -> T:
    """Show a tentative value immediately, then commit it.

    ``apply`` receives ``tentative`` before the write runs. ``mutate``
    performs the write and returns the confirmed value. On failure
    ``apply`` is called again with ``current`` and the error propagates.

    Args:
        current: Value shown before the change
        tentative: Value to show while the write is in flight
        apply: Callback that displays a value
        mutate: Write that returns the confirmed value

    Returns:
        The confirmed value
    """
    apply(tentative)
    try:
        confirmed = mutate()
    except Exception:
        logger.debug("Optimistic update failed, restoring %r", current)
        apply(current)
        raise
    apply(confirmed)
    return confirmed


def truncate(text: str | None, length: int) -> str:
    if not text:
        return ""
    return text if len(text) <= length else text[: length - 1] + "…"
