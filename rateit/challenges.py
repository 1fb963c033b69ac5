"""Annual challenges and their live progress."""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

import duckdb

from .context import AppContext
from .errors import ConflictError, NotFoundError, ValidationError
from .models import ALL_CATEGORIES, AnnualChallenge, ContentType, utcnow

logger = logging.getLogger(__name__)

CATEGORY_FILTERS = [ALL_CATEGORIES] + [t.value for t in ContentType]


@dataclass
class ChallengeProgress:
    challenge: AnnualChallenge
    progress: int

    @property
    def percentage(self) -> int:
        if self.challenge.target_count <= 0:
            return 100
        return min(100, int(self.progress / self.challenge.target_count * 100 + 0.5))

    @property
    def is_completed(self) -> bool:
        return self.progress >= self.challenge.target_count


def year_bounds(year: int) -> tuple[datetime, datetime]:
    """UTC bounds of a calendar year as a half-open [start, end) range."""
    return datetime(year, 1, 1), datetime(year + 1, 1, 1)


def _filter_type(category_filter: str) -> ContentType | None:
    return None if category_filter == ALL_CATEGORIES else ContentType(category_filter)


def create_challenge(ctx: AppContext, year: int, category_filter: str, target_count: int) -> AnnualChallenge:
    """Create a challenge for the signed-in user.

    Raises:
        ValidationError: If the target is not positive or the filter is unknown
        ConflictError: If the user already has a challenge for that year and filter
    """
    user = ctx.require_user()
    if target_count <= 0:
        raise ValidationError("Target count must be a positive number")
    if category_filter not in CATEGORY_FILTERS:
        raise ValidationError(f"Unknown category filter: {category_filter}")

    now = utcnow()
    challenge = AnnualChallenge(
        id=str(uuid.uuid4()),
        user_id=user.id,
        year=year,
        category_filter=category_filter,
        target_count=target_count,
        created_at=now,
        updated_at=now,
    )
    try:
        ctx.db.insert_challenge(challenge)
    except duckdb.ConstraintException as e:
        raise ConflictError(f"A {category_filter} challenge for {year} already exists") from e

    logger.info("Created %s challenge for %d with target %d", category_filter, year, target_count)
    ctx.invalidate_user(user.id, ["challenges", "challenge-progress"])
    return challenge


def list_challenges(ctx: AppContext, user_id: str, year: int) -> list[AnnualChallenge]:
    return ctx.cache.get_or_compute(("challenges", user_id, year), lambda: ctx.db.get_challenges(user_id, year))


def delete_challenge(ctx: AppContext, challenge_id: str) -> None:
    user = ctx.require_user()
    challenge = ctx.db.get_challenge(challenge_id)
    if not challenge or challenge.user_id != user.id:
        raise NotFoundError(f"Challenge not found: {challenge_id}")
    ctx.db.delete_challenge(challenge_id)
    logger.info("Deleted challenge %s", challenge_id)
    ctx.invalidate_user(user.id, ["challenges", "challenge-progress"])


def available_filters(ctx: AppContext, user_id: str, year: int) -> list[str]:
    """Category filters the user has not used for a challenge this year."""
    used = {c.category_filter for c in list_challenges(ctx, user_id, year)}
    return [f for f in CATEGORY_FILTERS if f not in used]


def count_progress(ctx: AppContext, challenge: AnnualChallenge, conn: duckdb.DuckDBPyConnection | None = None) -> int:
    """Count the ratings that count towards one challenge."""
    start, end = year_bounds(challenge.year)
    return ctx.db.count_ratings(
        challenge.user_id,
        start,
        end,
        content_type=_filter_type(challenge.category_filter),
        conn=conn,
    )


def _count_on_cursor(ctx: AppContext, challenge: AnnualChallenge) -> int:
    cursor = ctx.db.cursor()
    try:
        return count_progress(ctx, challenge, conn=cursor)
    finally:
        cursor.close()


def compute_progress(
    ctx: AppContext,
    challenges: list[AnnualChallenge],
    max_workers: int = 4,
) -> dict[str, int]:
    """Progress of several challenges, one independent query each.

    Queries run in parallel on separate cursors; the map is returned once
    all of them have finished.

    Returns:
        Map of challenge id to matching rating count
    """
    if not challenges:
        return {}
    with ThreadPoolExecutor(max_workers=min(max_workers, len(challenges))) as pool:
        futures = {c.id: pool.submit(_count_on_cursor, ctx, c) for c in challenges}
        return {challenge_id: future.result() for challenge_id, future in futures.items()}


def challenge_progress(ctx: AppContext, user_id: str, year: int) -> list[ChallengeProgress]:
    """Challenges of a user for a year with their current progress."""
    challenges = list_challenges(ctx, user_id, year)
    counts = ctx.cache.get_or_compute(
        ("challenge-progress", user_id, year),
        lambda: compute_progress(ctx, challenges),
    )
    return [ChallengeProgress(c, counts.get(c.id, 0)) for c in challenges]


class CelebrationState(str, Enum):
    NOT_COMPLETED = "not_completed"
    COMPLETED_UNNOTIFIED = "completed_unnotified"
    COMPLETED_NOTIFIED = "completed_notified"


class CelebrationTracker:
    """Session-scoped gate so each challenge completion is celebrated once."""

    def __init__(self) -> None:
        self._states: dict[str, CelebrationState] = {}

    def state(self, challenge_id: str) -> CelebrationState:
        return self._states.get(challenge_id, CelebrationState.NOT_COMPLETED)

    def observe(self, progress: list[ChallengeProgress]) -> None:
        for item in progress:
            current = self.state(item.challenge.id)
            if not item.is_completed:
                self._states[item.challenge.id] = CelebrationState.NOT_COMPLETED
            elif current == CelebrationState.NOT_COMPLETED:
                self._states[item.challenge.id] = CelebrationState.COMPLETED_UNNOTIFIED

    def consume(self) -> list[str]:
        """Return challenges awaiting a celebration and mark them notified."""
        pending = [cid for cid, s in self._states.items() if s == CelebrationState.COMPLETED_UNNOTIFIED]
        for cid in pending:
            self._states[cid] = CelebrationState.COMPLETED_NOTIFIED
        return pending

    def reset(self) -> None:
        self._states.clear()
