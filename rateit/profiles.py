"""User profiles."""

import logging
import re
import uuid
from dataclasses import replace

import duckdb

from .context import AppContext
from .errors import ConflictError, NotFoundError, ValidationError
from .models import PinnedMode, Profile, utcnow

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-z0-9_]{3,30}$")


def create_profile(ctx: AppContext, username: str, display_name: str | None = None, bio: str = "") -> Profile:
    """Register a new profile.

    Raises:
        ValidationError: If the username is malformed
        ConflictError: If the username is taken
    """
    username = username.strip().lower()
    if not USERNAME_PATTERN.match(username):
        raise ValidationError("Usernames are 3-30 characters of a-z, 0-9 and _")
    if ctx.db.get_profile_by_username(username):
        raise ConflictError(f"Username {username} is taken")

    now = utcnow()
    profile = Profile(
        id=str(uuid.uuid4()),
        username=username,
        display_name=display_name or username,
        bio=bio,
        created_at=now,
        updated_at=now,
    )
    try:
        ctx.db.upsert_profile(profile)
    except duckdb.ConstraintException as e:
        raise ConflictError(f"Username {username} is taken") from e

    logger.info("Created profile %s", username)
    return profile


def get_profile(ctx: AppContext, user: str) -> Profile:
    """Look up a profile by id or username."""
    profile = ctx.db.get_profile(user) or ctx.db.get_profile_by_username(user)
    if not profile:
        raise NotFoundError(f"No such user: {user}")
    return profile


def update_profile(
    ctx: AppContext,
    display_name: str | None = None,
    bio: str | None = None,
    is_private: bool | None = None,
    pinned_mode: PinnedMode | None = None,
) -> Profile:
    """Update the signed-in user's profile. Fields left as None are unchanged."""
    current = ctx.require_user()
    changes = {
        "display_name": display_name,
        "bio": bio,
        "is_private": is_private,
        "pinned_mode": pinned_mode,
    }
    updated = replace(current, **{k: v for k, v in changes.items() if v is not None}, updated_at=utcnow())

    ctx.db.upsert_profile(updated)
    ctx.session.sign_in(updated)
    ctx.cache.invalidate("pins", updated.id)
    return updated


def search_profiles(ctx: AppContext, query: str) -> list[Profile]:
    return ctx.db.search_profiles(query)
