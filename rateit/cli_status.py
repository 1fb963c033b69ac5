"""Profile summary for the RateIt CLI."""

from typing import Any

from .challenges import challenge_progress
from .context import AppContext
from .models import utcnow
from .pins import showcase
from .profiles import get_profile
from .scoring import format_score
from .social import follow_counts
from .stats import profile_stats, score_distribution, streak


def get_profile_summary(ctx: AppContext, user: str, year: int | None = None) -> dict[str, Any]:
    """Get a profile summary as a structured dict.

    Returns:
        Dict with profile, follow counts, stats, distribution, pins and challenges
    """
    profile = get_profile(ctx, user)
    year = year or utcnow().year
    stats = profile_stats(ctx, profile.id)
    distribution = score_distribution(ctx, profile.id)

    return {
        "profile": {
            "id": profile.id,
            "username": profile.username,
            "display_name": profile.display_name,
            "bio": profile.bio,
            "is_private": profile.is_private,
        },
        "follows": follow_counts(ctx, profile.id),
        "stats": {
            "total_ratings": stats.total_ratings,
            "average_score": stats.average_score,
            "streak_days": streak(ctx, profile.id),
            "categories": [
                {"content_type": c.content_type, "count": c.count, "average": c.average} for c in stats.categories
            ],
        },
        "distribution": distribution.to_dict() if distribution.should_render else None,
        "pinned": [
            {"position": p.position, "content_type": p.content_type.value, "title": p.content_title}
            for p in showcase(ctx, profile.id)
        ],
        "challenges": [
            {
                "id": c.challenge.id,
                "year": c.challenge.year,
                "category": c.challenge.category_filter,
                "target": c.challenge.target_count,
                "progress": c.progress,
                "percentage": c.percentage,
                "completed": c.is_completed,
            }
            for c in challenge_progress(ctx, profile.id, year)
        ],
    }


def format_distribution(data: dict[str, Any], width: int = 30) -> list[str]:
    """Render a score distribution as horizontal text bars."""
    lines = []
    max_count = data["max_count"]
    for bucket in data["buckets"]:
        if not bucket["total_count"]:
            continue
        bar = "#" * max(1, round(bucket["total_count"] / max_count * width))
        lines.append(f"  {bucket['score']:>4.1f} {bar} {bucket['total_count']}")
    return lines


def format_profile_text(ctx: AppContext, user: str, year: int | None = None) -> str:
    """Format a profile summary as readable text."""
    data = get_profile_summary(ctx, user, year)
    profile = data["profile"]
    stats = data["stats"]
    lines = []

    lines.append(f"{profile['display_name']} (@{profile['username']})")
    lines.append("=" * 40)
    if profile["bio"]:
        lines.append(profile["bio"])
    lines.append(f"Followers: {data['follows']['followers']}  Following: {data['follows']['following']}")
    lines.append("")

    lines.append(f"Ratings: {stats['total_ratings']}  Average: {format_score(stats['average_score'])}")
    if stats["streak_days"]:
        lines.append(f"Streak: {stats['streak_days']} day(s)")
    for cat in stats["categories"]:
        lines.append(f"  {cat['content_type']}: {cat['count']} ratings, avg {cat['average']:.1f}")

    if data["distribution"]:
        lines.append("")
        lines.append("Score distribution:")
        lines.extend(format_distribution(data["distribution"]))

    if data["pinned"]:
        lines.append("")
        lines.append("Pinned:")
        for pin in data["pinned"]:
            lines.append(f"  {pin['position']}. {pin['title']} ({pin['content_type']})")

    if data["challenges"]:
        lines.append("")
        lines.append("Challenges:")
        for c in data["challenges"]:
            done = " done" if c["completed"] else ""
            lines.append(f"  {c['year']} {c['category']}: {c['progress']}/{c['target']} ({c['percentage']}%){done}")

    return "\n".join(lines)
