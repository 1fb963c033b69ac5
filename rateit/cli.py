"""CLI for RateIt."""

import json as json_module
import logging
from pathlib import Path
from typing import Any

import click

from . import anything as anything_service
from . import bookmarks as bookmark_service
from . import challenges as challenge_service
from . import pins as pin_service
from . import profiles as profile_service
from . import ratings as rating_service
from . import social, stats, trending
from .cache import QueryCache
from .config import ENV_DB_PATH, ENV_USER, PAGE_SIZE, Settings
from .context import AppContext
from .db import Database
from .errors import RateItError, ValidationError
from .metadata.resolver import MetadataResolver
from .models import ALL_CATEGORIES, ContentKey, ContentStatus, ContentType, PinnedMode, Rating, utcnow
from .rating_form import FormState, RatingForm
from .scoring import format_score
from .session import SessionContext
from .utils import truncate

CONTENT_TYPES = [t.value for t in ContentType]


class RateItGroup(click.Group):
    """Group that reports domain errors as CLI errors."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except RateItError as e:
            raise click.ClickException(f"[{e.code}] {e}") from e


def parse_key(value: str) -> ContentKey:
    """Parse ``type:id`` into a ContentKey."""
    content_type, sep, content_id = value.partition(":")
    if not sep or not content_id:
        raise click.BadParameter(f"expected TYPE:ID, got {value!r}")
    try:
        return ContentKey(ContentType(content_type), content_id)
    except ValueError as e:
        raise click.BadParameter(f"unknown content type {content_type!r}") from e


def _key_arg(ctx: click.Context, param: click.Parameter, value: str) -> ContentKey:
    return parse_key(value)


def _app(ctx: click.Context) -> AppContext:
    return ctx.obj["app"]


def _resolver(ctx: click.Context) -> MetadataResolver:
    if "resolver" not in ctx.obj:
        resolver = MetadataResolver(_app(ctx))
        ctx.obj["resolver"] = resolver
        ctx.call_on_close(resolver.close)
    return ctx.obj["resolver"]


def _user_id(app: AppContext, user: str | None) -> str:
    if user:
        return profile_service.get_profile(app, user).id
    return app.require_user().id


def _echo_json(data: Any) -> None:
    click.echo(json_module.dumps(data, indent=2, default=str))


def _rating_line(rating: Rating, author: str | None = None) -> str:
    who = f"@{author} " if author else ""
    spoiler = " [spoiler]" if rating.has_spoiler else ""
    line = f"{who}{rating.content_title} ({rating.content_type.value}) {format_score(rating.score)}{spoiler}"
    if rating.review_text:
        line += f"\n    {truncate(rating.review_text, 80)}"
    return line


@click.group(cls=RateItGroup)
@click.option("--db", "db_path", type=click.Path(path_type=Path), envvar=ENV_DB_PATH, help="Database path")
@click.option("--user", "-u", envvar=ENV_USER, help="Act as this user (id or username)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, db_path: Path | None, user: str | None, verbose: bool) -> None:
    """RateIt - rate anything you experience."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    settings = Settings.from_env()
    db = Database(db_path)
    ctx.call_on_close(db.close)
    session = SessionContext(db, settings)
    session.start(user)
    ctx.obj["db"] = db
    ctx.obj["app"] = AppContext(db=db, session=session, cache=QueryCache())


def main() -> None:
    cli(obj={})


# Profiles


@cli.group()
def profile() -> None:
    """Create and view profiles."""
    pass


@profile.command(name="create")
@click.argument("username")
@click.option("--display-name", help="Display name")
@click.option("--bio", default="", help="Short bio")
@click.pass_context
def profile_create(ctx: click.Context, username: str, display_name: str | None, bio: str) -> None:
    """Create a new profile."""
    created = profile_service.create_profile(_app(ctx), username, display_name=display_name, bio=bio)
    click.echo(f"Created profile @{created.username} ({created.id})")


@profile.command(name="show")
@click.argument("user", required=False)
@click.option("--year", type=int, help="Challenge year (default: current)")
@click.option("--format", "-f", type=click.Choice(["text", "json"]), default="text", help="Output format")
@click.pass_context
def profile_show(ctx: click.Context, user: str | None, year: int | None, format: str) -> None:
    """Show a profile summary."""
    from .cli_status import format_profile_text, get_profile_summary

    app = _app(ctx)
    target = user or app.require_user().id
    if format == "json":
        _echo_json(get_profile_summary(app, target, year))
    else:
        click.echo(format_profile_text(app, target, year))


@profile.command(name="edit")
@click.option("--display-name", help="Display name")
@click.option("--bio", help="Short bio")
@click.option("--private/--public", "is_private", default=None, help="Profile visibility")
@click.option("--pinned-mode", type=click.Choice([m.value for m in PinnedMode]), help="Pinned items mode")
@click.pass_context
def profile_edit(
    ctx: click.Context,
    display_name: str | None,
    bio: str | None,
    is_private: bool | None,
    pinned_mode: str | None,
) -> None:
    """Edit your profile."""
    updated = profile_service.update_profile(
        _app(ctx),
        display_name=display_name,
        bio=bio,
        is_private=is_private,
        pinned_mode=PinnedMode(pinned_mode) if pinned_mode else None,
    )
    click.echo(f"Updated @{updated.username}")


# Ratings


@cli.command()
@click.argument("key", callback=_key_arg, metavar="TYPE:ID")
@click.argument("score", type=float)
@click.option("--title", "-t", help="Content title (fetched from metadata when omitted)")
@click.option("--image-url", help="Content image URL")
@click.option("--review", "-r", help="Review text")
@click.option("--note", help="Private note (only you can see it)")
@click.option("--spoiler", is_flag=True, help="Review contains spoilers")
@click.option("--status", type=click.Choice([s.value for s in ContentStatus]), help="Consumption status")
@click.option("--track", "tracks", multiple=True, metavar="TRACK_ID=SCORE", help="Score an album track")
@click.pass_context
def rate(
    ctx: click.Context,
    key: ContentKey,
    score: float,
    title: str | None,
    image_url: str | None,
    review: str | None,
    note: str | None,
    spoiler: bool,
    status: str | None,
    tracks: tuple[str, ...],
) -> None:
    """Rate a content item (re-rating updates it)."""
    app = _app(ctx)
    # Stored ratings carry their own title
    needs_metadata = not title and rating_service.get_rating(app, key) is None
    form = RatingForm(app, key, title=title, image_url=image_url, resolver=_resolver(ctx) if needs_metadata else None)
    form.load()
    was_edit = form.is_edit

    form.set_score(score)
    if review is not None:
        form.set_review(review)
    if note is not None:
        form.set_private_note(note)
    if spoiler:
        form.set_spoiler(True)
    if status:
        form.set_status(ContentStatus(status))
    for entry in tracks:
        track_id, sep, track_score = entry.partition("=")
        if not sep:
            raise ValidationError(f"Expected TRACK_ID=SCORE, got {entry}")
        form.set_track_score(track_id, float(track_score))

    if form.save() == FormState.SAVE_FAILED and form.error:
        raise form.error

    click.echo(f"{'Updated' if was_edit else 'Rated'} {form.title}: {format_score(form.score)}")
    if form.track_average is not None:
        click.echo(f"Track average: {form.track_average:.1f}")


@cli.command()
@click.argument("rating_id")
@click.pass_context
def unrate(ctx: click.Context, rating_id: str) -> None:
    """Delete one of your ratings."""
    rating_service.delete_rating(_app(ctx), rating_id)
    click.echo(f"Deleted rating {rating_id}")


@cli.group()
def rating() -> None:
    """Inspect ratings."""
    pass


@rating.command(name="show")
@click.argument("key", callback=_key_arg, metavar="TYPE:ID")
@click.option("--user", "user", help="Show another user's rating")
@click.option("--format", "-f", type=click.Choice(["text", "json"]), default="text", help="Output format")
@click.pass_context
def rating_show(ctx: click.Context, key: ContentKey, user: str | None, format: str) -> None:
    """Show a rating and the community score."""
    app = _app(ctx)
    owner = _user_id(app, user)
    found = rating_service.get_rating(app, key, user_id=owner)
    if found and owner != app.session.user_id:
        found = rating_service.public_view(found)
    community = stats.community_score(app, key.content_type, key.content_id)

    if format == "json":
        _echo_json(
            {
                "rating": None
                if not found
                else {
                    "id": found.id,
                    "score": found.score,
                    "review_text": found.review_text,
                    "private_note": found.private_note,
                    "has_spoiler": found.has_spoiler,
                    "track_ratings": [t.to_dict() for t in found.track_ratings or []],
                },
                "community": {"average": community.average, "count": community.count},
            }
        )
        return

    if not found:
        click.echo(f"No rating for {key}")
    else:
        click.echo(_rating_line(found))
        if found.private_note:
            click.echo(f"    Note: {found.private_note}")
        for track in found.track_ratings or []:
            click.echo(f"    {track.track_number:>2}. {track.track_name} {format_score(track.score)}")
    click.echo(f"Community: {format_score(community.average)} from {community.count} rating(s)")


@cli.command()
@click.option("--user", "user", help="Another user's history")
@click.option("--page", "-p", type=int, default=0, help="Page number (0-based)")
@click.pass_context
def history(ctx: click.Context, user: str | None, page: int) -> None:
    """List ratings, newest first."""
    app = _app(ctx)
    owner = _user_id(app, user)
    result = rating_service.rating_history(app, owner, page=page)
    if not result.ratings:
        click.echo("No ratings.")
        return
    for r in result.ratings:
        click.echo(f"{r.created_at:%Y-%m-%d} {_rating_line(r)}  [{r.id}]")
    if result.has_more:
        click.echo(f"\nMore: rateit history --page {page + 1}")


@cli.command(name="stats")
@click.option("--user", "user", help="Another user's stats")
@click.option("--format", "-f", type=click.Choice(["text", "json"]), default="text", help="Output format")
@click.pass_context
def stats_cmd(ctx: click.Context, user: str | None, format: str) -> None:
    """Show rating statistics and score distribution."""
    from .cli_status import format_distribution

    app = _app(ctx)
    owner = _user_id(app, user)
    summary = stats.profile_stats(app, owner)
    distribution = stats.score_distribution(app, owner)

    if format == "json":
        _echo_json(
            {
                "total_ratings": summary.total_ratings,
                "average_score": summary.average_score,
                "streak_days": stats.streak(app, owner),
                "categories": [{"content_type": c.content_type, "count": c.count, "average": c.average} for c in summary.categories],
                "distribution": distribution.to_dict(),
            }
        )
        return

    click.echo(f"Ratings: {summary.total_ratings}  Average: {format_score(summary.average_score)}")
    for cat in summary.categories:
        click.echo(f"  {cat.content_type}: {cat.count} ratings, avg {cat.average:.1f}")
    if distribution.should_render:
        click.echo("\nScore distribution:")
        for line in format_distribution(distribution.to_dict()):
            click.echo(line)


@cli.command()
@click.argument("year", type=int, required=False)
@click.argument("month", type=click.IntRange(1, 12), required=False)
@click.pass_context
def diary(ctx: click.Context, year: int | None, month: int | None) -> None:
    """Show your ratings of a month, day by day."""
    app = _app(ctx)
    now = utcnow()
    days = stats.diary(app, app.require_user().id, year or now.year, month or now.month)
    if not days:
        click.echo("Nothing rated this month.")
        return
    for day in sorted(days):
        click.echo(day)
        for r in days[day]:
            click.echo(f"  {_rating_line(r)}")


# Challenges


@cli.group()
def challenge() -> None:
    """Annual rating challenges."""
    pass


@challenge.command(name="add")
@click.argument("category", type=click.Choice([ALL_CATEGORIES, *CONTENT_TYPES]))
@click.argument("target", type=int)
@click.option("--year", type=int, help="Challenge year (default: current)")
@click.pass_context
def challenge_add(ctx: click.Context, category: str, target: int, year: int | None) -> None:
    """Create a challenge to rate TARGET items of CATEGORY."""
    created = challenge_service.create_challenge(_app(ctx), year or utcnow().year, category, target)
    click.echo(f"Created challenge {created.id}: {created.target_count} {category} in {created.year}")


@challenge.command(name="list")
@click.option("--year", type=int, help="Challenge year (default: current)")
@click.option("--format", "-f", type=click.Choice(["text", "json"]), default="text", help="Output format")
@click.pass_context
def challenge_list(ctx: click.Context, year: int | None, format: str) -> None:
    """List challenges with progress."""
    app = _app(ctx)
    user = app.require_user()
    year = year or utcnow().year
    progress = challenge_service.challenge_progress(app, user.id, year)

    tracker: challenge_service.CelebrationTracker = ctx.obj.setdefault(
        "celebrations", challenge_service.CelebrationTracker()
    )
    tracker.observe(progress)
    celebrate = set(tracker.consume())

    if format == "json":
        _echo_json(
            [
                {
                    "id": p.challenge.id,
                    "category": p.challenge.category_filter,
                    "target": p.challenge.target_count,
                    "progress": p.progress,
                    "percentage": p.percentage,
                    "completed": p.is_completed,
                }
                for p in progress
            ]
        )
        return

    if not progress:
        free = challenge_service.available_filters(app, user.id, year)
        click.echo(f"No challenges for {year}. Available: {', '.join(free)}")
        return
    for p in progress:
        mark = "  Challenge complete!" if p.challenge.id in celebrate else ""
        click.echo(
            f"{p.challenge.category_filter}: {p.progress}/{p.challenge.target_count} ({p.percentage}%) [{p.challenge.id}]{mark}"
        )


@challenge.command(name="remove")
@click.argument("challenge_id")
@click.pass_context
def challenge_remove(ctx: click.Context, challenge_id: str) -> None:
    """Delete a challenge."""
    challenge_service.delete_challenge(_app(ctx), challenge_id)
    click.echo(f"Deleted challenge {challenge_id}")


# Pins and bookmarks


@cli.group()
def pin() -> None:
    """Pinned favorites (up to 5)."""
    pass


@pin.command(name="add")
@click.argument("key", callback=_key_arg, metavar="TYPE:ID")
@click.option("--title", "-t", required=True, help="Content title")
@click.option("--image-url", help="Content image URL")
@click.pass_context
def pin_add(ctx: click.Context, key: ContentKey, title: str, image_url: str | None) -> None:
    """Pin content to your profile."""
    item = pin_service.pin(_app(ctx), key, title, image_url)
    click.echo(f"Pinned {title} at position {item.position}")


@pin.command(name="list")
@click.option("--user", "user", help="Another user's pins")
@click.pass_context
def pin_list(ctx: click.Context, user: str | None) -> None:
    """List pinned items."""
    app = _app(ctx)
    items = pin_service.showcase(app, _user_id(app, user))
    if not items:
        click.echo("No pinned items.")
        return
    for item in items:
        click.echo(f"{item.position}. {item.content_title} ({item.content_type.value}) [{item.id}]")


@pin.command(name="remove")
@click.argument("pin_id")
@click.pass_context
def pin_remove(ctx: click.Context, pin_id: str) -> None:
    """Unpin an item."""
    pin_service.unpin(_app(ctx), pin_id)
    click.echo(f"Unpinned {pin_id}")


@pin.command(name="move")
@click.argument("pin_id")
@click.argument("position", type=int)
@click.pass_context
def pin_move(ctx: click.Context, pin_id: str, position: int) -> None:
    """Move a pin to another slot."""
    for item in pin_service.move_pin(_app(ctx), pin_id, position):
        click.echo(f"{item.position}. {item.content_title}")


@cli.group()
def bookmark() -> None:
    """Saved-for-later bookmarks."""
    pass


@bookmark.command(name="toggle")
@click.argument("key", callback=_key_arg, metavar="TYPE:ID")
@click.option("--title", "-t", required=True, help="Content title")
@click.option("--image-url", help="Content image URL")
@click.pass_context
def bookmark_toggle(ctx: click.Context, key: ContentKey, title: str, image_url: str | None) -> None:
    """Bookmark content, or remove an existing bookmark."""
    saved = bookmark_service.toggle_bookmark(_app(ctx), key, title, image_url)
    click.echo(f"{'Bookmarked' if saved else 'Removed bookmark for'} {title}")


@bookmark.command(name="list")
@click.option("--page", "-p", type=int, default=0, help="Page number (0-based)")
@click.pass_context
def bookmark_list(ctx: click.Context, page: int) -> None:
    """List bookmarks grouped by category."""
    app = _app(ctx)
    user = app.require_user()
    items = bookmark_service.list_bookmarks(app, user.id, page=page)
    if not items:
        click.echo("No bookmarks.")
        return
    grouped: dict[str, list] = {}
    for item in items:
        grouped.setdefault(item.content_type.value, []).append(item)
    for category, group in grouped.items():
        click.echo(f"{category} ({len(group)})")
        for item in group:
            click.echo(f"  {item.content_title}")
    if len(items) == PAGE_SIZE:
        click.echo(f"\nMore: rateit bookmark list --page {page + 1}")


# Social


@cli.command()
@click.argument("user")
@click.pass_context
def follow(ctx: click.Context, user: str) -> None:
    """Follow a user."""
    created = social.follow(_app(ctx), user)
    click.echo(f"Following {user}" if created else f"Already following {user}")


@cli.command()
@click.argument("user")
@click.pass_context
def unfollow(ctx: click.Context, user: str) -> None:
    """Stop following a user."""
    removed = social.unfollow(_app(ctx), user)
    click.echo(f"Unfollowed {user}" if removed else f"Not following {user}")


@cli.command()
@click.option("--page", "-p", type=int, default=0, help="Page number (0-based)")
@click.pass_context
def feed(ctx: click.Context, page: int) -> None:
    """Recent ratings from people you follow."""
    result = social.feed(_app(ctx), page=page)
    if not result.items:
        click.echo("Your feed is empty. Follow someone to see their ratings.")
        return
    for item in result.items:
        author = item.author.username if item.author else None
        liked = " (liked)" if item.liked_by_me else ""
        click.echo(f"{_rating_line(item.rating, author)}  {item.like_count} like(s){liked} [{item.rating.id}]")
    if result.has_more:
        click.echo(f"\nMore: rateit feed --page {page + 1}")


@cli.group(name="trending")
def trending_cmd() -> None:
    """Trending content."""
    pass


@trending_cmd.command(name="friends")
@click.pass_context
def trending_friends(ctx: click.Context) -> None:
    """Most liked recent ratings from people you follow."""
    app = _app(ctx)
    items = trending.friends_trending(app, app.require_user().id)
    if not items:
        click.echo("Nothing trending among friends.")
        return
    for item in items:
        author = item.author.username if item.author else None
        click.echo(f"{_rating_line(item.rating, author)}  {item.like_count} like(s)")


@trending_cmd.command(name="global")
@click.pass_context
def trending_global(ctx: click.Context) -> None:
    """Most rated content of the last 30 days."""
    items = trending.global_trending(_app(ctx))
    if not items:
        click.echo("Nothing trending yet.")
        return
    for i, item in enumerate(items, start=1):
        click.echo(
            f"{i:>2}. {item.content_title} ({item.content_type.value}) "
            f"{item.rating_count} rating(s), avg {item.average_score:.1f}"
        )


@cli.command()
@click.pass_context
def suggest(ctx: click.Context) -> None:
    """Content your friends loved that you have not rated."""
    app = _app(ctx)
    items = trending.suggestions(app, app.require_user().id)
    if not items:
        click.echo("No suggestions yet.")
        return
    for item in items:
        click.echo(
            f"{item.content_title} ({item.content_type.value}) "
            f"best {format_score(item.best_score)}, {item.friend_count} friend(s)"
        )


@cli.command()
@click.argument("rating_id")
@click.pass_context
def like(ctx: click.Context, rating_id: str) -> None:
    """Like a rating, or remove your like."""
    liked = social.toggle_like(_app(ctx), rating_id)
    click.echo("Liked" if liked else "Removed like")


@cli.command()
@click.argument("key", callback=_key_arg, metavar="TYPE:ID")
@click.argument("users", nargs=-1, required=True)
@click.pass_context
def recommend(ctx: click.Context, key: ContentKey, users: tuple[str, ...]) -> None:
    """Recommend content to people you follow."""
    sent = social.recommend(_app(ctx), key, list(users))
    click.echo(f"Sent {sent} of {len(users)} recommendation(s)")


@cli.command()
@click.option("--mark-read", is_flag=True, help="Mark all notifications as read")
@click.pass_context
def notifications(ctx: click.Context, mark_read: bool) -> None:
    """Show your notifications."""
    app = _app(ctx)
    items = social.notifications(app)
    unread = social.unread_count(app)
    senders = app.db.get_profiles(list({n.sender_id for n in items}))
    click.echo(f"{unread} unread")
    for n in items:
        sender = senders.get(n.sender_id)
        name = f"@{sender.username}" if sender else n.sender_id
        marker = "*" if not n.is_read else " "
        click.echo(f"{marker} {n.created_at:%Y-%m-%d %H:%M} {n.type.value} from {name}")
    if mark_read:
        social.mark_all_read(app)


# Search and anything items


@cli.command()
@click.argument("content_type", type=click.Choice(CONTENT_TYPES))
@click.argument("query")
@click.option("--tracks", is_flag=True, help="Search songs instead of albums (music only)")
@click.option("--format", "-f", type=click.Choice(["text", "json"]), default="text", help="Output format")
@click.pass_context
def search(ctx: click.Context, content_type: str, query: str, tracks: bool, format: str) -> None:
    """Search metadata sources for content."""
    ct = ContentType(content_type)
    if tracks and ct != ContentType.MUSIC:
        raise click.BadParameter("only music can be searched by track", param_hint="--tracks")
    resolver = _resolver(ctx)
    results = resolver.search_tracks(query) if tracks else resolver.search(ct, query)
    if format == "json":
        _echo_json(
            [
                {"key": str(c.key), "title": c.title, "year": c.year, "creator": c.creator, "image_url": c.image_url}
                for c in results
            ]
        )
        return
    if not results:
        click.echo("No results.")
        return
    for c in results:
        extra = ", ".join(part for part in (c.year, c.creator) if part)
        click.echo(f"{c.key}  {c.title}" + (f" ({extra})" if extra else ""))


@cli.group(name="anything")
def anything_cmd() -> None:
    """Community-created items."""
    pass


@anything_cmd.command(name="add")
@click.argument("title")
@click.option("--description", "-d", help="Description")
@click.option("--tag", help="Category tag")
@click.pass_context
def anything_add(ctx: click.Context, title: str, description: str | None, tag: str | None) -> None:
    """Create an item anyone can rate."""
    app = _app(ctx)
    similar = anything_service.find_similar(app, title)
    item = anything_service.create_item(app, title, description=description, category_tag=tag)
    click.echo(f"Created anything:{item.id} {item.title}")
    if similar:
        click.echo("Similar existing items:")
        for s in similar[:5]:
            click.echo(f"  anything:{s.id} {s.title}")


@anything_cmd.command(name="report")
@click.argument("item_id")
@click.argument("reason")
@click.pass_context
def anything_report(ctx: click.Context, item_id: str, reason: str) -> None:
    """Report an item for moderation."""
    anything_service.report_item(_app(ctx), item_id, reason)
    click.echo("Thanks, the item has been reported.")


if __name__ == "__main__":
    main()
