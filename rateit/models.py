"""Data models for RateIt."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

ALL_CATEGORIES = "all"


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ContentType(str, Enum):
    MOVIE = "movie"
    SERIES = "series"
    BOOK = "book"
    GAME = "game"
    MUSIC = "music"
    PODCAST = "podcast"
    ANYTHING = "anything"


class ContentSubtype(str, Enum):
    ALBUM = "album"
    TRACK = "track"


class ContentStatus(str, Enum):
    WANT = "want"
    DOING = "doing"
    DONE = "done"
    DROPPED = "dropped"


class PinnedMode(str, Enum):
    MANUAL = "manual"
    AUTO = "auto"


class NotificationType(str, Enum):
    FOLLOW = "follow"
    LIKE = "like"
    RECOMMENDATION = "recommendation"


@dataclass(frozen=True)
class ContentKey:
    """Identity of a ratable content item."""

    content_type: ContentType
    content_id: str

    def __str__(self) -> str:
        return f"{self.content_type.value}:{self.content_id}"


@dataclass
class TrackRating:
    """Score for a single track of a rated album."""

    track_id: str
    track_name: str
    track_number: int
    score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "track_id": self.track_id,
            "track_name": self.track_name,
            "track_number": self.track_number,
            "score": self.score,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackRating":
        return cls(
            track_id=str(data["track_id"]),
            track_name=data.get("track_name", ""),
            track_number=int(data.get("track_number", 0)),
            score=float(data.get("score", 0.0)),
        )


@dataclass
class Rating:
    """One user's evaluation of one content item."""

    id: str
    user_id: str
    content_type: ContentType
    content_id: str
    content_title: str
    content_image_url: str | None = None
    score: float = 5.0  # 0-10, step 0.5
    review_text: str | None = None
    private_note: str | None = None  # owner only
    has_spoiler: bool = False
    content_subtype: ContentSubtype | None = None
    track_ratings: list[TrackRating] | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def key(self) -> ContentKey:
        return ContentKey(self.content_type, self.content_id)


@dataclass
class Profile:
    """A user profile."""

    id: str
    username: str
    display_name: str | None = None
    avatar_url: str | None = None
    bio: str = ""
    is_private: bool = False
    pinned_mode: PinnedMode = PinnedMode.MANUAL
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class StatusEntry:
    """A user's consumption status for a content item (want, doing, done, dropped)."""

    id: str
    user_id: str
    content_type: ContentType
    content_id: str
    content_title: str
    content_image_url: str | None = None
    status: ContentStatus = ContentStatus.WANT
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class AnnualChallenge:
    """A user-defined goal to rate N items of a category in a year."""

    id: str
    user_id: str
    year: int
    category_filter: str  # a ContentType value or "all"
    target_count: int
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class PinnedItem:
    """One of up to five favorite slots on a profile."""

    id: str
    user_id: str
    content_type: ContentType
    content_id: str
    content_title: str
    content_image_url: str | None = None
    position: int = 1  # 1-5
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Bookmark:
    """A saved-for-later marker."""

    id: str
    user_id: str
    content_type: ContentType
    content_id: str
    content_title: str
    content_image_url: str | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Follow:
    follower_id: str
    following_id: str
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Notification:
    id: str
    recipient_id: str
    sender_id: str
    type: NotificationType
    reference_id: str | None = None
    is_read: bool = False
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class AnythingItem:
    """A community-authored content item."""

    id: str
    created_by: str
    title: str
    description: str | None = None
    category_tag: str | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class AlbumTrack:
    track_id: str
    track_name: str
    track_number: int
    duration_ms: int = 0
    disc_number: int = 1
    preview_url: str | None = None
    artist_name: str | None = None


@dataclass
class Content:
    """Normalized metadata record returned by a metadata source."""

    id: str
    content_type: ContentType
    title: str
    image_url: str | None = None
    year: str | None = None
    creator: str | None = None  # director, author, developer, artist, publisher
    description: str | None = None
    genres: list[str] = field(default_factory=list)
    is_album: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> ContentKey:
        return ContentKey(self.content_type, self.id)
