"""DuckDB storage layer for RateIt."""

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

import duckdb

from .config import DEFAULT_DB_PATH
from .models import (
    AnnualChallenge,
    AnythingItem,
    Bookmark,
    ContentStatus,
    ContentSubtype,
    ContentType,
    Follow,
    Notification,
    NotificationType,
    PinnedItem,
    PinnedMode,
    Profile,
    Rating,
    StatusEntry,
    TrackRating,
)

logger = logging.getLogger(__name__)

RATING_COLUMNS = (
    "id, user_id, content_type, content_id, content_title, content_image_url, score, review_text, "
    "private_note, has_spoiler, content_subtype, track_ratings, created_at, updated_at"
)
PROFILE_COLUMNS = (
    "id, username, display_name, avatar_url, bio, is_private, pinned_mode, created_at, updated_at"
)
PIN_COLUMNS = "id, user_id, content_type, content_id, content_title, content_image_url, position, created_at"
BOOKMARK_COLUMNS = "id, user_id, content_type, content_id, content_title, content_image_url, created_at"
CHALLENGE_COLUMNS = "id, user_id, year, category_filter, target_count, created_at, updated_at"


def _placeholders(values: list[Any]) -> str:
    return ", ".join("?" for _ in values)


class Database:
    """DuckDB-backed storage for ratings and the social graph."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = duckdb.connect(str(self.db_path))
        self._init_schema()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False

    def _init_schema(self) -> None:
        """Initialize database schema."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS profiles (
                id TEXT PRIMARY KEY,
                username TEXT NOT NULL UNIQUE,
                display_name TEXT,
                avatar_url TEXT,
                bio TEXT DEFAULT '',
                is_private BOOLEAN DEFAULT FALSE,
                pinned_mode TEXT DEFAULT 'manual',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS ratings (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                content_type TEXT NOT NULL,
                content_id TEXT NOT NULL,
                content_title TEXT NOT NULL,
                content_image_url TEXT,
                score DOUBLE NOT NULL CHECK (score >= 0 AND score <= 10),
                review_text TEXT,
                private_note TEXT,
                has_spoiler BOOLEAN DEFAULT FALSE,
                content_subtype TEXT,
                track_ratings JSON,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (user_id, content_type, content_id)
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS user_content_status (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                content_type TEXT NOT NULL,
                content_id TEXT NOT NULL,
                content_title TEXT NOT NULL,
                content_image_url TEXT,
                status TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (user_id, content_type, content_id)
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS annual_challenges (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                year INTEGER NOT NULL,
                category_filter TEXT NOT NULL,
                target_count INTEGER NOT NULL CHECK (target_count > 0),
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (user_id, year, category_filter)
            )
        """)

        # Position uniqueness is enforced by the pins module so slots can be reordered
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS pinned_items (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                content_type TEXT NOT NULL,
                content_id TEXT NOT NULL,
                content_title TEXT NOT NULL,
                content_image_url TEXT,
                position INTEGER NOT NULL CHECK (position >= 1 AND position <= 5),
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (user_id, content_type, content_id)
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS bookmarks (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                content_type TEXT NOT NULL,
                content_id TEXT NOT NULL,
                content_title TEXT NOT NULL,
                content_image_url TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (user_id, content_type, content_id)
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS follows (
                follower_id TEXT NOT NULL,
                following_id TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (follower_id, following_id),
                CHECK (follower_id <> following_id)
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS review_likes (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                rating_id TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (user_id, rating_id)
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS notifications (
                id TEXT PRIMARY KEY,
                recipient_id TEXT NOT NULL,
                sender_id TEXT NOT NULL,
                type TEXT NOT NULL,
                reference_id TEXT,
                is_read BOOLEAN DEFAULT FALSE,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS anything_items (
                id TEXT PRIMARY KEY,
                created_by TEXT NOT NULL,
                title TEXT NOT NULL UNIQUE,
                description TEXT,
                category_tag TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS reports (
                id TEXT PRIMARY KEY,
                reporter_id TEXT NOT NULL,
                anything_item_id TEXT NOT NULL,
                reason TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (reporter_id, anything_item_id)
            )
        """)

    def close(self) -> None:
        """Close database connection."""
        self.conn.close()

    def cursor(self) -> duckdb.DuckDBPyConnection:
        """Open a sibling connection for use from another thread."""
        return self.conn.cursor()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run a block of writes atomically."""
        self.conn.begin()
        try:
            yield
        except BaseException:
            self.conn.rollback()
            raise
        else:
            self.conn.commit()

    # Row conversion

    def _row_to_rating(self, row: tuple) -> Rating:
        """Convert a database row to a Rating.

        Args:
            row: Tuple in RATING_COLUMNS order

        Returns:
            Rating instance
        """
        tracks = json.loads(row[11]) if row[11] else None
        return Rating(
            id=row[0],
            user_id=row[1],
            content_type=ContentType(row[2]),
            content_id=row[3],
            content_title=row[4],
            content_image_url=row[5],
            score=float(row[6]),
            review_text=row[7],
            private_note=row[8],
            has_spoiler=bool(row[9]),
            content_subtype=ContentSubtype(row[10]) if row[10] else None,
            track_ratings=[TrackRating.from_dict(t) for t in tracks] if tracks is not None else None,
            created_at=row[12],
            updated_at=row[13],
        )

    def _row_to_profile(self, row: tuple) -> Profile:
        return Profile(
            id=row[0],
            username=row[1],
            display_name=row[2],
            avatar_url=row[3],
            bio=row[4] or "",
            is_private=bool(row[5]),
            pinned_mode=PinnedMode(row[6] or PinnedMode.MANUAL.value),
            created_at=row[7],
            updated_at=row[8],
        )

    def _row_to_pin(self, row: tuple) -> PinnedItem:
        return PinnedItem(
            id=row[0],
            user_id=row[1],
            content_type=ContentType(row[2]),
            content_id=row[3],
            content_title=row[4],
            content_image_url=row[5],
            position=row[6],
            created_at=row[7],
        )

    def _row_to_bookmark(self, row: tuple) -> Bookmark:
        return Bookmark(
            id=row[0],
            user_id=row[1],
            content_type=ContentType(row[2]),
            content_id=row[3],
            content_title=row[4],
            content_image_url=row[5],
            created_at=row[6],
        )

    def _row_to_challenge(self, row: tuple) -> AnnualChallenge:
        return AnnualChallenge(
            id=row[0],
            user_id=row[1],
            year=row[2],
            category_filter=row[3],
            target_count=row[4],
            created_at=row[5],
            updated_at=row[6],
        )

    # Profile operations

    def upsert_profile(self, profile: Profile) -> None:
        """Insert or update a profile."""
        self.conn.execute(
            """
            INSERT INTO profiles (id, username, display_name, avatar_url, bio, is_private, pinned_mode, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (id) DO UPDATE SET
                display_name = EXCLUDED.display_name,
                avatar_url = EXCLUDED.avatar_url,
                bio = EXCLUDED.bio,
                is_private = EXCLUDED.is_private,
                pinned_mode = EXCLUDED.pinned_mode,
                updated_at = EXCLUDED.updated_at
            """,
            [
                profile.id,
                profile.username,
                profile.display_name,
                profile.avatar_url,
                profile.bio,
                profile.is_private,
                profile.pinned_mode.value,
                profile.created_at,
                profile.updated_at,
            ],
        )

    def get_profile(self, profile_id: str) -> Profile | None:
        """Get a profile by ID."""
        result = self.conn.execute(f"SELECT {PROFILE_COLUMNS} FROM profiles WHERE id = ?", [profile_id]).fetchone()
        return self._row_to_profile(result) if result else None

    def get_profile_by_username(self, username: str) -> Profile | None:
        """Get a profile by username (case-insensitive)."""
        result = self.conn.execute(
            f"SELECT {PROFILE_COLUMNS} FROM profiles WHERE lower(username) = lower(?)",
            [username],
        ).fetchone()
        return self._row_to_profile(result) if result else None

    def get_profiles(self, profile_ids: list[str]) -> dict[str, Profile]:
        """Get several profiles keyed by ID."""
        if not profile_ids:
            return {}
        results = self.conn.execute(
            f"SELECT {PROFILE_COLUMNS} FROM profiles WHERE id IN ({_placeholders(profile_ids)})",
            list(profile_ids),
        ).fetchall()
        return {r[0]: self._row_to_profile(r) for r in results}

    def search_profiles(self, query: str, limit: int = 20) -> list[Profile]:
        """Search profiles by username or display name."""
        results = self.conn.execute(
            f"""
            SELECT {PROFILE_COLUMNS} FROM profiles
            WHERE username ILIKE ? OR display_name ILIKE ?
            ORDER BY username
            LIMIT ?
            """,
            [f"%{query}%", f"%{query}%", limit],
        ).fetchall()
        return [self._row_to_profile(r) for r in results]

    # Rating operations

    def upsert_rating(self, rating: Rating) -> None:
        """Insert or update a rating keyed by (user_id, content_type, content_id).

        The surrogate id and created_at of an existing row are kept.
        """
        tracks = json.dumps([t.to_dict() for t in rating.track_ratings]) if rating.track_ratings is not None else None
        self.conn.execute(
            """
            INSERT INTO ratings (
                id, user_id, content_type, content_id, content_title, content_image_url, score,
                review_text, private_note, has_spoiler, content_subtype, track_ratings, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (user_id, content_type, content_id) DO UPDATE SET
                content_title = EXCLUDED.content_title,
                content_image_url = EXCLUDED.content_image_url,
                score = EXCLUDED.score,
                review_text = EXCLUDED.review_text,
                private_note = EXCLUDED.private_note,
                has_spoiler = EXCLUDED.has_spoiler,
                content_subtype = EXCLUDED.content_subtype,
                track_ratings = EXCLUDED.track_ratings,
                updated_at = EXCLUDED.updated_at
            """,
            [
                rating.id,
                rating.user_id,
                rating.content_type.value,
                rating.content_id,
                rating.content_title,
                rating.content_image_url,
                rating.score,
                rating.review_text,
                rating.private_note,
                rating.has_spoiler,
                rating.content_subtype.value if rating.content_subtype else None,
                tracks,
                rating.created_at,
                rating.updated_at,
            ],
        )

    def get_rating(self, user_id: str, content_type: ContentType, content_id: str) -> Rating | None:
        """Get a user's rating for a content item."""
        result = self.conn.execute(
            f"SELECT {RATING_COLUMNS} FROM ratings WHERE user_id = ? AND content_type = ? AND content_id = ?",
            [user_id, content_type.value, content_id],
        ).fetchone()
        return self._row_to_rating(result) if result else None

    def get_rating_by_id(self, rating_id: str) -> Rating | None:
        """Get a rating by its surrogate ID."""
        result = self.conn.execute(f"SELECT {RATING_COLUMNS} FROM ratings WHERE id = ?", [rating_id]).fetchone()
        return self._row_to_rating(result) if result else None

    def delete_rating(self, rating_id: str) -> bool:
        """Delete a rating and its likes. Returns True if removed."""
        result = self.conn.execute("SELECT COUNT(*) FROM ratings WHERE id = ?", [rating_id]).fetchone()
        if not result or result[0] == 0:
            return False
        with self.transaction():
            self.conn.execute("DELETE FROM review_likes WHERE rating_id = ?", [rating_id])
            self.conn.execute("DELETE FROM ratings WHERE id = ?", [rating_id])
        return True

    def get_user_ratings(self, user_id: str) -> list[Rating]:
        """Get all ratings of a user, newest first."""
        results = self.conn.execute(
            f"SELECT {RATING_COLUMNS} FROM ratings WHERE user_id = ? ORDER BY created_at DESC",
            [user_id],
        ).fetchall()
        return [self._row_to_rating(r) for r in results]

    def get_score_rows(self, user_id: str) -> list[tuple[float, str]]:
        """Get (score, content_type) pairs for every rating of a user."""
        results = self.conn.execute(
            "SELECT score, content_type FROM ratings WHERE user_id = ?",
            [user_id],
        ).fetchall()
        return [(float(r[0]), r[1]) for r in results]

    def count_ratings(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        content_type: ContentType | None = None,
        conn: duckdb.DuckDBPyConnection | None = None,
    ) -> int:
        """Count a user's ratings created in [start, end).

        Args:
            user_id: Rating owner
            start: Inclusive lower bound (naive UTC)
            end: Exclusive upper bound (naive UTC)
            content_type: Optional category filter
            conn: Connection to run on (defaults to the main connection)

        Returns:
            Number of matching ratings
        """
        sql = "SELECT COUNT(*) FROM ratings WHERE user_id = ? AND created_at >= ? AND created_at < ?"
        params: list[Any] = [user_id, start, end]

        if content_type:
            sql += " AND content_type = ?"
            params.append(content_type.value)

        result = (conn or self.conn).execute(sql, params).fetchone()
        return result[0] if result else 0

    def get_ratings_in_range(self, user_id: str, start: datetime, end: datetime) -> list[Rating]:
        """Get a user's ratings created in [start, end), oldest first."""
        results = self.conn.execute(
            f"""
            SELECT {RATING_COLUMNS} FROM ratings
            WHERE user_id = ? AND created_at >= ? AND created_at < ?
            ORDER BY created_at
            """,
            [user_id, start, end],
        ).fetchall()
        return [self._row_to_rating(r) for r in results]

    def get_rating_history(self, user_id: str, limit: int, offset: int = 0) -> list[Rating]:
        """Get one page of a user's ratings, newest first."""
        results = self.conn.execute(
            f"SELECT {RATING_COLUMNS} FROM ratings WHERE user_id = ? ORDER BY created_at DESC LIMIT ? OFFSET ?",
            [user_id, limit, offset],
        ).fetchall()
        return [self._row_to_rating(r) for r in results]

    def get_rating_timestamps(self, user_id: str) -> list[datetime]:
        """Get creation timestamps of a user's ratings, newest first."""
        results = self.conn.execute(
            "SELECT created_at FROM ratings WHERE user_id = ? ORDER BY created_at DESC",
            [user_id],
        ).fetchall()
        return [r[0] for r in results]

    def get_ratings_by_users(
        self,
        user_ids: list[str],
        since: datetime | None = None,
        min_score: float | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Rating]:
        """Get ratings authored by any of the given users, newest first."""
        if not user_ids:
            return []

        sql = f"SELECT {RATING_COLUMNS} FROM ratings WHERE user_id IN ({_placeholders(user_ids)})"
        params: list[Any] = list(user_ids)

        if since is not None:
            sql += " AND created_at >= ?"
            params.append(since)

        if min_score is not None:
            sql += " AND score >= ?"
            params.append(min_score)

        sql += " ORDER BY created_at DESC"

        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        if offset:
            sql += " OFFSET ?"
            params.append(offset)

        results = self.conn.execute(sql, params).fetchall()
        return [self._row_to_rating(r) for r in results]

    def get_recent_ratings(self, since: datetime, limit: int) -> list[Rating]:
        """Get ratings from every user created since a point in time, newest first."""
        results = self.conn.execute(
            f"SELECT {RATING_COLUMNS} FROM ratings WHERE created_at >= ? ORDER BY created_at DESC LIMIT ?",
            [since, limit],
        ).fetchall()
        return [self._row_to_rating(r) for r in results]

    def get_content_scores(self, content_type: ContentType, content_id: str) -> list[float]:
        """Get every user's score for a content item."""
        results = self.conn.execute(
            "SELECT score FROM ratings WHERE content_type = ? AND content_id = ?",
            [content_type.value, content_id],
        ).fetchall()
        return [float(r[0]) for r in results]

    def get_top_rated(self, user_id: str, limit: int) -> list[Rating]:
        """Get a user's highest scored ratings."""
        results = self.conn.execute(
            f"SELECT {RATING_COLUMNS} FROM ratings WHERE user_id = ? ORDER BY score DESC, created_at DESC LIMIT ?",
            [user_id, limit],
        ).fetchall()
        return [self._row_to_rating(r) for r in results]

    # Content status operations

    def upsert_status(self, entry: StatusEntry) -> None:
        """Insert or update a content status keyed by (user_id, content_type, content_id)."""
        self.conn.execute(
            """
            INSERT INTO user_content_status (
                id, user_id, content_type, content_id, content_title, content_image_url, status, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (user_id, content_type, content_id) DO UPDATE SET
                content_title = EXCLUDED.content_title,
                content_image_url = EXCLUDED.content_image_url,
                status = EXCLUDED.status,
                updated_at = EXCLUDED.updated_at
            """,
            [
                entry.id,
                entry.user_id,
                entry.content_type.value,
                entry.content_id,
                entry.content_title,
                entry.content_image_url,
                entry.status.value,
                entry.created_at,
                entry.updated_at,
            ],
        )

    def get_status(self, user_id: str, content_type: ContentType, content_id: str) -> StatusEntry | None:
        """Get a user's status for a content item."""
        row = self.conn.execute(
            """
            SELECT id, user_id, content_type, content_id, content_title, content_image_url, status, created_at, updated_at
            FROM user_content_status
            WHERE user_id = ? AND content_type = ? AND content_id = ?
            """,
            [user_id, content_type.value, content_id],
        ).fetchone()
        if not row:
            return None
        return StatusEntry(
            id=row[0],
            user_id=row[1],
            content_type=ContentType(row[2]),
            content_id=row[3],
            content_title=row[4],
            content_image_url=row[5],
            status=ContentStatus(row[6]),
            created_at=row[7],
            updated_at=row[8],
        )

    # Challenge operations

    def insert_challenge(self, challenge: AnnualChallenge) -> None:
        """Insert a challenge. Raises duckdb.ConstraintException on a duplicate filter."""
        self.conn.execute(
            f"INSERT INTO annual_challenges ({CHALLENGE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            [
                challenge.id,
                challenge.user_id,
                challenge.year,
                challenge.category_filter,
                challenge.target_count,
                challenge.created_at,
                challenge.updated_at,
            ],
        )

    def get_challenge(self, challenge_id: str) -> AnnualChallenge | None:
        result = self.conn.execute(
            f"SELECT {CHALLENGE_COLUMNS} FROM annual_challenges WHERE id = ?",
            [challenge_id],
        ).fetchone()
        return self._row_to_challenge(result) if result else None

    def get_challenges(self, user_id: str, year: int) -> list[AnnualChallenge]:
        """Get a user's challenges for a year, oldest first."""
        results = self.conn.execute(
            f"SELECT {CHALLENGE_COLUMNS} FROM annual_challenges WHERE user_id = ? AND year = ? ORDER BY created_at",
            [user_id, year],
        ).fetchall()
        return [self._row_to_challenge(r) for r in results]

    def delete_challenge(self, challenge_id: str) -> bool:
        """Delete a challenge by ID. Returns True if removed."""
        result = self.conn.execute("SELECT COUNT(*) FROM annual_challenges WHERE id = ?", [challenge_id]).fetchone()
        if not result or result[0] == 0:
            return False
        self.conn.execute("DELETE FROM annual_challenges WHERE id = ?", [challenge_id])
        return True

    # Pinned item operations

    def insert_pin(self, pin: PinnedItem) -> None:
        """Insert a pinned item."""
        self.conn.execute(
            f"INSERT INTO pinned_items ({PIN_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            [
                pin.id,
                pin.user_id,
                pin.content_type.value,
                pin.content_id,
                pin.content_title,
                pin.content_image_url,
                pin.position,
                pin.created_at,
            ],
        )

    def get_pins(self, user_id: str) -> list[PinnedItem]:
        """Get a user's pinned items ordered by position."""
        results = self.conn.execute(
            f"SELECT {PIN_COLUMNS} FROM pinned_items WHERE user_id = ? ORDER BY position",
            [user_id],
        ).fetchall()
        return [self._row_to_pin(r) for r in results]

    def get_pin(self, pin_id: str) -> PinnedItem | None:
        result = self.conn.execute(f"SELECT {PIN_COLUMNS} FROM pinned_items WHERE id = ?", [pin_id]).fetchone()
        return self._row_to_pin(result) if result else None

    def find_pin(self, user_id: str, content_type: ContentType, content_id: str) -> PinnedItem | None:
        result = self.conn.execute(
            f"SELECT {PIN_COLUMNS} FROM pinned_items WHERE user_id = ? AND content_type = ? AND content_id = ?",
            [user_id, content_type.value, content_id],
        ).fetchone()
        return self._row_to_pin(result) if result else None

    def update_pin_position(self, pin_id: str, position: int) -> None:
        self.conn.execute("UPDATE pinned_items SET position = ? WHERE id = ?", [position, pin_id])

    def delete_pin(self, pin_id: str) -> bool:
        """Delete a pinned item by ID. Returns True if removed."""
        result = self.conn.execute("SELECT COUNT(*) FROM pinned_items WHERE id = ?", [pin_id]).fetchone()
        if not result or result[0] == 0:
            return False
        self.conn.execute("DELETE FROM pinned_items WHERE id = ?", [pin_id])
        return True

    # Bookmark operations

    def insert_bookmark(self, bookmark: Bookmark) -> None:
        self.conn.execute(
            f"INSERT INTO bookmarks ({BOOKMARK_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            [
                bookmark.id,
                bookmark.user_id,
                bookmark.content_type.value,
                bookmark.content_id,
                bookmark.content_title,
                bookmark.content_image_url,
                bookmark.created_at,
            ],
        )

    def find_bookmark(self, user_id: str, content_type: ContentType, content_id: str) -> Bookmark | None:
        result = self.conn.execute(
            f"SELECT {BOOKMARK_COLUMNS} FROM bookmarks WHERE user_id = ? AND content_type = ? AND content_id = ?",
            [user_id, content_type.value, content_id],
        ).fetchone()
        return self._row_to_bookmark(result) if result else None

    def delete_bookmark(self, bookmark_id: str) -> None:
        self.conn.execute("DELETE FROM bookmarks WHERE id = ?", [bookmark_id])

    def get_bookmarks(self, user_id: str, limit: int | None = None, offset: int = 0) -> list[Bookmark]:
        """Get a user's bookmarks, newest first."""
        sql = f"SELECT {BOOKMARK_COLUMNS} FROM bookmarks WHERE user_id = ? ORDER BY created_at DESC"
        params: list[Any] = [user_id]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        if offset:
            sql += " OFFSET ?"
            params.append(offset)
        results = self.conn.execute(sql, params).fetchall()
        return [self._row_to_bookmark(r) for r in results]

    # Follow operations

    def insert_follow(self, follow: Follow) -> bool:
        """Insert a follow edge. Returns False if it already existed."""
        if self.is_following(follow.follower_id, follow.following_id):
            return False
        self.conn.execute(
            "INSERT INTO follows (follower_id, following_id, created_at) VALUES (?, ?, ?)",
            [follow.follower_id, follow.following_id, follow.created_at],
        )
        return True

    def delete_follow(self, follower_id: str, following_id: str) -> bool:
        """Delete a follow edge. Returns True if removed."""
        if not self.is_following(follower_id, following_id):
            return False
        self.conn.execute(
            "DELETE FROM follows WHERE follower_id = ? AND following_id = ?",
            [follower_id, following_id],
        )
        return True

    def is_following(self, follower_id: str, following_id: str) -> bool:
        result = self.conn.execute(
            "SELECT COUNT(*) FROM follows WHERE follower_id = ? AND following_id = ?",
            [follower_id, following_id],
        ).fetchone()
        return bool(result and result[0])

    def get_following_ids(self, user_id: str) -> list[str]:
        results = self.conn.execute(
            "SELECT following_id FROM follows WHERE follower_id = ? ORDER BY created_at",
            [user_id],
        ).fetchall()
        return [r[0] for r in results]

    def get_follower_ids(self, user_id: str) -> list[str]:
        results = self.conn.execute(
            "SELECT follower_id FROM follows WHERE following_id = ? ORDER BY created_at",
            [user_id],
        ).fetchall()
        return [r[0] for r in results]

    def get_follow_counts(self, user_id: str) -> dict[str, int]:
        """Get follower and following counts for a user."""
        result = self.conn.execute(
            """
            SELECT
                COUNT(*) FILTER (WHERE following_id = ?) AS followers,
                COUNT(*) FILTER (WHERE follower_id = ?) AS following
            FROM follows
            """,
            [user_id, user_id],
        ).fetchone()
        return {"followers": result[0] if result else 0, "following": result[1] if result else 0}

    # Like operations

    def insert_like(self, like_id: str, user_id: str, rating_id: str, created_at: datetime) -> bool:
        """Insert a like. Returns False if the user already liked the rating."""
        if self.has_liked(user_id, rating_id):
            return False
        self.conn.execute(
            "INSERT INTO review_likes (id, user_id, rating_id, created_at) VALUES (?, ?, ?, ?)",
            [like_id, user_id, rating_id, created_at],
        )
        return True

    def delete_like(self, user_id: str, rating_id: str) -> bool:
        if not self.has_liked(user_id, rating_id):
            return False
        self.conn.execute("DELETE FROM review_likes WHERE user_id = ? AND rating_id = ?", [user_id, rating_id])
        return True

    def has_liked(self, user_id: str, rating_id: str) -> bool:
        result = self.conn.execute(
            "SELECT COUNT(*) FROM review_likes WHERE user_id = ? AND rating_id = ?",
            [user_id, rating_id],
        ).fetchone()
        return bool(result and result[0])

    def count_likes(self, rating_ids: list[str]) -> dict[str, int]:
        """Count likes per rating ID. Ratings without likes are omitted."""
        if not rating_ids:
            return {}
        results = self.conn.execute(
            f"""
            SELECT rating_id, COUNT(*) FROM review_likes
            WHERE rating_id IN ({_placeholders(rating_ids)})
            GROUP BY rating_id
            """,
            list(rating_ids),
        ).fetchall()
        return {r[0]: r[1] for r in results}

    def get_liked_ids(self, user_id: str, rating_ids: list[str]) -> set[str]:
        """Return which of the given ratings the user has liked."""
        if not rating_ids:
            return set()
        results = self.conn.execute(
            f"""
            SELECT rating_id FROM review_likes
            WHERE user_id = ? AND rating_id IN ({_placeholders(rating_ids)})
            """,
            [user_id, *rating_ids],
        ).fetchall()
        return {r[0] for r in results}

    # Notification operations

    def insert_notification(self, notification: Notification) -> None:
        self.conn.execute(
            """
            INSERT INTO notifications (id, recipient_id, sender_id, type, reference_id, is_read, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                notification.id,
                notification.recipient_id,
                notification.sender_id,
                notification.type.value,
                notification.reference_id,
                notification.is_read,
                notification.created_at,
            ],
        )

    def get_notifications(self, recipient_id: str, limit: int) -> list[Notification]:
        """Get a user's notifications, newest first."""
        results = self.conn.execute(
            """
            SELECT id, recipient_id, sender_id, type, reference_id, is_read, created_at
            FROM notifications WHERE recipient_id = ?
            ORDER BY created_at DESC LIMIT ?
            """,
            [recipient_id, limit],
        ).fetchall()
        return [
            Notification(
                id=r[0],
                recipient_id=r[1],
                sender_id=r[2],
                type=NotificationType(r[3]),
                reference_id=r[4],
                is_read=bool(r[5]),
                created_at=r[6],
            )
            for r in results
        ]

    def count_unread_notifications(self, recipient_id: str) -> int:
        result = self.conn.execute(
            "SELECT COUNT(*) FROM notifications WHERE recipient_id = ? AND NOT is_read",
            [recipient_id],
        ).fetchone()
        return result[0] if result else 0

    def mark_notifications_read(self, recipient_id: str) -> None:
        self.conn.execute(
            "UPDATE notifications SET is_read = TRUE WHERE recipient_id = ? AND NOT is_read",
            [recipient_id],
        )

    # Anything item operations

    def insert_anything_item(self, item: AnythingItem) -> None:
        """Insert an anything item. Raises duckdb.ConstraintException on a duplicate title."""
        self.conn.execute(
            """
            INSERT INTO anything_items (id, created_by, title, description, category_tag, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [item.id, item.created_by, item.title, item.description, item.category_tag, item.created_at],
        )

    def get_anything_item(self, item_id: str) -> AnythingItem | None:
        row = self.conn.execute(
            "SELECT id, created_by, title, description, category_tag, created_at FROM anything_items WHERE id = ?",
            [item_id],
        ).fetchone()
        if not row:
            return None
        return AnythingItem(
            id=row[0],
            created_by=row[1],
            title=row[2],
            description=row[3],
            category_tag=row[4],
            created_at=row[5],
        )

    def get_all_anything_items(self) -> list[AnythingItem]:
        results = self.conn.execute(
            "SELECT id, created_by, title, description, category_tag, created_at FROM anything_items ORDER BY title"
        ).fetchall()
        return [
            AnythingItem(id=r[0], created_by=r[1], title=r[2], description=r[3], category_tag=r[4], created_at=r[5])
            for r in results
        ]

    def insert_report(
        self,
        report_id: str,
        reporter_id: str,
        anything_item_id: str,
        reason: str,
        created_at: datetime,
    ) -> None:
        """Insert a report. Raises duckdb.ConstraintException if already reported by this user."""
        self.conn.execute(
            "INSERT INTO reports (id, reporter_id, anything_item_id, reason, created_at) VALUES (?, ?, ?, ?, ?)",
            [report_id, reporter_id, anything_item_id, reason, created_at],
        )

    def count_reports(self, anything_item_id: str) -> int:
        result = self.conn.execute(
            "SELECT COUNT(*) FROM reports WHERE anything_item_id = ?",
            [anything_item_id],
        ).fetchone()
        return result[0] if result else 0
