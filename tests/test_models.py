"""Unit tests for data models."""

from rateit.models import (
    ContentKey,
    ContentStatus,
    ContentType,
    Profile,
    Rating,
    TrackRating,
    utcnow,
)


class TestContentType:
    def test_content_type_values(self):
        assert [t.value for t in ContentType] == ["movie", "series", "book", "game", "music", "podcast", "anything"]

    def test_content_type_from_string(self):
        assert ContentType("book") == ContentType.BOOK
        assert ContentStatus("dropped") == ContentStatus.DROPPED


class TestContentKey:
    def test_str(self):
        assert str(ContentKey(ContentType.MOVIE, "42")) == "movie:42"

    def test_hashable_and_equal(self):
        assert ContentKey(ContentType.MOVIE, "42") == ContentKey(ContentType.MOVIE, "42")
        assert len({ContentKey(ContentType.MOVIE, "42"), ContentKey(ContentType.SERIES, "42")}) == 2


class TestTrackRating:
    def test_from_dict_coerces_types(self):
        track = TrackRating.from_dict({"track_id": 123, "track_name": "Song", "track_number": "3", "score": 7})
        assert track == TrackRating("123", "Song", 3, 7.0)
        assert TrackRating.from_dict(track.to_dict()) == track


class TestRating:
    def test_rating_defaults(self):
        rating = Rating(id="r1", user_id="u1", content_type=ContentType.GAME, content_id="9", content_title="Hades")
        assert rating.score == 5.0
        assert rating.has_spoiler is False
        assert rating.private_note is None
        assert rating.key == ContentKey(ContentType.GAME, "9")

    def test_timestamps_are_naive_utc(self):
        assert utcnow().tzinfo is None
        rating = Rating(id="r1", user_id="u1", content_type=ContentType.GAME, content_id="9", content_title="Hades")
        assert rating.created_at.tzinfo is None


class TestProfile:
    def test_profile_defaults(self):
        profile = Profile(id="u1", username="alice")
        assert profile.bio == ""
        assert profile.is_private is False
        assert profile.pinned_mode.value == "manual"
