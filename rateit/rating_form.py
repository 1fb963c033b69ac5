"""Rating form state machine: load, prefill, edit, save."""

import logging
from enum import Enum
from typing import TYPE_CHECKING

import duckdb

from .config import DEFAULT_SCORE, SAVE_DISMISS_SECONDS
from .context import AppContext
from .errors import RateItError, TransientError, ValidationError
from .models import AlbumTrack, Content, ContentKey, ContentStatus, ContentSubtype, ContentType, Rating, TrackRating
from .ratings import RatingFields, upsert_rating
from .scoring import snap_score, track_average

if TYPE_CHECKING:
    from .metadata.resolver import MetadataResolver

logger = logging.getLogger(__name__)


class FormState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    SAVING = "saving"
    SAVED = "saved"
    SAVE_FAILED = "save_failed"


class RatingForm:
    """Edit session for one user's rating of one content item.

    ``load()`` moves the form from LOADING to READY, prefilling from an
    existing rating the first time one is seen. Later loads refresh the
    content metadata but leave edits alone. ``save()`` writes the rating
    and status together and ends in SAVED or SAVE_FAILED; a failed form
    keeps its edits and can be saved again.
    """

    auto_dismiss_seconds = SAVE_DISMISS_SECONDS

    def __init__(
        self,
        ctx: AppContext,
        key: ContentKey,
        title: str | None = None,
        image_url: str | None = None,
        resolver: "MetadataResolver | None" = None,
        content_subtype: ContentSubtype | None = None,
    ):
        self.ctx = ctx
        self.key = key
        self.resolver = resolver
        self.content_subtype = content_subtype
        self.state = FormState.LOADING
        self.content: Content | None = None
        self.title = title
        self.image_url = image_url
        self.existing: Rating | None = None
        self.error: RateItError | None = None
        self.saved_rating: Rating | None = None

        self.score = DEFAULT_SCORE
        self.review_text = ""
        self.private_note = ""
        self.has_spoiler = False
        self.status: ContentStatus | None = None
        self.track_ratings: list[TrackRating] = []
        self._prefilled = False

    @property
    def is_edit(self) -> bool:
        return self.existing is not None

    @property
    def is_album(self) -> bool:
        return self.content_subtype == ContentSubtype.ALBUM

    @property
    def track_average(self) -> float | None:
        return track_average(self.track_ratings)

    def load(self) -> FormState:
        """Fetch metadata, the existing rating and status, then become READY.

        Raises:
            RateItError: If metadata cannot be fetched; the form stays LOADING
        """
        user = self.ctx.require_user()

        if self.resolver is not None:
            self.content = self.resolver.get(self.key)
            self.title = self.content.title
            self.image_url = self.content.image_url
            if self.key.content_type == ContentType.MUSIC and self.content.is_album:
                self.content_subtype = ContentSubtype.ALBUM

        self.existing = self.ctx.db.get_rating(user.id, self.key.content_type, self.key.content_id)
        if not self.title and self.existing:
            self.title = self.existing.content_title
            self.image_url = self.image_url or self.existing.content_image_url
        if not self.title:
            raise ValidationError("Content title is required")
        status = self.ctx.db.get_status(user.id, self.key.content_type, self.key.content_id)

        if self.existing and self.existing.content_subtype and self.content_subtype is None:
            self.content_subtype = self.existing.content_subtype

        if not self._prefilled:
            if self.existing:
                self._prefill(self.existing)
            if status:
                self.status = status.status
            self._prefilled = True

        if self.is_album and self.resolver is not None:
            self._init_tracks(self.resolver.album_tracks(self.key.content_id))

        self.state = FormState.READY
        return self.state

    def _prefill(self, rating: Rating) -> None:
        self.score = rating.score
        self.review_text = rating.review_text or ""
        self.private_note = rating.private_note or ""
        self.has_spoiler = rating.has_spoiler
        if rating.track_ratings:
            self.track_ratings = [
                TrackRating(t.track_id, t.track_name, t.track_number, t.score) for t in rating.track_ratings
            ]

    def _init_tracks(self, tracks: list[AlbumTrack]) -> None:
        # Only seed when empty so saved or in-progress track scores survive a reload
        if self.track_ratings:
            return
        self.track_ratings = [TrackRating(t.track_id, t.track_name, t.track_number, 0.0) for t in tracks]

    def _require_editable(self) -> None:
        if self.state not in (FormState.READY, FormState.SAVE_FAILED):
            raise ValidationError(f"Form is not editable while {self.state.value}")

    def set_score(self, score: float) -> float:
        self._require_editable()
        self.score = snap_score(score)
        return self.score

    def set_review(self, text: str) -> None:
        self._require_editable()
        self.review_text = text

    def set_private_note(self, text: str) -> None:
        self._require_editable()
        self.private_note = text

    def set_spoiler(self, has_spoiler: bool) -> None:
        self._require_editable()
        self.has_spoiler = has_spoiler

    def set_status(self, status: ContentStatus | None) -> None:
        self._require_editable()
        self.status = status

    def set_track_score(self, track_id: str, score: float) -> float:
        self._require_editable()
        for track in self.track_ratings:
            if track.track_id == track_id:
                track.score = snap_score(score)
                return track.score
        raise ValidationError(f"Unknown track: {track_id}")

    def fields(self) -> RatingFields:
        return RatingFields(
            content_title=self.title or "",
            content_image_url=self.image_url,
            score=self.score,
            review_text=self.review_text,
            private_note=self.private_note,
            has_spoiler=self.has_spoiler,
            content_subtype=self.content_subtype,
            track_ratings=list(self.track_ratings) if self.is_album else None,
        )

    def save(self) -> FormState:
        """Write the rating and status.

        Returns:
            SAVED on success, SAVE_FAILED otherwise (the error is kept in ``error``)
        """
        self._require_editable()
        self.state = FormState.SAVING
        self.error = None
        try:
            self.saved_rating = upsert_rating(self.ctx, self.key, self.fields(), status=self.status)
        except (RateItError, duckdb.Error) as e:
            logger.warning("Saving rating for %s failed: %s", self.key, e)
            self.error = e if isinstance(e, RateItError) else TransientError(str(e))
            self.state = FormState.SAVE_FAILED
            return self.state

        self.existing = self.saved_rating
        self.state = FormState.SAVED
        return self.state
