"""Route metadata lookups to the right source for each content type."""

import logging

import httpx

from ..anything import get_item, search_items, to_content
from ..config import HTTP_TIMEOUT, USER_AGENT, Settings
from ..context import AppContext
from ..errors import ConfigurationError
from ..models import AlbumTrack, Content, ContentKey, ContentType
from .base import MetadataSource
from .google_books import GoogleBooksSource
from .itunes import ITunesMusicSource, ITunesPodcastSource
from .rawg import RAWGSource
from .tmdb import TMDBMovieSource, TMDBSeriesSource

logger = logging.getLogger(__name__)


class MetadataResolver:
    """Search and fetch content of any type.

    HTTP sources are created on first use and share one ``httpx.Client``,
    which is closed with the resolver unless it was passed in.
    "anything" items come from the local database.
    """

    def __init__(self, ctx: AppContext, settings: Settings | None = None, client: httpx.Client | None = None):
        self.ctx = ctx
        self.settings = settings or ctx.session.settings
        # An injected client belongs to the caller and is left open on close()
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=HTTP_TIMEOUT, headers={"User-Agent": USER_AGENT})
        self._sources: dict[ContentType, MetadataSource] = {}
        self._music: ITunesMusicSource | None = None

    def source_for(self, content_type: ContentType) -> MetadataSource:
        if content_type == ContentType.ANYTHING:
            raise ConfigurationError("Anything items are not served by a remote source")
        if content_type == ContentType.MUSIC:
            return self.music_source()
        if content_type not in self._sources:
            self._sources[content_type] = self._build(content_type)
        return self._sources[content_type]

    def music_source(self) -> ITunesMusicSource:
        if self._music is None:
            self._music = ITunesMusicSource(client=self.client)
        return self._music

    def _build(self, content_type: ContentType) -> MetadataSource:
        s = self.settings
        if content_type == ContentType.MOVIE:
            return TMDBMovieSource(s.tmdb_api_key, client=self.client)
        if content_type == ContentType.SERIES:
            return TMDBSeriesSource(s.tmdb_api_key, client=self.client)
        if content_type == ContentType.BOOK:
            return GoogleBooksSource(s.google_books_api_key, client=self.client)
        if content_type == ContentType.GAME:
            return RAWGSource(s.rawg_api_key, client=self.client)
        return ITunesPodcastSource(client=self.client)

    def search(self, content_type: ContentType, query: str) -> list[Content]:
        if content_type == ContentType.ANYTHING:
            return [to_content(item) for item in search_items(self.ctx, query)]
        results = self.source_for(content_type).search(query)
        logger.debug("%d %s results for %r", len(results), content_type.value, query)
        return results

    def search_tracks(self, query: str) -> list[Content]:
        """Search individual songs rather than albums."""
        return self.music_source().search_tracks(query)

    def get(self, key: ContentKey) -> Content:
        if key.content_type == ContentType.ANYTHING:
            return to_content(get_item(self.ctx, key.content_id))
        return self.source_for(key.content_type).get(key.content_id)

    def album_tracks(self, album_id: str) -> list[AlbumTrack]:
        return self.music_source().album_tracks(album_id)

    def close(self) -> None:
        self._sources.clear()
        self._music = None
        if self._owns_client:
            self.client.close()
