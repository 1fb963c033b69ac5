"""Music and podcast metadata from the iTunes Search API."""

from typing import Any

from ..errors import NotFoundError
from ..models import AlbumTrack, Content, ContentType
from .base import MetadataSource, get_year

ITUNES_BASE_URL = "https://itunes.apple.com"
SEARCH_LIMIT = 20


def artwork_url(url100: str | None, url600: str | None = None) -> str | None:
    """Prefer the 600px artwork, upscaling the 100px URL when that is all we have."""
    if url600:
        return url600
    if not url100:
        return None
    return url100.replace("100x100bb.jpg", "600x600bb.jpg")


class _ITunesSource(MetadataSource):
    base_url = ITUNES_BASE_URL

    def _lookup(self, content_id: str, entity: str) -> list[dict[str, Any]]:
        data = self._get_json("/lookup", {"id": content_id, "entity": entity})
        results = data.get("results", [])
        if not results:
            raise NotFoundError(f"{self.content_type.value} not found: {content_id}")
        return results


class ITunesMusicSource(_ITunesSource):
    """Albums and individual tracks. Album ids are iTunes collection ids."""

    content_type = ContentType.MUSIC

    def search(self, query: str) -> list[Content]:
        if not query:
            return []
        data = self._get_json("/search", {"term": query, "entity": "album", "media": "music", "limit": SEARCH_LIMIT})
        return [self._parse_album(item) for item in data.get("results", []) if item.get("collectionId")]

    def search_tracks(self, query: str) -> list[Content]:
        if not query:
            return []
        data = self._get_json("/search", {"term": query, "entity": "song", "media": "music", "limit": SEARCH_LIMIT})
        return [self._parse_track(item) for item in data.get("results", []) if item.get("trackId")]

    def get(self, content_id: str) -> Content:
        item = self._lookup(content_id, "album")[0]
        if item.get("wrapperType") == "track":
            return self._parse_track(item)
        return self._parse_album(item)

    def album_tracks(self, album_id: str) -> list[AlbumTrack]:
        """Track list of an album ordered by disc and track number."""
        results = self._lookup(album_id, "song")
        tracks = [
            AlbumTrack(
                track_id=str(item["trackId"]),
                track_name=item.get("trackName", ""),
                track_number=int(item.get("trackNumber") or 0),
                duration_ms=int(item.get("trackTimeMillis") or 0),
                disc_number=int(item.get("discNumber") or 1),
                preview_url=item.get("previewUrl"),
                artist_name=item.get("artistName"),
            )
            for item in results
            if item.get("wrapperType") == "track" and item.get("kind", "song") == "song"
        ]
        tracks.sort(key=lambda t: (t.disc_number, t.track_number))
        return tracks

    def _parse_album(self, item: dict[str, Any]) -> Content:
        return Content(
            id=str(item["collectionId"]),
            content_type=self.content_type,
            title=item.get("collectionName", ""),
            image_url=artwork_url(item.get("artworkUrl100")),
            year=get_year(item.get("releaseDate")),
            creator=item.get("artistName"),
            genres=[item["primaryGenreName"]] if item.get("primaryGenreName") else [],
            is_album=True,
            metadata={"track_count": item.get("trackCount")},
        )

    def _parse_track(self, item: dict[str, Any]) -> Content:
        return Content(
            id=str(item["trackId"]),
            content_type=self.content_type,
            title=item.get("trackName", ""),
            image_url=artwork_url(item.get("artworkUrl100")),
            year=get_year(item.get("releaseDate")),
            creator=item.get("artistName"),
            genres=[item["primaryGenreName"]] if item.get("primaryGenreName") else [],
            is_album=False,
            metadata={"album": item.get("collectionName"), "album_id": item.get("collectionId")},
        )


class ITunesPodcastSource(_ITunesSource):
    content_type = ContentType.PODCAST

    def search(self, query: str) -> list[Content]:
        if not query:
            return []
        data = self._get_json("/search", {"term": query, "entity": "podcast", "limit": SEARCH_LIMIT})
        return [self._parse_podcast(item) for item in data.get("results", []) if item.get("collectionId")]

    def get(self, content_id: str) -> Content:
        return self._parse_podcast(self._lookup(content_id, "podcast")[0])

    def _parse_podcast(self, item: dict[str, Any]) -> Content:
        return Content(
            id=str(item["collectionId"]),
            content_type=self.content_type,
            title=item.get("collectionName", ""),
            image_url=artwork_url(item.get("artworkUrl100"), item.get("artworkUrl600")),
            year=get_year(item.get("releaseDate")),
            creator=item.get("artistName"),
            description=item.get("description") or "",
            genres=[item["primaryGenreName"]] if item.get("primaryGenreName") else [],
            metadata={"episode_count": item.get("trackCount"), "feed_url": item.get("feedUrl")},
        )
