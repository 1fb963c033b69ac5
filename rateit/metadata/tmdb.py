"""Movie and series metadata from TMDB."""

from typing import Any

from ..config import METADATA_LANGUAGE
from ..models import Content, ContentType
from .base import MetadataSource, get_year

TMDB_BASE_URL = "https://api.themoviedb.org/3"
TMDB_IMAGE_URL = "https://image.tmdb.org/t/p/w500"
MIN_POPULARITY = 1.0


def image_url(path: str | None) -> str | None:
    return f"{TMDB_IMAGE_URL}{path}" if path else None


def rank_by_popularity(results: list[Content]) -> list[Content]:
    """Most popular first, dropping obscure entries unless nothing else is left."""
    ranked = sorted(results, key=lambda c: c.metadata.get("popularity") or 0.0, reverse=True)
    popular = [c for c in ranked if (c.metadata.get("popularity") or 0.0) >= MIN_POPULARITY]
    return popular or ranked


class _TMDBSource(MetadataSource):
    base_url = TMDB_BASE_URL
    requires_key = True

    def auth_params(self) -> dict[str, str]:
        return {"api_key": self.api_key or "", "language": METADATA_LANGUAGE}


class TMDBMovieSource(_TMDBSource):
    content_type = ContentType.MOVIE

    def search(self, query: str) -> list[Content]:
        if not query:
            return []
        data = self._get_json("/search/movie", {"query": query})
        return rank_by_popularity([self._parse_result(item) for item in data.get("results", [])])

    def get(self, content_id: str) -> Content:
        data = self._get_json(f"/movie/{content_id}", {"append_to_response": "credits"})
        crew = (data.get("credits") or {}).get("crew", [])
        director = next((c.get("name") for c in crew if c.get("job") == "Director"), None)
        return Content(
            id=str(data["id"]),
            content_type=self.content_type,
            title=data.get("title", ""),
            image_url=image_url(data.get("poster_path")),
            year=get_year(data.get("release_date")),
            creator=director,
            description=data.get("overview"),
            genres=[g["name"] for g in data.get("genres", []) if g.get("name")],
            metadata={"runtime": data.get("runtime")},
        )

    def _parse_result(self, item: dict[str, Any]) -> Content:
        return Content(
            id=str(item["id"]),
            content_type=self.content_type,
            title=item.get("title", ""),
            image_url=image_url(item.get("poster_path")),
            year=get_year(item.get("release_date")),
            description=item.get("overview"),
            metadata={"popularity": item.get("popularity")},
        )


class TMDBSeriesSource(_TMDBSource):
    content_type = ContentType.SERIES

    def search(self, query: str) -> list[Content]:
        if not query:
            return []
        data = self._get_json("/search/tv", {"query": query})
        return rank_by_popularity([self._parse_result(item) for item in data.get("results", [])])

    def get(self, content_id: str) -> Content:
        data = self._get_json(f"/tv/{content_id}")
        creators = [c["name"] for c in data.get("created_by", []) if c.get("name")]
        return Content(
            id=str(data["id"]),
            content_type=self.content_type,
            title=data.get("name", ""),
            image_url=image_url(data.get("poster_path")),
            year=get_year(data.get("first_air_date")),
            creator=", ".join(creators) or None,
            description=data.get("overview"),
            genres=[g["name"] for g in data.get("genres", []) if g.get("name")],
            metadata={
                "seasons": data.get("number_of_seasons"),
                "episodes": data.get("number_of_episodes"),
            },
        )

    def _parse_result(self, item: dict[str, Any]) -> Content:
        return Content(
            id=str(item["id"]),
            content_type=self.content_type,
            title=item.get("name", ""),
            image_url=image_url(item.get("poster_path")),
            year=get_year(item.get("first_air_date")),
            description=item.get("overview"),
            metadata={"popularity": item.get("popularity")},
        )
