"""Book metadata from the Google Books API."""

from typing import Any

from ..models import Content, ContentType
from .base import MetadataSource, get_year

GOOGLE_BOOKS_BASE_URL = "https://www.googleapis.com/books/v1/volumes"


def secure_url(url: str | None) -> str | None:
    return url.replace("http://", "https://") if url else None


class GoogleBooksSource(MetadataSource):
    """Google Books works without a key at a lower quota."""

    content_type = ContentType.BOOK
    base_url = GOOGLE_BOOKS_BASE_URL

    def auth_params(self) -> dict[str, str]:
        return {"key": self.api_key} if self.api_key else {}

    def search(self, query: str) -> list[Content]:
        if not query:
            return []
        data = self._get_json("", {"q": query, "maxResults": 20, "orderBy": "relevance", "printType": "books"})
        return [self._parse_volume(item, all_authors=False) for item in data.get("items") or []]

    def get(self, content_id: str) -> Content:
        return self._parse_volume(self._get_json(f"/{content_id}"), all_authors=True)

    def _parse_volume(self, item: dict[str, Any], all_authors: bool) -> Content:
        info = item.get("volumeInfo", {})
        authors = info.get("authors") or []
        return Content(
            id=item["id"],
            content_type=self.content_type,
            title=info.get("title", ""),
            image_url=secure_url((info.get("imageLinks") or {}).get("thumbnail")),
            year=get_year(info.get("publishedDate")),
            creator=(", ".join(authors) if all_authors else authors[0]) if authors else None,
            description=info.get("description"),
            genres=info.get("categories") or [],
            metadata={"pages": info.get("pageCount")},
        )
