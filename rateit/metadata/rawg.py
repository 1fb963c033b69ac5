"""Game metadata from RAWG."""

from ..models import Content, ContentType
from .base import MetadataSource, get_year

RAWG_BASE_URL = "https://api.rawg.io/api"


class RAWGSource(MetadataSource):
    content_type = ContentType.GAME
    base_url = RAWG_BASE_URL
    requires_key = True

    def auth_params(self) -> dict[str, str]:
        return {"key": self.api_key or ""}

    def search(self, query: str) -> list[Content]:
        if not query:
            return []
        data = self._get_json("/games", {"search": query, "page_size": 20})
        return [
            Content(
                id=str(item["id"]),
                content_type=self.content_type,
                title=item.get("name", ""),
                image_url=item.get("background_image"),
                year=get_year(item.get("released")),
            )
            for item in data.get("results", [])
        ]

    def get(self, content_id: str) -> Content:
        data = self._get_json(f"/games/{content_id}")
        developers = data.get("developers") or []
        platforms = data.get("platforms") or []
        return Content(
            id=str(data["id"]),
            content_type=self.content_type,
            title=data.get("name", ""),
            image_url=data.get("background_image"),
            year=get_year(data.get("released")),
            creator=developers[0].get("name") if developers else None,
            description=data.get("description_raw"),
            genres=[g["name"] for g in data.get("genres", []) if g.get("name")],
            metadata={"platform": (platforms[0].get("platform") or {}).get("name") if platforms else None},
        )
