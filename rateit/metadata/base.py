"""Base metadata source class."""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any

import httpx

from ..config import HTTP_TIMEOUT, USER_AGENT
from ..errors import ConfigurationError, NotFoundError, TransientError
from ..models import Content, ContentType

logger = logging.getLogger(__name__)


def get_year(date: str | None) -> str | None:
    """Extract the year from an ISO-ish date string like ``2014-11-05``."""
    if not date:
        return None
    match = re.match(r"(\d{4})", date)
    return match.group(1) if match else None


class MetadataSource(ABC):
    """Base class for all third-party metadata sources.

    Subclasses set ``content_type`` and implement ``search`` and ``get``.
    An ``httpx.Client`` can be injected, which is how tests supply a
    mock transport.
    """

    content_type: ContentType
    base_url: str
    requires_key = False

    def __init__(self, api_key: str | None = None, client: httpx.Client | None = None):
        self.api_key = api_key
        self.client = client or httpx.Client(timeout=HTTP_TIMEOUT, headers={"User-Agent": USER_AGENT})

    @abstractmethod
    def search(self, query: str) -> list[Content]:
        """Search by free text."""
        pass

    @abstractmethod
    def get(self, content_id: str) -> Content:
        """Fetch one record by id. Raises NotFoundError if it does not exist."""
        pass

    def auth_params(self) -> dict[str, str]:
        return {}

    def _check_key(self) -> None:
        if self.requires_key and not self.api_key:
            raise ConfigurationError(f"An API key is required for {self.content_type.value} metadata")

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET a JSON document, mapping failures onto domain errors.

        Raises:
            ConfigurationError: If the source needs a key and has none
            NotFoundError: On HTTP 404
            TransientError: On any other HTTP or transport failure
        """
        self._check_key()
        url = f"{self.base_url}{path}"
        query = {**(params or {}), **self.auth_params()}

        try:
            response = self.client.get(url, params=query)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise NotFoundError(f"{self.content_type.value} not found: {path}") from e
            logger.warning("%s request failed with %d", url, e.response.status_code)
            raise TransientError(f"{self.content_type.value} service returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning("%s request failed: %s", url, e)
            raise TransientError(f"{self.content_type.value} service unavailable") from e
        except ValueError as e:
            logger.warning("%s returned invalid JSON", url)
            raise TransientError(f"{self.content_type.value} service returned invalid data") from e

    def close(self) -> None:
        self.client.close()
