import logging
from typing import List, Optional

import requests

from .errors import ConfigError, translate_request_errors


logger = logging.getLogger(__name__)

AREA = "Image"
DISPLAY_LIMIT = 5


class ImageSearchClient:
    """Image lookup against Pixabay (keyword search) or Unsplash (random photos).

    Use `provider` ("pixabay" or "unsplash") to pick the backend `find()` uses;
    `search()` and `random()` can also be called directly. Both return image
    URLs in the order the provider listed them. In `dry_run=True` mode stable
    placeholder URLs are returned without any HTTP traffic.
    """

    def __init__(self, provider: str = "pixabay", pixabay_api_key: Optional[str] = None,
                 unsplash_access_key: Optional[str] = None, pixabay_api_url: str = "https://pixabay.com/api/",
                 unsplash_api_url: str = "https://api.unsplash.com", timeout: float = 15.0, dry_run: bool = False):
        self.provider = provider.lower()
        self.pixabay_api_key = pixabay_api_key
        self.unsplash_access_key = unsplash_access_key
        self.pixabay_api_url = pixabay_api_url
        self.unsplash_api_url = unsplash_api_url.rstrip("/")
        self.timeout = timeout
        self.dry_run = dry_run

        if self.provider not in ("pixabay", "unsplash"):
            raise ConfigError(f"Unknown image provider: {provider}")
        if not dry_run:
            if self.provider == "pixabay" and not pixabay_api_key:
                raise ConfigError("PIXABAY_API_KEY is required for the pixabay provider")
            if self.provider == "unsplash" and not unsplash_access_key:
                raise ConfigError("UNSPLASH_ACCESS_KEY is required for the unsplash provider")

    @classmethod
    def from_settings(cls, settings) -> "ImageSearchClient":
        return cls(
            provider=settings.image_provider,
            pixabay_api_key=settings.pixabay_api_key,
            unsplash_access_key=settings.unsplash_access_key,
            pixabay_api_url=settings.pixabay_api_url,
            unsplash_api_url=settings.unsplash_api_url,
            timeout=settings.upstream_timeout,
            dry_run=settings.dry_run,
        )

    def find(self, query: str) -> List[str]:
        if self.provider == "unsplash":
            return self.random(query, DISPLAY_LIMIT)
        return self.search(query)

    def search(self, query: str) -> List[str]:
        """Pixabay keyword search; returns every hit's `webformatURL`."""
        if self.dry_run:
            return _placeholders("pixabay", query, DISPLAY_LIMIT)

        params = {"key": self.pixabay_api_key, "q": query, "image_type": "photo"}
        with translate_request_errors(AREA):
            resp = requests.get(self.pixabay_api_url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            urls = [hit["webformatURL"] for hit in resp.json()["hits"]]

        logger.info("Pixabay returned %d images for %r", len(urls), query)
        return urls

    def random(self, query: str, count: int = DISPLAY_LIMIT) -> List[str]:
        """Unsplash random photos matching `query`; returns `urls.regular` of each."""
        if self.dry_run:
            return _placeholders("unsplash", query, count)

        params = {"query": query, "count": count, "client_id": self.unsplash_access_key}
        headers = {"Accept-Version": "v1"}
        with translate_request_errors(AREA):
            resp = requests.get(f"{self.unsplash_api_url}/photos/random", params=params, headers=headers,
                                timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
            # a single object comes back when count is omitted upstream
            if isinstance(data, dict):
                data = [data]
            urls = [photo["urls"]["regular"] for photo in data]

        logger.info("Unsplash returned %d images for %r", len(urls), query)
        return urls


def _placeholders(provider: str, query: str, count: int) -> List[str]:
    slug = "-".join(query.lower().split()) or "image"
    return [f"https://{provider}.example/dry-run/{slug}/{i}.jpg" for i in range(1, count + 1)]
