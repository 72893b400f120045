"""
BGG image service — fetches and caches BoardGameGeek thumbnails.

Images live in a flat file cache:
    {bgg_id}-micro / {bgg_id}-square200   the two thumbnail sizes
    {bgg_id}-noimage                      "BGG has no image" marker

A cache miss goes through a FetchQueue, so a page full of requests for
the same uncached game triggers one BGG round-trip.  A failed fetch is
logged and reported as "no image"; the next request simply tries again
(only the no-image marker stops retries).

Images are stored as downloaded — no resizing or transcoding.
"""

import json
import logging
import re
from pathlib import Path
from typing import Literal

import httpx

from boardgame_event.services.bgg_page_fetcher import BROWSER_USER_AGENT, BggPageFetcher
from boardgame_event.services.fetch_queue import FetchQueue

logger = logging.getLogger(__name__)

ImageSize = Literal["micro", "square200"]
IMAGE_SIZES: tuple[str, ...] = ("micro", "square200")

_GEEKITEM_RE = re.compile(
    r"GEEK\.geekitemPreload\s*=\s*(\{.*?\});\s*GEEK\.geekitemSettings",
    re.DOTALL,
)
IMAGE_HEADERS = {
    "User-Agent": BROWSER_USER_AGENT,
    "Accept": "image/webp,image/apng,image/*,*/*;q=0.8",
}


class NoImagesFoundError(Exception):
    def __init__(self, bgg_id: int) -> None:
        self.bgg_id = bgg_id
        super().__init__(f"No images found for BGG ID {bgg_id}")


def sniff_content_type(head: bytes) -> str:
    """Content type from the first bytes of an image; JPEG if unknown."""
    if head.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if head.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if head.startswith(b"RIFF") and head[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


class BggImageService:
    def __init__(
        self,
        cache_dir: str | Path,
        page_fetcher: BggPageFetcher,
        scrape_enabled: bool = True,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self._page_fetcher = page_fetcher
        self._scrape_enabled = scrape_enabled
        self._timeout = timeout
        self._transport = transport
        self._fetch_queue: FetchQueue[int, None] = FetchQueue(self._fetch_and_cache_images)
        self._initialized = False

    def _ensure_cache_dir(self) -> None:
        if self._initialized:
            return
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self._initialized = True
        except OSError:
            logger.warning("Could not create image cache directory %s", self.cache_dir)

    # ── Cache layout ─────────────────────────────────────────────────

    def image_path(self, bgg_id: int, size: ImageSize) -> Path:
        return self.cache_dir / f"{bgg_id}-{size}"

    def no_image_marker_path(self, bgg_id: int) -> Path:
        return self.cache_dir / f"{bgg_id}-noimage"

    def is_cached(self, bgg_id: int) -> bool:
        return all(self.image_path(bgg_id, size).exists() for size in IMAGE_SIZES)

    def has_no_image_marker(self, bgg_id: int) -> bool:
        return self.no_image_marker_path(bgg_id).exists()

    def is_in_flight(self, bgg_id: int) -> bool:
        return self._fetch_queue.is_in_flight(bgg_id)

    def get_content_type(self, path: Path) -> str:
        with path.open("rb") as fh:
            return sniff_content_type(fh.read(16))

    # ── Lookup ───────────────────────────────────────────────────────

    async def get_image(self, bgg_id: int, size: ImageSize) -> Path | None:
        """
        Path to the cached image, fetching it from BGG on a miss.

        Returns None when BGG has no image, scraping is disabled, or the
        fetch failed.
        """
        self._ensure_cache_dir()
        path = self.image_path(bgg_id, size)
        if path.exists():
            return path

        if self.has_no_image_marker(bgg_id) or not self._scrape_enabled:
            return None

        try:
            await self._fetch_queue.enqueue(bgg_id)
        except NoImagesFoundError:
            logger.info("BGG ID %s has no images", bgg_id)
            return None
        except Exception:
            logger.exception("Failed to fetch images for BGG ID %s", bgg_id)
            return None

        return path if path.exists() else None

    # ── Fetch (runs once per key via the queue) ──────────────────────

    async def _fetch_and_cache_images(self, bgg_id: int) -> None:
        result = await self._page_fetcher.fetch_bgg_page(bgg_id)
        logger.debug(
            "Fetched BGG page %s via %s (%d bytes)", bgg_id, result.provider, result.bytes
        )

        image_urls = self.extract_image_urls(result.html)
        if not image_urls:
            self.no_image_marker_path(bgg_id).touch()
            raise NoImagesFoundError(bgg_id)

        async with httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            for size, url in image_urls.items():
                await self._download_image(client, url, self.image_path(bgg_id, size))

    def extract_image_urls(self, html: str) -> dict[str, str]:
        """Image URLs from the page's ``GEEK.geekitemPreload`` JSON, by size."""
        match = _GEEKITEM_RE.search(html)
        if match is None:
            return {}

        try:
            geekitem = json.loads(match.group(1))
        except ValueError:
            logger.error("Failed to parse geekitem JSON")
            return {}

        item = geekitem.get("item") if isinstance(geekitem, dict) else None
        images = item.get("images") if isinstance(item, dict) else None
        if not isinstance(images, dict):
            return {}
        return {
            size: images[size]
            for size in IMAGE_SIZES
            if isinstance(images.get(size), str) and images[size]
        }

    async def _download_image(self, client: httpx.AsyncClient, url: str, target: Path) -> None:
        response = await client.get(url, headers=IMAGE_HEADERS)
        if not response.is_success:
            raise httpx.HTTPStatusError(
                f"Failed to download image: {response.status_code} {response.reason_phrase}",
                request=response.request,
                response=response,
            )

        # Write-then-rename so a reader never sees a half-written file
        partial = target.with_name(target.name + ".part")
        partial.write_bytes(response.content)
        partial.replace(target)
