"""
BGG page fetcher — downloads a game's BoardGameGeek page HTML.

Provider order:
  1. ScraperAPI, when a key is configured and it has not been disabled
     for the day (a 403 means credits are gone).  On a 403 with a
     crawler configured, the crawler is tried instead.
  2. The crawler service (``POST {BGG_CRAWLER_URL}/fetch``).
  3. A direct request to boardgamegeek.com.

Timeouts are whatever the httpx client enforces; nothing is retried here.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, time as dt_time

import httpx

logger = logging.getLogger(__name__)

SCRAPER_API_URL = "http://api.scraperapi.com"
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
)
HTML_HEADERS = {
    "User-Agent": BROWSER_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml",
}


def bgg_game_url(bgg_id: int) -> str:
    return f"https://boardgamegeek.com/boardgame/{bgg_id}"


@dataclass(frozen=True)
class FetchResult:
    html: str
    provider: str
    status_code: int
    url: str

    @property
    def bytes(self) -> int:
        return len(self.html.encode("utf-8"))


class PageFetchError(Exception):
    """A provider answered, but not with a usable page."""


class ScraperApiError(PageFetchError):
    def __init__(self, status_code: int, is_fatal: bool, should_retry: bool, message: str) -> None:
        self.status_code = status_code
        self.is_fatal = is_fatal
        self.should_retry = should_retry
        super().__init__(message)


class BggPageFetcher:
    def __init__(
        self,
        scraper_api_key: str = "",
        crawler_url: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._scraper_api_key = scraper_api_key
        self._crawler_url = crawler_url.strip().rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._scraper_api_disabled_until: datetime | None = None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    # ── Public ───────────────────────────────────────────────────────

    async def fetch_bgg_page(self, bgg_id: int) -> FetchResult:
        url = bgg_game_url(bgg_id)
        scraper_available = bool(self._scraper_api_key) and not self.is_scraper_api_disabled()
        crawler_available = bool(self._crawler_url)

        if scraper_available:
            try:
                return await self._fetch_via_scraper_api(url)
            except ScraperApiError as exc:
                if exc.status_code == 403 and crawler_available:
                    logger.warning("ScraperAPI refused (403), falling back to crawler")
                    return await self._fetch_via_crawler(url)
                raise

        if crawler_available:
            return await self._fetch_via_crawler(url)

        return await self._fetch_direct(url)

    def is_scraper_api_disabled(self) -> bool:
        if self._scraper_api_disabled_until is None:
            return False
        if datetime.now() > self._scraper_api_disabled_until:
            self._scraper_api_disabled_until = None
            return False
        return True

    # ── Providers ────────────────────────────────────────────────────

    async def _fetch_via_scraper_api(self, url: str) -> FetchResult:
        params = {"api_key": self._scraper_api_key, "url": url}
        async with self._client() as client:
            response = await client.get(SCRAPER_API_URL, params=params, headers=HTML_HEADERS)

        status_code = response.status_code
        if status_code == 403:
            self._disable_scraper_api_for_today()
            raise ScraperApiError(403, True, False, "ScraperAPI credits exhausted or API key invalid")
        if status_code == 429:
            raise ScraperApiError(429, False, True, "ScraperAPI rate limit exceeded")
        if status_code == 500:
            # ScraperAPI already retried on its side
            raise ScraperApiError(500, False, False, "ScraperAPI failed to fetch page after retries")
        if status_code == 400:
            raise ScraperApiError(400, False, False, "Malformed request to ScraperAPI")
        if not response.is_success:
            raise PageFetchError(
                f"Failed to fetch BGG page via ScraperAPI: {status_code} {response.reason_phrase}"
            )

        return FetchResult(
            html=response.text,
            provider="scraperapi",
            status_code=status_code,
            url=url,
        )

    async def _fetch_via_crawler(self, url: str) -> FetchResult:
        async with self._client() as client:
            response = await client.post(f"{self._crawler_url}/fetch", json={"url": url})

        try:
            payload = response.json()
        except ValueError:
            raise PageFetchError(f"Crawler returned non-JSON response ({response.status_code})")
        if not isinstance(payload, dict):
            raise PageFetchError(f"Crawler returned unexpected payload ({response.status_code})")

        if not response.is_success or not payload.get("success"):
            message = payload.get("error") or response.reason_phrase or "Crawler request failed"
            raise PageFetchError(f"Crawler fetch failed: {response.status_code} {message}")

        return FetchResult(
            html=payload["html"],
            provider="crawler",
            status_code=payload.get("statusCode", response.status_code),
            url=payload.get("url") or url,
        )

    async def _fetch_direct(self, url: str) -> FetchResult:
        async with self._client() as client:
            response = await client.get(url, headers=HTML_HEADERS)

        if not response.is_success:
            raise PageFetchError(
                f"Failed to fetch BGG page: {response.status_code} {response.reason_phrase}"
            )

        return FetchResult(
            html=response.text,
            provider="direct",
            status_code=response.status_code,
            url=str(response.url),
        )

    def _disable_scraper_api_for_today(self) -> None:
        self._scraper_api_disabled_until = datetime.combine(
            datetime.now().date(), dt_time(23, 59, 59, 999000)
        )
        logger.warning(
            "ScraperAPI disabled until %s", self._scraper_api_disabled_until.isoformat()
        )
