import asyncio
import copy
import logging
import random
from abc import ABC, abstractmethod

import httpx

from skiptrace.exceptions.custom import FetchError

logger = logging.getLogger(__name__)

SCRAPINGBEE_URL = "https://app.scrapingbee.com/api/v1"
ZYTE_URL = "https://api.zyte.com/v1/extract"

_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"
_TIMEOUT = 90.0


class RequestCounter:
    """Outbound page requests made by one batch job."""

    def __init__(self) -> None:
        self._count = 0

    def increment(self) -> int:
        # No await between read and write, so this is atomic for asyncio tasks.
        self._count += 1
        return self._count

    @property
    def value(self) -> int:
        return self._count


class PageFetcher(ABC):
    """Fetch rendered HTML through a scraping API. Never raises."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        counter: RequestCounter | None = None,
        delay_range: tuple[float, float] = (4.0, 7.0),
        error_delay: float = 3.0,
    ):
        self._client = client
        self._api_key = api_key
        self.counter = counter or RequestCounter()
        self._delay_range = delay_range
        self._error_delay = error_delay

    def bind(self, counter: RequestCounter) -> "PageFetcher":
        """Copy of this fetcher that counts into ``counter``."""
        bound = copy.copy(self)
        bound.counter = counter
        return bound

    async def fetch(self, url: str) -> str:
        try:
            html = await self._request(url)
        except (httpx.HTTPError, FetchError, KeyError, ValueError) as exc:
            logger.warning("Fetch failed for %s: %s", url, exc)
            await asyncio.sleep(self._error_delay)
            return ""

        self.counter.increment()
        await asyncio.sleep(random.uniform(*self._delay_range))
        return html

    @abstractmethod
    async def _request(self, url: str) -> str: ...


class ScrapingBeeFetcher(PageFetcher):
    async def _request(self, url: str) -> str:
        resp = await self._client.get(
            SCRAPINGBEE_URL,
            params={
                "api_key": self._api_key,
                "url": url,
                "render_js": "true",
                "wait": "5000",
            },
            headers={"User-Agent": _USER_AGENT},
            timeout=_TIMEOUT,
        )
        if resp.status_code >= 400:
            raise FetchError(resp.text[:200], status_code=resp.status_code)
        return resp.text


class ZyteFetcher(PageFetcher):
    async def _request(self, url: str) -> str:
        resp = await self._client.post(
            ZYTE_URL,
            auth=(self._api_key, ""),
            json={"url": url, "browserHtml": True},
            timeout=_TIMEOUT,
        )
        if resp.status_code >= 400:
            raise FetchError(resp.text[:200], status_code=resp.status_code)
        data = resp.json()
        if not isinstance(data, dict):
            raise FetchError("Unexpected Zyte payload", status_code=resp.status_code)
        html = data["browserHtml"]
        if html is not None and not isinstance(html, str):
            raise FetchError("browserHtml is not text", status_code=resp.status_code)
        return html or ""


FETCHER_BACKENDS: dict[str, type[PageFetcher]] = {
    "scrapingbee": ScrapingBeeFetcher,
    "zyte": ZyteFetcher,
}


def build_fetcher(
    backend: str,
    client: httpx.AsyncClient,
    api_key: str,
    delay_range: tuple[float, float] = (4.0, 7.0),
    error_delay: float = 3.0,
) -> PageFetcher:
    try:
        fetcher_cls = FETCHER_BACKENDS[backend.lower()]
    except KeyError:
        raise ValueError(f"Unknown fetch backend: {backend}") from None
    return fetcher_cls(client, api_key, delay_range=delay_range, error_delay=error_delay)
