import asyncio
import logging

from skiptrace.mappers.profile_sections import absolute_url
from skiptrace.mappers.row_updates import RowUpdateMap, merge_updates, relative_fields
from skiptrace.services.profile_extractor import ProfileExtractor

logger = logging.getLogger(__name__)

MAX_RELATIVES_TO_CRAWL = 5
MAX_PARALLEL_RELATIVES = 10
RELATIVE_DELAY = 0.02  # seconds after each relative extraction


class RelativeGraphCrawler:
    def __init__(
        self,
        extractor: ProfileExtractor,
        max_relatives: int = MAX_RELATIVES_TO_CRAWL,
        max_parallel: int = MAX_PARALLEL_RELATIVES,
        delay: float = RELATIVE_DELAY,
    ):
        self._extractor = extractor
        self._max_relatives = max_relatives
        self._max_parallel = max_parallel
        self._delay = delay

    async def crawl_relatives_phone_numbers(
        self,
        relative_urls: list[str],
        relative_names: list[str],
        associate_names: list[str] | None = None,
    ) -> RowUpdateMap:
        """Fetch each of the first few relatives' phones into indexed fields.

        Every crawled index gets ``relative{i}Name``, ``associate{i}Name`` and
        ``relative{i}URL``; ``relative{i}Contact{n}`` only when phones were found.
        """
        urls = relative_urls[: self._max_relatives]
        if not urls:
            return {}
        associate_names = associate_names or []
        semaphore = asyncio.Semaphore(self._max_parallel)

        async def crawl_one(index: int, url: str) -> RowUpdateMap:
            async with semaphore:
                logger.info("Crawling relative %d: %s", index, url)
                details = await self._extractor.extract_details_by_url(url)
                await asyncio.sleep(self._delay)
            return relative_fields(
                index,
                absolute_url(url),
                relative_names[index] if index < len(relative_names) else "",
                associate_names[index] if index < len(associate_names) else "",
                details.phone_numbers,
            )

        parts = await asyncio.gather(*(crawl_one(i, url) for i, url in enumerate(urls)))
        return merge_updates(*parts)
