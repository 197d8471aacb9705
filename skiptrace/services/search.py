import logging
from collections.abc import Callable

from skiptrace.mappers.pagination import has_next_page
from skiptrace.mappers.profile_matcher import match_candidate, match_candidate_by_address
from skiptrace.mappers.profile_sections import address_search_url, name_search_url
from skiptrace.schemas.owner import OwnerDetails
from skiptrace.schemas.search import CardMatch, SearchResult
from skiptrace.services.page_fetcher import PageFetcher
from skiptrace.services.profile_extractor import ProfileExtractor

logger = logging.getLogger(__name__)

MAX_PAGES = 50


class SearchOrchestrator:
    """Walk the search-result pages of one query and accumulate what matches."""

    def __init__(
        self,
        fetcher: PageFetcher,
        extractor: ProfileExtractor,
        max_pages: int = MAX_PAGES,
    ):
        self._fetcher = fetcher
        self._extractor = extractor
        self._max_pages = max_pages

    async def search_by_address(
        self, address: str, city: str, state: str, owner: OwnerDetails,
    ) -> SearchResult:
        if not (address and address.strip()):
            return SearchResult()
        try:
            return await self._crawl(
                lambda page: address_search_url(address, city, state, page),
                lambda html: match_candidate(html, owner, address),
            )
        except Exception:
            logger.exception("Error searching by address: %s", address)
            return SearchResult()

    async def search_by_name(
        self, name: str, property_address: str, address: str, city: str, state: str,
    ) -> SearchResult:
        if not (name and name.strip()):
            return SearchResult()
        try:
            return await self._crawl(
                lambda page: name_search_url(name, city, state, page),
                lambda html: match_candidate_by_address(html, address, property_address),
            )
        except Exception:
            logger.exception("Error searching by name: %s", name)
            return SearchResult()

    async def _crawl(
        self,
        page_url: Callable[[int], str],
        match_page: Callable[[str], CardMatch],
    ) -> SearchResult:
        result = SearchResult()
        extracted: set[str] = set()
        page = 1

        while page <= self._max_pages:
            url = page_url(page)
            logger.info("Crawling page no %d, URL: %s", page, url)
            html = await self._fetcher.fetch(url)

            match = match_page(html)
            result.add_phones(match.phones)
            result.is_matched = result.is_matched or match.matched

            if match.matched and match.profile_url and match.profile_url not in extracted:
                extracted.add(match.profile_url)
                details = await self._extractor.extract_details_by_url(match.profile_url)
                result.add_profile(details)

            if not has_next_page(html):
                break
            page += 1

        return result
