import logging

from skiptrace.mappers.profile_sections import (
    ASSOCIATES_LABEL,
    EMAILS_LABEL,
    PHONES_LABEL,
    RELATIVES_LABEL,
    absolute_url,
    extract_section,
    format_email,
)
from skiptrace.schemas.search import ProfileDetails
from skiptrace.services.page_fetcher import PageFetcher

logger = logging.getLogger(__name__)


class ProfileExtractor:
    def __init__(self, fetcher: PageFetcher):
        self._fetcher = fetcher

    async def extract_details_by_url(self, url: str) -> ProfileDetails:
        """Fetch a person profile once and read its labeled sections. Never raises."""
        if not url:
            return ProfileDetails()
        try:
            html = await self._fetcher.fetch(absolute_url(url))
            return self.parse_profile(html)
        except Exception:
            logger.exception("Profile extraction failed for %s", url)
            return ProfileDetails()

    @staticmethod
    def parse_profile(html: str) -> ProfileDetails:
        if not html:
            return ProfileDetails()
        email_links = extract_section(html, EMAILS_LABEL, "a", "href")
        emails = [e for e in (format_email(href) for href in email_links) if e]
        return ProfileDetails(
            phone_numbers=extract_section(html, PHONES_LABEL, ".phone"),
            relative_urls=extract_section(html, RELATIVES_LABEL, "a", "href"),
            relative_names=extract_section(html, RELATIVES_LABEL, ".relative"),
            associate_urls=extract_section(html, ASSOCIATES_LABEL, "a", "href"),
            associate_names=extract_section(html, ASSOCIATES_LABEL, ".associate"),
            emails=emails,
        )
