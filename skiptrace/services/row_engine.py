import logging
import re
from collections.abc import Callable

from skiptrace.mappers.row_updates import (
    RowUpdateMap,
    email_fields,
    find_owner_in_relatives,
    merge_updates,
    phone_fields,
)
from skiptrace.schemas.owner import OwnerDetails, RowFields
from skiptrace.schemas.search import SearchResult
from skiptrace.services.business_registry import BusinessRegistryService
from skiptrace.services.phone_labeler import PhoneLabeler
from skiptrace.services.profile_extractor import ProfileExtractor
from skiptrace.services.relatives import RelativeGraphCrawler
from skiptrace.services.search import SearchOrchestrator
from skiptrace.services.text_classifier import TextClassifier

logger = logging.getLogger(__name__)

_LLC_RE = re.compile(r"llc", re.IGNORECASE)


class RowCancelled(Exception):
    """The job was cancelled while this row was in flight."""


def _never_cancelled() -> bool:
    return False


class RowDecisionEngine:
    """Run the ordered search strategies for one CSV row.

    LLC agent resolution, fund-name resolution, then search by mailing
    address, by owner one's name, by property address and finally by owner
    two's name. The first phase that matches produces the row's updates.
    """

    def __init__(
        self,
        search: SearchOrchestrator,
        extractor: ProfileExtractor,
        relatives: RelativeGraphCrawler,
        labeler: PhoneLabeler,
        classifier: TextClassifier,
        registry: BusinessRegistryService,
        fund_patterns: list[str] | None = None,
        ignore_llc_patterns: list[str] | None = None,
        is_cancelled: Callable[[], bool] = _never_cancelled,
    ):
        self._search = search
        self._extractor = extractor
        self._relatives = relatives
        self._labeler = labeler
        self._classifier = classifier
        self._registry = registry
        self._fund_res = [re.compile(p, re.IGNORECASE) for p in fund_patterns or []]
        self._ignore_llc_res = [re.compile(p, re.IGNORECASE) for p in ignore_llc_patterns or []]
        self._is_cancelled = is_cancelled

    def _check_cancelled(self) -> None:
        if self._is_cancelled():
            raise RowCancelled

    async def process_row(self, row: RowFields, owner: OwnerDetails) -> RowUpdateMap:
        try:
            self._check_cancelled()
            return await self._decide(row.model_copy(), owner)
        except RowCancelled:
            logger.info("Row %d skipped: processing cancelled", row.index)
            return {}
        except Exception:
            logger.exception("Error processing row %d", row.index)
            return {}

    async def _decide(self, row: RowFields, owner: OwnerDetails) -> RowUpdateMap:
        if _LLC_RE.search(owner.owner_one_last_name):
            resolved = await self._resolve_llc(row, owner)
            if resolved is None:
                return {}
            row, owner = resolved

        if any(p.search(owner.owner_one_last_name) for p in self._fund_res):
            owner = await self._resolve_fund_name(owner)

        logger.info(
            "Row %d: searching mailing address %r for %r / %r",
            row.index, row.mailing_address, owner.owner_one_name, owner.owner_two_name,
        )
        self._check_cancelled()
        result = await self._search.search_by_address(
            row.mailing_address, row.mailing_city, row.mailing_state, owner,
        )
        if result.is_matched:
            return await self._build_updates(result)

        logger.info("Row %d: searching owner one name %r", row.index, owner.owner_one_name)
        self._check_cancelled()
        result = await self._search.search_by_name(
            owner.owner_one_name, row.address,
            row.mailing_address, row.mailing_city, row.mailing_state,
        )
        if result.is_matched:
            return await self._build_updates(result)

        logger.info("Row %d: searching property address %r", row.index, row.address)
        self._check_cancelled()
        result = await self._search.search_by_address(row.address, row.city, row.state, owner)
        if result.is_matched:
            return await self._build_updates(result)

        if not owner.owner_two_name.strip():
            return {}

        logger.info("Row %d: searching owner two name %r", row.index, owner.owner_two_name)
        self._check_cancelled()
        result = await self._search.search_by_name(
            owner.owner_two_name, row.address,
            row.mailing_address, row.mailing_city, row.mailing_state,
        )
        if not result.is_matched:
            return {}

        self._check_cancelled()
        relative_updates = await self._relatives.crawl_relatives_phone_numbers(
            result.relative_urls, result.relative_names, result.associate_names,
        )
        nested_url = find_owner_in_relatives(relative_updates, owner)
        if nested_url:
            logger.info("Row %d: owner one found among owner two's relatives", row.index)
            return await self._build_updates_from_profile(nested_url)
        return await self._assemble(relative_updates, result.matched_phones, result.emails)

    async def _resolve_llc(
        self, row: RowFields, owner: OwnerDetails,
    ) -> tuple[RowFields, OwnerDetails] | None:
        """Swap the LLC for its registered agent; None means skip the row."""
        self._check_cancelled()
        agent = await self._registry.lookup_business_agent(owner.owner_one_last_name)
        owner = owner.model_copy(update={
            "owner_one_first_name": agent.first_name,
            "owner_one_last_name": agent.last_name,
        })

        if any(p.search(agent.full_name) for p in self._ignore_llc_res):
            logger.info("Row %d skipped: LLC agent %r is another company", row.index, agent.full_name)
            return None

        if agent.registry_id:
            self._check_cancelled()
            addresses = await self._registry.lookup_agent_address(agent.registry_id)
            update: dict[str, str] = {}
            if addresses.mailing_address:
                update.update(
                    mailing_address=addresses.mailing_address.street,
                    mailing_city=addresses.mailing_address.city,
                    mailing_state=addresses.mailing_address.state,
                )
            if addresses.property_address:
                update.update(
                    address=addresses.property_address.street,
                    city=addresses.property_address.city,
                    state=addresses.property_address.state,
                )
            row = row.model_copy(update=update)
        return row, owner

    async def _resolve_fund_name(self, owner: OwnerDetails) -> OwnerDetails:
        self._check_cancelled()
        name = await self._classifier.split_person_name(owner.owner_one_last_name)
        if name is None:
            return owner
        return owner.model_copy(update={
            "owner_one_first_name": name.first_name,
            "owner_one_last_name": name.last_name,
        })

    async def _build_updates(self, result: SearchResult) -> RowUpdateMap:
        self._check_cancelled()
        relative_updates = await self._relatives.crawl_relatives_phone_numbers(
            result.relative_urls, result.relative_names, result.associate_names,
        )
        return await self._assemble(relative_updates, result.matched_phones, result.emails)

    async def _build_updates_from_profile(self, url: str) -> RowUpdateMap:
        self._check_cancelled()
        details = await self._extractor.extract_details_by_url(url)
        self._check_cancelled()
        relative_updates = await self._relatives.crawl_relatives_phone_numbers(
            details.relative_urls, details.relative_names,
        )
        return await self._assemble(relative_updates, details.phone_numbers, [])

    async def _assemble(
        self, relative_updates: RowUpdateMap, phones: list[str], emails: list[str],
    ) -> RowUpdateMap:
        self._check_cancelled()
        labeled = await self._labeler.label_phone_numbers(phones)
        return merge_updates(relative_updates, phone_fields(labeled), email_fields(emails))
