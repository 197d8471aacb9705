import logging
import re

import httpx

from skiptrace.exceptions.custom import BusinessRegistryError
from skiptrace.schemas.registry import AgentAddresses, BusinessAgent, StreetAddress

logger = logging.getLogger(__name__)

BASE_URL = "https://bizfileonline.sos.ca.gov"
SEARCH_URL = f"{BASE_URL}/api/Records/businesssearch"
DETAIL_URL = f"{BASE_URL}/api/FilingDetail/business/{{registry_id}}/false"

_HEADERS = {
    "Content-Type": "application/json",
    "User-Agent": "PostmanRuntime/7.28.4",
}

_UNIT_RE = re.compile(r"#\d+")
_NON_ALPHA_RE = re.compile(r"[^a-zA-Z]")

# Malformed payloads surface as TypeError/AttributeError deep in parsing
_LOOKUP_ERRORS = (httpx.HTTPError, BusinessRegistryError, ValueError, TypeError, AttributeError)


def _format_name_part(part: str) -> str:
    return part[:1].upper() + part[1:].lower()


def parse_address_block(block: str | None) -> StreetAddress | None:
    """'123 MAIN ST #4\\nLOS ANGELES, CA 90001' → street/city/state, lowercased."""
    if not block:
        return None
    lines = block.split("\n")
    street = _UNIT_RE.sub("", lines[0].strip()).strip().lower()
    city = state = ""
    if len(lines) > 1:
        city_part, _, state_part = lines[1].partition(",")
        city = city_part.strip().lower()
        state = _NON_ALPHA_RE.sub("", state_part).lower()
    return StreetAddress(street=street, city=city, state=state)


def _value_by_label(items: list[dict], label: str) -> str | None:
    for item in items:
        if item.get("LABEL") == label:
            return item.get("VALUE")
    return None


class BusinessRegistryService:
    """California Secretary of State business search. Best-effort, never raises."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def lookup_business_agent(self, llc_name: str) -> BusinessAgent:
        try:
            return await self._do_lookup_agent(llc_name)
        except _LOOKUP_ERRORS:
            logger.exception("Registry agent lookup failed for %s", llc_name)
            return BusinessAgent()

    async def lookup_agent_address(self, registry_id: str) -> AgentAddresses:
        try:
            return await self._do_lookup_address(registry_id)
        except _LOOKUP_ERRORS:
            logger.exception("Registry address lookup failed for %s", registry_id)
            return AgentAddresses()

    async def _do_lookup_agent(self, llc_name: str) -> BusinessAgent:
        resp = await self._client.post(
            SEARCH_URL,
            json={"SEARCH_VALUE": llc_name, "SEARCH_TYPE_ID": "1"},
            headers=_HEADERS,
        )
        if resp.status_code >= 400:
            raise BusinessRegistryError(resp.text, status_code=resp.status_code)

        data = resp.json()
        if not isinstance(data, dict):
            raise BusinessRegistryError("Unexpected search payload", status_code=resp.status_code)
        rows = data.get("rows") or {}
        first_row = next(iter(rows.values()), None) if isinstance(rows, dict) else None
        if first_row is not None and not isinstance(first_row, dict):
            raise BusinessRegistryError("Unexpected search row", status_code=resp.status_code)
        if not first_row:
            logger.info("No registry record for %s", llc_name)
            return BusinessAgent()

        agent_name = str(first_row.get("AGENT") or "").strip()
        registry_id = first_row.get("ID")
        first_name = last_name = ""
        if agent_name:
            parts = agent_name.split()
            first_name = _format_name_part(parts[0])
            last_name = _format_name_part(parts[-1])
        return BusinessAgent(
            first_name=first_name,
            last_name=last_name,
            full_name=agent_name,
            registry_id=str(registry_id) if registry_id is not None else None,
        )

    async def _do_lookup_address(self, registry_id: str) -> AgentAddresses:
        resp = await self._client.get(
            DETAIL_URL.format(registry_id=registry_id), headers=_HEADERS,
        )
        if resp.status_code >= 400:
            raise BusinessRegistryError(resp.text, status_code=resp.status_code)

        data = resp.json()
        if not isinstance(data, dict):
            raise BusinessRegistryError("Unexpected detail payload", status_code=resp.status_code)
        items = [i for i in data.get("DRAWER_DETAIL_LIST") or [] if isinstance(i, dict)]
        return AgentAddresses(
            mailing_address=parse_address_block(_value_by_label(items, "Mailing Address")),
            property_address=parse_address_block(_value_by_label(items, "Principal Address")),
        )
