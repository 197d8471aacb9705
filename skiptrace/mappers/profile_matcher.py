import json
import logging
import re

from bs4 import BeautifulSoup, Tag

from skiptrace.mappers.profile_sections import element_text
from skiptrace.schemas.owner import OwnerDetails
from skiptrace.schemas.search import CardMatch, PersonAddress, PersonRecord

logger = logging.getLogger(__name__)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def _card_phones(card: Tag) -> list[str]:
    phones = []
    for el in card.select(".phone"):
        text = element_text(el)
        if text:
            phones.append(text)
    return phones


def _card_profile_url(card: Tag) -> str:
    link = card.select_one('[title*="View full"]')
    if link is None:
        return ""
    return link.get("href") or ""


def _exact_name(card_name: str, first: str, last: str) -> bool:
    return bool(first and last) and card_name == f"{first} {last}"


def _partial_name(card_name: str, first: str, last: str) -> bool:
    return bool(first and last) and first in card_name and last in card_name


def _surname_and_address(
    card_name: str, card_address: str, first: str, last: str, address: str,
) -> bool:
    return (
        not first
        and bool(last)
        and bool(address)
        and last in card_name
        and address in card_address
    )


def _card_matches(card: Tag, owner: OwnerDetails, address: str) -> bool:
    name_el = card.select_one(".name-given")
    if name_el is None:
        return False
    card_name = element_text(name_el)
    card_address_el = card.select_one(".address-current")
    card_address = element_text(card_address_el) if card_address_el else ""

    owners = (
        (owner.owner_one_first_name, owner.owner_one_last_name),
        (owner.owner_two_first_name, owner.owner_two_last_name),
    )
    if any(_exact_name(card_name, f, l) for f, l in owners):
        return True
    if any(_partial_name(card_name, f, l) for f, l in owners):
        return True
    return any(
        _surname_and_address(card_name, card_address, f, l, address)
        for f, l in owners
    )


def match_candidate(html: str, owner: OwnerDetails, address: str) -> CardMatch:
    """Pick the first result card that corresponds to one of the owners.

    Per card, in priority order: exact full name, card name containing both
    first and last name, then (only when that owner has no first name) last
    name plus the target address inside the card's current address.
    """
    if not html:
        return CardMatch()
    soup = BeautifulSoup(html, "html.parser")
    card = next(
        (c for c in soup.select(".card") if _card_matches(c, owner, address)),
        None,
    )
    if card is None:
        return CardMatch()
    return CardMatch(
        matched=True,
        profile_url=_card_profile_url(card),
        phones=_card_phones(card),
    )


def _as_list(value) -> list:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _person_from_json(entry: dict) -> PersonRecord:
    addresses = []
    for addr in _as_list(entry.get("address")):
        if not isinstance(addr, dict):
            continue
        addresses.append(
            PersonAddress(
                street=addr.get("streetAddress"),
                city=addr.get("addressLocality"),
                state=addr.get("addressRegion"),
                postal_code=addr.get("postalCode"),
            )
        )
    return PersonRecord(
        name=entry.get("name"),
        telephones=[str(t) for t in _as_list(entry.get("telephone")) if t],
        addresses=addresses,
        profile_url=entry.get("url") or entry.get("@id"),
    )


def extract_person_records(html: str) -> list[PersonRecord]:
    """All ``Person`` entities from the page's JSON-LD scripts, in page order.

    Scripts that fail to parse are skipped.
    """
    if not html:
        return []
    soup = BeautifulSoup(html, "html.parser")
    records: list[PersonRecord] = []
    for script in soup.find_all("script", type="application/ld+json"):
        raw = (script.string or script.get_text() or "").strip()
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, ValueError):
            logger.warning("Skipping malformed JSON-LD block")
            continue
        for entry in _as_list(data):
            if isinstance(entry, dict) and entry.get("@type") == "Person":
                records.append(_person_from_json(entry))
    return records


def _comparison_forms(value: str) -> tuple[str, str]:
    folded = value.lower().strip()
    return folded, _NON_ALNUM_RE.sub("", folded)


def address_matches(candidate: str, target: str) -> bool:
    """Candidate contains target, case-folded or with punctuation stripped."""
    cand_folded, cand_stripped = _comparison_forms(candidate)
    target_folded, target_stripped = _comparison_forms(target)
    if not target_stripped:
        return False
    return target_folded in cand_folded or target_stripped in cand_stripped


def match_candidate_by_address(
    html: str, mailing_address: str, property_address: str,
) -> CardMatch:
    """Match on the embedded person records instead of the visible cards.

    The first person with any address containing the mailing or property
    address wins; its telephones become the card phones.
    """
    targets = [t for t in (mailing_address, property_address) if t and t.strip()]
    if not targets:
        return CardMatch()
    for person in extract_person_records(html):
        if any(
            address_matches(addr.full, target)
            for addr in person.addresses
            for target in targets
        ):
            return CardMatch(
                matched=True,
                profile_url=person.profile_url or "",
                phones=list(person.telephones),
            )
    return CardMatch()
