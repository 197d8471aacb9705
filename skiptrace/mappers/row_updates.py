"""Builders for the flat field → value map written back into a CSV row."""

from skiptrace.schemas.owner import OwnerDetails
from skiptrace.schemas.search import LabeledPhone

RowUpdateMap = dict[str, str]


def numbered_fields(values: list[str], prefix: str) -> RowUpdateMap:
    """['a', 'b'], 'email' → {'email1': 'a', 'email2': 'b'}."""
    return {f"{prefix}{n}": value for n, value in enumerate(values, start=1)}


def phone_fields(labeled: list[LabeledPhone]) -> RowUpdateMap:
    updates: RowUpdateMap = {}
    for n, phone in enumerate(labeled, start=1):
        updates[f"ownerMobile{n}"] = phone.number
        updates[f"ownerMobile{n}Type"] = str(phone.type)
    return updates


def email_fields(emails: list[str]) -> RowUpdateMap:
    if not emails:
        return {}
    updates = numbered_fields(emails, "email")
    updates["emailAll"] = ", ".join(emails)
    return updates


def relative_fields(
    index: int,
    url: str,
    relative_name: str,
    associate_name: str,
    phones: list[str],
) -> RowUpdateMap:
    updates: RowUpdateMap = {
        f"relative{index}Name": relative_name,
        f"associate{index}Name": associate_name,
        f"relative{index}URL": url,
    }
    updates.update(numbered_fields(phones, f"relative{index}Contact"))
    return updates


def merge_updates(*parts: RowUpdateMap) -> RowUpdateMap:
    merged: RowUpdateMap = {}
    for part in parts:
        merged.update(part)
    return merged


def find_owner_in_relatives(updates: RowUpdateMap, owner: OwnerDetails) -> str | None:
    """URL of the first relative whose name contains owner one's first and last name."""
    first = owner.owner_one_first_name
    last = owner.owner_one_last_name
    if not first or not last:
        return None
    for key, value in updates.items():
        if not key.endswith("Name"):
            continue
        name = (value or "").strip()
        if first in name and last in name:
            url = updates.get(key[: -len("Name")] + "URL")
            if url:
                return url
    return None
