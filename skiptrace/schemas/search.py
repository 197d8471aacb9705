from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class PhoneType(StrEnum):
    wireless = "Wireless"
    landline = "Landline"
    unknown = "Unknown"


class LabeledPhone(BaseModel):
    number: str
    type: PhoneType = PhoneType.unknown


class CardMatch(BaseModel):
    matched: bool = False
    profile_url: str = ""
    phones: list[str] = []


class PersonAddress(BaseModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None

    @property
    def full(self) -> str:
        return f"{self.street}, {self.city}, {self.state} {self.postal_code}"


class PersonRecord(BaseModel):
    """Person entity embedded as JSON-LD in a results or profile page."""

    name: str | None = None
    telephones: list[str] = []
    addresses: list[PersonAddress] = []
    profile_url: str | None = None


class ProfileDetails(BaseModel):
    phone_numbers: list[str] = []
    relative_urls: list[str] = []
    relative_names: list[str] = []
    associate_urls: list[str] = []
    associate_names: list[str] = []
    emails: list[str] = []


class SearchResult(BaseModel):
    """Accumulated matches of one search across all its result pages.

    Only ever grows. Phones, emails and profile URLs are deduplicated by exact
    string; ``relative_names[i]`` always belongs to ``relative_urls[i]`` (same
    for associates), with "" standing in for a missing name.
    """

    matched_phones: list[str] = []
    is_matched: bool = False
    relative_urls: list[str] = []
    relative_names: list[str] = []
    associate_urls: list[str] = []
    associate_names: list[str] = []
    emails: list[str] = []

    def add_phones(self, phones: list[str]) -> None:
        for phone in phones:
            phone = phone.strip()
            if phone and phone not in self.matched_phones:
                self.matched_phones.append(phone)

    def add_emails(self, emails: list[str]) -> None:
        for email in emails:
            if email and email not in self.emails:
                self.emails.append(email)

    def add_profile(self, details: ProfileDetails) -> None:
        self.add_phones(details.phone_numbers)
        _add_aligned(self.relative_urls, self.relative_names,
                     details.relative_urls, details.relative_names)
        _add_aligned(self.associate_urls, self.associate_names,
                     details.associate_urls, details.associate_names)
        self.add_emails(details.emails)


def _add_aligned(
    urls: list[str], names: list[str], new_urls: list[str], new_names: list[str],
) -> None:
    for i, url in enumerate(new_urls):
        if not url or url in urls:
            continue
        urls.append(url)
        names.append(new_names[i] if i < len(new_names) else "")
