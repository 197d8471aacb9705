import re
from urllib.parse import quote, urljoin

from bs4 import BeautifulSoup, Tag

BASE_URL = "https://www.cyberbackgroundchecks.com"

RELATIVES_LABEL = "Possible Relatives"
ASSOCIATES_LABEL = "Possible Associates"
PHONES_LABEL = "Phone Numbers"
EMAILS_LABEL = "Email Addresses"

_EMAIL_PATH_MARKER = "/email/"
# Last "_." run is where the site replaced the "@"
_EMAIL_AT_RE = re.compile(r"_\.+(?!.*_.)")
_UNIT_RE = re.compile(r"#\d+")
_SPACES_RE = re.compile(r"\s+")


def element_text(el: Tag) -> str:
    """Visible text with inline markup separated and runs of whitespace collapsed."""
    return " ".join(el.get_text(" ").split())


def slugify(value: str | None) -> str:
    """'123 Main St #4' → '123-Main-St'."""
    cleaned = _UNIT_RE.sub("", value or "").strip()
    slug = _SPACES_RE.sub("-", cleaned).strip("-")
    return quote(slug, safe="-")


def address_search_url(address: str, city: str, state: str, page: int) -> str:
    return f"{BASE_URL}/address/{slugify(address)}/{slugify(city)}/{slugify(state)}/{page}"


def name_search_url(name: str, city: str, state: str, page: int) -> str:
    return f"{BASE_URL}/people/{slugify(name)}/{slugify(state)}/{slugify(city)}/{page}"


def absolute_url(url: str) -> str:
    return urljoin(BASE_URL, url)


def format_email(href: str) -> str | None:
    """Undo the site's email obfuscation in ``/email/<local>_.<domain>`` links."""
    _, marker, encoded = href.partition(_EMAIL_PATH_MARKER)
    if not marker or not encoded:
        return None
    return _EMAIL_AT_RE.sub("@", encoded, count=1)


def extract_section(
    html: str, label: str, selector: str, attribute: str | None = None,
) -> list[str]:
    """Collect values from the ``.row`` whose ``h2.section-label`` equals ``label``.

    With ``attribute`` the attribute of each element matching ``selector`` is
    returned, otherwise its stripped text. Missing section → [].
    """
    if not html:
        return []
    soup = BeautifulSoup(html, "html.parser")
    items: list[str] = []
    for row in soup.select(".row"):
        heading = row.select_one("h2.section-label")
        if heading is None or element_text(heading) != label:
            continue
        items = []
        for el in row.select(selector):
            if attribute:
                value = el.get(attribute)
                if value:
                    items.append(value)
            else:
                items.append(element_text(el))
    return items
