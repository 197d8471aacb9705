from bs4 import BeautifulSoup


def has_next_page(html: str) -> bool:
    """One-step lookahead: is there a results page after this one?

    The second-to-last pagination entry is the "next" control; it carries a
    ``disabled`` class on the final page.
    """
    if not html:
        return False
    soup = BeautifulSoup(html, "html.parser")
    pagination = soup.select_one("ul.pagination")
    if pagination is None:
        return False
    items = soup.select("ul.pagination li")
    if len(items) < 2:
        return False
    next_item = items[-2]
    return "disabled" not in (next_item.get("class") or [])
