import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from .models import NewsRecord

logger = logging.getLogger(__name__)

TAG_SEPARATOR = ", "


@dataclass(frozen=True)
class ListingSelectors:
    """CSS selectors describing the listing markup.

    ``fields`` maps a record field to the selector of the element carrying it,
    looked up inside each item. ``title`` is taken from the ``link`` element.
    """

    container: str = ".announce"
    item: str = ".announce__item"
    fields: Dict[str, str] = field(
        default_factory=lambda: {
            "date": ".announce__date",
            "time": ".announce__time",
            "link": ".announce__link",
            "tags": ".announce__meta-tags",
        }
    )
    required: Tuple[str, ...] = ("date", "time", "link")

    @property
    def ready_selector(self) -> str:
        """Selector that matches once at least one item has rendered."""
        return f"{self.container} {self.item}"


DEFAULT_SELECTORS = ListingSelectors()


def parse_tags(text: Optional[str]) -> List[str]:
    """Split the tags text on the literal ``", "`` separator."""
    if text is None:
        return []
    text = text.strip()
    if not text:
        return []
    return text.split(TAG_SEPARATOR)


def _text(element: Tag) -> str:
    return element.get_text().strip()


def _href(element: Tag, base_url: str) -> str:
    href = element.get("href")
    if isinstance(href, list):
        href = href[0] if href else ""
    if not href:
        return ""
    return urljoin(base_url, href)


def _extract_item(
    item: Tag, selectors: ListingSelectors, base_url: str
) -> Optional[NewsRecord]:
    found: Dict[str, Optional[Tag]] = {
        name: item.select_one(selector) for name, selector in selectors.fields.items()
    }
    if any(found.get(name) is None for name in selectors.required):
        return None

    link = found["link"]
    tags = found.get("tags")
    return NewsRecord(
        date=_text(found["date"]),
        time=_text(found["time"]),
        title=_text(link),
        link=_href(link, base_url),
        tags=parse_tags(tags.get_text()) if tags is not None else [],
    )


def extract_records(
    html: str,
    base_url: str,
    selectors: ListingSelectors = DEFAULT_SELECTORS,
) -> List[NewsRecord]:
    """Return the records found in rendered listing HTML, in document order.

    Items missing any required element are skipped. A page without the listing
    container yields an empty list.
    """
    soup = BeautifulSoup(html, "html.parser")
    records: List[NewsRecord] = []
    skipped = 0
    # each item matches once even when containers nest
    for item in soup.select(selectors.ready_selector):
        record = _extract_item(item, selectors, base_url)
        if record is None:
            skipped += 1
            continue
        records.append(record)
    if skipped:
        logger.debug("Skipped %d incomplete listing items", skipped)
    return records


if __name__ == "__main__":
    import argparse
    import json
    from pathlib import Path

    parser = argparse.ArgumentParser(description="extract news records from a saved listing page")
    parser.add_argument("html_file", help="path to the saved html")
    parser.add_argument(
        "--base-url",
        default="https://mid.ru/ru/foreign_policy/news/",
        help="url used to resolve relative links",
    )
    args = parser.parse_args()

    html = Path(args.html_file).read_text(encoding="utf-8")
    rows = [r.to_dict() for r in extract_records(html, args.base_url)]
    print(json.dumps(rows, indent=2, ensure_ascii=False))
