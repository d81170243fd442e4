"""Field extraction from a loaded search results page.

Every lookup goes through a ProductNode, a handle that can only query inside
its own subtree. Two implementations exist: ElementNode wraps a live
Playwright page or element handle, SoupNode wraps a BeautifulSoup tag parsed
from a saved results page.
"""

import abc
import logging
import re
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from core.scrapers.errors import ExtractionFailure
from core.scrapers.retailers import SelectorSet
from core.scrapers.types import Product

logger = logging.getLogger("scraper.extractor")

PRICE_PATTERN = re.compile(r"[0-9]+(\.[0-9]+)?")


class ProductNode(abc.ABC):
    """A query capability bound to one DOM subtree."""

    @abc.abstractmethod
    def query(self, selector: str) -> Optional["ProductNode"]:
        """First descendant matching selector, or None."""

    @abc.abstractmethod
    def query_all(self, selector: str) -> List["ProductNode"]:
        """All descendants matching selector, in document order."""

    @abc.abstractmethod
    def text(self) -> str:
        """Text content of the subtree ("" when there is none)."""

    @abc.abstractmethod
    def attribute(self, name: str) -> Optional[str]:
        """Raw attribute value as written in the markup."""

    @abc.abstractmethod
    def url(self, name: str) -> str:
        """URL attribute resolved against the page URL, "" when absent."""


class ElementNode(ProductNode):
    """ProductNode over a Playwright Page or ElementHandle."""

    def __init__(self, handle):
        self.handle = handle

    def query(self, selector):
        found = self.handle.query_selector(selector)
        return ElementNode(found) if found is not None else None

    def query_all(self, selector):
        return [ElementNode(h) for h in self.handle.query_selector_all(selector)]

    def text(self):
        return self.handle.text_content() or ""

    def attribute(self, name):
        return self.handle.get_attribute(name)

    def url(self, name):
        # DOM properties (img.src, a.href) are already absolute
        value = self.handle.get_property(name).json_value()
        return value if isinstance(value, str) else ""


class SoupNode(ProductNode):
    """ProductNode over a BeautifulSoup tag from a saved results page."""

    def __init__(self, tag, base_url: str = ""):
        self.tag = tag
        self.base_url = base_url

    @classmethod
    def from_html(cls, html: str, base_url: str = "") -> "SoupNode":
        return cls(BeautifulSoup(html, "lxml"), base_url)

    def query(self, selector):
        found = self.tag.select_one(selector)
        return SoupNode(found, self.base_url) if found is not None else None

    def query_all(self, selector):
        return [SoupNode(t, self.base_url) for t in self.tag.select(selector)]

    def text(self):
        return self.tag.get_text()

    def attribute(self, name):
        value = self.tag.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def url(self, name):
        raw = self.attribute(name)
        if not raw:
            return ""
        return urljoin(self.base_url, raw.strip())


def parse_price(price_text: str) -> float:
    """First number in the text as a float; 0.0 when there is none.

    "£45.00" -> 45.0, "Now 30" -> 30.0, "Sold out" -> 0.0.
    """
    match = PRICE_PATTERN.search(price_text or "")
    return float(match.group(0)) if match else 0.0


def pick_image_url(image: Optional[ProductNode]) -> str:
    """Prefer the last (largest) srcset candidate over the plain src."""
    if image is None:
        return ""
    url = image.url("src")
    srcset = image.attribute("srcset")
    if srcset:
        last = srcset.split(",")[-1].strip().split(" ")[0]
        if last:
            url = last
    return url


def _text_of(node: ProductNode, selector: str) -> str:
    found = node.query(selector)
    return found.text().strip() if found is not None else ""


def extract_product(node: ProductNode, selectors: SelectorSet) -> Product:
    """Build a Product from one container node; missing fields become empty."""
    description = None
    if selectors.description:
        found = node.query(selectors.description)
        if found is not None:
            description = found.text().strip()

    sizes = None
    if selectors.sizes:
        texts = tuple(t for t in (n.text().strip() for n in node.query_all(selectors.sizes)) if t)
        sizes = texts or None

    link = node.query(selectors.link)

    return Product(
        name=_text_of(node, selectors.name),
        brand=_text_of(node, selectors.brand),
        price=parse_price(_text_of(node, selectors.price)),
        image=pick_image_url(node.query(selectors.image)),
        link=link.url("href") if link is not None else "",
        description=description,
        available_sizes=sizes,
    )


def extract_products(root: ProductNode, selectors: SelectorSet, max_candidates: int = 20) -> List[Product]:
    """Extract products from the first max_candidates containers in page order.

    Args:
        root: Node for the whole results page
        selectors: Where each field lives inside a product container
        max_candidates: How many containers to look at

    Returns:
        One Product per container, in document order

    Raises:
        ExtractionFailure: if any DOM query raises
    """
    try:
        containers = root.query_all(selectors.product_container)[:max_candidates]
        logger.debug("Found %d product containers", len(containers))
        return [extract_product(node, selectors) for node in containers]
    except Exception as e:  # pylint: disable=broad-exception-caught
        raise ExtractionFailure(f"Failed to extract products: {e}") from e
