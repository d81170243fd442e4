"""Registry of the fashion retailers the search pipeline knows how to scrape.

Each retailer has a RetailerConfig (where to search) and a SelectorSet (where
the product fields live on its results page), stored under the same key.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple
from urllib.parse import quote

from core.scrapers.errors import UnsupportedRetailer

DEFAULT_RETAILER = "asos"


@dataclass(frozen=True)
class RetailerConfig:
    id: str
    display_name: str
    base_url: str
    search_url_template: str  # must contain "{query}"


@dataclass(frozen=True)
class SelectorSet:
    """CSS selectors, all relative to one product container."""

    product_container: str
    name: str
    brand: str
    price: str
    image: str
    link: str
    description: Optional[str] = None
    sizes: Optional[str] = None


ASOS = RetailerConfig(
    id="asos",
    display_name="ASOS",
    base_url="https://www.asos.com",
    search_url_template="https://www.asos.com/search/?q={query}",
)

ASOS_SELECTORS = SelectorSet(
    product_container='[data-auto-id="productTile"]',
    name='[data-auto-id="productTileDescription"]',
    brand='[data-auto-id="brandDescription"]',
    price='[data-auto-id="productTilePrice"]',
    image='img[data-auto-id="productTileImage"]',
    link='a[data-auto-id="productTileLink"]',
)

RETAILERS: Mapping[str, RetailerConfig] = MappingProxyType({
    ASOS.id: ASOS,
})

RETAILER_SELECTORS: Mapping[str, SelectorSet] = MappingProxyType({
    ASOS.id: ASOS_SELECTORS,
})


def resolve_retailer(name: Optional[str] = None) -> Tuple[RetailerConfig, SelectorSet]:
    """Look up a retailer and its selectors.

    Args:
        name: Retailer id, matched case-insensitively.
              None or blank selects the default retailer.

    Returns:
        (RetailerConfig, SelectorSet) pair

    Raises:
        UnsupportedRetailer: if nothing is registered under that name
    """
    key = (name or DEFAULT_RETAILER).strip().lower() or DEFAULT_RETAILER
    if key not in RETAILERS:
        raise UnsupportedRetailer(name)
    return RETAILERS[key], RETAILER_SELECTORS[key]


def list_retailers() -> List[RetailerConfig]:
    return sorted(RETAILERS.values(), key=lambda r: r.id)


def build_search_url(retailer: RetailerConfig, query: str) -> str:
    """Substitute the URL-encoded query into the retailer's search template."""
    # Same escaping as encodeURIComponent, so spaces become %20 rather than "+"
    encoded = quote(query, safe="-_.!~*'()")
    return retailer.search_url_template.replace("{query}", encoded)
