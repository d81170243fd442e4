# This file defines the abstract base class for all retailer scrapers
# Concrete scrapers differ only in where the results page comes from

import abc
import enum
import logging
from typing import List

from core.scrapers.errors import InvalidQuery
from core.scrapers.extractor import ProductNode, extract_products
from core.scrapers.filters import filter_products
from core.scrapers.retailers import RetailerConfig, SelectorSet
from core.scrapers.types import Product, SearchCriteria

# Cap on candidates pulled from a page and on results returned
MAX_PRODUCTS = 20


class Stage(str, enum.Enum):
    """Where a scrape currently is. Any non-terminal stage can go to FAILED."""

    IDLE = "idle"
    VALIDATING = "validating"
    NAVIGATING = "navigating"
    EXTRACTING = "extracting"
    FILTERING = "filtering"
    DONE = "done"
    FAILED = "failed"


def validate_criteria(criteria: SearchCriteria) -> None:
    if not criteria.query or not criteria.query.strip():
        raise InvalidQuery("Search query is required")


class BaseScraper(abc.ABC):
    """Base class for retailer scrapers.

    A scraper is bound to one retailer: its RetailerConfig says where to
    search and its SelectorSet says where the product fields live. Subclasses
    decide how a results page is obtained (a live browser, a saved file) and
    then hand its root node to collect(), so the extract, filter and truncate
    steps behave the same no matter where the page came from.
    """

    def __init__(self, retailer: RetailerConfig, selectors: SelectorSet, max_products: int = MAX_PRODUCTS):
        """Initialize the scraper for one retailer.

        Args:
            retailer: Registry entry of the retailer to scrape
            selectors: CSS selectors paired with that retailer
            max_products: Bound on both extracted candidates and returned results
        """
        self.retailer = retailer
        self.selectors = selectors
        self.max_products = max_products
        self.name = retailer.id
        self.url = retailer.base_url
        self.stage = Stage.IDLE
        self.logger = logging.getLogger(f"scraper.{retailer.id}")

    @abc.abstractmethod
    def scrape(self, criteria: SearchCriteria) -> List[Product]:
        """Return the products on the retailer that match criteria.

        Returns:
            At most max_products Product objects in page order.

        Raises:
            ScraperError subclasses, depending on the implementation.
        """
        raise NotImplementedError("Concrete scraper classes must implement scrape() method")

    def collect(self, root: ProductNode, criteria: SearchCriteria) -> List[Product]:
        """Extract, filter and truncate the products below root."""
        self.stage = Stage.EXTRACTING
        candidates = extract_products(root, self.selectors, self.max_products)
        self.logger.info("Extracted %d products, applying filters...", len(candidates))

        self.stage = Stage.FILTERING
        matched = filter_products(candidates, criteria)[: self.max_products]
        self.logger.info("Returning %d products after filtering", len(matched))
        return matched
