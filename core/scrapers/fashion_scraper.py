"""Live product search against a retailer's website.

search_products() is the pipeline entry point used by the HTTP API and the
CLI: validate, resolve the retailer, load its results page in a fresh browser
session, extract, filter and truncate. The browser session is closed on every
path out of the pipeline.
"""

import logging
from typing import Callable, List, Optional

from config.settings import get_settings
from core.scrapers.base import BaseScraper, Stage, validate_criteria
from core.scrapers.browser import BrowserSession
from core.scrapers.errors import ScrapeFailure
from core.scrapers.retailers import RetailerConfig, SelectorSet, build_search_url, resolve_retailer
from core.scrapers.types import Product, SearchCriteria

logger = logging.getLogger("scraper")

NAVIGATION_TIMEOUT_MS = 30000


def _default_session() -> BrowserSession:
    return BrowserSession(headless=get_settings().SCRAPER_HEADLESS)


class FashionScraper(BaseScraper):
    """Scrapes a retailer's search results page with a headless browser."""

    def __init__(self,
                 retailer: RetailerConfig,
                 selectors: SelectorSet,
                 session_factory: Optional[Callable[[], BrowserSession]] = None,
                 timeout_ms: int = NAVIGATION_TIMEOUT_MS):
        super().__init__(retailer, selectors)
        self.session_factory = session_factory or _default_session
        self.timeout_ms = timeout_ms

    def scrape(self, criteria: SearchCriteria) -> List[Product]:
        """Run one search against the retailer.

        Raises:
            InvalidQuery: blank query; no session is opened
            ScrapeFailure: wrapping whatever failed once the session was
                acquired; the session is already closed when it is raised
        """
        self.stage = Stage.VALIDATING
        validate_criteria(criteria)

        search_url = build_search_url(self.retailer, criteria.query)
        self.logger.info('Scraping %s for: "%s"', self.retailer.display_name, criteria.query)
        self.logger.info("URL: %s", search_url)

        with self.session_factory() as session:
            try:
                self.stage = Stage.NAVIGATING
                root = session.open(search_url, self.timeout_ms)
                self.logger.info("Page loaded, extracting products...")
                products = self.collect(root, criteria)
            except Exception as e:  # pylint: disable=broad-exception-caught
                failed_in = self.stage
                self.stage = Stage.FAILED
                self.logger.error("Scraping failed while %s: %s", failed_in.value, e)
                raise ScrapeFailure(f"Scraping {self.retailer.display_name} failed: {e}",
                                    cause=e, stage=failed_in.value) from e

        self.stage = Stage.DONE
        return products


def search_products(criteria: SearchCriteria,
                    retailer_name: Optional[str] = None,
                    session_factory: Optional[Callable[[], BrowserSession]] = None) -> List[Product]:
    """Search a retailer for products matching criteria.

    Args:
        criteria: Query plus optional brand and price filters
        retailer_name: Registry id of the retailer, the default retailer when None
        session_factory: Builds the browser session (tests pass a fake)

    Returns:
        Up to 20 products in the order the retailer listed them

    Raises:
        InvalidQuery: blank query, raised before any browser is started
        UnsupportedRetailer: unknown retailer, raised before any browser is started
        ScrapeFailure: navigation or extraction failed
    """
    validate_criteria(criteria)
    retailer, selectors = resolve_retailer(retailer_name)
    scraper = FashionScraper(retailer, selectors, session_factory=session_factory)
    products = scraper.scrape(criteria)
    logger.info("Search for %r on %s returned %d products", criteria.query, retailer.id, len(products))
    return products
