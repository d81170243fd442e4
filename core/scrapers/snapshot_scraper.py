from pathlib import Path
from typing import List, Optional, Union

from core.scrapers.base import BaseScraper, Stage, validate_criteria
from core.scrapers.extractor import SoupNode
from core.scrapers.retailers import resolve_retailer
from core.scrapers.types import Product, SearchCriteria


class SnapshotScraper(BaseScraper):
    """Runs the search pipeline over a saved results page instead of a browser.

    Useful for replaying a page that was captured earlier and for tests; no
    network access happens.
    """

    def __init__(self, html: str, retailer_name: Optional[str] = None):
        retailer, selectors = resolve_retailer(retailer_name)
        super().__init__(retailer, selectors)
        self.html = html

    @classmethod
    def from_file(cls, path: Union[str, Path], retailer_name: Optional[str] = None) -> "SnapshotScraper":
        return cls(Path(path).read_text(encoding="utf-8"), retailer_name)

    def scrape(self, criteria: SearchCriteria) -> List[Product]:
        self.stage = Stage.VALIDATING
        validate_criteria(criteria)
        root = SoupNode.from_html(self.html, base_url=self.retailer.base_url)
        products = self.collect(root, criteria)
        self.stage = Stage.DONE
        return products


def scrape_snapshot(html: str, criteria: SearchCriteria, retailer_name: Optional[str] = None) -> List[Product]:
    """Extract, filter and truncate products from saved results page HTML."""
    return SnapshotScraper(html, retailer_name).scrape(criteria)
