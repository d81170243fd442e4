from unittest.mock import MagicMock

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from core.scrapers.base import Stage
from core.scrapers.browser import BrowserSession
from core.scrapers.errors import (
    ExtractionFailure,
    InvalidQuery,
    NavigationTimeout,
    ScrapeFailure,
    UnsupportedRetailer,
)
from core.scrapers.fashion_scraper import NAVIGATION_TIMEOUT_MS, FashionScraper, search_products
from core.scrapers.retailers import ASOS, ASOS_SELECTORS
from core.scrapers.snapshot_scraper import SnapshotScraper, scrape_snapshot
from core.scrapers.types import SearchCriteria

from fakes import FakeSession, SessionFactory, results_page, tile

HOODIE_CRITERIA = SearchCriteria.build(
    "minimalist streetwear hoodie",
    included_brands=["Nike", "Adidas", "Puma"],
    excluded_brands=["H&M"],
    price_min=20,
    price_max=100,
)


@pytest.mark.parametrize("query", ["", "   "])
def test_blank_query_never_opens_a_session(query):
    factory = SessionFactory()
    with pytest.raises(InvalidQuery):
        search_products(SearchCriteria(query=query), session_factory=factory)
    assert factory.calls == 0


def test_unknown_retailer_never_opens_a_session():
    factory = SessionFactory()
    with pytest.raises(UnsupportedRetailer):
        search_products(SearchCriteria(query="hoodie"), "zalando", session_factory=factory)
    assert factory.calls == 0


def test_hoodie_search_end_to_end(hoodie_html):
    factory = SessionFactory(FakeSession(hoodie_html))

    products = search_products(HOODIE_CRITERIA, session_factory=factory)

    assert [(p.brand, p.price) for p in products] == [
        ("Nike", 55.0),
        ("adidas Originals", 25.0),
        ("PUMA", 100.0),
        ("Nike", 20.0),
    ]
    assert products[0].image == "https://images.asos-media.com/products/101/101-1-black?$n_960w$"
    assert products[0].link == "https://www.asos.com/nike/nike-club-fleece-hoodie-in-black/prd/101"
    assert products[3].image == ""
    assert factory.session.opened == [
        ("https://www.asos.com/search/?q=minimalist%20streetwear%20hoodie", NAVIGATION_TIMEOUT_MS),
    ]
    assert factory.session.close_calls == 1


def test_successful_scrape_ends_done():
    session = FakeSession(results_page(tile("Hoodie", "Nike", "£30")))
    scraper = FashionScraper(ASOS, ASOS_SELECTORS, session_factory=SessionFactory(session))
    assert scraper.stage == Stage.IDLE

    assert len(scraper.scrape(SearchCriteria(query="hoodie"))) == 1
    assert scraper.stage == Stage.DONE
    assert session.close_calls == 1


def test_navigation_timeout_is_wrapped_and_session_closed():
    session = FakeSession(error=NavigationTimeout("Page did not settle"))
    scraper = FashionScraper(ASOS, ASOS_SELECTORS, session_factory=SessionFactory(session))

    with pytest.raises(ScrapeFailure) as excinfo:
        scraper.scrape(SearchCriteria(query="hoodie"))

    assert isinstance(excinfo.value.cause, NavigationTimeout)
    assert excinfo.value.stage == "navigating"
    assert scraper.stage == Stage.FAILED
    assert session.close_calls == 1


def test_extraction_error_is_wrapped_and_session_closed(monkeypatch, hoodie_html):
    def broken_extract(*args, **kwargs):
        raise ExtractionFailure("selector blew up")

    monkeypatch.setattr("core.scrapers.base.extract_products", broken_extract)
    factory = SessionFactory(FakeSession(hoodie_html))

    with pytest.raises(ScrapeFailure) as excinfo:
        search_products(HOODIE_CRITERIA, session_factory=factory)

    assert isinstance(excinfo.value.cause, ExtractionFailure)
    assert excinfo.value.stage == "extracting"
    assert factory.session.close_calls == 1


def test_results_are_capped_at_twenty():
    html = results_page(*[tile(f"Hoodie {i}", "Nike", "£30") for i in range(30)])
    products = search_products(SearchCriteria(query="hoodie"), session_factory=SessionFactory(FakeSession(html)))
    assert len(products) == 20


def test_filters_apply_to_the_first_twenty_candidates_only():
    tiles = [tile(f"Tee {i}", "ASOS DESIGN", "£10") for i in range(20)]
    tiles.append(tile("Hoodie", "Nike", "£30"))
    criteria = SearchCriteria.build("hoodie", included_brands=["Nike"])
    assert scrape_snapshot(results_page(*tiles), criteria) == []


def test_snapshot_scrape_is_repeatable(hoodie_html):
    first = scrape_snapshot(hoodie_html, HOODIE_CRITERIA)
    second = scrape_snapshot(hoodie_html, HOODIE_CRITERIA)
    assert first == second
    assert len(first) == 4


def test_snapshot_scraper_from_file(tmp_path, hoodie_html):
    path = tmp_path / "results.html"
    path.write_text(hoodie_html, encoding="utf-8")
    scraper = SnapshotScraper.from_file(path, "ASOS")
    products = scraper.scrape(SearchCriteria.build("hoodie", included_brands=["puma"]))
    assert [p.name for p in products] == ["Puma essentials hoodie in navy", "PUMA classics relaxed hoodie"]
    assert scraper.stage == Stage.DONE


def test_snapshot_scraper_validates_query(hoodie_html):
    with pytest.raises(InvalidQuery):
        scrape_snapshot(hoodie_html, SearchCriteria(query=""))


@pytest.fixture
def playwright_mocks(monkeypatch):
    """Replaces sync_playwright with mocks; returns (playwright, browser, page)."""
    playwright = MagicMock()
    browser = playwright.chromium.launch.return_value
    page = browser.new_context.return_value.new_page.return_value
    starter = MagicMock()
    starter.return_value.start.return_value = playwright
    monkeypatch.setattr("core.scrapers.browser.sync_playwright", starter)
    return playwright, browser, page


def test_browser_session_waits_for_network_idle(playwright_mocks):
    playwright, browser, page = playwright_mocks

    with BrowserSession() as session:
        root = session.open("https://www.asos.com/search/?q=hoodie", 30000)
        assert root.handle is page

    playwright.chromium.launch.assert_called_once_with(headless=True)
    page.goto.assert_called_once_with("https://www.asos.com/search/?q=hoodie", timeout=30000)
    assert page.wait_for_load_state.call_args[0] == ("networkidle",)
    assert 0 < page.wait_for_load_state.call_args[1]["timeout"] <= 30000
    browser.close.assert_called_once()
    playwright.stop.assert_called_once()


def test_browser_session_timeout(playwright_mocks):
    playwright, browser, page = playwright_mocks
    page.wait_for_load_state.side_effect = PlaywrightTimeoutError("Timeout 30000ms exceeded")

    session = BrowserSession()
    with pytest.raises(NavigationTimeout):
        session.open("https://www.asos.com/search/?q=hoodie", 30000)

    session.close()
    session.close()
    browser.close.assert_called_once()
    playwright.stop.assert_called_once()


def test_browser_close_error_is_logged_not_raised(playwright_mocks):
    playwright, browser, _page = playwright_mocks
    browser.close.side_effect = PlaywrightError("Target page, context or browser has been closed")

    session = BrowserSession()
    session.open("https://www.asos.com/search/?q=hoodie", 30000)
    session.close()

    playwright.stop.assert_called_once()
    assert session.closed


def test_search_keeps_results_when_browser_close_fails(playwright_mocks):
    _playwright, browser, page = playwright_mocks
    browser.close.side_effect = PlaywrightError("Browser has been closed")
    container = MagicMock()
    container.query_selector.return_value = None
    page.query_selector_all.return_value = [container]

    products = search_products(SearchCriteria(query="hoodie"), session_factory=BrowserSession)

    assert len(products) == 1
    browser.close.assert_called_once()


def test_close_error_does_not_replace_scrape_failure(playwright_mocks):
    _playwright, browser, page = playwright_mocks
    browser.close.side_effect = PlaywrightError("Browser has been closed")
    page.goto.side_effect = PlaywrightTimeoutError("Timeout 30000ms exceeded")

    with pytest.raises(ScrapeFailure) as excinfo:
        search_products(SearchCriteria(query="hoodie"), session_factory=BrowserSession)

    assert isinstance(excinfo.value.cause, NavigationTimeout)


def test_closed_session_cannot_be_reopened(playwright_mocks):
    session = BrowserSession()
    session.close()
    with pytest.raises(RuntimeError):
        session.open("https://www.asos.com", 1000)
