import pytest

from core.scrapers.errors import UnsupportedRetailer
from core.scrapers.retailers import (
    ASOS,
    ASOS_SELECTORS,
    DEFAULT_RETAILER,
    RETAILER_SELECTORS,
    RETAILERS,
    build_search_url,
    list_retailers,
    resolve_retailer,
)


def test_every_retailer_has_selectors():
    assert set(RETAILERS) == set(RETAILER_SELECTORS)
    assert DEFAULT_RETAILER in RETAILERS


@pytest.mark.parametrize("name", [None, "", "  ", "asos", "ASOS", " Asos "])
def test_resolve_retailer_defaults_and_ignores_case(name):
    retailer, selectors = resolve_retailer(name)
    assert retailer is ASOS
    assert selectors is ASOS_SELECTORS


def test_resolve_unknown_retailer():
    with pytest.raises(UnsupportedRetailer) as excinfo:
        resolve_retailer("zalando")
    assert excinfo.value.retailer == "zalando"


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        RETAILERS["zalando"] = ASOS


def test_list_retailers():
    assert [r.id for r in list_retailers()] == ["asos"]


def test_search_url_encodes_spaces_as_percent_20():
    url = build_search_url(ASOS, "minimalist streetwear hoodie")
    assert url == "https://www.asos.com/search/?q=minimalist%20streetwear%20hoodie"


def test_search_url_encodes_reserved_characters():
    url = build_search_url(ASOS, "H&M t-shirt/top")
    assert url == "https://www.asos.com/search/?q=H%26M%20t-shirt%2Ftop"
