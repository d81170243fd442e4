from typing import Iterable, List, Sequence

from core.scrapers.types import Product, SearchCriteria


def _brand_matches(brand: str, brands: Sequence[str]) -> bool:
    brand = brand.lower()
    return any(b.lower() in brand for b in brands)


def matches(product: Product, criteria: SearchCriteria) -> bool:
    """Whether a product passes the brand and price criteria.

    Brand checks are substring checks, so an exclude of "H&M" also drops
    "H&M Basics".
    """
    if criteria.included_brands and not _brand_matches(product.brand, criteria.included_brands):
        return False

    if criteria.excluded_brands and _brand_matches(product.brand, criteria.excluded_brands):
        return False

    if criteria.price_min is not None and product.price < criteria.price_min:
        return False

    if criteria.price_max is not None and product.price > criteria.price_max:
        return False

    return True


def filter_products(products: Iterable[Product], criteria: SearchCriteria) -> List[Product]:
    """Keep the products that match, preserving their order."""
    return [p for p in products if matches(p, criteria)]
