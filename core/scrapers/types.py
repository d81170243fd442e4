from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple


@dataclass(frozen=True)
class SearchCriteria:
    """What the caller is looking for.

    Brand lists are matched as case-insensitive substrings of the product brand,
    price bounds are inclusive. Checking that price_min <= price_max is the
    caller's job.
    """

    query: str
    included_brands: Tuple[str, ...] = ()
    excluded_brands: Tuple[str, ...] = ()
    price_min: Optional[float] = None
    price_max: Optional[float] = None

    @classmethod
    def build(cls,
              query: str,
              included_brands: Optional[Sequence[str]] = None,
              excluded_brands: Optional[Sequence[str]] = None,
              price_min: Optional[float] = None,
              price_max: Optional[float] = None) -> "SearchCriteria":
        """Construct criteria from loosely typed input (lists, None, ints).

        Brand entries are kept as given: an empty string is a substring of
        every brand, so [""] as an exclude list drops everything.
        """
        return cls(
            query=query,
            included_brands=tuple(included_brands or ()),
            excluded_brands=tuple(excluded_brands or ()),
            price_min=float(price_min) if price_min is not None else None,
            price_max=float(price_max) if price_max is not None else None,
        )


@dataclass(frozen=True)
class Product:
    """A single listing scraped from a results page."""

    name: str
    brand: str
    price: float
    image: str = ""
    link: str = ""
    description: Optional[str] = None
    available_sizes: Optional[Tuple[str, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape: optional fields are left out instead of sent as null."""
        data: Dict[str, Any] = {
            "name": self.name,
            "brand": self.brand,
            "price": self.price,
            "image": self.image,
            "link": self.link,
        }
        if self.description is not None:
            data["description"] = self.description
        if self.available_sizes is not None:
            data["availableSizes"] = list(self.available_sizes)
        return data
