import logging

from fastapi import APIRouter, status

from config.settings import get_settings
from core.scrapers.errors import InvalidQuery, ScrapeFailure, UnsupportedRetailer
from core.scrapers.fashion_scraper import search_products
from core.scrapers.types import SearchCriteria

from ..deps import error_response
from ..models import ProductSearchRequest, ProductSearchResponse

router = APIRouter(prefix="/products", tags=["Products"])
logger = logging.getLogger("api.products")


# Plain def: the search drives a sync Playwright browser, so it runs in the threadpool
@router.post("/search", response_model=ProductSearchResponse, response_model_exclude_none=True)
def search(request: ProductSearchRequest):
    """Search a fashion retailer for products matching the given criteria."""
    if not request.query or not request.query.strip():
        return error_response(status.HTTP_400_BAD_REQUEST, "Search query is required")

    if request.price_min is not None and request.price_min < 0:
        return error_response(status.HTTP_400_BAD_REQUEST, "Minimum price must be a non-negative number")

    if request.price_max is not None and request.price_max < 0:
        return error_response(status.HTTP_400_BAD_REQUEST, "Maximum price must be a non-negative number")

    if (request.price_min is not None and request.price_max is not None
            and request.price_min > request.price_max):
        return error_response(status.HTTP_400_BAD_REQUEST, "Minimum price cannot be greater than maximum price")

    criteria = SearchCriteria.build(
        query=request.query,
        included_brands=request.included_brands,
        excluded_brands=request.excluded_brands,
        price_min=request.price_min,
        price_max=request.price_max,
    )

    try:
        products = search_products(criteria, request.retailer)
    except (InvalidQuery, UnsupportedRetailer) as e:
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))
    except ScrapeFailure as e:
        logger.error("Product search error: %s", e)
        extra = {} if get_settings().is_production else {"error": str(e.cause or e)}
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An error occurred while searching for products",
            **extra,
        )

    return ProductSearchResponse(
        success=True,
        count=len(products),
        products=[p.to_dict() for p in products],
    )
