"""Listing query pipeline.

Only status and category are pushed down to the document store; the rest of
the filters run over the fetched page, in a fixed order, without re-sorting.
"""
import logging
from typing import Any, Iterable

from sabalist.schemas.request import ListingSearchRequest, UserLocation
from sabalist.services.listings import LISTINGS
from sabalist.stores.documents import DocumentStore

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All"
TEXT_FIELDS = ("title", "description", "category", "location")
# Listings written before status existed count as active
ACTIVE_STATUSES = ["active", "", None]


def fetch_listings(
    store: DocumentStore, category: str | None = None, limit: int = 20
) -> list[dict[str, Any]]:
    where = [("status", "in", ACTIVE_STATUSES)]
    if category and category != ALL_CATEGORIES:
        where.append(("category", "==", category))

    listings = store.query(
        LISTINGS, where=where, order_by="createdAt", descending=True, limit=limit
    )
    logger.info(f"Fetched {len(listings)} listings (category={category})")
    return listings


def _is_active(listing: dict[str, Any]) -> bool:
    return listing.get("status") in ACTIVE_STATUSES


def _in_price_range(
    listing: dict[str, Any], min_price: float | None, max_price: float | None
) -> bool:
    try:
        price = float(listing.get("price") or 0)
    except (TypeError, ValueError):
        return False
    if min_price is not None and price < min_price:
        return False
    if max_price is not None and price > max_price:
        return False
    return True


def _near(listing: dict[str, Any], location: UserLocation) -> bool:
    listing_location = (listing.get("location") or "").lower()
    if not listing_location:
        return True
    parts = [part.strip().lower() for part in (location.city, location.state, location.country)]
    parts = [part for part in parts if part]
    if not parts:
        return True
    return any(part in listing_location for part in parts)


def _matches_text(listing: dict[str, Any], text: str) -> bool:
    return any(text in str(listing.get(name) or "").lower() for name in TEXT_FIELDS)


def filter_listings(
    listings: Iterable[dict[str, Any]], filters: ListingSearchRequest
) -> list[dict[str, Any]]:
    results = [listing for listing in listings if _is_active(listing)]

    if filters.subcategory:
        results = [
            listing for listing in results if listing.get("subcategory") == filters.subcategory
        ]

    if filters.min_price is not None or filters.max_price is not None:
        results = [
            listing
            for listing in results
            if _in_price_range(listing, filters.min_price, filters.max_price)
        ]

    if filters.location is not None:
        results = [listing for listing in results if _near(listing, filters.location)]

    text = filters.search_text.strip().lower()
    if text:
        results = [listing for listing in results if _matches_text(listing, text)]

    return results


def search_listings(
    store: DocumentStore, filters: ListingSearchRequest
) -> list[dict[str, Any]]:
    """Fetch a page of active listings and apply the client-side filters.

    Store errors propagate to the caller.
    """
    listings = fetch_listings(store, category=filters.category, limit=filters.limit)
    results = filter_listings(listings, filters)
    logger.info(f"Search {filters.search_text!r} matched {len(results)} of {len(listings)}")
    return results
