import logging
from datetime import datetime, timezone
from typing import Callable

from sabalist.stores.documents import DocumentStore

logger = logging.getLogger(__name__)


def favorites_collection(user_id: str) -> str:
    return f"users/{user_id}/favorites"


def _require(user_id: str, listing_id: str) -> None:
    if not user_id or not listing_id:
        raise ValueError("userId and listingId are required")


def add_to_favorites(store: DocumentStore, user_id: str, listing_id: str) -> None:
    _require(user_id, listing_id)
    store.set(
        favorites_collection(user_id),
        listing_id,
        {"listingId": listing_id, "addedAt": datetime.now(timezone.utc).isoformat()},
    )
    logger.info(f"Added to favorites: {user_id} -> {listing_id}")


def remove_from_favorites(store: DocumentStore, user_id: str, listing_id: str) -> None:
    _require(user_id, listing_id)
    store.delete(favorites_collection(user_id), listing_id)
    logger.info(f"Removed from favorites: {user_id} -> {listing_id}")


def is_favorited(store: DocumentStore, user_id: str, listing_id: str) -> bool:
    if not user_id or not listing_id:
        return False
    try:
        return store.get(favorites_collection(user_id), listing_id) is not None
    except Exception as e:
        logger.warning(f"Could not read favorite {user_id}/{listing_id}: {e}")
        return False


def get_favorite_ids(store: DocumentStore, user_id: str) -> list[str]:
    if not user_id:
        return []
    try:
        return [doc["id"] for doc in store.query(favorites_collection(user_id))]
    except Exception as e:
        logger.error(f"Error getting favorites for {user_id}: {e}")
        return []


def subscribe_to_favorites(
    store: DocumentStore, user_id: str, callback: Callable[[list[str]], None]
) -> Callable[[], None]:
    """Call ``callback`` with the user's favorite ids now and on every change."""
    if not user_id:
        callback([])
        return lambda: None

    return store.subscribe(
        favorites_collection(user_id),
        lambda docs: callback([doc["id"] for doc in docs]),
    )
