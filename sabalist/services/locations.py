import logging

from sabalist.schemas.request import UserLocation
from sabalist.stores.documents import SERVER_TIMESTAMP, DocumentStore
from sabalist.stores.local import LocalStorage

logger = logging.getLogger(__name__)

USERS = "users"


def _cache_key(user_id: str) -> str:
    return f"location:{user_id}"


def get_user_location(
    store: DocumentStore, local: LocalStorage, user_id: str
) -> UserLocation | None:
    cached = local.get_item(_cache_key(user_id))
    if cached:
        return UserLocation.model_validate(cached)

    user = store.get(USERS, user_id)
    if not user or not user.get("location"):
        return None

    location = UserLocation.model_validate(user["location"])
    local.set_item(_cache_key(user_id), location.model_dump(by_alias=True))
    return location


def save_user_location(
    store: DocumentStore, local: LocalStorage, user_id: str, location: UserLocation
) -> None:
    payload = location.model_dump(by_alias=True)
    local.set_item(_cache_key(user_id), payload)

    user = store.get(USERS, user_id)
    if user is None:
        store.set(USERS, user_id, {"location": payload, "updatedAt": SERVER_TIMESTAMP})
    else:
        store.update(USERS, user_id, {"location": payload, "updatedAt": SERVER_TIMESTAMP})
    logger.info(f"Saved location for {user_id}: {location.city}, {location.country}")
