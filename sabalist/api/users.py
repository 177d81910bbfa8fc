import logging

from fastapi import APIRouter, Depends, HTTPException, status

from sabalist.dependencies import get_document_store, get_local_storage
from sabalist.schemas.request import UserLocation
from sabalist.schemas.response import FavoritesResponse, Listing, ListingsResponse
from sabalist.services import favorites
from sabalist.services.listings import get_user_listings
from sabalist.services.locations import get_user_location, save_user_location
from sabalist.stores.documents import DocumentStore
from sabalist.stores.local import LocalStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users/{user_id}", tags=["users"])


@router.get("/listings", response_model=ListingsResponse)
def user_listings(user_id: str, store: DocumentStore = Depends(get_document_store)):
    listings = get_user_listings(store, user_id)
    return ListingsResponse(
        listings=[Listing.model_validate(listing) for listing in listings],
        total=len(listings),
    )


@router.get("/favorites", response_model=FavoritesResponse)
def list_favorites(user_id: str, store: DocumentStore = Depends(get_document_store)):
    return FavoritesResponse(
        user_id=user_id, listing_ids=favorites.get_favorite_ids(store, user_id)
    )


@router.get("/favorites/{listing_id}")
def check_favorite(
    user_id: str, listing_id: str, store: DocumentStore = Depends(get_document_store)
):
    return {"favorited": favorites.is_favorited(store, user_id, listing_id)}


@router.put("/favorites/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
def add_favorite(
    user_id: str, listing_id: str, store: DocumentStore = Depends(get_document_store)
):
    logger.info(f"PUT /users/{user_id}/favorites/{listing_id}")
    favorites.add_to_favorites(store, user_id, listing_id)


@router.delete("/favorites/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_favorite(
    user_id: str, listing_id: str, store: DocumentStore = Depends(get_document_store)
):
    logger.info(f"DELETE /users/{user_id}/favorites/{listing_id}")
    favorites.remove_from_favorites(store, user_id, listing_id)


@router.get("/location", response_model=UserLocation)
def read_location(
    user_id: str,
    store: DocumentStore = Depends(get_document_store),
    local: LocalStorage = Depends(get_local_storage),
):
    location = get_user_location(store, local, user_id)
    if location is None:
        raise HTTPException(status_code=404, detail="Location not set")
    return location


@router.put("/location", response_model=UserLocation)
def write_location(
    user_id: str,
    location: UserLocation,
    store: DocumentStore = Depends(get_document_store),
    local: LocalStorage = Depends(get_local_storage),
):
    logger.info(f"PUT /users/{user_id}/location - {location.city}, {location.country}")
    save_user_location(store, local, user_id, location)
    return location
