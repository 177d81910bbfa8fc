import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from sabalist.database import DatabaseError
from sabalist.dependencies import get_blob_store, get_document_store
from sabalist.exceptions import (
    ListingIngestionError,
    ListingNotFound,
    ListingValidationError,
)
from sabalist.schemas.request import (
    ListingFields,
    ListingSearchRequest,
    ListingUpdateRequest,
    MediaAsset,
    UserLocation,
)
from sabalist.schemas.response import CreateListingResponse, Listing, ListingsResponse
from sabalist.services import listings as listing_service
from sabalist.services.search import search_listings
from sabalist.stores.blobs import BlobStore
from sabalist.stores.documents import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/listings", tags=["listings"])

GENERIC_FAILURE = "Failed to create listing. Please try again."


def search_filters(
    search_text: str = "",
    category: str | None = None,
    subcategory: str | None = None,
    min_price: str | None = None,
    max_price: str | None = None,
    city: str | None = None,
    state: str | None = None,
    country: str | None = None,
    limit: int = Query(50, ge=1, le=100),
) -> ListingSearchRequest:
    location = None
    if city or state or country:
        location = UserLocation(city=city or "", state=state or "", country=country or "")
    return ListingSearchRequest(
        search_text=search_text,
        category=category,
        subcategory=subcategory,
        min_price=min_price,
        max_price=max_price,
        location=location,
        limit=limit,
    )


async def _read_asset(upload: UploadFile) -> MediaAsset:
    return MediaAsset(
        data=await upload.read(),
        content_type=upload.content_type or "application/octet-stream",
        filename=upload.filename or "",
    )


@router.get("/", response_model=ListingsResponse)
def get_listings(
    filters: ListingSearchRequest = Depends(search_filters),
    store: DocumentStore = Depends(get_document_store),
):
    """Search active listings. Backing store failures yield an empty page."""
    logger.info(f"GET /listings/ - Filters: {filters}")
    try:
        results = search_listings(store, filters)
    except DatabaseError as e:
        logger.warning(f"Listing search failed, returning no results: {e}")
        results = []

    return ListingsResponse(
        listings=[Listing.model_validate(listing) for listing in results],
        total=len(results),
    )


@router.post("/", response_model=CreateListingResponse, status_code=status.HTTP_201_CREATED)
async def create_listing(
    title: str = Form(""),
    description: str = Form(""),
    price: str = Form(""),
    currency: str = Form("USD"),
    category: str = Form(""),
    subcategory: str = Form(""),
    location: str = Form(""),
    phone_number: str = Form(""),
    user_id: str = Form(""),
    images: list[UploadFile] = File(default=[]),
    video: UploadFile | None = File(default=None),
    store: DocumentStore = Depends(get_document_store),
    blobs: BlobStore = Depends(get_blob_store),
):
    logger.info(f"POST /listings/ - {category} listing with {len(images)} images")
    fields = ListingFields(
        title=title,
        description=description,
        price=price,
        currency=currency,
        category=category,
        subcategory=subcategory,
        location=location,
        phone_number=phone_number,
        user_id=user_id,
    )
    assets = [await _read_asset(image) for image in images]
    video_asset = await _read_asset(video) if video is not None else None

    try:
        result = await listing_service.create_listing(
            store, blobs, fields, assets, video_asset
        )
    except ListingValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"reasons": e.reasons},
        )
    except ListingIngestionError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"message": GENERIC_FAILURE, "reason": e.reason},
        )

    return CreateListingResponse(
        listing_id=result.listing_id,
        images=result.image_urls,
        video_url=result.video_url,
        failed_images=result.failed_images,
        warnings=result.warnings,
    )


@router.get("/{listing_id}", response_model=Listing)
def get_listing(listing_id: str, store: DocumentStore = Depends(get_document_store)):
    try:
        return Listing.model_validate(listing_service.get_listing(store, listing_id))
    except ListingNotFound:
        raise HTTPException(status_code=404, detail="Listing not found")


@router.patch("/{listing_id}", response_model=Listing)
def update_listing(
    listing_id: str,
    payload: ListingUpdateRequest,
    store: DocumentStore = Depends(get_document_store),
    blobs: BlobStore = Depends(get_blob_store),
):
    logger.info(f"PATCH /listings/{listing_id}")
    changes = payload.model_dump(
        by_alias=True, exclude_unset=True, exclude={"existing_images"}
    )
    try:
        listing = listing_service.update_listing(
            store,
            blobs,
            listing_id,
            changes,
            existing_images=payload.existing_images,
        )
    except ListingNotFound:
        raise HTTPException(status_code=404, detail="Listing not found")
    return Listing.model_validate(listing)


@router.post("/{listing_id}/images", response_model=Listing)
async def add_listing_images(
    listing_id: str,
    images: list[UploadFile] = File(...),
    store: DocumentStore = Depends(get_document_store),
    blobs: BlobStore = Depends(get_blob_store),
):
    logger.info(f"POST /listings/{listing_id}/images - {len(images)} images")
    assets = [await _read_asset(image) for image in images]
    try:
        listing = listing_service.update_listing(
            store, blobs, listing_id, {}, new_images=assets
        )
    except ListingNotFound:
        raise HTTPException(status_code=404, detail="Listing not found")
    return Listing.model_validate(listing)


@router.post("/{listing_id}/sold", response_model=Listing)
def mark_as_sold(listing_id: str, store: DocumentStore = Depends(get_document_store)):
    try:
        listing_service.mark_listing_as_sold(store, listing_id)
        return Listing.model_validate(listing_service.get_listing(store, listing_id))
    except ListingNotFound:
        raise HTTPException(status_code=404, detail="Listing not found")


@router.post("/{listing_id}/reactivate", response_model=Listing)
def reactivate(listing_id: str, store: DocumentStore = Depends(get_document_store)):
    try:
        listing_service.reactivate_listing(store, listing_id)
        return Listing.model_validate(listing_service.get_listing(store, listing_id))
    except ListingNotFound:
        raise HTTPException(status_code=404, detail="Listing not found")


@router.post("/{listing_id}/views", status_code=status.HTTP_204_NO_CONTENT)
def record_view(listing_id: str, store: DocumentStore = Depends(get_document_store)):
    listing_service.increment_listing_views(store, listing_id)


@router.delete("/{listing_id}")
def delete_listing(
    listing_id: str,
    store: DocumentStore = Depends(get_document_store),
    blobs: BlobStore = Depends(get_blob_store),
):
    logger.info(f"DELETE /listings/{listing_id}")
    try:
        listing_service.delete_listing(store, blobs, listing_id)
    except ListingNotFound:
        raise HTTPException(status_code=404, detail="Listing not found")
    return {"status": "deleted"}
