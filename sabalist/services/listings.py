import asyncio
import logging
from typing import Any

from sabalist.config import settings
from sabalist.exceptions import DocumentNotFound, ListingNotFound
from sabalist.schemas.request import ListingFields, MediaAsset
from sabalist.services.ingestion import IngestionResult, ListingIngestionPipeline
from sabalist.services.media import prepare_image
from sabalist.stores.blobs import BlobStore
from sabalist.stores.documents import SERVER_TIMESTAMP, DocumentStore, Increment
from sabalist.utils import timestamp_ms

logger = logging.getLogger(__name__)

LISTINGS = "listings"


def build_ingestion_pipeline(
    store: DocumentStore, blobs: BlobStore, **overrides: Any
) -> ListingIngestionPipeline:
    """Bind the ingestion pipeline to concrete stores.

    Store calls are blocking, so each one runs in a worker thread and can be
    bounded by the pipeline's timeouts.
    """

    async def create_document(data: dict[str, Any]) -> str:
        return await asyncio.to_thread(store.add, LISTINGS, data)

    async def update_document(listing_id: str, changes: dict[str, Any]) -> None:
        await asyncio.to_thread(store.update, LISTINGS, listing_id, changes)

    async def read_document(listing_id: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(store.get, LISTINGS, listing_id)

    async def delete_document(listing_id: str) -> None:
        await asyncio.to_thread(store.delete, LISTINGS, listing_id)

    async def upload(path: str, data: bytes, content_type: str) -> str:
        return await asyncio.to_thread(blobs.put, path, data, content_type)

    async def delete_blob(path: str) -> None:
        await asyncio.to_thread(blobs.delete, path)

    return ListingIngestionPipeline(
        create_document=create_document,
        update_document=update_document,
        read_document=read_document,
        delete_document=delete_document,
        upload=upload,
        delete_blob=delete_blob,
        **overrides,
    )


async def create_listing(
    store: DocumentStore,
    blobs: BlobStore,
    fields: ListingFields,
    images: list[MediaAsset],
    video: MediaAsset | None = None,
    **overrides: Any,
) -> IngestionResult:
    pipeline = build_ingestion_pipeline(store, blobs, **overrides)
    return await pipeline.run(fields, images, video)


def get_listing(store: DocumentStore, listing_id: str) -> dict[str, Any]:
    listing = store.get(LISTINGS, listing_id)
    if listing is None:
        raise ListingNotFound(listing_id)
    return listing


def get_user_listings(
    store: DocumentStore, user_id: str, limit: int = settings.USER_LISTINGS_PAGE_SIZE
) -> list[dict[str, Any]]:
    listings = store.query(
        LISTINGS,
        where=[("userId", "==", user_id)],
        order_by="createdAt",
        descending=True,
        limit=limit,
    )
    logger.info(f"Fetched {len(listings)} listings for user {user_id}")
    return listings


def _update(store: DocumentStore, listing_id: str, changes: dict[str, Any]) -> None:
    try:
        store.update(LISTINGS, listing_id, changes)
    except DocumentNotFound:
        raise ListingNotFound(listing_id)


def update_listing(
    store: DocumentStore,
    blobs: BlobStore,
    listing_id: str,
    changes: dict[str, Any],
    new_images: list[MediaAsset] | None = None,
    existing_images: list[str] | None = None,
) -> dict[str, Any]:
    """Apply field changes and replace the image list.

    ``existing_images`` are kept in order, new uploads are appended, and the
    cover always mirrors the first image. When neither is given the current
    images are left untouched.
    """
    current = get_listing(store, listing_id)
    updates = dict(changes)

    if new_images or existing_images is not None:
        kept = list(current.get("images") or []) if existing_images is None else list(existing_images)
        uploaded = []
        for index, image in enumerate(new_images or []):
            path = f"{LISTINGS}/{listing_id}/image-{timestamp_ms()}-{index}.jpg"
            data, content_type = prepare_image(image)
            uploaded.append(blobs.put(path, data, content_type))
        all_images = kept + uploaded
        updates["images"] = all_images
        updates["coverImage"] = all_images[0] if all_images else ""

    updates["updatedAt"] = SERVER_TIMESTAMP
    _update(store, listing_id, updates)
    logger.info(f"Listing updated: {listing_id}")
    return get_listing(store, listing_id)


def mark_listing_as_sold(store: DocumentStore, listing_id: str) -> None:
    _update(
        store,
        listing_id,
        {"status": "sold", "soldAt": SERVER_TIMESTAMP, "updatedAt": SERVER_TIMESTAMP},
    )
    logger.info(f"Listing marked as sold: {listing_id}")


def reactivate_listing(store: DocumentStore, listing_id: str) -> None:
    _update(
        store,
        listing_id,
        {"status": "active", "soldAt": None, "updatedAt": SERVER_TIMESTAMP},
    )
    logger.info(f"Listing reactivated: {listing_id}")


def increment_listing_views(store: DocumentStore, listing_id: str) -> bool:
    """Count a view. Failures are logged and reported as False, never raised."""
    try:
        store.update(
            LISTINGS,
            listing_id,
            {"views": Increment(1), "lastViewedAt": SERVER_TIMESTAMP},
        )
        return True
    except Exception as e:
        logger.warning(f"Could not increment views for {listing_id}: {e}")
        return False


def delete_listing(store: DocumentStore, blobs: BlobStore, listing_id: str) -> None:
    """Delete the listing document and every blob it references."""
    listing = get_listing(store, listing_id)
    media = list(listing.get("images") or [])
    if listing.get("videoUrl"):
        media.append(listing["videoUrl"])

    for url in media:
        path = blobs.path_from_url(url)
        if not path:
            logger.warning(f"Could not resolve storage path for {url}")
            continue
        try:
            blobs.delete(path)
        except Exception as e:
            logger.warning(f"Could not delete blob {path}: {e}")

    store.delete(LISTINGS, listing_id)
    logger.info(f"Listing deleted: {listing_id}")
