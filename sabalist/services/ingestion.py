"""Listing ingestion: validate, compress, pre-create, upload, finalize.

The pipeline only talks to injected async callables, so the same timeout and
failure handling applies whatever document or blob backend is configured.
"""
import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from sabalist.config import settings
from sabalist.database import DatabaseError
from sabalist.exceptions import (
    ListingIngestionError,
    ListingValidationError,
    UploadTimeout,
)
from sabalist.schemas.request import ListingFields, MediaAsset
from sabalist.services.media import (
    compress_image,
    split_images_by_size,
    validate_image_count,
    validate_video,
    video_extension,
)
from sabalist.stores.documents import SERVER_TIMESTAMP
from sabalist.taxonomy import CATEGORIES, is_valid_subcategory
from sabalist.utils import timestamp_ms, with_timeout

logger = logging.getLogger(__name__)

CreateDocument = Callable[[dict[str, Any]], Awaitable[str]]
UpdateDocument = Callable[[str, dict[str, Any]], Awaitable[None]]
ReadDocument = Callable[[str], Awaitable[dict[str, Any] | None]]
DeleteDocument = Callable[[str], Awaitable[None]]
Upload = Callable[[str, bytes, str], Awaitable[str]]
DeleteBlob = Callable[[str], Awaitable[None]]
Compress = Callable[[bytes], Awaitable[bytes]]


@dataclass
class IngestionResult:
    listing_id: str
    image_urls: list[str] = field(default_factory=list)
    video_url: str = ""
    failed_images: list[int] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class _RunState:
    listing_id: str | None = None
    blob_paths: list[str] = field(default_factory=list)


async def _compress_in_thread(data: bytes) -> bytes:
    return await asyncio.to_thread(compress_image, data)


def describe_error(error: Exception) -> str:
    if isinstance(error, UploadTimeout):
        return "The request timed out. Check your connection and try again."
    if isinstance(error, DatabaseError):
        return "The listing database is unavailable right now."
    if isinstance(error, asyncio.TimeoutError):
        return "Listing creation took too long and was cancelled."
    return str(error) or error.__class__.__name__


class ListingIngestionPipeline:
    def __init__(
        self,
        *,
        create_document: CreateDocument,
        update_document: UpdateDocument,
        read_document: ReadDocument,
        delete_document: DeleteDocument,
        upload: Upload,
        delete_blob: DeleteBlob,
        compress: Compress | None = None,
        document_timeout: float = settings.DOCUMENT_WRITE_TIMEOUT_SECONDS,
        image_timeout: float = settings.IMAGE_UPLOAD_TIMEOUT_SECONDS,
        video_timeout: float = settings.VIDEO_UPLOAD_TIMEOUT_SECONDS,
        total_timeout: float = settings.TOTAL_OPERATION_TIMEOUT_SECONDS,
        parallel_uploads: bool = settings.PARALLEL_UPLOADS,
        cleanup_on_failure: bool = settings.CLEANUP_ON_FAILURE,
    ):
        self.create_document = create_document
        self.update_document = update_document
        self.read_document = read_document
        self.delete_document = delete_document
        self.upload = upload
        self.delete_blob = delete_blob
        self.compress = compress or _compress_in_thread
        self.document_timeout = document_timeout
        self.image_timeout = image_timeout
        self.video_timeout = video_timeout
        self.total_timeout = total_timeout
        self.parallel_uploads = parallel_uploads
        self.cleanup_on_failure = cleanup_on_failure

    def validate(
        self,
        fields: ListingFields,
        images: list[MediaAsset],
        video: MediaAsset | None = None,
    ) -> tuple[list[MediaAsset], list[str]]:
        """Check everything that can be checked without I/O.

        Returns the images that passed the size check together with a note
        for each that did not. Raises ``ListingValidationError`` otherwise.
        """
        reasons = []

        for name, value in (
            ("Title", fields.title),
            ("Location", fields.location),
            ("Phone number", fields.phone_number),
        ):
            if not str(value or "").strip():
                reasons.append(f"{name} is required")

        if fields.price is None or str(fields.price).strip() == "":
            reasons.append("Price is required")
        else:
            try:
                price = float(fields.price)
            except ValueError:
                reasons.append(f"Invalid price: {fields.price}")
            else:
                if not math.isfinite(price):
                    reasons.append(f"Invalid price: {fields.price}")
                elif price < 0:
                    reasons.append("Price cannot be negative")

        if not fields.user_id:
            reasons.append("You must be signed in to create a listing")

        if fields.category not in CATEGORIES:
            reasons.append(f"Invalid category: {fields.category}")
        elif fields.subcategory and not is_valid_subcategory(
            fields.category, fields.subcategory
        ):
            reasons.append(
                f"Invalid subcategory for {fields.category}: {fields.subcategory}"
            )

        accepted, size_rejections = split_images_by_size(images)

        count_check = validate_image_count(len(accepted), fields.category)
        if not count_check.valid:
            reasons.extend(size_rejections)
            reasons.append(count_check.message)

        video_check = validate_video(video)
        if not video_check.valid:
            reasons.append(video_check.message)

        if reasons:
            raise ListingValidationError(reasons)

        return accepted, size_rejections

    async def run(
        self,
        fields: ListingFields,
        images: list[MediaAsset],
        video: MediaAsset | None = None,
    ) -> IngestionResult:
        accepted, size_rejections = self.validate(fields, images, video)
        for rejection in size_rejections:
            logger.warning(f"Skipping image: {rejection}")

        state = _RunState()
        try:
            result = await asyncio.wait_for(
                self._ingest(fields, accepted, video, state),
                timeout=self.total_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(
                f"Listing creation exceeded {self.total_timeout}s "
                f"(listing {state.listing_id})"
            )
            await self._cleanup(state)
            raise ListingIngestionError(describe_error(e), original_error=e)
        except ListingIngestionError:
            await self._cleanup(state)
            raise

        result.warnings = size_rejections + result.warnings
        return result

    async def _ingest(
        self,
        fields: ListingFields,
        images: list[MediaAsset],
        video: MediaAsset | None,
        state: _RunState,
    ) -> IngestionResult:
        prepared = [await self._prepare_image(index, image) for index, image in enumerate(images)]

        try:
            state.listing_id = await with_timeout(
                self.create_document(self._initial_document(fields)),
                self.document_timeout,
                "Listing document create",
            )
        except Exception as e:
            raise ListingIngestionError(
                f"Failed to create listing: {describe_error(e)}", original_error=e
            )
        listing_id = state.listing_id
        logger.info(f"Listing created: {listing_id}, uploading {len(prepared)} images")

        result = IngestionResult(listing_id=listing_id)

        if self.parallel_uploads:
            urls = await asyncio.gather(
                *(
                    self._upload_image(listing_id, index, data, content_type, len(prepared), state)
                    for index, (data, content_type) in enumerate(prepared)
                )
            )
        else:
            urls = []
            for index, (data, content_type) in enumerate(prepared):
                urls.append(
                    await self._upload_image(
                        listing_id, index, data, content_type, len(prepared), state
                    )
                )

        for index, url in enumerate(urls):
            if url is None:
                result.failed_images.append(index)
            else:
                result.image_urls.append(url)
        logger.info(f"Uploaded {len(result.image_urls)} out of {len(prepared)} images")

        if video is not None:
            result.video_url = await self._upload_video(listing_id, video, state)

        try:
            await with_timeout(
                self.update_document(
                    listing_id,
                    {
                        "images": result.image_urls,
                        "coverImage": result.image_urls[0] if result.image_urls else "",
                        "videoUrl": result.video_url,
                        "updatedAt": SERVER_TIMESTAMP,
                    },
                ),
                self.document_timeout,
                "Listing finalize",
            )
        except Exception as e:
            raise ListingIngestionError(
                f"Failed to save listing media: {describe_error(e)}", original_error=e
            )

        warning = await self._verify(listing_id, len(prepared))
        if warning:
            result.warnings.append(warning)
        return result

    def _initial_document(self, fields: ListingFields) -> dict[str, Any]:
        return {
            "title": fields.title.strip(),
            "description": (fields.description or "").strip(),
            "price": float(fields.price) if fields.price not in (None, "") else 0.0,
            "currency": fields.currency or "USD",
            "category": fields.category,
            "subcategory": fields.subcategory or "",
            "location": fields.location.strip(),
            "phoneNumber": fields.phone_number.strip(),
            "userId": fields.user_id,
            "images": [],
            "coverImage": "",
            "videoUrl": "",
            "status": "active",
            "views": 0,
            "soldAt": None,
            "createdAt": SERVER_TIMESTAMP,
            "updatedAt": SERVER_TIMESTAMP,
        }

    async def _prepare_image(self, index: int, image: MediaAsset) -> tuple[bytes, str]:
        try:
            return await self.compress(image.data), "image/jpeg"
        except Exception as e:
            logger.warning(f"[{index + 1}] Compression failed, uploading original: {e}")
            return image.data, image.content_type

    async def _upload_image(
        self,
        listing_id: str,
        index: int,
        data: bytes,
        content_type: str,
        total: int,
        state: _RunState,
    ) -> str | None:
        path = f"listings/{listing_id}/image-{index}-{timestamp_ms()}.jpg"
        state.blob_paths.append(path)
        try:
            return await with_timeout(
                self.upload(path, data, content_type),
                self.image_timeout,
                f"Image {index + 1}/{total} upload",
            )
        except Exception as e:
            logger.warning(f"[{index + 1}/{total}] Upload failed, continuing with others: {e}")
            return None

    async def _upload_video(
        self, listing_id: str, video: MediaAsset, state: _RunState
    ) -> str:
        path = f"listings/{listing_id}/video-{timestamp_ms()}.{video_extension(video.content_type)}"
        state.blob_paths.append(path)
        try:
            return await with_timeout(
                self.upload(path, video.data, video.content_type),
                self.video_timeout,
                "Video upload",
            )
        except Exception as e:
            logger.warning(f"Video upload failed, listing will be created without video: {e}")
            return ""

    async def _verify(self, listing_id: str, attempted: int) -> str | None:
        try:
            document = await with_timeout(
                self.read_document(listing_id), self.document_timeout, "Listing verification read"
            )
        except Exception as e:
            logger.warning(f"Could not verify listing {listing_id}: {e}")
            return None

        saved = len((document or {}).get("images") or [])
        if saved != attempted:
            message = f"Only {saved} of {attempted} images were saved for listing {listing_id}"
            logger.warning(message)
            return message
        return None

    async def _cleanup(self, state: _RunState) -> None:
        if not self.cleanup_on_failure:
            logger.warning(
                f"Leaving {len(state.blob_paths)} blobs and listing {state.listing_id} in place"
            )
            return

        for path in state.blob_paths:
            try:
                await self.delete_blob(path)
            except Exception as e:
                logger.warning(f"Could not delete orphaned blob {path}: {e}")

        if state.listing_id:
            try:
                await self.delete_document(state.listing_id)
                logger.info(f"Removed incomplete listing {state.listing_id}")
            except Exception as e:
                logger.warning(f"Could not delete incomplete listing {state.listing_id}: {e}")
