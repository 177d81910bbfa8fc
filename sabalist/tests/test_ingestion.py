import asyncio
import logging

import pytest

from sabalist.exceptions import ListingIngestionError, ListingValidationError
from sabalist.schemas.request import ListingFields, MediaAsset
from sabalist.services.ingestion import ListingIngestionPipeline
from sabalist.services.listings import LISTINGS, create_listing
from sabalist.taxonomy import MAX_IMAGE_BYTES
from sabalist.tests.factories import make_jpeg


def make_fields(**overrides) -> ListingFields:
    values = {
        "title": "iPhone 14",
        "description": "Barely used",
        "price": "450",
        "category": "Electronics",
        "subcategory": "mobile-phones",
        "location": "Lagos, Nigeria",
        "phone_number": "+2348000000000",
        "user_id": "user-1",
    }
    values.update(overrides)
    return ListingFields(**values)


def make_images(count: int) -> list[MediaAsset]:
    return [MediaAsset(data=f"image-{i}".encode()) for i in range(count)]


class FakeBackend:
    """In-process stand-ins for the pipeline's injected calls."""

    def __init__(self, slow_uploads=(), failing_uploads=(), upload_delay=0.0):
        self.documents = {}
        self.blobs = {}
        self.calls = []
        self.slow_uploads = set(slow_uploads)
        self.failing_uploads = set(failing_uploads)
        self.upload_delay = upload_delay
        self.fail_create = False
        self.fail_update = False

    async def create_document(self, data):
        self.calls.append("create")
        if self.fail_create:
            raise RuntimeError("permission-denied")
        listing_id = f"listing-{len(self.documents) + 1}"
        self.documents[listing_id] = dict(data)
        return listing_id

    async def update_document(self, listing_id, changes):
        self.calls.append("update")
        if self.fail_update:
            raise RuntimeError("unavailable")
        self.documents[listing_id].update(changes)

    async def read_document(self, listing_id):
        self.calls.append("read")
        return self.documents.get(listing_id)

    async def delete_document(self, listing_id):
        self.documents.pop(listing_id, None)

    async def upload(self, path, data, content_type):
        self.calls.append(f"upload:{path}")
        index = len([call for call in self.calls if call.startswith("upload:")]) - 1
        if index in self.slow_uploads:
            await asyncio.sleep(1)
        if self.upload_delay:
            await asyncio.sleep(self.upload_delay)
        if index in self.failing_uploads:
            raise RuntimeError("storage/unknown")
        self.blobs[path] = data
        return f"https://blobs.example/{path}"

    async def delete_blob(self, path):
        self.blobs.pop(path, None)

    def pipeline(self, **overrides) -> ListingIngestionPipeline:
        async def identity(data):
            return data

        options = {
            "compress": identity,
            "document_timeout": 1,
            "image_timeout": 0.1,
            "video_timeout": 0.1,
            "total_timeout": 5,
            "parallel_uploads": False,
            "cleanup_on_failure": True,
        }
        options.update(overrides)
        return ListingIngestionPipeline(
            create_document=self.create_document,
            update_document=self.update_document,
            read_document=self.read_document,
            delete_document=self.delete_document,
            upload=self.upload,
            delete_blob=self.delete_blob,
            **options,
        )


def test_ingestion_happy_path():
    backend = FakeBackend()

    result = asyncio.run(backend.pipeline().run(make_fields(), make_images(3)))

    document = backend.documents[result.listing_id]
    assert len(document["images"]) == 3
    assert document["coverImage"] == document["images"][0]
    assert document["status"] == "active"
    assert document["views"] == 0
    assert document["price"] == 450.0
    assert result.failed_images == []
    assert result.warnings == []
    # Document exists before any upload, finalize follows all uploads
    assert backend.calls[0] == "create"
    assert backend.calls[-2:] == ["update", "read"]
    for index, url in enumerate(document["images"]):
        assert f"listings/{result.listing_id}/image-{index}-" in url


def test_upload_timeout_skips_image_and_warns(caplog):
    caplog.set_level(logging.WARNING)
    backend = FakeBackend(slow_uploads={1})

    result = asyncio.run(backend.pipeline().run(make_fields(), make_images(3)))

    document = backend.documents[result.listing_id]
    assert len(document["images"]) == 2
    assert document["coverImage"] == document["images"][0]
    assert result.failed_images == [1]
    assert "Only 2 of 3 images were saved" in caplog.text
    assert any("Only 2 of 3" in warning for warning in result.warnings)


def test_all_uploads_failing_leaves_empty_cover():
    backend = FakeBackend(failing_uploads={0, 1, 2})

    result = asyncio.run(backend.pipeline().run(make_fields(), make_images(3)))

    document = backend.documents[result.listing_id]
    assert document["images"] == []
    assert document["coverImage"] == ""


def test_services_without_images_fails_validation():
    backend = FakeBackend()

    with pytest.raises(ListingValidationError) as exc_info:
        asyncio.run(
            backend.pipeline().run(
                make_fields(category="Services", subcategory="cleaning"), []
            )
        )

    assert "Services listings require at least 1 images" in exc_info.value.reasons
    assert backend.calls == []


def test_services_with_too_many_images_fails_validation():
    backend = FakeBackend()

    with pytest.raises(ListingValidationError) as exc_info:
        asyncio.run(
            backend.pipeline().run(
                make_fields(category="Services", subcategory="cleaning"), make_images(6)
            )
        )

    assert "Services listings can have maximum 5 images" in exc_info.value.reasons
    assert backend.calls == []


def test_missing_fields_each_get_a_reason():
    backend = FakeBackend()

    with pytest.raises(ListingValidationError) as exc_info:
        asyncio.run(
            backend.pipeline().run(
                make_fields(title=" ", price="", location="", phone_number="", user_id=""),
                make_images(3),
            )
        )

    assert exc_info.value.reasons == [
        "Title is required",
        "Location is required",
        "Phone number is required",
        "Price is required",
        "You must be signed in to create a listing",
    ]


def test_invalid_category_and_subcategory():
    pipeline = FakeBackend().pipeline()

    with pytest.raises(ListingValidationError) as exc_info:
        pipeline.validate(make_fields(category="General"), make_images(3))
    assert "Invalid category: General" in exc_info.value.reasons

    with pytest.raises(ListingValidationError) as exc_info:
        pipeline.validate(make_fields(subcategory="cars"), make_images(3))
    assert "Invalid subcategory for Electronics: cars" in exc_info.value.reasons


def test_oversized_image_is_dropped_from_batch():
    backend = FakeBackend()
    images = make_images(3) + [MediaAsset(data=b"x" * (MAX_IMAGE_BYTES + 1))]

    result = asyncio.run(backend.pipeline().run(make_fields(), images))

    assert len(backend.documents[result.listing_id]["images"]) == 3
    assert result.warnings == ["Image 4 is 10.0MB. Maximum is 10MB."]


def test_invalid_video_fails_before_any_call():
    backend = FakeBackend()
    video = MediaAsset(data=b"v", content_type="video/webm")

    with pytest.raises(ListingValidationError):
        asyncio.run(backend.pipeline().run(make_fields(), make_images(3), video))

    assert backend.calls == []


def test_video_upload_failure_is_not_fatal():
    backend = FakeBackend(failing_uploads={3})
    video = MediaAsset(data=b"video", content_type="video/quicktime")

    result = asyncio.run(backend.pipeline().run(make_fields(), make_images(3), video))

    assert result.video_url == ""
    assert len(result.image_urls) == 3
    assert backend.documents[result.listing_id]["videoUrl"] == ""


def test_video_is_uploaded_with_its_extension():
    backend = FakeBackend()
    video = MediaAsset(data=b"video", content_type="video/quicktime")

    result = asyncio.run(backend.pipeline().run(make_fields(), make_images(3), video))

    assert result.video_url.endswith(".mov")
    assert backend.documents[result.listing_id]["videoUrl"] == result.video_url


def test_document_create_failure_aborts_before_uploads():
    backend = FakeBackend()
    backend.fail_create = True

    with pytest.raises(ListingIngestionError) as exc_info:
        asyncio.run(backend.pipeline().run(make_fields(), make_images(3)))

    assert "permission-denied" in exc_info.value.reason
    assert not any(call.startswith("upload:") for call in backend.calls)


def test_finalize_failure_cleans_up_uploaded_media():
    backend = FakeBackend()
    backend.fail_update = True

    with pytest.raises(ListingIngestionError):
        asyncio.run(backend.pipeline().run(make_fields(), make_images(3)))

    assert backend.blobs == {}
    assert backend.documents == {}


def test_total_timeout_reports_failure_and_cleans_up():
    backend = FakeBackend(upload_delay=0.05)

    with pytest.raises(ListingIngestionError):
        asyncio.run(
            backend.pipeline(image_timeout=1, total_timeout=0.12).run(
                make_fields(), make_images(5)
            )
        )

    assert backend.blobs == {}
    assert backend.documents == {}


def test_total_timeout_without_cleanup_keeps_partial_state():
    backend = FakeBackend(upload_delay=0.05)

    with pytest.raises(ListingIngestionError):
        asyncio.run(
            backend.pipeline(
                image_timeout=1, total_timeout=0.12, cleanup_on_failure=False
            ).run(make_fields(), make_images(5))
        )

    assert len(backend.documents) == 1
    assert backend.blobs


def test_parallel_uploads_keep_input_order():
    backend = FakeBackend(failing_uploads={1})

    result = asyncio.run(
        backend.pipeline(parallel_uploads=True).run(make_fields(), make_images(4))
    )

    assert result.failed_images == [1]
    assert [url.split("/image-")[1].split("-")[0] for url in result.image_urls] == [
        "0",
        "2",
        "3",
    ]


def test_compression_failure_uploads_original():
    backend = FakeBackend()

    async def broken(data):
        raise OSError("cannot identify image file")

    result = asyncio.run(
        backend.pipeline(compress=broken).run(make_fields(), make_images(3))
    )

    assert sorted(backend.blobs.values()) == [b"image-0", b"image-1", b"image-2"]
    assert len(result.image_urls) == 3


def test_create_listing_with_real_stores(memory_store, blobs):
    images = [MediaAsset(data=make_jpeg(2400, 1200)) for _ in range(3)]

    result = asyncio.run(create_listing(memory_store, blobs, make_fields(), images))

    listing = memory_store.get(LISTINGS, result.listing_id)
    assert listing["images"] == result.image_urls
    assert listing["coverImage"] == listing["images"][0]
    assert len(blobs.objects) == 3
    assert all(content_type == "image/jpeg" for _, content_type in blobs.objects.values())


@pytest.mark.parametrize("price", ["nan", "inf", "-inf", "1e999"])
def test_non_finite_price_is_rejected(price):
    backend = FakeBackend()

    with pytest.raises(ListingValidationError) as exc_info:
        asyncio.run(backend.pipeline().run(make_fields(price=price), make_images(3)))

    assert exc_info.value.reasons == [f"Invalid price: {price}"]
    assert backend.calls == []


def test_default_compressor_keeps_type_of_undecodable_image(memory_store, blobs):
    images = [MediaAsset(data=make_jpeg()) for _ in range(2)]
    images.append(MediaAsset(data=b"not-an-image-heic", content_type="image/heic"))

    result = asyncio.run(create_listing(memory_store, blobs, make_fields(), images))

    assert len(result.image_urls) == 3
    stored = [blobs.objects[blobs.path_from_url(url)] for url in result.image_urls]
    assert stored[2] == (b"not-an-image-heic", "image/heic")
    assert [content_type for _, content_type in stored[:2]] == ["image/jpeg", "image/jpeg"]
