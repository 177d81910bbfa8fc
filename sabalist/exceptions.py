class ListingValidationError(Exception):
    """Raised before any network call when the submitted listing is invalid.

    Every violation gets its own user-facing reason.
    """

    def __init__(self, reasons: list[str]):
        self.reasons = list(reasons)
        super().__init__("; ".join(self.reasons))


class ListingIngestionError(Exception):
    """Operation-level failure while creating a listing."""

    def __init__(self, reason: str, original_error: Exception | None = None):
        self.reason = reason
        self.original_error = original_error
        super().__init__(reason)


class UploadTimeout(Exception):
    """A single bounded operation did not finish in time."""

    def __init__(self, operation: str, seconds: float):
        self.operation = operation
        self.seconds = seconds
        super().__init__(f"TIMEOUT: {operation} exceeded {seconds}s")


class ListingNotFound(Exception):
    def __init__(self, listing_id: str):
        self.listing_id = listing_id
        super().__init__(f"Listing not found: {listing_id}")


class DocumentNotFound(Exception):
    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document {collection}/{doc_id} does not exist")


class GeocodingError(Exception):
    """Reverse geocoding service failed or returned no usable address."""


class ImageCompressionError(Exception):
    """Image bytes could not be decoded or re-encoded as JPEG."""
