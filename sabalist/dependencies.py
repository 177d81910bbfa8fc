"""Backend adapters, chosen once from settings and shared by every request."""
from functools import lru_cache

from sabalist.config import settings
from sabalist.stores.blobs import BlobStore, LocalBlobStore, MemoryBlobStore
from sabalist.stores.documents import DocumentStore, MemoryDocumentStore, SQLDocumentStore
from sabalist.stores.local import LocalStorage


@lru_cache
def get_document_store() -> DocumentStore:
    if settings.DOCUMENT_BACKEND == "memory":
        return MemoryDocumentStore()
    if settings.DOCUMENT_BACKEND == "sql":
        return SQLDocumentStore()
    raise ValueError(f"Unknown DOCUMENT_BACKEND: {settings.DOCUMENT_BACKEND}")


@lru_cache
def get_blob_store() -> BlobStore:
    if settings.BLOB_BACKEND == "memory":
        return MemoryBlobStore()
    if settings.BLOB_BACKEND == "local":
        return LocalBlobStore(settings.BLOB_ROOT, settings.BLOB_BASE_URL)
    raise ValueError(f"Unknown BLOB_BACKEND: {settings.BLOB_BACKEND}")


@lru_cache
def get_local_storage() -> LocalStorage:
    return LocalStorage(settings.LOCAL_STORAGE_PATH)
