import os

os.environ.setdefault("BLOB_BACKEND", "memory")
os.environ.setdefault("LOCAL_STORAGE_PATH", "")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

from sabalist.database import drop_database, get_engine  # noqa: E402
from sabalist.dependencies import (  # noqa: E402
    get_blob_store,
    get_document_store,
    get_local_storage,
)
from sabalist.stores.blobs import MemoryBlobStore  # noqa: E402
from sabalist.stores.documents import MemoryDocumentStore, SQLDocumentStore  # noqa: E402
from sabalist.stores.local import LocalStorage  # noqa: E402
from sabalist.tests.factories import listing_document  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_database():
    """Create the schema before each test and drop it afterwards."""
    engine = get_engine()
    SQLModel.metadata.create_all(engine)
    yield
    drop_database()


@pytest.fixture
def memory_store():
    return MemoryDocumentStore()


@pytest.fixture(params=["memory", "sql"])
def document_store(request):
    """Runs a test once per document store adapter."""
    if request.param == "memory":
        return MemoryDocumentStore()
    return SQLDocumentStore()


@pytest.fixture
def blobs():
    return MemoryBlobStore()


@pytest.fixture
def local_storage():
    return LocalStorage()


@pytest.fixture
def create_sample_listings(document_store):
    """Provide sample listings for testing, oldest first."""
    samples = [
        listing_document(
            title="iPhone 14",
            description="Unlocked, 128GB",
            price=300.0,
            subcategory="mobile-phones",
            location="Lagos, Nigeria",
        ),
        listing_document(
            title="Old Phone",
            price=50.0,
            subcategory="mobile-phones",
            status="sold",
            location="Lagos, Nigeria",
        ),
        listing_document(
            title="Gaming Laptop",
            description="RTX graphics, barely used",
            price=1000.0,
            subcategory="laptops-computers",
            location="Accra, Greater Accra, Ghana",
        ),
        listing_document(
            title="Toyota Corolla",
            category="Vehicles",
            subcategory="cars",
            price=8000.0,
            location="Nairobi, Kenya",
        ),
        listing_document(
            title="House cleaning",
            category="Services",
            subcategory="cleaning",
            price=0.0,
            location="",
        ),
    ]
    ids = [document_store.add("listings", sample) for sample in samples]
    return document_store, ids


@pytest.fixture
def client(memory_store, blobs, local_storage):
    from sabalist.main import app

    app.dependency_overrides[get_document_store] = lambda: memory_store
    app.dependency_overrides[get_blob_store] = lambda: blobs
    app.dependency_overrides[get_local_storage] = lambda: local_storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
