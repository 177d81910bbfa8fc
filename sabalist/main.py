import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from sabalist.api.catalog import router as catalog_router
from sabalist.api.listings import router as listings_router
from sabalist.api.users import router as users_router
from sabalist.config import settings
from sabalist.database import initialize_database

logging.basicConfig(
    format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
    level=logging.INFO,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database on startup."""
    if settings.DOCUMENT_BACKEND == "sql":
        await initialize_database()
    yield


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# Include routers
app.include_router(listings_router)
app.include_router(users_router)
app.include_router(catalog_router)

if settings.BLOB_BACKEND == "local":
    os.makedirs(settings.BLOB_ROOT, exist_ok=True)
    app.mount("/blobs", StaticFiles(directory=settings.BLOB_ROOT), name="blobs")


@app.get("/")
async def root():
    return {"message": "Sabalist listings API"}
