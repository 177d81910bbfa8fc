from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Sabalist Listings API"

    # Database
    DATABASE_URL: str = "sqlite:///./sabalist.db"
    TEST_DATABASE_URL: str = "sqlite://"
    DATABASE_ECHO: bool = False

    # Backends are picked once at startup: "sql" | "memory" and "local" | "memory"
    DOCUMENT_BACKEND: str = "sql"
    BLOB_BACKEND: str = "local"
    BLOB_ROOT: str = "./blobs"
    BLOB_BASE_URL: str = "http://localhost:8000/blobs"
    LOCAL_STORAGE_PATH: str = "./local_storage.json"

    # Ingestion timeouts, in seconds
    DOCUMENT_WRITE_TIMEOUT_SECONDS: float = 30
    IMAGE_UPLOAD_TIMEOUT_SECONDS: float = 60
    VIDEO_UPLOAD_TIMEOUT_SECONDS: float = 90
    TOTAL_OPERATION_TIMEOUT_SECONDS: float = 300
    PARALLEL_UPLOADS: bool = False
    CLEANUP_ON_FAILURE: bool = True

    # Query pipeline
    SEARCH_PAGE_SIZE: int = 50
    USER_LISTINGS_PAGE_SIZE: int = 100

    # Reverse geocoding fallback
    REVERSE_GEOCODE_URL: str = (
        "https://api.bigdatacloud.net/data/reverse-geocode-client"
    )
    GEOCODE_TIMEOUT_SECONDS: float = 15

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
