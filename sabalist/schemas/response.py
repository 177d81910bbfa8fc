from typing import Literal

from pydantic import Field, field_validator

from sabalist.schemas.request import CamelModel


class Listing(CamelModel):
    id: str
    title: str = ""
    description: str = ""
    price: float = 0
    currency: str = "USD"
    category: str = ""
    subcategory: str = ""
    location: str = ""
    phone_number: str = ""
    user_id: str = ""
    images: list[str] = Field(default_factory=list)
    cover_image: str = ""
    video_url: str = ""
    status: Literal["active", "sold"] = "active"
    views: int = 0
    created_at: str | None = None
    updated_at: str | None = None
    sold_at: str | None = None
    last_viewed_at: str | None = None

    @field_validator("price", mode="before")
    @classmethod
    def missing_price_is_zero(cls, value):
        return 0 if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def blank_status_is_active(cls, value):
        return value or "active"


class ListingsResponse(CamelModel):
    listings: list[Listing]
    total: int


class CreateListingResponse(CamelModel):
    listing_id: str
    images: list[str]
    video_url: str
    failed_images: list[int]
    warnings: list[str]


class FavoritesResponse(CamelModel):
    user_id: str
    listing_ids: list[str]


class SubCategoryOut(CamelModel):
    id: str
    label_key: str
    icon: str


class CategoryOut(CamelModel):
    name: str
    id: str
    icon: str
    min_images: int
    max_images: int
    sub_categories: list[SubCategoryOut]


class DetectedLocation(CamelModel):
    country: str = ""
    city: str = ""
    state: str = ""
    full_address: str = ""
    latitude: float | None = None
    longitude: float | None = None
    error: str | None = None
