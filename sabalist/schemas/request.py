from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserLocation(CamelModel):
    city: str = ""
    state: str = ""
    country: str = ""
    latitude: float | None = None
    longitude: float | None = None


class ListingFields(CamelModel):
    title: str = ""
    description: str = ""
    price: str | float | None = None
    currency: str = "USD"
    category: str = ""
    subcategory: str = ""
    location: str = ""
    phone_number: str = ""
    user_id: str = ""


class MediaAsset(BaseModel):
    """An image or video selected for upload."""

    data: bytes
    content_type: str = "image/jpeg"
    filename: str = ""

    @property
    def size(self) -> int:
        return len(self.data)


class ListingUpdateRequest(CamelModel):
    title: str | None = None
    description: str | None = None
    price: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    currency: str | None = None
    category: str | None = None
    subcategory: str | None = None
    location: str | None = None
    phone_number: str | None = None
    existing_images: list[str] | None = None


class ListingSearchRequest(BaseModel):
    search_text: str = ""
    category: str | None = None
    subcategory: str | None = None
    min_price: float | str | None = None
    max_price: float | str | None = None
    location: UserLocation | None = None
    limit: int = 50

    @field_validator("min_price", "max_price")
    @classmethod
    def blank_bound_is_unset(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return float(value) if value else None
        return value


class ReverseGeocodeRequest(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class LanguageRequest(BaseModel):
    code: str
