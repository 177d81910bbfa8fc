import logging

from fastapi import APIRouter, Depends, HTTPException

from sabalist import i18n
from sabalist.dependencies import get_local_storage
from sabalist.schemas.request import LanguageRequest, ReverseGeocodeRequest
from sabalist.schemas.response import CategoryOut, DetectedLocation, SubCategoryOut
from sabalist.services.geolocation import detect_user_location
from sabalist.stores.local import LocalStorage
from sabalist.taxonomy import (
    CATEGORIES,
    get_category_icon,
    get_category_id,
    get_image_limits,
    get_subcategories,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog"])


@router.get("/categories/", response_model=list[CategoryOut])
def list_categories():
    categories = []
    for name in CATEGORIES:
        limits = get_image_limits(name)
        categories.append(
            CategoryOut(
                name=name,
                id=get_category_id(name),
                icon=get_category_icon(name),
                min_images=limits.min,
                max_images=limits.max,
                sub_categories=[
                    SubCategoryOut(id=sub.id, label_key=sub.label_key, icon=sub.icon)
                    for sub in get_subcategories(name)
                ],
            )
        )
    return categories


@router.post("/geocode/reverse", response_model=DetectedLocation)
def reverse_geocode(payload: ReverseGeocodeRequest):
    logger.info(f"POST /geocode/reverse - {payload.latitude}, {payload.longitude}")
    return DetectedLocation.model_validate(
        detect_user_location(payload.latitude, payload.longitude)
    )


@router.get("/languages")
def list_languages():
    return [
        {"code": lang.code, "name": lang.name, "nativeName": lang.native_name, "rtl": lang.rtl}
        for lang in i18n.LANGUAGES
    ]


@router.get("/preferences/language")
def read_language(
    device_locale: str | None = None, local: LocalStorage = Depends(get_local_storage)
):
    code = i18n.get_initial_language(local, device_locale)
    return {"code": code, "rtl": i18n.is_rtl(code)}


@router.put("/preferences/language")
def write_language(
    payload: LanguageRequest, local: LocalStorage = Depends(get_local_storage)
):
    if not i18n.change_language(local, payload.code):
        raise HTTPException(status_code=422, detail=f"Unsupported language: {payload.code}")
    return {"code": payload.code, "rtl": i18n.is_rtl(payload.code)}
