"""Static category configuration: icons, subcategories, ids and image limits."""
import re
from dataclasses import dataclass

MB = 1024 * 1024


@dataclass(frozen=True)
class SubCategory:
    id: str
    label_key: str
    icon: str


@dataclass(frozen=True)
class ImageLimits:
    min: int
    max: int
    description: str = ""


def _subs(*items: tuple[str, str, str]) -> list[SubCategory]:
    return [SubCategory(id=i, label_key=f"subCategories.{k}", icon=icon) for i, k, icon in items]


CATEGORIES_WITH_SUBS: dict[str, dict] = {
    "Electronics": {
        "icon": "phone-portrait",
        "sub_categories": _subs(
            ("mobile-phones", "mobilePhones", "phone-portrait"),
            ("laptops-computers", "laptopsComputers", "laptop"),
            ("tablets", "tablets", "tablet-portrait"),
            ("tvs", "tvs", "tv"),
            ("audio-speakers", "audioSpeakers", "volume-high"),
            ("cameras", "cameras", "camera"),
            ("gaming-consoles", "gamingConsoles", "game-controller"),
            ("accessories", "accessories", "headset"),
        ),
    },
    "Vehicles": {
        "icon": "car",
        "sub_categories": _subs(
            ("cars", "cars", "car-sport"),
            ("motorcycles", "motorcycles", "bicycle"),
            ("trucks", "trucks", "bus"),
            ("buses", "buses", "bus"),
            ("bicycles", "bicycles", "bicycle"),
            ("spare-parts", "spareParts", "build"),
        ),
    },
    "Furniture": {
        "icon": "bed",
        "sub_categories": _subs(
            ("sofas-chairs", "sofasChairs", "home"),
            ("beds-mattresses", "bedsMattresses", "bed"),
            ("tables-desks", "tablesDesks", "grid"),
            ("wardrobes", "wardrobes", "archive"),
            ("office-furniture", "officeFurniture", "briefcase"),
        ),
    },
    "Home Appliances": {
        "icon": "home",
        "sub_categories": _subs(
            ("refrigerators", "refrigerators", "snow"),
            ("washing-machines", "washingMachines", "water"),
            ("microwaves", "microwaves", "square"),
            ("air-conditioners", "airConditioners", "snow"),
            ("cookers-ovens", "cookersOvens", "flame"),
        ),
    },
    "Construction Equipment": {
        "icon": "construct",
        "sub_categories": _subs(
            ("cement-mixers", "cementMixers", "reload"),
            ("generators", "generators", "flash"),
            ("excavators", "excavators", "hammer"),
            ("drilling-machines", "drillingMachines", "build"),
            ("power-tools", "powerTools", "hardware-chip"),
            ("building-materials", "buildingMaterials", "cube"),
        ),
    },
    "Art & Collectibles": {
        "icon": "color-palette",
        "sub_categories": _subs(
            ("paintings", "paintings", "brush"),
            ("sculptures", "sculptures", "hand-left"),
            ("handmade-art", "handmadeArt", "hand-right"),
            ("antiques", "antiques", "trophy"),
            ("crafts", "crafts", "color-palette"),
        ),
    },
    "Fashion": {
        "icon": "shirt",
        "sub_categories": _subs(
            ("mens-clothing", "mensClothing", "person"),
            ("womens-clothing", "womensClothing", "woman"),
            ("shoes", "shoes", "footsteps"),
            ("bags", "bags", "bag"),
            ("watches-jewelry", "watchesJewelry", "watch"),
        ),
    },
    "Services": {
        "icon": "construct",
        "sub_categories": _subs(
            ("cleaning", "cleaning", "sparkles"),
            ("electrical", "electrical", "flash"),
            ("plumbing", "plumbing", "water"),
            ("car-repair", "carRepair", "car"),
            ("graphic-design", "graphicDesign", "color-palette"),
            ("tutoring", "tutoring", "school"),
        ),
    },
    "Jobs": {
        "icon": "briefcase",
        "sub_categories": _subs(
            ("full-time", "fullTime", "briefcase"),
            ("part-time", "partTime", "time"),
            ("freelance", "freelance", "laptop"),
            ("internships", "internships", "school"),
            ("remote", "remote", "globe"),
        ),
    },
    "Real Estate": {
        "icon": "home",
        "sub_categories": _subs(
            ("houses-sale", "housesSale", "home"),
            ("houses-rent", "housesRent", "key"),
            ("apartments", "apartments", "business"),
            ("land", "land", "map"),
            ("commercial-property", "commercialProperty", "storefront"),
        ),
    },
}

CATEGORIES = list(CATEGORIES_WITH_SUBS)

CATEGORY_ID_MAP = {
    "Electronics": "electronics",
    "Vehicles": "vehicles",
    "Furniture": "furniture",
    "Home Appliances": "home-appliances",
    "Construction Equipment": "construction-equipment",
    "Art & Collectibles": "art-collectibles",
    "Fashion": "fashion",
    "Services": "services",
    "Jobs": "jobs",
    "Real Estate": "real-estate",
}

CATEGORY_NAME_MAP = {value: key for key, value in CATEGORY_ID_MAP.items()}

CATEGORY_IMAGE_LIMITS = {
    "Vehicles": ImageLimits(3, 30, "Cars, motorcycles, trucks - show all angles"),
    "Real Estate": ImageLimits(3, 25, "Properties - interior, exterior, amenities"),
    "Electronics": ImageLimits(3, 10, "Phones, laptops, gadgets"),
    "Fashion": ImageLimits(3, 8, "Clothing, shoes, accessories"),
    "Services": ImageLimits(1, 5, "Service offerings"),
}

DEFAULT_IMAGE_LIMITS = ImageLimits(3, 15)

ABSOLUTE_MAX_IMAGES = 30
ABSOLUTE_MIN_IMAGES = 1
MAX_IMAGE_BYTES = 10 * MB
COMPRESSION_WIDTH = 1600
COMPRESSION_QUALITY = 0.75

MAX_VIDEO_BYTES = 50 * MB
ALLOWED_VIDEO_TYPES = {"video/mp4": "mp4", "video/quicktime": "mov"}


def get_subcategories(category: str) -> list[SubCategory]:
    return CATEGORIES_WITH_SUBS.get(category, {}).get("sub_categories", [])


def get_category_icon(category: str) -> str:
    return CATEGORIES_WITH_SUBS.get(category, {}).get("icon", "apps")


def get_category_id(category_name: str) -> str:
    if category_name in CATEGORY_ID_MAP:
        return CATEGORY_ID_MAP[category_name]
    return re.sub(r"\s+", "-", category_name.lower())


def get_category_name(category_id: str) -> str:
    return CATEGORY_NAME_MAP.get(category_id, category_id)


def get_image_limits(category: str) -> ImageLimits:
    return CATEGORY_IMAGE_LIMITS.get(category, DEFAULT_IMAGE_LIMITS)


def is_valid_subcategory(category: str, subcategory_id: str) -> bool:
    return any(sub.id == subcategory_id for sub in get_subcategories(category))
