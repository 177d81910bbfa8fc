import logging
from dataclasses import dataclass

from sabalist.stores.local import LocalStorage

logger = logging.getLogger(__name__)

LANGUAGE_STORAGE_KEY = "@sabalist:language"
DEFAULT_LANGUAGE = "en"


@dataclass(frozen=True)
class Language:
    code: str
    name: str
    native_name: str
    rtl: bool = False


LANGUAGES = [
    Language("en", "English", "English"),
    Language("fr", "French", "Français"),
    Language("ar", "Arabic", "العربية", rtl=True),
    Language("sw", "Swahili", "Kiswahili"),
    Language("pt", "Portuguese", "Português"),
    Language("es", "Spanish", "Español"),
    Language("am", "Amharic", "አማርኛ"),
    Language("ha", "Hausa", "Hausa"),
    Language("ig", "Igbo", "Igbo"),
    Language("om", "Oromo", "Afaan Oromoo"),
    Language("yo", "Yoruba", "Èdè Yorùbá"),
    Language("ff", "Fula", "Pulaar"),
]

_BY_CODE = {language.code: language for language in LANGUAGES}


def is_supported(code: str | None) -> bool:
    return code in _BY_CODE


def is_rtl(code: str) -> bool:
    language = _BY_CODE.get(code)
    return bool(language and language.rtl)


def get_initial_language(local: LocalStorage, device_locale: str | None = None) -> str:
    stored = local.get_item(LANGUAGE_STORAGE_KEY)
    if is_supported(stored):
        return stored

    # "fr-CA" and "fr_CA" both mean French
    device_language = (device_locale or "").replace("_", "-").split("-")[0].lower()
    return device_language if is_supported(device_language) else DEFAULT_LANGUAGE


def change_language(local: LocalStorage, code: str) -> bool:
    if not is_supported(code):
        logger.warning(f"Unsupported language: {code}")
        return False
    local.set_item(LANGUAGE_STORAGE_KEY, code)
    logger.info(f"Language changed to {code} ({'rtl' if is_rtl(code) else 'ltr'})")
    return True
