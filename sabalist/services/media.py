import base64
import io
import logging
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

from sabalist.exceptions import ImageCompressionError
from sabalist.schemas.request import MediaAsset
from sabalist.taxonomy import (
    ABSOLUTE_MAX_IMAGES,
    ABSOLUTE_MIN_IMAGES,
    ALLOWED_VIDEO_TYPES,
    COMPRESSION_QUALITY,
    COMPRESSION_WIDTH,
    MAX_IMAGE_BYTES,
    MAX_VIDEO_BYTES,
    MB,
    get_image_limits,
)

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    valid: bool
    message: str = ""


def validate_image_count(count: int, category: str) -> ValidationResult:
    limits = get_image_limits(category)
    # Category limits never go outside the absolute bounds
    minimum = max(limits.min, ABSOLUTE_MIN_IMAGES)
    maximum = min(limits.max, ABSOLUTE_MAX_IMAGES)

    if count < minimum:
        return ValidationResult(
            False, f"{category} listings require at least {minimum} images"
        )

    if count > maximum:
        return ValidationResult(
            False, f"{category} listings can have maximum {maximum} images"
        )

    return ValidationResult(True)


def is_valid_file_size(size: int) -> bool:
    return size <= MAX_IMAGE_BYTES


def split_images_by_size(
    images: list[MediaAsset],
) -> tuple[list[MediaAsset], list[str]]:
    """Keep every image within the size limit, report each one that is not."""
    accepted, rejections = [], []
    for index, image in enumerate(images):
        if is_valid_file_size(image.size):
            accepted.append(image)
        else:
            rejections.append(
                f"Image {index + 1} is {image.size / MB:.1f}MB. "
                f"Maximum is {MAX_IMAGE_BYTES // MB}MB."
            )
    return accepted, rejections


def validate_video(video: MediaAsset | None) -> ValidationResult:
    if video is None:
        return ValidationResult(True)
    if video.size > MAX_VIDEO_BYTES:
        return ValidationResult(
            False,
            f"Video is {video.size / MB:.1f}MB. Maximum is {MAX_VIDEO_BYTES // MB}MB.",
        )
    if video.content_type not in ALLOWED_VIDEO_TYPES:
        return ValidationResult(False, f"Unsupported video format: {video.content_type}")
    return ValidationResult(True)


def video_extension(content_type: str) -> str:
    return ALLOWED_VIDEO_TYPES.get(content_type, "mp4")


def compress_image(
    data: bytes,
    max_width: int = COMPRESSION_WIDTH,
    quality: float = COMPRESSION_QUALITY,
) -> bytes:
    """Resize to ``max_width`` and re-encode as JPEG.

    Raises ``ImageCompressionError`` when the bytes cannot be decoded or
    re-encoded.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img = ImageOps.exif_transpose(img)
            if img.width > max_width:
                height = round(img.height * max_width / img.width)
                img = img.resize((max_width, height), Image.LANCZOS)
            output = io.BytesIO()
            img.convert("RGB").save(
                output, format="JPEG", quality=int(quality * 100), optimize=True
            )
            return output.getvalue()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageCompressionError(str(e)) from e


def prepare_image(image: MediaAsset) -> tuple[bytes, str]:
    """Compressed JPEG bytes, or the original bytes and type if that fails."""
    try:
        return compress_image(image.data), "image/jpeg"
    except ImageCompressionError as e:
        logger.warning(f"Image compression failed, using original: {e}")
        return image.data, image.content_type


def bytes_from_data_uri(data_uri: str) -> tuple[bytes, str]:
    if not data_uri.startswith("data:"):
        raise ValueError("not_data_uri")
    marker = ";base64,"
    idx = data_uri.find(marker)
    if idx < 0:
        raise ValueError("unsupported_data_uri")
    mime_type = data_uri[len("data:"):idx] or "application/octet-stream"
    encoded = data_uri[idx + len(marker):]
    return base64.b64decode(encoded), mime_type


def to_data_uri(data: bytes, mime_type: str = "image/jpeg") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
