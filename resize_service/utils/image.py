"""Image processing utilities."""

import logging
from dataclasses import dataclass
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from resize_service.config import MAX_OUTPUT_PIXELS
from resize_service.exceptions import DecodeError, ProcessingError
from resize_service.utils.validation import sniff_format

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessedImage:
    payload: bytes
    content_type: str
    original_width: int
    original_height: int


def decode_image(content: bytes) -> Image.Image:
    """Open and fully decode image bytes."""
    if sniff_format(content) is None:
        raise DecodeError("Unrecognized image format.")
    try:
        img = Image.open(BytesIO(content))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        logger.debug(f"Failed to decode image: {e}")
        raise DecodeError("Corrupted or invalid image file.") from e
    return img


def target_size(
    original: tuple[int, int],
    width: int,
    height: int,
    max_pixels: int = MAX_OUTPUT_PIXELS,
) -> tuple[int, int]:
    """Resolve the output size; a zero side follows the source aspect ratio."""
    orig_width, orig_height = original
    if width < 0 or height < 0:
        raise ProcessingError(f"Invalid target dimensions {width}x{height}")
    if width == 0 and height == 0:
        raise ProcessingError("Target width and height cannot both be zero")
    if width == 0:
        width = max(1, round(orig_width * height / orig_height))
    elif height == 0:
        height = max(1, round(orig_height * width / orig_width))
    if width * height > max_pixels:
        raise ProcessingError(
            f"Target size {width}x{height} exceeds the limit of {max_pixels} pixels"
        )
    return width, height


def process_image(content: bytes, width: int, height: int, quality: int) -> ProcessedImage:
    """Decode, resize and re-encode an image.

    JPEG sources are re-encoded as JPEG at ``quality``; every other format is
    written as PNG.
    """
    img = decode_image(content)
    source_format = img.format
    orig_width, orig_height = img.size
    size = target_size(img.size, width, height)

    try:
        resized = img.convert("RGBA").resize(size, Image.Resampling.LANCZOS)
        buffer = BytesIO()
        if source_format == "JPEG":
            resized.convert("RGB").save(buffer, format="JPEG", quality=quality)
            content_type = "image/jpeg"
        else:
            resized.save(buffer, format="PNG")
            content_type = "image/png"
    except (OSError, ValueError) as e:
        logger.error(f"Failed to resize image to {size[0]}x{size[1]}: {e}")
        raise ProcessingError(f"Image processing failed: {e}") from e

    logger.info(
        f"Resized {source_format} {orig_width}x{orig_height} -> {size[0]}x{size[1]} "
        f"({content_type}, {buffer.tell()} bytes)"
    )
    return ProcessedImage(
        payload=buffer.getvalue(),
        content_type=content_type,
        original_width=orig_width,
        original_height=orig_height,
    )
