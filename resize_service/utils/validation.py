"""Upload and source validation."""

import os

from resize_service.config import IMAGE_SIGNATURES, MAX_FILE_SIZE, SUPPORTED_FORMATS


def is_supported_upload(content_type: str | None, filename: str | None) -> bool:
    """Accept an upload whose MIME type or file extension names a supported format.

    Browsers often send ``application/octet-stream``, so the extension is
    consulted when the declared type is unknown.
    """
    if content_type in SUPPORTED_FORMATS:
        return True
    extension = os.path.splitext(filename or "")[1].lower()
    return any(extension in extensions for extensions in SUPPORTED_FORMATS.values())


def sniff_format(content: bytes) -> str | None:
    """Name of the image format given by the magic bytes, or None."""
    for signature, fmt in IMAGE_SIGNATURES.items():
        if not content.startswith(signature):
            continue
        # RIFF is a generic container; only RIFF/WEBP is an image
        if fmt == "webp" and content[8:12] != b"WEBP":
            return None
        return fmt
    return None


def validate_file_size(content: bytes) -> bool:
    """Check if file size is within limits."""
    return len(content) <= MAX_FILE_SIZE


def get_supported_formats() -> str:
    """Human-readable list of accepted formats, e.g. ``"JPEG, PNG, GIF"``."""
    return ", ".join(mime.split("/", 1)[1].upper() for mime in SUPPORTED_FORMATS)
