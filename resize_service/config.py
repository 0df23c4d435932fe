"""Application configuration constants."""

import os

MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", str(10 * 1024 * 1024)))  # 10MB

SUPPORTED_FORMATS = {
    "image/jpeg": [".jpg", ".jpeg"],
    "image/png": [".png"],
    "image/gif": [".gif"],
    "image/webp": [".webp"],
    "image/bmp": [".bmp"],
}

IMAGE_SIGNATURES = {
    b'\xff\xd8\xff': 'jpeg',
    b'\x89PNG\r\n\x1a\n': 'png',
    b'GIF87a': 'gif',
    b'GIF89a': 'gif',
    b'RIFF': 'webp',
    b'BM': 'bmp',
}

# Cache
CACHE_MAX_BYTES = int(os.getenv("CACHE_MAX_BYTES", str(150 * 1024 * 1024)))  # 150MiB
CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", "3600"))

# Resize defaults
DEFAULT_WIDTH = 0
DEFAULT_HEIGHT = 0
DEFAULT_QUALITY = int(os.getenv("DEFAULT_QUALITY", "80"))

# Remote fetch
FETCH_TIMEOUT_SECONDS = float(os.getenv("FETCH_TIMEOUT_SECONDS", "10"))
FETCH_USER_AGENT = "resize-service/1.0"

RATE_LIMIT_RESIZE = os.getenv("RATE_LIMIT_RESIZE", "60/minute")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "3001"))

# Largest output image allowed, in pixels (width * height)
MAX_OUTPUT_PIXELS = int(os.getenv("MAX_OUTPUT_PIXELS", str(40_000_000)))
