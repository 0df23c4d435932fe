from io import BytesIO

import httpx
import pytest
from PIL import Image

from resize_service.dependencies import limiter
from resize_service.services.fetch import ImageFetcher


class FakeClock:
    """Manually advanced clock for TTL and eviction-order tests."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_image_bytes(fmt: str, size=(40, 20)) -> bytes:
    """Gradient image encoded in ``fmt``."""
    width, height = size
    img = Image.new("RGB", size)
    img.putdata([
        (x * 255 // width, y * 255 // height, (x * y) % 256)
        for y in range(height)
        for x in range(width)
    ])
    buffer = BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def mock_fetcher(handler) -> ImageFetcher:
    return ImageFetcher(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def png_bytes():
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes():
    return make_image_bytes("JPEG")


@pytest.fixture
def gif_bytes():
    return make_image_bytes("GIF")


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
