import io
import os

import pytest
from PIL import Image

# Qt widgets are exercised without a display server
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from image_cropper.models import ImageRecord, ViewportGeometry  # noqa: E402
from image_cropper.session import CropSession  # noqa: E402


def solid(w: int, h: int, color=(200, 40, 40)) -> Image.Image:
    return Image.new("RGB", (w, h), color)


def encode(img: Image.Image, fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    img.save(buf, fmt)
    return buf.getvalue()


@pytest.fixture
def viewport():
    """800×600 surface with the default 20px padding."""
    return ViewportGeometry(800, 600, 20)


@pytest.fixture
def tall_image():
    return solid(1000, 2000)


@pytest.fixture
def square_session(tall_image, viewport):
    """1000×2000 image, 1:1 crop, 800×600 viewport."""
    return CropSession(tall_image, aspect_ratio=1, viewport=viewport)


@pytest.fixture
def png_record():
    return ImageRecord(id="img-1", data=encode(solid(320, 200)), mime_type="image/png")
