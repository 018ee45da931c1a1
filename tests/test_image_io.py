"""Tests for decoding image records and file helpers."""

import io
from pathlib import Path

import pytest
from PIL import Image

from conftest import encode, solid
from image_cropper.image_io import (
    ImageDecodeError, compute_fingerprint, decode_image, guess_mime_type,
    load_record, save_record, unique_path,
)
from image_cropper.models import ImageRecord


def test_decode_png_record(png_record):
    img = decode_image(png_record)

    assert img.size == (320, 200)
    assert img.mode == "RGB"


def test_decode_keeps_alpha():
    rgba = Image.new("RGBA", (10, 10), (1, 2, 3, 128))
    img = decode_image(ImageRecord("a", encode(rgba), "image/png"))

    assert img.mode == "RGBA"


def test_decode_converts_grayscale_to_rgb():
    gray = Image.new("L", (8, 4), 77)
    img = decode_image(ImageRecord("g", encode(gray), "image/png"))

    assert img.mode == "RGB"
    assert img.getpixel((0, 0)) == (77, 77, 77)


def test_decode_applies_exif_orientation():
    src = solid(40, 20)
    exif = Image.Exif()
    exif[0x0112] = 6  # rotate 90° clockwise on display
    buf = io.BytesIO()
    src.save(buf, "JPEG", exif=exif)

    img = decode_image(ImageRecord("e", buf.getvalue(), "image/jpeg"))

    assert img.size == (20, 40)


@pytest.mark.parametrize("data", [b"", b"not an image at all", b"\x89PNG\r\n\x1a\n truncated"])
def test_undecodable_payload_raises(data):
    with pytest.raises(ImageDecodeError):
        decode_image(ImageRecord("bad", data, "image/png"))


def test_decode_error_is_a_value_error():
    assert issubclass(ImageDecodeError, ValueError)


def test_decode_psd_record():
    psd_tools = pytest.importorskip("psd_tools")
    psd = psd_tools.PSDImage.frompil(solid(24, 16, (0, 128, 255)))
    buf = io.BytesIO()
    psd.save(buf)

    img = decode_image(ImageRecord("p", buf.getvalue(), "image/vnd.adobe.photoshop"))

    assert img.size == (24, 16)


@pytest.mark.parametrize("data", [b"8BPS", b"8BPS\x00\x01\x00\x00"])
def test_corrupt_psd_payload_raises_decode_error(data):
    with pytest.raises(ImageDecodeError):
        decode_image(ImageRecord("broken-psd", data, "image/vnd.adobe.photoshop"))


def test_fingerprint_is_stable_and_size_aware():
    data = encode(solid(50, 50))

    assert compute_fingerprint(data) == compute_fingerprint(bytes(data))
    assert compute_fingerprint(data) != compute_fingerprint(data + b"\0")
    assert compute_fingerprint(data).startswith(f"{len(data):x}_")


def test_load_record_from_disk(tmp_path):
    path = tmp_path / "photo.JPG"
    solid(30, 30).save(path, "JPEG")

    record = load_record(path)

    assert record.mime_type == "image/jpeg"
    assert record.id == compute_fingerprint(path.read_bytes())
    assert decode_image(record).size == (30, 30)


def test_guess_mime_type_falls_back():
    assert guess_mime_type(Path("x.webp")) == "image/webp"
    assert guess_mime_type(Path("x.xyz")) == "application/octet-stream"


def test_save_record_never_overwrites(tmp_path):
    record = ImageRecord("r", b"payload", "image/jpeg")
    target = tmp_path / "out" / "crop.jpg"

    first = save_record(record, target)
    second = save_record(record, target)

    assert first == target
    assert second == tmp_path / "out" / "crop-01.jpg"
    assert second.read_bytes() == b"payload"
    assert unique_path(target) == tmp_path / "out" / "crop-02.jpg"
