"""Tests for the shared data models."""

import pytest

from image_cropper.models import (
    AUTO, CropBox, CropSpec, ImageRecord, ViewportGeometry, normalize_rotation,
)


def test_record_base64_helpers():
    record = ImageRecord.from_base64("id-7", "aGVsbG8=", "image/png")

    assert record.data == b"hello"
    assert record.base64() == "aGVsbG8="
    assert record.data_url() == "data:image/png;base64,aGVsbG8="


def test_with_payload_keeps_id():
    record = ImageRecord("id-7", b"a", "image/png")
    updated = record.with_payload(b"b", "image/jpeg")

    assert updated == ImageRecord("id-7", b"b", "image/jpeg")
    assert record.data == b"a"


@pytest.mark.parametrize("degrees, expected", [(0, 0), (90, 90), (-90, 270), (450, 90), (360, 0)])
def test_normalize_rotation(degrees, expected):
    assert normalize_rotation(degrees) == expected


def test_crop_spec_validates():
    assert CropSpec().aspect_ratio == AUTO
    assert CropSpec(aspect_ratio=2, rotation=-180).rotation == 180
    with pytest.raises(ValueError):
        CropSpec(aspect_ratio=0)
    with pytest.raises(ValueError):
        CropSpec(aspect_ratio="wide")
    with pytest.raises(ValueError):
        CropSpec(rotation=15)


def test_viewport_is_measured_only_with_area():
    assert ViewportGeometry(10, 10).is_measured
    assert not ViewportGeometry(0, 10).is_measured
    assert not ViewportGeometry().is_measured


def test_crop_box_helpers():
    outer = CropBox(0, 0, 100, 50)

    assert outer.center == (50, 25)
    assert outer.aspect == 2
    assert outer.contains(CropBox(10, 10, 90, 40))
    assert not outer.contains(CropBox(10, 10, 91, 40))


@pytest.mark.parametrize("ratio", [float("nan"), float("inf"), float("-inf"), -1.5])
def test_crop_spec_rejects_non_finite_or_negative_ratio(ratio):
    with pytest.raises(ValueError):
        CropSpec(aspect_ratio=ratio)
