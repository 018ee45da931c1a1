"""
Aspect-ratio presets and helpers.

Presets come from ``config.CROP_RATIOS``.  A preset with no ratio ("Free")
maps to the ``AUTO`` sentinel, which makes the crop box follow the
image's own (rotated) aspect.  Callers may also force a numeric ratio,
e.g. to match a video's frame shape.  This module is Qt-free.
"""

import logging

from image_cropper.config import CROP_RATIOS
from image_cropper.models import AUTO, validate_aspect_ratio

logger = logging.getLogger(__name__)

# Generation aspect labels that force a fixed crop ratio on video frames
_VIDEO_ASPECTS = {"16:9": 16 / 9, "9:16": 9 / 16}


def parse_ratio(text: str) -> float:
    """
    Parse a ratio given as ``"W:H"``, a plain number, or ``"free"``/``"auto"``.

    Returns a positive float or ``AUTO``.  Raises ValueError on anything else.
    """
    text = text.strip()
    if text.lower() in ("free", "auto"):
        return AUTO
    if ":" in text:
        parts = text.split(":")
        if len(parts) != 2:
            raise ValueError(f"Enter ratio as W:H (e.g. 16:9), got {text!r}")
        try:
            w, h = int(parts[0]), int(parts[1])
        except ValueError:
            raise ValueError(f"Enter ratio as W:H (e.g. 16:9), got {text!r}") from None
        if w <= 0 or h <= 0:
            raise ValueError(f"ratio parts must be positive, got {text!r}")
        return w / h
    try:
        value = float(text)
    except ValueError:
        raise ValueError(f"Enter ratio as W:H (e.g. 16:9), got {text!r}") from None
    return validate_aspect_ratio(value)


# =============================================================================
# Presets
# =============================================================================
def preset_names() -> list[str]:
    return [preset["name"] for preset in CROP_RATIOS]


def preset_ratio(preset: dict):
    """Return the numeric ratio of a preset, or AUTO for the free preset."""
    if preset["ratio_w"] is None or preset["ratio_h"] is None:
        return AUTO
    return preset["ratio_w"] / preset["ratio_h"]


def ratio_for_name(name: str):
    """Look up a preset by name ("16:9", "Free", ...)."""
    for preset in CROP_RATIOS:
        if preset["name"].lower() == name.strip().lower():
            return preset_ratio(preset)
    raise KeyError(f"unknown crop ratio preset {name!r}")


def preset_index(aspect_ratio) -> int | None:
    """Index of the preset matching *aspect_ratio*, or None for a custom ratio."""
    for i, preset in enumerate(CROP_RATIOS):
        value = preset_ratio(preset)
        if value == AUTO or aspect_ratio == AUTO:
            if value == aspect_ratio:
                return i
            continue
        if abs(value - aspect_ratio) < 1e-9:
            return i
    return None


def ratio_for_video_aspect(label: str) -> float:
    """
    Crop ratio forced on a video start/end frame for a generation aspect label.

    Portrait ("9:16") frames crop at 9:16; everything else falls back to 16:9.
    """
    ratio = _VIDEO_ASPECTS.get(label.strip())
    if ratio is None:
        logger.debug("No video ratio for aspect %r, using 16:9", label)
        return _VIDEO_ASPECTS["16:9"]
    return ratio


def ratio_for_generation_aspect(label: str):
    """
    Crop ratio for an image picked while generating at aspect *label*.

    Only the landscape and portrait widescreen shapes force a ratio; any
    other label leaves the crop free.
    """
    return _VIDEO_ASPECTS.get(label.strip(), AUTO)
