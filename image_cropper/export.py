"""
Export pipeline: re-render the crop at a fixed output resolution (Qt-free).

The export frame is the crop box scaled uniformly to ``target_w`` pixels
wide, so its aspect always matches the box no matter how large the
on-screen canvas is.  The draw sequence mirrors the preview's
translate → rotate → scale → draw, with every viewport length multiplied
by ``output_ratio = target_w / box_w``.  Padding only positions the box on
screen; it never reaches the output.

This module must never import PyQt6, so it can run without a display.
"""

import io
import logging
from dataclasses import dataclass

from PIL import Image

from image_cropper import geometry as geo
from image_cropper.config import (
    EXPORT_BACKGROUND, EXPORT_FORMAT, EXPORT_MIME_TYPE, EXPORT_TARGET_WIDTH,
    JPEG_QUALITY, JPEG_QUALITY_MIN, JPEG_QUALITY_MAX,
)
from image_cropper.models import Geometry, ImageRecord, TransformState
from image_cropper.raster import PillowCanvas
from image_cropper.render import Clear, DrawImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportFrame:
    """Output size plus the commands that draw it."""
    width: int
    height: int
    output_ratio: float
    commands: list


def output_size(geometry: Geometry, target_w: int = EXPORT_TARGET_WIDTH) -> tuple[int, int]:
    """Output pixel size: fixed width, height from the crop box aspect (rounded, at least 1)."""
    if target_w <= 0:
        raise ValueError(f"target width must be positive, got {target_w!r}")
    box = geometry.box
    target_h = max(1, round(target_w / (box.w / box.h)))
    return target_w, target_h


def export_frame(geometry: Geometry, state: TransformState, target_w: int = EXPORT_TARGET_WIDTH) -> ExportFrame:
    """Build the output-space draw commands for *state*."""
    width, height = output_size(geometry, target_w)
    output_ratio = width / geometry.box.w
    scale = geo.active_scale(state.scale, geometry)
    pan_x, pan_y = geo.clamp_pan(state.pan_x, state.pan_y, geometry, state.scale)
    commands = [
        Clear(EXPORT_BACKGROUND),
        DrawImage(
            cx=width / 2 + pan_x * output_ratio,
            cy=height / 2 + pan_y * output_ratio,
            rotation=state.rotation,
            scale=scale * output_ratio,
        ),
    ]
    return ExportFrame(width, height, output_ratio, commands)


def render_export(session, target_w: int = EXPORT_TARGET_WIDTH) -> Image.Image | None:
    """Render the session's crop at *target_w* wide. None when there is nothing to render."""
    if session is None or session.geometry is None:
        logger.debug("Export skipped: no image or no crop geometry")
        return None
    frame = export_frame(session.geometry, session.state, target_w)
    canvas = PillowCanvas(frame.width, frame.height)
    return canvas.execute(frame.commands, session.image).convert("RGB")


def encode_jpeg(image: Image.Image, quality: int = JPEG_QUALITY) -> bytes:
    if not JPEG_QUALITY_MIN <= quality <= JPEG_QUALITY_MAX:
        raise ValueError(f"JPEG quality must be in {JPEG_QUALITY_MIN}..{JPEG_QUALITY_MAX}, got {quality}")
    buf = io.BytesIO()
    image.save(buf, EXPORT_FORMAT, quality=quality, optimize=True)
    return buf.getvalue()


def export_crop(session, record: ImageRecord | None, target_w: int = EXPORT_TARGET_WIDTH,
                quality: int = JPEG_QUALITY) -> ImageRecord | None:
    """
    Render, encode and wrap the crop for the caller.

    Returns a record with the original ``id``, a JPEG payload and the JPEG
    MIME type, or None when no image is loaded (confirm is then a no-op).
    """
    if record is None:
        logger.debug("Export skipped: no source record")
        return None
    rendered = render_export(session, target_w)
    if rendered is None:
        return None
    data = encode_jpeg(rendered, quality)
    logger.info(
        "Exported crop for %s: %dx%d, %d bytes",
        record.id, rendered.width, rendered.height, len(data),
    )
    return record.with_payload(data, EXPORT_MIME_TYPE)
