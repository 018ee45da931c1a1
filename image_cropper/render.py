"""
Preview render pipeline expressed as a list of draw commands (Qt-free).

``preview_commands`` is a pure function of the viewport, the solver output
and the transform state.  It returns plain command objects that a backend
executes against a real surface: ``raster.PillowCanvas`` off screen and
``crop_widget.QPainterBackend`` on screen.  Every frame starts with
``Clear``, so the same state always produces the same frame.

``DrawImage`` places the source image with its own centre at
``(cx, cy)``, rotated by ``rotation`` degrees (clockwise on screen) and
scaled uniformly by ``scale``.  The image itself is supplied to the
backend at execution time.
"""

from dataclasses import dataclass

from image_cropper.config import (
    PREVIEW_BACKGROUND, PREVIEW_BORDER, PREVIEW_BORDER_WIDTH,
    PREVIEW_GRID, PREVIEW_GRID_WIDTH, PREVIEW_OVERLAY,
)
from image_cropper.models import CropBox, Geometry, TransformState, ViewportGeometry
from image_cropper import geometry as geo

Color = tuple[int, int, int, int]


# =============================================================================
# Draw commands
# =============================================================================
@dataclass(frozen=True)
class Clear:
    color: Color


@dataclass(frozen=True)
class FillRect:
    rect: CropBox
    color: Color


@dataclass(frozen=True)
class PushClip:
    rect: CropBox


@dataclass(frozen=True)
class PopClip:
    pass


@dataclass(frozen=True)
class DrawImage:
    cx: float
    cy: float
    rotation: int
    scale: float


@dataclass(frozen=True)
class StrokeRect:
    rect: CropBox
    color: Color
    width: int


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    color: Color
    width: int


@dataclass(frozen=True)
class PreviewStyle:
    background: Color = PREVIEW_BACKGROUND
    overlay: Color = PREVIEW_OVERLAY
    border: Color = PREVIEW_BORDER
    border_width: int = PREVIEW_BORDER_WIDTH
    grid: Color = PREVIEW_GRID
    grid_width: int = PREVIEW_GRID_WIDTH


# =============================================================================
# Preview
# =============================================================================
def image_placement(geometry: Geometry, state: TransformState) -> DrawImage:
    """Where the image goes in viewport space: box centre + clamped pan."""
    scale = geo.active_scale(state.scale, geometry)
    pan_x, pan_y = geo.clamp_pan(state.pan_x, state.pan_y, geometry, state.scale)
    cx, cy = geometry.box.center
    return DrawImage(cx + pan_x, cy + pan_y, state.rotation, scale)


def overlay_bands(viewport: ViewportGeometry, box: CropBox) -> list[CropBox]:
    """Top, bottom, left and right regions outside the crop box."""
    vw, vh = viewport.width, viewport.height
    return [
        CropBox(0, 0, vw, box.y),
        CropBox(0, box.bottom, vw, vh - box.bottom),
        CropBox(0, box.y, box.x, box.h),
        CropBox(box.right, box.y, vw - box.right, box.h),
    ]


def thirds_lines(box: CropBox) -> list[tuple[float, float, float, float]]:
    """Rule-of-thirds grid: two vertical then two horizontal lines."""
    lines = []
    for i in (1, 2):
        x = box.x + box.w * i / 3
        lines.append((x, box.y, x, box.bottom))
    for i in (1, 2):
        y = box.y + box.h * i / 3
        lines.append((box.x, y, box.right, y))
    return lines


def preview_commands(viewport: ViewportGeometry, geometry: Geometry | None,
                     state: TransformState, style: PreviewStyle | None = None) -> list:
    """Draw commands for one preview frame; empty when there is no geometry."""
    if geometry is None:
        return []
    style = style or PreviewStyle()
    box = geometry.box

    commands = [
        Clear(style.background),
        PushClip(box),
        image_placement(geometry, state),
        PopClip(),
    ]
    commands += [FillRect(band, style.overlay) for band in overlay_bands(viewport, box)]
    commands.append(StrokeRect(box, style.border, style.border_width))
    commands += [Line(*line, style.grid, style.grid_width) for line in thirds_lines(box)]
    return commands


def session_preview_commands(session, style: PreviewStyle | None = None) -> list:
    """Convenience wrapper over ``preview_commands`` for a ``CropSession``."""
    return preview_commands(session.viewport, session.geometry, session.state, style)
