"""
Crop geometry solver and clamping math (pure functions, Qt-free).

Three coordinate spaces are involved:

* image space: source pixels, origin at the top-left of the unrotated image;
* viewport space: on-screen drawing surface, where the crop box lives and
  the pan offset is measured;
* output space: the exported image, a uniformly scaled copy of the crop box.

``solve`` fits a crop box of the requested aspect into the padded viewport
and returns the smallest scale at which the rotated image still covers it.
The remaining helpers derive pan limits from that result and map the crop
box back into image space.
"""

from image_cropper.models import (
    AUTO, CropBox, Constraints, Geometry, ViewportGeometry, normalize_rotation,
)


def is_quarter_turned(rotation: int) -> bool:
    """True for 90° and 270°, where width and height swap."""
    return normalize_rotation(rotation) % 180 != 0


def effective_size(img_w: float, img_h: float, rotation: int) -> tuple[float, float]:
    """Image size after rotation."""
    if is_quarter_turned(rotation):
        return img_h, img_w
    return img_w, img_h


def fit_box(avail_w: float, avail_h: float, ratio: float) -> tuple[float, float]:
    """Largest (w, h) of aspect *ratio* that fits in avail_w × avail_h (letterbox fit)."""
    if ratio > avail_w / avail_h:
        box_w = avail_w
        box_h = box_w / ratio
    else:
        box_h = avail_h
        box_w = box_h * ratio
    return box_w, box_h


def solve(viewport: ViewportGeometry, img_w: float, img_h: float,
          rotation: int, aspect_ratio=AUTO) -> Geometry | None:
    """
    Compute the crop box and covering scale.

    Returns None ("no geometry") when the viewport has not been measured
    yet, when padding leaves no room, or when the image has no area.
    """
    if not viewport.is_measured or img_w <= 0 or img_h <= 0:
        return None
    avail_w = viewport.width - viewport.padding * 2
    avail_h = viewport.height - viewport.padding * 2
    if avail_w <= 0 or avail_h <= 0:
        return None

    eff_w, eff_h = effective_size(img_w, img_h, rotation)
    ratio = eff_w / eff_h if aspect_ratio == AUTO else aspect_ratio

    box_w, box_h = fit_box(avail_w, avail_h, ratio)
    box = CropBox(
        x=(viewport.width - box_w) / 2,
        y=(viewport.height - box_h) / 2,
        w=box_w,
        h=box_h,
    )
    min_scale = max(box_w / eff_w, box_h / eff_h)
    return Geometry(box=box, min_scale=min_scale, image_w=eff_w, image_h=eff_h)


# =============================================================================
# Clamping
# =============================================================================
def active_scale(scale: float, geometry: Geometry) -> float:
    """Scale actually used for rendering: never below the covering scale."""
    return max(scale, geometry.min_scale)


def constraints(geometry: Geometry, scale: float) -> Constraints:
    """Pan limits that keep the crop box inside the rendered image."""
    s = active_scale(scale, geometry)
    render_w = geometry.image_w * s
    render_h = geometry.image_h * s
    return Constraints(
        min_scale=geometry.min_scale,
        max_pan_x=max(0.0, (render_w - geometry.box.w) / 2),
        max_pan_y=max(0.0, (render_h - geometry.box.h) / 2),
    )


def clamp(value: float, limit: float) -> float:
    return max(-limit, min(limit, value))


def clamp_pan(pan_x: float, pan_y: float, geometry: Geometry, scale: float) -> tuple[float, float]:
    """Clamp a pan offset component-wise to the current limits."""
    c = constraints(geometry, scale)
    return clamp(pan_x, c.max_pan_x), clamp(pan_y, c.max_pan_y)


def rendered_rect(geometry: Geometry, scale: float, pan_x: float, pan_y: float) -> CropBox:
    """Viewport rectangle covered by the image at *scale* and *pan* (pan is used as given)."""
    s = active_scale(scale, geometry)
    cx, cy = geometry.box.center
    w = geometry.image_w * s
    h = geometry.image_h * s
    return CropBox(cx + pan_x - w / 2, cy + pan_y - h / 2, w, h)


def visible_source_rect(geometry: Geometry, scale: float, pan_x: float, pan_y: float,
                        img_w: float, img_h: float, rotation: int) -> CropBox:
    """
    Region of the source image (unrotated pixel coordinates) shown in the crop box.

    This is exactly the content the export pipeline resamples.  Pan is
    clamped first, so the result always lies inside the image.
    """
    s = active_scale(scale, geometry)
    px, py = clamp_pan(pan_x, pan_y, geometry, scale)
    box = geometry.box
    # Box centre relative to the image centre, in rotated image pixels
    dx = -px / s
    dy = -py / s
    half_w = box.w / s / 2
    half_h = box.h / s / 2

    # Undo the rotation: map the rotated-frame offset back to source axes
    rot = normalize_rotation(rotation)
    if rot == 0:
        sx, sy, hw, hh = dx, dy, half_w, half_h
    elif rot == 90:
        sx, sy, hw, hh = dy, -dx, half_h, half_w
    elif rot == 180:
        sx, sy, hw, hh = -dx, -dy, half_w, half_h
    else:
        sx, sy, hw, hh = -dy, dx, half_h, half_w

    cx = img_w / 2 + sx
    cy = img_h / 2 + sy
    return CropBox(cx - hw, cy - hh, hw * 2, hh * 2)
