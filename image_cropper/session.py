"""
Crop session: the owned transform state and its clamping rules.

A ``CropSession`` lives for exactly one open cropper.  It holds the decoded
source image (read-only), the requested ``CropSpec``, the measured
``ViewportGeometry`` and the single mutable ``TransformState``.  Every
mutator ends in ``recompute()``, which re-runs the solver and re-clamps
scale and pan, so the state is valid after each call.

Changing the aspect ratio, the rotation or the image deliberately resets
the transform to a centred, fully-covering state instead of trying to
keep the previous framing.
"""

import logging

from PIL import Image

from image_cropper import geometry as geo
from image_cropper.config import MAX_SCALE, VIEWPORT_PADDING
from image_cropper.models import (
    AUTO, Constraints, CropSpec, Geometry, TransformState, ViewportGeometry,
    normalize_rotation, validate_aspect_ratio,
)

logger = logging.getLogger(__name__)


class CropSession:
    """Transform state for one image being cropped."""

    def __init__(self, image: Image.Image, aspect_ratio=AUTO,
                 viewport: ViewportGeometry | None = None, max_scale: float = MAX_SCALE):
        self._image = image
        self._spec = CropSpec(aspect_ratio=aspect_ratio, rotation=0)
        self._viewport = viewport or ViewportGeometry(0, 0, VIEWPORT_PADDING)
        self._max_scale = max_scale
        self._state = TransformState()
        self._geometry: Geometry | None = None
        self.reset()
        logger.info(
            "Crop session opened: %dx%d image, ratio %s",
            image.width, image.height, self._spec.aspect_ratio,
        )

    # --- Read-only views ---

    @property
    def image(self) -> Image.Image:
        return self._image

    @property
    def spec(self) -> CropSpec:
        return self._spec

    @property
    def viewport(self) -> ViewportGeometry:
        return self._viewport

    @property
    def state(self) -> TransformState:
        return self._state

    @property
    def geometry(self) -> Geometry | None:
        return self._geometry

    @property
    def has_geometry(self) -> bool:
        return self._geometry is not None

    @property
    def max_scale(self) -> float:
        return self._max_scale

    @property
    def active_scale(self) -> float:
        if self._geometry is None:
            return self._state.scale
        return geo.active_scale(self._state.scale, self._geometry)

    @property
    def constraints(self) -> Constraints | None:
        if self._geometry is None:
            return None
        return geo.constraints(self._geometry, self._state.scale)

    @property
    def clamped_pan(self) -> tuple[float, float]:
        if self._geometry is None:
            return self._state.pan
        return geo.clamp_pan(self._state.pan_x, self._state.pan_y, self._geometry, self._state.scale)

    def visible_source_rect(self):
        """Crop region in source-image pixels, or None without geometry."""
        if self._geometry is None:
            return None
        return geo.visible_source_rect(
            self._geometry, self._state.scale, self._state.pan_x, self._state.pan_y,
            self._image.width, self._image.height, self._state.rotation,
        )

    # --- Recompute / reset ---

    def recompute(self) -> Geometry | None:
        """Re-run the solver and re-clamp scale and pan against its output."""
        self._geometry = geo.solve(
            self._viewport, self._image.width, self._image.height,
            self._spec.rotation, self._spec.aspect_ratio,
        )
        if self._geometry is None:
            logger.debug("No crop geometry for viewport %s", self._viewport)
            return None
        s = self._state
        s.scale = min(max(s.scale, self._geometry.min_scale), max(self._max_scale, self._geometry.min_scale))
        s.pan_x, s.pan_y = geo.clamp_pan(s.pan_x, s.pan_y, self._geometry, s.scale)
        return self._geometry

    def reset(self):
        """Centre the image at its covering scale."""
        self._state.rotation = self._spec.rotation
        self._state.pan_x = 0.0
        self._state.pan_y = 0.0
        self._geometry = geo.solve(
            self._viewport, self._image.width, self._image.height,
            self._spec.rotation, self._spec.aspect_ratio,
        )
        if self._geometry is not None:
            self._state.scale = self._geometry.min_scale
        else:
            # 0.0 marks "not yet solved"; recompute() raises it to min_scale
            # once the viewport is measured
            self._state.scale = 0.0

    # --- Spec changes (reset policy) ---

    def set_aspect_ratio(self, aspect_ratio):
        self._spec = CropSpec(aspect_ratio=validate_aspect_ratio(aspect_ratio), rotation=self._spec.rotation)
        self.reset()

    def set_rotation(self, degrees: int):
        self._spec = CropSpec(aspect_ratio=self._spec.aspect_ratio, rotation=normalize_rotation(degrees))
        self.reset()

    def rotate_left(self):
        self.set_rotation(self._spec.rotation - 90)

    def rotate_right(self):
        self.set_rotation(self._spec.rotation + 90)

    def set_image(self, image: Image.Image):
        """Replace the source image; rotation, scale and pan start over."""
        self._image = image
        self._spec = CropSpec(aspect_ratio=self._spec.aspect_ratio, rotation=0)
        self.reset()

    # --- Viewport ---

    def set_viewport(self, viewport: ViewportGeometry):
        """Adopt a new surface size, keeping the user's scale and pan where still valid."""
        self._viewport = viewport
        if self._geometry is None:
            # Coming back from an unmeasured surface: restart at the covering
            # scale, and let recompute() clamp pan against that scale.
            self._state.scale = 0.0
        self.recompute()

    # --- User transform ---

    def zoom_by(self, delta: float) -> bool:
        """Add *delta* to the scale, bounded by [min_scale, max_scale]."""
        return self._mutate(scale=self._state.scale + delta)

    def set_scale(self, scale: float) -> bool:
        return self._mutate(scale=scale)

    def pan_to(self, pan_x: float, pan_y: float) -> bool:
        """Move the image to *pan*, clamped so the crop box stays covered."""
        return self._mutate(pan=(pan_x, pan_y))

    def _mutate(self, scale: float | None = None, pan: tuple[float, float] | None = None) -> bool:
        """Apply a user change, re-clamp, and report whether the state moved."""
        if self._geometry is None:
            return False
        s = self._state
        before = (s.scale, s.pan_x, s.pan_y)
        if scale is not None:
            s.scale = scale
        if pan is not None:
            s.pan_x, s.pan_y = pan
        self.recompute()
        return before != (s.scale, s.pan_x, s.pan_y)
