"""
Data models shared by the solver, the crop session and the renderers.

``ImageRecord`` is the encoded image handed over by collaborators and
returned on confirm.  ``TransformState`` is the only mutable structure:
the crop session owns it and the input controller mutates it through the
session.  ``CropBox``, ``Constraints`` and ``Geometry`` are derived values,
recomputed from their inputs and never stored on their own.
"""

import base64
import math
from dataclasses import dataclass, replace


# Sentinel aspect ratio: follow the (rotated) image's own aspect.
AUTO = "auto"


def normalize_rotation(degrees: int) -> int:
    """Quantize a rotation to 0/90/180/270. Raises ValueError for other angles."""
    if degrees % 90 != 0:
        raise ValueError(f"rotation must be a multiple of 90 degrees, got {degrees!r}")
    return int(degrees) % 360


def validate_aspect_ratio(aspect_ratio):
    """Return *aspect_ratio* unchanged if it is AUTO or a finite positive number."""
    if aspect_ratio == AUTO:
        return aspect_ratio
    if isinstance(aspect_ratio, bool) or not isinstance(aspect_ratio, (int, float)):
        raise ValueError(f"aspect ratio must be a number or AUTO, got {aspect_ratio!r}")
    if not math.isfinite(aspect_ratio) or aspect_ratio <= 0:
        raise ValueError(f"aspect ratio must be finite and positive or AUTO, got {aspect_ratio!r}")
    return float(aspect_ratio)


# =============================================================================
# Records exchanged with collaborators
# =============================================================================
@dataclass(frozen=True)
class ImageRecord:
    """Encoded image as passed in by (and returned to) the caller."""
    id: str
    data: bytes
    mime_type: str

    @classmethod
    def from_base64(cls, id: str, payload: str, mime_type: str) -> "ImageRecord":
        return cls(id=id, data=base64.b64decode(payload), mime_type=mime_type)

    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64()}"

    def with_payload(self, data: bytes, mime_type: str) -> "ImageRecord":
        """Return a copy carrying the same id with a new pixel payload."""
        return replace(self, data=data, mime_type=mime_type)


# =============================================================================
# Crop inputs
# =============================================================================
@dataclass(frozen=True)
class ViewportGeometry:
    """On-screen drawing surface size and the margin kept around the crop box."""
    width: float = 0
    height: float = 0
    padding: float = 20

    @property
    def is_measured(self) -> bool:
        return self.width > 0 and self.height > 0


@dataclass(frozen=True)
class CropSpec:
    """Requested aspect ratio (or AUTO) and quarter-turn rotation."""
    aspect_ratio: object = AUTO
    rotation: int = 0

    def __post_init__(self):
        object.__setattr__(self, "aspect_ratio", validate_aspect_ratio(self.aspect_ratio))
        object.__setattr__(self, "rotation", normalize_rotation(self.rotation))


@dataclass
class TransformState:
    """User transform: scale, pan offset (screen pixels) and rotation."""
    scale: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    rotation: int = 0

    @property
    def pan(self) -> tuple[float, float]:
        return self.pan_x, self.pan_y


# =============================================================================
# Derived values
# =============================================================================
@dataclass(frozen=True)
class CropBox:
    """Crop rectangle in viewport coordinates."""
    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.w / 2, self.y + self.h / 2

    @property
    def aspect(self) -> float:
        return self.w / self.h

    def contains(self, other: "CropBox", eps: float = 1e-6) -> bool:
        """True if *other* lies entirely inside this rectangle."""
        return (
            other.x >= self.x - eps
            and other.y >= self.y - eps
            and other.right <= self.right + eps
            and other.bottom <= self.bottom + eps
        )


@dataclass(frozen=True)
class Constraints:
    """Covering scale and pan limits for the current box and scale."""
    min_scale: float
    max_pan_x: float
    max_pan_y: float


@dataclass(frozen=True)
class Geometry:
    """Solver output: crop box, covering scale and rotated image size."""
    box: CropBox
    min_scale: float
    image_w: float  # effective (rotation-swapped) width
    image_h: float  # effective (rotation-swapped) height
