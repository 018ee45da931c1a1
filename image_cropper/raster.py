"""
Off-screen rendering backend built on Pillow.

``PillowCanvas`` executes the draw commands from ``render`` on an RGBA
image.  It backs the export pipeline and lets the preview be rendered
without a display.  The canvas keeps no state between frames other than
its pixels, and ``Clear`` resets those.

This module is Qt-free and needs no display.
"""

import logging

from PIL import Image, ImageDraw

from image_cropper.models import CropBox
from image_cropper.render import Clear, DrawImage, FillRect, Line, PopClip, PushClip, StrokeRect

logger = logging.getLogger(__name__)

# Exact cosine/sine for the four quarter turns
_QUARTER_TURN_TRIG = {0: (1, 0), 90: (0, 1), 180: (-1, 0), 270: (0, -1)}


def affine_inverse(draw: DrawImage, img_w: int, img_h: int) -> tuple[float, ...]:
    """
    Pillow AFFINE coefficients mapping canvas pixels back to source pixels.

    The forward transform is translate(cx, cy) · rotate · scale ·
    translate(-w/2, -h/2); Pillow wants its inverse, row-major.
    """
    cos, sin = _QUARTER_TURN_TRIG[draw.rotation % 360]
    inv = 1.0 / draw.scale
    a, b = cos * inv, sin * inv
    d, e = -sin * inv, cos * inv
    c = img_w / 2 - (a * draw.cx + b * draw.cy)
    f = img_h / 2 - (d * draw.cx + e * draw.cy)
    return (a, b, c, d, e, f)


def _pixel_box(rect: CropBox) -> tuple[int, int, int, int]:
    return (round(rect.x), round(rect.y), round(rect.right), round(rect.bottom))


class PillowCanvas:
    """RGBA drawing surface that executes render commands."""

    def __init__(self, width: int, height: int, resample=Image.Resampling.BICUBIC):
        if width <= 0 or height <= 0:
            raise ValueError(f"canvas size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._resample = resample
        self._image = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        self._clips: list[tuple[int, int, int, int]] = []

    @property
    def image(self) -> Image.Image:
        return self._image

    def execute(self, commands: list, source: Image.Image | None = None) -> Image.Image:
        """Run *commands* in order and return the canvas image."""
        for cmd in commands:
            if isinstance(cmd, Clear):
                self._image = Image.new("RGBA", (self.width, self.height), cmd.color)
                self._clips = []
            elif isinstance(cmd, PushClip):
                self._clips.append(self._intersect(_pixel_box(cmd.rect)))
            elif isinstance(cmd, PopClip):
                self._clips.pop()
            elif isinstance(cmd, DrawImage):
                if source is None:
                    raise ValueError("DrawImage command needs a source image")
                self._draw_image(cmd, source)
            elif isinstance(cmd, FillRect):
                layer, draw = self._layer()
                x0, y0, x1, y1 = _pixel_box(cmd.rect)
                if x1 > x0 and y1 > y0:
                    draw.rectangle((x0, y0, x1 - 1, y1 - 1), fill=cmd.color)
                self._composite(layer)
            elif isinstance(cmd, StrokeRect):
                layer, draw = self._layer()
                x0, y0, x1, y1 = _pixel_box(cmd.rect)
                draw.rectangle((x0, y0, x1 - 1, y1 - 1), outline=cmd.color, width=cmd.width)
                self._composite(layer)
            elif isinstance(cmd, Line):
                layer, draw = self._layer()
                draw.line((cmd.x1, cmd.y1, cmd.x2, cmd.y2), fill=cmd.color, width=cmd.width)
                self._composite(layer)
            else:
                raise TypeError(f"unknown draw command {cmd!r}")
        return self._image

    # --- Internals ---

    def _intersect(self, box: tuple[int, int, int, int]) -> tuple[int, int, int, int]:
        x0, y0, x1, y1 = box
        cx0, cy0, cx1, cy1 = self._clips[-1] if self._clips else (0, 0, self.width, self.height)
        return (max(x0, cx0), max(y0, cy0), min(x1, cx1), min(y1, cy1))

    def _layer(self) -> tuple[Image.Image, ImageDraw.ImageDraw]:
        layer = Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))
        return layer, ImageDraw.Draw(layer)

    def _composite(self, layer: Image.Image):
        """Alpha-composite *layer* onto the canvas, honouring the current clip."""
        if not self._clips:
            self._image.alpha_composite(layer)
            return
        x0, y0, x1, y1 = self._clips[-1]
        if x1 <= x0 or y1 <= y0:
            return
        self._image.alpha_composite(layer.crop((x0, y0, x1, y1)), dest=(x0, y0))

    def _draw_image(self, cmd: DrawImage, source: Image.Image):
        if cmd.scale <= 0:
            logger.debug("Skipping image draw at non-positive scale %s", cmd.scale)
            return
        src = source if source.mode == "RGBA" else source.convert("RGBA")
        layer = src.transform(
            (self.width, self.height),
            Image.Transform.AFFINE,
            affine_inverse(cmd, src.width, src.height),
            resample=self._resample,
            fillcolor=(0, 0, 0, 0),
        )
        self._composite(layer)
