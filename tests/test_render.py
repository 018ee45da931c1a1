"""Tests for the preview draw-command pipeline and the Pillow backend."""

import pytest
from PIL import Image

from conftest import solid
from image_cropper.models import CropBox, ViewportGeometry
from image_cropper.raster import PillowCanvas, affine_inverse
from image_cropper.render import (
    Clear, DrawImage, FillRect, Line, PopClip, PushClip, StrokeRect,
    overlay_bands, preview_commands, session_preview_commands,
)
from image_cropper.session import CropSession


@pytest.fixture
def small_session():
    """100×100 red image in a 200×150 viewport: box is 110×110 at (45, 20)."""
    return CropSession(solid(100, 100, (255, 0, 0)), aspect_ratio=1, viewport=ViewportGeometry(200, 150, 20))


def _render(session):
    canvas = PillowCanvas(int(session.viewport.width), int(session.viewport.height))
    return canvas.execute(session_preview_commands(session), session.image)


def test_command_sequence(square_session):
    cmds = session_preview_commands(square_session)

    assert isinstance(cmds[0], Clear)
    assert isinstance(cmds[1], PushClip)
    assert isinstance(cmds[2], DrawImage)
    assert isinstance(cmds[3], PopClip)
    assert [type(c) for c in cmds[4:8]] == [FillRect] * 4
    assert isinstance(cmds[8], StrokeRect)
    assert [type(c) for c in cmds[9:]] == [Line] * 4
    assert cmds[1].rect == square_session.geometry.box


def test_image_is_placed_at_box_center_plus_clamped_pan(square_session):
    square_session.set_scale(1.0)
    square_session.pan_to(50, -9999)

    draw = session_preview_commands(square_session)[2]
    c = square_session.constraints

    assert (draw.cx, draw.cy) == pytest.approx((400 + 50, 300 - c.max_pan_y))
    assert draw.scale == pytest.approx(1.0)
    assert draw.rotation == 0


def test_draw_uses_active_scale_even_if_state_is_below_min(square_session):
    square_session.state.scale = 0.01  # bypassing the mutators

    draw = session_preview_commands(square_session)[2]

    assert draw.scale == pytest.approx(square_session.geometry.min_scale)


def test_no_geometry_means_no_commands(tall_image):
    session = CropSession(tall_image)

    assert session_preview_commands(session) == []
    assert preview_commands(ViewportGeometry(0, 0), None, session.state) == []


def test_overlay_bands_cover_everything_outside_box(square_session):
    vp = square_session.viewport
    box = square_session.geometry.box
    bands = overlay_bands(vp, box)

    total = sum(b.w * b.h for b in bands) + box.w * box.h
    assert total == pytest.approx(vp.width * vp.height)


def test_thirds_grid_splits_box(square_session):
    box = square_session.geometry.box
    lines = [c for c in session_preview_commands(square_session) if isinstance(c, Line)]

    xs = sorted(ln.x1 for ln in lines if ln.x1 == ln.x2)
    ys = sorted(ln.y1 for ln in lines if ln.y1 == ln.y2)
    assert xs == pytest.approx([box.x + box.w / 3, box.x + 2 * box.w / 3])
    assert ys == pytest.approx([box.y + box.h / 3, box.y + 2 * box.h / 3])


def test_identical_state_renders_identical_frames(square_session):
    square_session.set_scale(1.3)
    square_session.pan_to(-40, 90)

    first = _render(square_session)
    second = _render(square_session)

    assert first.tobytes() == second.tobytes()


def test_pillow_preview_shows_image_inside_box_and_dims_outside(small_session):
    frame = _render(small_session)

    assert frame.size == (200, 150)
    r, g, b, _ = frame.getpixel((100, 75))
    assert r > 240 and g < 15 and b < 15
    # Outside the box: dark background under the overlay
    assert max(frame.getpixel((5, 5))[:3]) < 10
    # Border
    assert frame.getpixel((45, 75))[:3] == (255, 255, 255)


def test_image_does_not_bleed_outside_clip(small_session):
    small_session.set_scale(3.0)  # image far larger than the viewport
    frame = _render(small_session)

    # Left band stays dark though the scaled image extends under it
    r, g, b, _ = frame.getpixel((10, 75))
    assert r < 10


def test_affine_inverse_maps_placement_center_to_image_center():
    draw = DrawImage(cx=300, cy=200, rotation=90, scale=2.0)
    a, b, c, d, e, f = affine_inverse(draw, 80, 40)

    assert (a * 300 + b * 200 + c, d * 300 + e * 200 + f) == pytest.approx((40, 20))
    # One canvas pixel to the right is half a source pixel "up" after a 90° turn
    assert (a * 301 + b * 200 + c, d * 301 + e * 200 + f) == pytest.approx((40, 19.5))


def test_canvas_rejects_empty_size():
    with pytest.raises(ValueError):
        PillowCanvas(0, 10)


def test_draw_image_without_source_raises():
    canvas = PillowCanvas(10, 10)
    with pytest.raises(ValueError):
        canvas.execute([DrawImage(5, 5, 0, 1.0)])


def test_clear_resets_previous_frame():
    canvas = PillowCanvas(4, 4)
    canvas.execute([Clear((10, 20, 30, 255)), FillRect(CropBox(0, 0, 4, 4), (255, 255, 255, 255))])
    img = canvas.execute([Clear((10, 20, 30, 255))])

    assert isinstance(img, Image.Image)
    assert img.getpixel((2, 2)) == (10, 20, 30, 255)

