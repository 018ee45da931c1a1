"""
Input controller: turns pointer and wheel input into session changes.

Mouse drag and single-finger touch drag are the same pan gesture.  The
drag anchor is captured on press as ``pointer - pan``, so while the
pointer is down the pan follows it 1:1; release freezes the state.
Touches with more than one finger are ignored.  Wheel ticks map to an
additive scale change through a fixed sensitivity.

Events are plain ``PointerEvent`` values so the controller can be driven
by Qt handlers or by tests alike.
"""

import logging
from dataclasses import dataclass

from image_cropper.config import WHEEL_SENSITIVITY

logger = logging.getLogger(__name__)

PRESS = "press"
MOVE = "move"
RELEASE = "release"
CANCEL = "cancel"

MOUSE = "mouse"
TOUCH = "touch"


@dataclass(frozen=True)
class PointerEvent:
    """One pointer sample in viewport coordinates."""
    kind: str
    x: float
    y: float
    source: str = MOUSE
    touch_count: int = 1


class InputController:
    """Routes normalized input to a ``CropSession``."""

    def __init__(self, session, wheel_sensitivity: float = WHEEL_SENSITIVITY):
        self._session = session
        self._wheel_sensitivity = wheel_sensitivity
        self._dragging = False
        self._anchor_x = 0.0
        self._anchor_y = 0.0

    @property
    def session(self):
        return self._session

    @property
    def is_dragging(self) -> bool:
        return self._dragging

    def set_session(self, session):
        self._session = session
        self._dragging = False

    def handle_pointer(self, event: PointerEvent) -> bool:
        """Dispatch a pointer event. Returns True when the transform changed."""
        if event.source == TOUCH and event.touch_count != 1:
            if self._dragging:
                logger.debug("Multi-touch (%d points) ends the drag", event.touch_count)
                self._dragging = False
            return False
        if event.kind == PRESS:
            return self.press(event.x, event.y)
        if event.kind == MOVE:
            return self.move(event.x, event.y)
        if event.kind in (RELEASE, CANCEL):
            self.release()
            return False
        raise ValueError(f"unknown pointer event kind {event.kind!r}")

    def press(self, x: float, y: float) -> bool:
        if self._session is None or not self._session.has_geometry:
            return False
        pan_x, pan_y = self._session.state.pan
        self._anchor_x = x - pan_x
        self._anchor_y = y - pan_y
        self._dragging = True
        return False

    def move(self, x: float, y: float) -> bool:
        if not self._dragging or self._session is None:
            return False
        return self._session.pan_to(x - self._anchor_x, y - self._anchor_y)

    def release(self):
        self._dragging = False

    def wheel(self, delta_y: float) -> bool:
        """Zoom by a wheel delta; negative deltas (scroll up) zoom in."""
        if self._session is None:
            return False
        return self._session.zoom_by(-delta_y * self._wheel_sensitivity)
