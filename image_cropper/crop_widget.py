"""
Interactive crop canvas widget and the QPainter rendering backend.

This module contains everything that touches both Qt **and** image display:
``pil_to_qimage``, the ``QPainterBackend`` that executes render commands
on a ``QPainter``, and the ``CropCanvasWidget`` that feeds mouse, touch
and wheel input into an ``InputController``.
"""

from PIL import Image
from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QEvent, QPointF, QRectF, pyqtSignal
from PyQt6.QtGui import (
    QPainter, QColor, QPen, QImage,
    QMouseEvent, QPaintEvent, QResizeEvent, QTouchEvent, QWheelEvent,
)

from image_cropper.config import CANVAS_MIN_W, CANVAS_MIN_H, PREVIEW_BACKGROUND, VIEWPORT_PADDING
from image_cropper.input_controller import InputController, PointerEvent, PRESS, MOVE, RELEASE, CANCEL, TOUCH
from image_cropper.models import CropBox, ViewportGeometry
from image_cropper.render import (
    Clear, DrawImage, FillRect, Line, PopClip, PushClip, StrokeRect, session_preview_commands,
)

# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qimage(pil_img: Image.Image) -> QImage:
    """Convert a PIL Image to a QImage that owns its pixel data."""
    img_rgba = pil_img.convert("RGBA")
    data = img_rgba.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgba.width, img_rgba.height, QImage.Format.Format_RGBA8888)
    return qimg.copy()


def _qcolor(rgba: tuple[int, int, int, int]) -> QColor:
    return QColor(*rgba)


def _qrect(rect: CropBox) -> QRectF:
    return QRectF(rect.x, rect.y, rect.w, rect.h)


# =============================================================================
# QPainter backend
# =============================================================================

class QPainterBackend:
    """Executes render commands on a QPainter."""

    def __init__(self, painter: QPainter, width: float, height: float):
        self._painter = painter
        self._width = width
        self._height = height

    def execute(self, commands: list, source: QImage | None = None):
        p = self._painter
        for cmd in commands:
            if isinstance(cmd, Clear):
                p.setCompositionMode(QPainter.CompositionMode.CompositionMode_Source)
                p.fillRect(QRectF(0, 0, self._width, self._height), _qcolor(cmd.color))
                p.setCompositionMode(QPainter.CompositionMode.CompositionMode_SourceOver)
            elif isinstance(cmd, PushClip):
                p.save()
                p.setClipRect(_qrect(cmd.rect), Qt.ClipOperation.IntersectClip)
            elif isinstance(cmd, PopClip):
                p.restore()
            elif isinstance(cmd, DrawImage):
                if source is None:
                    continue
                p.save()
                p.translate(cmd.cx, cmd.cy)
                p.rotate(cmd.rotation)
                p.scale(cmd.scale, cmd.scale)
                p.drawImage(QPointF(-source.width() / 2, -source.height() / 2), source)
                p.restore()
            elif isinstance(cmd, FillRect):
                p.fillRect(_qrect(cmd.rect), _qcolor(cmd.color))
            elif isinstance(cmd, StrokeRect):
                p.setPen(QPen(_qcolor(cmd.color), cmd.width))
                p.setBrush(Qt.BrushStyle.NoBrush)
                p.drawRect(_qrect(cmd.rect))
            elif isinstance(cmd, Line):
                p.setPen(QPen(_qcolor(cmd.color), cmd.width))
                p.drawLine(QPointF(cmd.x1, cmd.y1), QPointF(cmd.x2, cmd.y2))
            else:
                raise TypeError(f"unknown draw command {cmd!r}")


# =============================================================================
# Crop Canvas Widget — pan/zoom the image under a fixed crop box
# =============================================================================

class CropCanvasWidget(QWidget):
    """Widget that shows the crop preview and turns input into pan and zoom."""

    transform_changed = pyqtSignal()

    def __init__(self, parent=None, padding: int = VIEWPORT_PADDING):
        super().__init__(parent)
        self.setMinimumSize(CANVAS_MIN_W, CANVAS_MIN_H)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents, True)
        self.setCursor(Qt.CursorShape.SizeAllCursor)

        self._padding = padding
        self._session = None
        self._controller = InputController(None)
        self._qimage: QImage | None = None

    # --- Session ---

    def set_session(self, session):
        """Attach a crop session (or None) and size it to this widget."""
        self._session = session
        self._controller.set_session(session)
        self._qimage = pil_to_qimage(session.image) if session is not None else None
        if session is not None:
            session.set_viewport(self.viewport_geometry())
        self.update()

    def session(self):
        return self._session

    def controller(self) -> InputController:
        return self._controller

    def viewport_geometry(self) -> ViewportGeometry:
        return ViewportGeometry(self.width(), self.height(), self._padding)

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        commands = session_preview_commands(self._session) if self._session is not None else []
        if not commands:
            # Nothing to solve yet (no image or not laid out): background only
            painter.fillRect(self.rect(), _qcolor(PREVIEW_BACKGROUND))
            painter.end()
            return

        QPainterBackend(painter, self.width(), self.height()).execute(commands, self._qimage)
        painter.end()

    def resizeEvent(self, event: QResizeEvent):
        if self._session is not None:
            self._session.set_viewport(self.viewport_geometry())
        super().resizeEvent(event)

    # --- Mouse interaction ---

    def _dispatch(self, event: PointerEvent):
        if self._controller.handle_pointer(event):
            self.transform_changed.emit()
            self.update()

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton:
            return
        pos = event.position()
        self._dispatch(PointerEvent(PRESS, pos.x(), pos.y()))

    def mouseMoveEvent(self, event: QMouseEvent):
        pos = event.position()
        self._dispatch(PointerEvent(MOVE, pos.x(), pos.y()))

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton:
            pos = event.position()
            self._dispatch(PointerEvent(RELEASE, pos.x(), pos.y()))

    def leaveEvent(self, event):
        self._controller.release()
        super().leaveEvent(event)

    def wheelEvent(self, event: QWheelEvent):
        # Qt reports scroll-up as positive; the controller expects scroll-down positive
        if self._controller.wheel(-event.angleDelta().y()):
            self.transform_changed.emit()
            self.update()
        event.accept()

    # --- Touch interaction ---

    def event(self, event: QEvent) -> bool:
        etype = event.type()
        if etype in (QEvent.Type.TouchBegin, QEvent.Type.TouchUpdate,
                     QEvent.Type.TouchEnd, QEvent.Type.TouchCancel):
            self._handle_touch(event)
            event.accept()
            return True
        return super().event(event)

    def _handle_touch(self, event: QTouchEvent):
        points = event.points()
        etype = event.type()
        if etype == QEvent.Type.TouchCancel:
            kind = CANCEL
        elif etype == QEvent.Type.TouchEnd:
            kind = RELEASE
        elif etype == QEvent.Type.TouchBegin:
            kind = PRESS
        else:
            kind = MOVE
        if points:
            pos = points[0].position()
            x, y = pos.x(), pos.y()
        else:
            x = y = 0.0
        count = len(points) if kind not in (RELEASE, CANCEL) else 1
        self._dispatch(PointerEvent(kind, x, y, source=TOUCH, touch_count=count))
