"""
Cropper dialog — modal pan/zoom/rotate editor for one image.

Takes an encoded ``ImageRecord`` and a requested aspect ratio, returns the
cropped record via ``result_record()`` when accepted.  Cancelling returns
nothing; the caller keeps whatever it had before opening the dialog.
"""

import logging

from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QPushButton, QComboBox, QLabel, QWidget,
)
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QKeySequence, QShortcut

from image_cropper.config import CROP_RATIOS, EXPORT_TARGET_WIDTH, JPEG_QUALITY
from image_cropper.crop_widget import CropCanvasWidget
from image_cropper.export import export_crop
from image_cropper.image_io import decode_image
from image_cropper.models import AUTO, ImageRecord
from image_cropper.ratios import preset_index, preset_ratio
from image_cropper.session import CropSession

logger = logging.getLogger(__name__)


class ImageCropperDialog(QDialog):
    """Modal cropper: ratio selector, rotate buttons, canvas, cancel/apply."""

    confirmed = pyqtSignal(object)  # ImageRecord

    def __init__(self, record: ImageRecord, aspect_ratio=AUTO, parent: QWidget | None = None,
                 target_width: int = EXPORT_TARGET_WIDTH, quality: int = JPEG_QUALITY):
        super().__init__(parent)
        self.setWindowTitle("Edit image")
        self.setMinimumSize(640, 480)

        # Decode first: a record that cannot be decoded never gets a session
        self._record = record
        self._session = CropSession(decode_image(record), aspect_ratio)
        self._target_width = target_width
        self._quality = quality
        self._result: ImageRecord | None = None

        self._build_ui()
        self._select_ratio_in_combo(aspect_ratio)
        self._update_info()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        # Header: ratio selector
        header = QHBoxLayout()
        header.setContentsMargins(12, 8, 12, 8)
        header.addWidget(QLabel("Ratio:"))
        self._ratio_combo = QComboBox()
        for preset in CROP_RATIOS:
            self._ratio_combo.addItem(preset["name"], preset_ratio(preset))
        self._ratio_combo.currentIndexChanged.connect(self._on_ratio_selected)
        header.addWidget(self._ratio_combo)
        header.addStretch(1)
        self._info_label = QLabel("")
        self._info_label.setStyleSheet("color: #999;")
        header.addWidget(self._info_label)
        layout.addLayout(header)

        # Canvas
        self._canvas = CropCanvasWidget()
        self._canvas.transform_changed.connect(self._update_info)
        layout.addWidget(self._canvas, stretch=1)
        self._canvas.set_session(self._session)

        # Footer: rotate + cancel/apply
        footer = QHBoxLayout()
        footer.setContentsMargins(12, 8, 12, 12)
        self._btn_rotate_left = QPushButton("↺")
        self._btn_rotate_left.setToolTip("Rotate left (L)")
        self._btn_rotate_left.clicked.connect(self.rotate_left)
        footer.addWidget(self._btn_rotate_left)
        self._btn_rotate_right = QPushButton("↻")
        self._btn_rotate_right.setToolTip("Rotate right (R)")
        self._btn_rotate_right.clicked.connect(self.rotate_right)
        footer.addWidget(self._btn_rotate_right)
        footer.addStretch(1)

        self._btn_cancel = QPushButton("Cancel")
        self._btn_cancel.clicked.connect(self.reject)
        footer.addWidget(self._btn_cancel)
        self._btn_apply = QPushButton("Apply")
        self._btn_apply.setDefault(True)
        self._btn_apply.clicked.connect(self.confirm)
        footer.addWidget(self._btn_apply)
        layout.addLayout(footer)

        QShortcut(QKeySequence(Qt.Key.Key_L), self, self.rotate_left)
        QShortcut(QKeySequence(Qt.Key.Key_R), self, self.rotate_right)

    def _select_ratio_in_combo(self, aspect_ratio):
        idx = preset_index(aspect_ratio)
        if idx is None:
            # Ratio forced by the caller (e.g. a video frame shape)
            self._ratio_combo.addItem(f"Custom ({aspect_ratio:.3g})", aspect_ratio)
            idx = self._ratio_combo.count() - 1
        self._ratio_combo.blockSignals(True)
        self._ratio_combo.setCurrentIndex(idx)
        self._ratio_combo.blockSignals(False)

    # =========================================================================
    # Actions
    # =========================================================================

    def session(self) -> CropSession:
        return self._session

    def canvas(self) -> CropCanvasWidget:
        return self._canvas

    def _on_ratio_selected(self, idx: int):
        if idx < 0:
            return
        self._session.set_aspect_ratio(self._ratio_combo.itemData(idx))
        self._after_reset()

    def rotate_left(self):
        self._session.rotate_left()
        self._after_reset()

    def rotate_right(self):
        self._session.rotate_right()
        self._after_reset()

    def _after_reset(self):
        self._canvas.update()
        self._update_info()

    def _update_info(self):
        s = self._session
        if not s.has_geometry:
            self._info_label.setText("")
            return
        zoom = s.active_scale / s.geometry.min_scale
        self._info_label.setText(f"{s.state.rotation}°  ·  zoom {zoom:.2f}×")

    def confirm(self):
        """Export the crop and accept. A no-op without geometry."""
        record = export_crop(self._session, self._record, self._target_width, self._quality)
        if record is None:
            return
        self._result = record
        self.confirmed.emit(record)
        self.accept()

    def reject(self):
        logger.info("Crop of %s cancelled", self._record.id)
        super().reject()

    def result_record(self) -> ImageRecord | None:
        return self._result
