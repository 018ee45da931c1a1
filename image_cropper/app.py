"""
Application entry point and dark-theme stylesheet.

Opens one image (from the command line or a file picker) in the cropper
dialog and writes the confirmed crop next to it as ``<name>-cropped.jpg``.

Usage:
    python -m image_cropper [IMAGE]
    image-cropper [IMAGE]          (after pip install)
"""

import logging
import sys
from pathlib import Path

from PyQt6.QtWidgets import QApplication, QFileDialog, QMessageBox, QDialog

from image_cropper.config import APP_NAME, IMAGE_EXTENSIONS
from image_cropper.cropper_dialog import ImageCropperDialog
from image_cropper.image_io import ImageDecodeError, load_record, save_record

logger = logging.getLogger(__name__)

DARK_STYLESHEET = """
    QDialog { background: #0f172a; }
    QWidget { background: #1e293b; color: #ddd; font-size: 10pt; }
    QComboBox { background: #334155; border: 1px solid #475569; border-radius: 4px; padding: 4px 8px; }
    QPushButton { background: #334155; border: 1px solid #475569; border-radius: 6px; padding: 6px 14px; }
    QPushButton:hover { background: #475569; }
    QPushButton:pressed { background: #1e293b; }
    QPushButton:default { background: #2563eb; border-color: #3b82f6; font-weight: bold; }
    QPushButton:disabled { color: #666; }
"""


def _pick_image() -> Path | None:
    patterns = " ".join(f"*{ext}" for ext in sorted(IMAGE_EXTENSIONS))
    filename, _ = QFileDialog.getOpenFileName(None, "Open image", "", f"Images ({patterns})")
    return Path(filename) if filename else None


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setStyleSheet(DARK_STYLESHEET)

    path = Path(sys.argv[1]) if len(sys.argv) > 1 else _pick_image()
    if path is None:
        return

    try:
        record = load_record(path)
        dialog = ImageCropperDialog(record)
    except (OSError, ImageDecodeError) as e:
        logger.error("Cannot open %s: %s", path, e)
        QMessageBox.critical(None, "Cannot open image", str(e))
        sys.exit(1)

    dialog.resize(1280, 860)
    if dialog.exec() == QDialog.DialogCode.Accepted and dialog.result_record() is not None:
        save_record(dialog.result_record(), path.with_name(f"{path.stem}-cropped.jpg"))
    else:
        logger.info("Crop cancelled, nothing written")


if __name__ == "__main__":
    main()
