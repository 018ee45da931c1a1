"""
Application constants and configuration.

CROP_RATIOS lists the named aspect-ratio presets offered by the cropper
dialog.  All other constants control crop-editor behaviour, preview
styling, and export encoding.
"""

# =============================================================================
# APP IDENTITY
# =============================================================================
APP_NAME = "image-cropper"

# =============================================================================
# CROP RATIOS — Named presets shown in the ratio selector
# =============================================================================
# ``None`` means "Free": the crop box follows the image's own aspect ratio.
CROP_RATIOS = [
    {"name": "Free", "ratio_w": None, "ratio_h": None},
    {"name": "1:1", "ratio_w": 1, "ratio_h": 1},
    {"name": "16:9", "ratio_w": 16, "ratio_h": 9},
    {"name": "9:16", "ratio_w": 9, "ratio_h": 16},
    {"name": "4:3", "ratio_w": 4, "ratio_h": 3},
    {"name": "3:4", "ratio_w": 3, "ratio_h": 4},
]

# =============================================================================
# CROP EDITOR
# =============================================================================
# Margin between the viewport edge and the crop box (screen pixels)
VIEWPORT_PADDING = 20

# Upper bound for the user scale; the lower bound is the covering scale
MAX_SCALE = 10.0

# Scale delta per wheel unit (Qt reports 120 units per notch)
WHEEL_SENSITIVITY = 0.001

# Minimum widget size for the crop canvas
CANVAS_MIN_W = 400
CANVAS_MIN_H = 300

# Preview colours (RGBA tuples)
PREVIEW_BACKGROUND = (2, 6, 23, 255)
PREVIEW_OVERLAY = (0, 0, 0, 217)
PREVIEW_BORDER = (255, 255, 255, 255)
PREVIEW_GRID = (255, 255, 255, 102)
PREVIEW_BORDER_WIDTH = 2
PREVIEW_GRID_WIDTH = 1

# =============================================================================
# EXPORT
# =============================================================================
# Output width in pixels; height follows the crop box aspect ratio
EXPORT_TARGET_WIDTH = 1500
EXPORT_BACKGROUND = (0, 0, 0, 255)

EXPORT_FORMAT = "JPEG"
EXPORT_MIME_TYPE = "image/jpeg"
JPEG_QUALITY = 95
JPEG_QUALITY_MIN = 1
JPEG_QUALITY_MAX = 100

# Supported image extensions for the file picker
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".tiff", ".tif", ".webp", ".gif", ".psd"}

# MIME types by extension, for records loaded from disk
MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".bmp": "image/bmp",
    ".tiff": "image/tiff",
    ".tif": "image/tiff",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".psd": "image/vnd.adobe.photoshop",
}
