"""
Qt-free image I/O utilities.

Decodes ``ImageRecord`` payloads (including PSD) into Pillow images,
builds records from files on disk, and writes exported records back out.
A record that fails to decode raises ``ImageDecodeError``; no crop
session may be opened without a decoded image.
"""

import hashlib
import io
import logging
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError
from psd_tools import PSDImage

from image_cropper.config import MIME_TYPES
from image_cropper.models import ImageRecord

logger = logging.getLogger(__name__)

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None

# Number of bytes read for fingerprinting (64 KB)
_FINGERPRINT_READ_SIZE = 65_536

_PSD_MIME_TYPES = {"image/vnd.adobe.photoshop", "image/x-photoshop", "application/x-photoshop"}
_PSD_SIGNATURE = b"8BPS"


class ImageDecodeError(ValueError):
    """The payload of an image record could not be decoded to a raster."""


def compute_fingerprint(data: bytes) -> str:
    """
    Compute a fast content fingerprint for an encoded image.

    Hashes the first 64 KB and combines it with the payload size to
    produce a truncated SHA-256 hex string: ``"{size_hex}_{hash16}"``.
    Used as the record id for images loaded from disk, so renamed or
    moved files keep the same id.
    """
    sha = hashlib.sha256()
    sha.update(data[:_FINGERPRINT_READ_SIZE])
    return f"{len(data):x}_{sha.hexdigest()[:16]}"


def _is_psd(record: ImageRecord) -> bool:
    return record.mime_type.lower() in _PSD_MIME_TYPES or record.data[:4] == _PSD_SIGNATURE


def _decode_psd(record: ImageRecord) -> Image.Image | None:
    # psd-tools has no single error type for corrupt files
    try:
        return PSDImage.open(io.BytesIO(record.data)).composite()
    except Exception as exc:
        raise ImageDecodeError(f"could not decode PSD image {record.id!r}: {exc}") from exc


def decode_image(record: ImageRecord) -> Image.Image:
    """
    Decode a record's payload into an RGB or RGBA Pillow image.

    EXIF orientation is applied so the raster matches what a browser
    would show.  Raises ImageDecodeError if the bytes are not an image.
    """
    if not record.data:
        raise ImageDecodeError(f"image {record.id!r} has an empty payload")
    if _is_psd(record):
        img = _decode_psd(record)
    else:
        try:
            img = Image.open(io.BytesIO(record.data))
            img.load()
            img = ImageOps.exif_transpose(img)
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise ImageDecodeError(f"could not decode image {record.id!r} ({record.mime_type}): {exc}") from exc

    if img is None:
        raise ImageDecodeError(f"image {record.id!r} has no pixel data")
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA" if "A" in img.getbands() or "transparency" in img.info else "RGB")
    logger.debug("Decoded %s: %dx%d %s", record.id, img.width, img.height, img.mode)
    return img


def guess_mime_type(path: Path) -> str:
    return MIME_TYPES.get(path.suffix.lower(), "application/octet-stream")


def load_record(path: Path) -> ImageRecord:
    """Read an image file into a record identified by its content fingerprint."""
    data = path.read_bytes()
    return ImageRecord(id=compute_fingerprint(data), data=data, mime_type=guess_mime_type(path))


def save_record(record: ImageRecord, out_path: Path) -> Path:
    """Write a record's payload to a unique path next to *out_path*."""
    out_path = unique_path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(record.data)
    logger.info("Wrote %s (%d bytes)", out_path, len(record.data))
    return out_path


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1
