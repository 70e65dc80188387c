"""Image decoding/encoding utilities for uploaded photos and plans."""

import mimetypes
from pathlib import Path

import cv2
import numpy as np

from ..models.image import ImageSource
from ..utils.logger import get_logger
from ..utils.exceptions import DecodeFailure, ImageProcessingError

logger = get_logger(__name__)


def guess_content_type(name: str) -> str | None:
    """Guess a MIME type from a file name."""
    content_type, _ = mimetypes.guess_type(name)
    return content_type


def is_image_source(source: ImageSource) -> bool:
    """
    Check whether an upload claims to be an image.

    Only the declared (or name-derived) MIME type is checked; the bytes
    themselves are validated when decoding.
    """
    content_type = source.content_type or guess_content_type(source.name)
    return bool(content_type) and content_type.startswith("image/")


def decode_image(data: bytes, name: str = "<bytes>") -> np.ndarray:
    """
    Decode raw file bytes into a BGR raster.

    Args:
        data: Encoded image bytes (PNG, JPEG, TIFF, ...)
        name: File name, for log messages

    Returns:
        Image as numpy array in BGR format

    Raises:
        DecodeFailure: If the bytes are not a readable raster
    """
    try:
        buffer = np.frombuffer(data, dtype=np.uint8)
        if buffer.size == 0:
            raise ValueError("empty file")
        img = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
        if img is None:
            raise ValueError("unsupported or corrupt image data")
        logger.debug(f"Decoded {name}: {img.shape[1]}x{img.shape[0]} pixels")
        return img
    except Exception as e:
        error_msg = f"Failed to decode image {name}: {e}"
        logger.warning(error_msg)
        raise DecodeFailure(error_msg) from e


def encode_png(img: np.ndarray, compression: int = 6) -> bytes:
    """
    Encode a BGR raster as lossless PNG bytes.

    Raises:
        ImageProcessingError: If encoding fails
    """
    try:
        ok, encoded = cv2.imencode(".png", img, [cv2.IMWRITE_PNG_COMPRESSION, compression])
        if not ok:
            raise ValueError("cv2.imencode returned failure")
        return encoded.tobytes()
    except Exception as e:
        error_msg = f"Failed to encode PNG: {e}"
        logger.error(error_msg)
        raise ImageProcessingError(error_msg) from e


def read_image_source(path: Path) -> ImageSource:
    """Read a file from disk into an upload record."""
    logger.debug(f"Reading image source {path}")
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        error_msg = f"Failed to read image file {path}: {e}"
        logger.error(error_msg)
        raise DecodeFailure(error_msg) from e
    return ImageSource(name=Path(path).name, data=data, content_type=guess_content_type(str(path)))


def load_image_file(path: Path) -> np.ndarray:
    """Read and decode an image file in one step."""
    source = read_image_source(path)
    return decode_image(source.data, source.name)


def save_bytes(data: bytes, path: Path) -> Path:
    """
    Write an artifact to disk.

    Raises:
        ImageProcessingError: If writing fails
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug(f"Saved {len(data) / 1_000:.1f} KB to {path}")
        return path
    except OSError as e:
        error_msg = f"Failed to save {path}: {e}"
        logger.error(error_msg)
        raise ImageProcessingError(error_msg) from e
