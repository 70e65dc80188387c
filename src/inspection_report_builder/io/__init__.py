"""I/O layer for image bytes and JSON files."""

from .image_loader import decode_image, encode_png, read_image_source, load_image_file, save_bytes
from .json_handler import load_session_manifest

__all__ = [
    "decode_image",
    "encode_png",
    "read_image_source",
    "load_image_file",
    "save_bytes",
    "load_session_manifest",
]
