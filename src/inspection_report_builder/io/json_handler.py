"""JSON file handling utilities."""

import json
from pathlib import Path

from pydantic import ValidationError

from ..models.session import SessionManifest
from ..utils.logger import get_logger
from ..utils.exceptions import InvalidInputError

logger = get_logger(__name__)


def load_session_manifest(path: Path) -> SessionManifest:
    """
    Load and parse a session manifest file.

    Args:
        path: Path to the manifest JSON

    Returns:
        Parsed SessionManifest with paths resolved against the manifest directory

    Raises:
        InvalidInputError: If file is invalid or missing
    """
    logger.info(f"Loading session manifest from {path}")

    try:
        manifest = SessionManifest.from_json_file(Path(path))
        logger.info(
            f"Loaded manifest: {len(manifest.visual)} visual, "
            f"{len(manifest.infrared)} infrared, {len(manifest.hyperspectral)} hyperspectral"
        )
        return manifest
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        error_msg = f"Failed to load session manifest from {path}: {e}"
        logger.error(error_msg)
        raise InvalidInputError(error_msg) from e
