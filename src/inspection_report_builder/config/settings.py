"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    """
    Application configuration loaded from environment variables.

    All settings can be overridden via environment variables prefixed with INSPECT_
    For example: INSPECT_EXPORT_WORKERS=4
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="INSPECT_",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== Canvas =====
    max_view_width: int = 800
    max_view_height: int = 600
    zoom_step: float = 1.1
    min_annotation_size: float = 5.0  # logical units
    click_tolerance: float = 3.0  # screen px travel still counted as a click

    # ===== Export =====
    archive_folder: str = "annotated_images"
    export_workers: int = 1  # 1 = sequential, one full-res surface at a time
    background_workers: int = 2

    # ===== Report Layout (points) =====
    report_image_width_pt: float = 450.0
    report_location_image_width_pt: float = 190.0
    report_location_image_height_pt: float = 150.0

    # ===== Logging =====
    log_level: str = "INFO"
    log_json: bool = False

    # ===== Batch entrypoint =====
    session_file: Path | None = None
    work_dir: Path = Path("/tmp/inspection_report_work")

    def __init__(self, **kwargs):  # type: ignore
        super().__init__(**kwargs)
        # Ensure work directory exists
        self.work_dir.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
