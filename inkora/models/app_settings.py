"""Application settings model."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from inkora.utils.constants import (
    APP_DATA_DIR,
    DEFAULT_OUTPUT_QUALITY,
    DEFAULT_PREVIEW_QUALITY,
    HANDLE_TOLERANCE,
    MAX_BATCH_ROWS,
    MAX_CSV_FILE_SIZE,
    MIN_BOX_SIZE,
    YIELD_DELAY_SECONDS,
    YIELD_EVERY_ROWS,
)


class Settings(BaseSettings):
    """Application settings.

    Loaded from ``INKORA_``-prefixed environment variables and a ``.env`` file.

    Attributes:
        log_level: Log level
        data_dir: Application data directory (templates, logs)
        output_quality: JPEG quality for batch output (0-1)
        preview_quality: JPEG quality for single generation (0-1)
        max_rows: Maximum number of rows per batch
        max_csv_bytes: Maximum CSV file size
        yield_every: Rows between cooperative yields in batch generation
        yield_delay: Seconds slept at each cooperative yield
        handle_tolerance: Resize handle hit tolerance (image pixels)
        min_box_size: Minimum box width/height (image pixels)
    """

    model_config = SettingsConfigDict(
        env_prefix="INKORA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Log level")

    data_dir: Optional[Path] = Field(default=None, description="Data directory")

    output_quality: float = Field(
        default=DEFAULT_OUTPUT_QUALITY,
        ge=0.0,
        le=1.0,
        description="Batch output JPEG quality",
    )
    preview_quality: float = Field(
        default=DEFAULT_PREVIEW_QUALITY,
        ge=0.0,
        le=1.0,
        description="Single output JPEG quality",
    )

    max_rows: int = Field(default=MAX_BATCH_ROWS, ge=1, description="Max batch rows")
    max_csv_bytes: int = Field(default=MAX_CSV_FILE_SIZE, ge=1, description="Max CSV size")

    yield_every: int = Field(default=YIELD_EVERY_ROWS, ge=1, description="Yield cadence")
    yield_delay: float = Field(default=YIELD_DELAY_SECONDS, ge=0.0, description="Yield delay")

    handle_tolerance: float = Field(default=HANDLE_TOLERANCE, gt=0, description="Handle tolerance")
    min_box_size: float = Field(default=MIN_BOX_SIZE, gt=0, description="Minimum box size")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate the log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}, valid values: {valid_levels}")
        return upper_v

    @property
    def app_data_dir(self) -> Path:
        """Resolved data directory."""
        return self.data_dir or APP_DATA_DIR

    @property
    def templates_dir(self) -> Path:
        """Template store directory."""
        return self.app_data_dir / "templates"

    @property
    def user_config_file(self) -> Path:
        """User config JSON file."""
        return self.app_data_dir / "config.json"
