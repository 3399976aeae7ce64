"""Application configuration management."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="HIMALAYA_CACHE_",
        env_file=[
            ".env",  # Project-level defaults (lower priority)
            Path.home() / ".config" / "himalaya-cache" / ".env",  # User config (higher priority)
        ],
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    cache_dir: Path = Field(
        default=Path.home() / ".local" / "share" / "himalaya-cache",
        description="Root directory of the on-disk cache",
    )
    himalaya_path: Path | None = Field(
        default=None,
        description="himalaya executable (default: PATH, then ~/.cargo/bin/himalaya)",
    )

    # Sync settings
    max_workers: int | None = Field(
        default=None, ge=1, description="Parallel message downloads (default: CPU count)"
    )
    page_size: int = Field(
        default=999, ge=1, description="Envelope page size requested per folder"
    )
    retry_attempts: int = Field(
        default=3, ge=1, description="Attempts per himalaya command before giving up"
    )
    retry_delay_seconds: float = Field(
        default=2.5, ge=0.0, description="Pause between failed himalaya attempts"
    )
    show_progress: bool = Field(
        default=True, description="Show a progress bar per folder during sync"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path = Field(
        default=Path.home() / ".local" / "state" / "himalaya-cache",
        description="Directory for log files (per-account logs written here)",
    )
    log_rotation_size_mb: int = Field(
        default=5, ge=1, description="Max size per log file in MB before rotation"
    )
    log_backup_count: int = Field(
        default=3, ge=0, description="Number of rotated log files to keep"
    )

    @property
    def worker_count(self) -> int:
        """Number of threads used for per-envelope work."""
        return self.max_workers or os.cpu_count() or 1

    @property
    def log_max_bytes(self) -> int:
        """Rotation threshold in bytes."""
        return self.log_rotation_size_mb * 1024 * 1024
