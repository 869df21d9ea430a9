"""
Centralized settings and path configuration for the airtime sales tool.
"""
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Snapshot persistence
    data_file: Path
    export_dir: Path

    # Quotation header and contact defaults
    station_name: str = "MCOT Phitsanulok"
    station_frequency: str = "FM 106.25 MHz"
    default_staff_name: str = "ฝ่ายขาย"
    default_staff_phone: str = "055-287833"

    snapshot_version: str = "4.0"
    autosave_seconds: int = 30
    log_level: str = "INFO"

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment overrides."""
        root = project_root or get_project_root()

        data_file = os.environ.get('AIRTIME_DATA_FILE')
        export_dir = os.environ.get('AIRTIME_EXPORT_DIR')

        return cls(
            project_root=root,
            data_file=Path(data_file) if data_file else root / 'data' / 'airtime_sales.json',
            export_dir=Path(export_dir) if export_dir else root / 'data' / 'exports',
            log_level=os.environ.get('AIRTIME_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging level and format."""
    settings = settings or get_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO), format=LOG_FORMAT)
