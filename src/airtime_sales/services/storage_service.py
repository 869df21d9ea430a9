"""
Storage Service - Flat JSON snapshot persistence.
Handles save/load of the whole SystemData plus backup export and import.
"""
import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union

from ..records.models import SystemData


logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """A snapshot file could not be read or parsed."""


def backup_file_name(day: date) -> str:
    return f"MCOT_Backup_{day.isoformat()}.json"


class StorageService:
    """Service for reading and writing the application snapshot."""

    def __init__(self, data_file: Path, version: str = "4.0"):
        self.data_file = Path(data_file)
        self.version = version

    def load(self) -> Optional[SystemData]:
        """Load the saved snapshot; None when absent or unreadable."""
        if not self.data_file.exists():
            return None
        try:
            return self.parse(self.data_file.read_text(encoding='utf-8'))
        except SnapshotError as e:
            logger.error("Failed to parse system data at %s: %s", self.data_file, e)
            return None

    def save(self, data: SystemData) -> SystemData:
        """Write the snapshot, stamping the save time."""
        data.settings.last_save = datetime.now().isoformat()
        data.settings.version = data.settings.version or self.version
        self.data_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.data_file, 'w', encoding='utf-8') as f:
            json.dump(data.to_dict(), f, ensure_ascii=False, indent=2)
        logger.info("Saved snapshot to %s", self.data_file)
        return data

    def clear(self) -> bool:
        """Remove the saved snapshot."""
        if self.data_file.exists():
            self.data_file.unlink()
            logger.info("Cleared snapshot at %s", self.data_file)
            return True
        return False

    def export_data(self, data: SystemData, directory: Path, today: Optional[date] = None) -> Path:
        """Write a dated backup copy of the snapshot."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / backup_file_name(today or date.today())
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data.to_dict(), f, ensure_ascii=False, indent=2)
        logger.info("Exported backup to %s", path)
        return path

    def import_data(self, path: Path) -> SystemData:
        """Read a backup file; raises SnapshotError if it is not a valid snapshot."""
        path = Path(path)
        try:
            raw = path.read_text(encoding='utf-8')
        except OSError as e:
            raise SnapshotError("Failed to read file") from e
        return self.parse(raw)

    def parse(self, raw: Union[str, bytes, dict]) -> SystemData:
        """Build SystemData from JSON text or an already decoded dict."""
        if isinstance(raw, dict):
            payload = raw
        else:
            try:
                payload = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise SnapshotError("Invalid JSON file") from e

        if not isinstance(payload, dict):
            raise SnapshotError("Invalid JSON file")
        try:
            return SystemData.from_dict(payload)
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            raise SnapshotError(f"Snapshot has invalid records: {e}") from e
