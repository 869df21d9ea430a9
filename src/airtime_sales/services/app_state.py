"""
Application state - the single SystemData snapshot and the services bound to it.
"""
import logging
import time
from typing import Optional

from ..config.settings import Settings, get_settings
from ..engine import PricingEngine
from ..records.models import SystemData
from .order_service import OrderService
from .quotation_service import QuotationService
from .records_service import RecordsService
from .storage_service import StorageService


logger = logging.getLogger(__name__)


class AppState:
    """Holds the current snapshot; replacing it rebinds every service."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.storage = StorageService(self.settings.data_file, self.settings.snapshot_version)
        self.engine = PricingEngine()
        self.dirty = False
        self.last_flush = time.monotonic()
        self.replace_data(self.storage.load() or SystemData.empty(self.settings.snapshot_version))

    def replace_data(self, data: SystemData):
        self.data = data
        self.records = RecordsService(data)
        self.orders = OrderService(data, self.engine)
        self.quotations = QuotationService(data, self.settings)
        logger.debug("State holds %d customers, %d orders", len(data.customers), len(data.orders))

    def mark_dirty(self):
        """Record an unsaved change."""
        self.dirty = True

    def save(self) -> SystemData:
        data = self.storage.save(self.data)
        self.dirty = False
        self.last_flush = time.monotonic()
        return data

    def flush_if_due(self, now: Optional[float] = None) -> bool:
        """Save pending changes once the autosave interval has passed since the last save."""
        now = time.monotonic() if now is None else now
        if not self.dirty or now - self.last_flush < self.settings.autosave_seconds:
            return False
        self.save()
        logger.debug("Autosaved snapshot")
        return True

    def clear(self):
        """Drop the saved snapshot and start empty."""
        self.storage.clear()
        self.dirty = False
        self.replace_data(SystemData.empty(self.settings.snapshot_version))
