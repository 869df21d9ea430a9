"""Shared application state for the API process."""
from typing import Optional

from ..config.settings import get_settings
from ..services.app_state import AppState


_state: Optional[AppState] = None


def get_state() -> AppState:
    """Get the process-wide AppState, loading the snapshot on first use."""
    global _state
    if _state is None:
        _state = AppState(get_settings())
    return _state
