"""
Core module initialization.
Exports configuration, logging utilities and the error taxonomy.
"""

from cafe_orders.core.config import (
    get_settings,
    setup_logging,
    Settings,
    EnvironmentMode,
    StorageBackend,
)
from cafe_orders.core.exceptions import (
    CafeOrdersError,
    ValidationError,
    NotFoundError,
    InvalidStateError,
    TransportError,
    FeedIntegrityError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "StorageBackend",
    "CafeOrdersError",
    "ValidationError",
    "NotFoundError",
    "InvalidStateError",
    "TransportError",
    "FeedIntegrityError",
]
