"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports two modes:
    - DEVELOPMENT: In-memory mock feed, local files (no spreadsheet needed)
    - PRODUCTION: Real spreadsheet feed and form endpoint

The STORAGE_BACKEND variable selects which order store is instantiated:
    - json: single JSON document on disk (server-authoritative)
    - database: SQLAlchemy async database (server-authoritative)
    - sheet: append-only spreadsheet feed + local cache (feed-based)

Usage:
    from cafe_orders.core.config import get_settings

    settings = get_settings()
    if settings.storage_backend == StorageBackend.SHEET:
        ...

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import logging
import sys
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing with the mock feed client
        PRODUCTION: Live environment talking to the real spreadsheet
        STAGING: Pre-production with the real spreadsheet, test sheet ids
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class StorageBackend(str, Enum):
    """Order store implementations selectable at startup."""
    JSON = "json"
    DATABASE = "database"
    SHEET = "sheet"


DEFAULT_FORM_FIELD_MAP = {
    "id": "entry.1000001",
    "customerId": "entry.1000002",
    "customerName": "entry.1000003",
    "drinkName": "entry.1000004",
    "seatingLocation": "entry.1000005",
    "specialInstructions": "entry.1000006",
    "toppings": "entry.1000007",
    "orderStatus": "entry.1000008",
    "timestamp": "entry.1000009",
    "rating": "entry.1000010",
    "feedbackComment": "entry.1000011",
    "feedbackTimestamp": "entry.1000012",
    "revision": "entry.1000013",
    "current": "entry.1000014",
}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # Storage
        storage_backend: Which order store to build
        data_directory: Root for JSON files (orders, local cache, identity)
        database_url: SQLAlchemy async connection string

        # Spreadsheet feed
        sheet_id: Spreadsheet holding the order feed and menu tabs
        form_id: Google Form that appends rows to the order feed
        form_field_map: Order field -> form entry id

        # Identity
        identity_cookie_name: Cookie carrying the customer token
        identity_ttl_days: Token lifetime
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Café Ordering System",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=3001,
        description="API server port"
    )

    # ==========================================================================
    # ORDER STORAGE
    # ==========================================================================

    storage_backend: StorageBackend = Field(
        default=StorageBackend.JSON,
        description="Order store implementation (json, database, sheet)"
    )
    data_directory: str = Field(
        default="data",
        description="Directory for data files"
    )
    orders_filename: str = Field(
        default="orders.json",
        description="JSON document holding every order (json backend)"
    )
    file_lock_timeout: int = Field(
        default=10,
        description="Seconds to wait for the orders file lock"
    )

    # ==========================================================================
    # DATABASE
    # ==========================================================================

    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/orders.db",
        description="SQLAlchemy async connection URL (database backend)"
    )
    database_echo: bool = Field(
        default=False,
        description="Log all SQL statements"
    )

    # ==========================================================================
    # SPREADSHEET FEED
    # ==========================================================================

    sheet_id: Optional[str] = Field(
        default=None,
        description="Spreadsheet id for the gviz query endpoint"
    )
    sheet_orders_tab: str = Field(
        default="Orders",
        description="Tab holding the append-only order feed"
    )
    sheet_menu_tab: str = Field(
        default="Menu",
        description="Tab holding the drink menu"
    )
    sheet_toppings_tab: str = Field(
        default="Toppings",
        description="Tab holding the topping catalog"
    )
    form_id: Optional[str] = Field(
        default=None,
        description="Google Form id whose responses feed the order sheet"
    )
    form_field_map: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_FORM_FIELD_MAP),
        description="Order field name -> form entry id (JSON object)"
    )
    feed_timeout_seconds: float = Field(
        default=10.0,
        description="HTTP timeout for feed reads and form submissions"
    )
    local_cache_filename: str = Field(
        default="local_orders.json",
        description="Durable local cache of this installation's orders"
    )

    # ==========================================================================
    # CUSTOMER IDENTITY
    # ==========================================================================

    identity_cookie_name: str = Field(
        default="customerUUID",
        description="Cookie carrying the customer identity token"
    )
    identity_ttl_days: int = Field(
        default=365,
        description="Lifetime of a customer identity"
    )
    identity_filename: str = Field(
        default="identity.json",
        description="File-backed identity store for scripts"
    )

    # ==========================================================================
    # POLLING
    # ==========================================================================

    customer_poll_seconds: float = Field(
        default=10.0,
        description="Refresh interval of the customer's order view"
    )
    staff_poll_seconds: float = Field(
        default=30.0,
        description="Refresh interval of the barista board"
    )

    # ==========================================================================
    # MENU
    # ==========================================================================

    menu_filename: str = Field(
        default="menu.json",
        description="Static drink/topping catalog (non-sheet backends)"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    @field_validator("storage_backend", mode="before")
    @classmethod
    def validate_storage_backend(cls, v: str) -> StorageBackend:
        """Convert string to StorageBackend enum."""
        if isinstance(v, StorageBackend):
            return v
        try:
            return StorageBackend(v.lower())
        except ValueError:
            valid = [e.value for e in StorageBackend]
            raise ValueError(f"Invalid storage_backend. Must be one of: {valid}")

    @field_validator("form_field_map", mode="before")
    @classmethod
    def validate_form_field_map(cls, v):
        """Accept the map as a JSON string (environment) or a dict."""
        if isinstance(v, str):
            v = json.loads(v)
        merged = dict(DEFAULT_FORM_FIELD_MAP)
        merged.update(v or {})
        return merged

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def use_real_feed(self) -> bool:
        """Check if the real spreadsheet feed should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def data_path(self) -> Path:
        return Path(self.data_directory)

    @property
    def orders_path(self) -> Path:
        return self.data_path / self.orders_filename

    @property
    def local_cache_path(self) -> Path:
        return self.data_path / self.local_cache_filename

    @property
    def identity_path(self) -> Path:
        return self.data_path / self.identity_filename

    @property
    def menu_path(self) -> Path:
        return self.data_path / self.menu_filename

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_feed_config(self) -> list[str]:
        """
        Validate that the settings needed by the real feed are present.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if self.storage_backend == StorageBackend.SHEET and self.use_real_feed:
            if not self.sheet_id:
                missing.append("SHEET_ID")
            if not self.form_id:
                missing.append("FORM_ID")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once.
    Tests call ``get_settings.cache_clear()`` after changing the environment.

    Returns:
        Settings: Configured application settings
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured application logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return logging.getLogger("cafe_orders")
