import pytest

from cafe_orders.core.config import get_settings
from cafe_orders.models import OrderDraft
from cafe_orders.services.catalog import reset_catalog_service
from cafe_orders.stores import reset_order_store
from cafe_orders.sync.feed import reset_feed_client

SETTINGS_VARS = [
    "ENV_MODE", "DEBUG", "STORAGE_BACKEND", "DATA_DIRECTORY", "DATABASE_URL",
    "SHEET_ID", "FORM_ID", "FORM_FIELD_MAP", "IDENTITY_TTL_DAYS",
]


def reset_caches():
    get_settings.cache_clear()
    reset_feed_client()
    reset_order_store()
    reset_catalog_service()


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Every test gets development settings and its own data directory."""
    for var in SETTINGS_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("ENV_MODE", "development")
    monkeypatch.setenv("STORAGE_BACKEND", "json")
    monkeypatch.setenv("DATA_DIRECTORY", str(tmp_path / "data"))
    reset_caches()
    yield
    reset_caches()


@pytest.fixture
def draft():
    return OrderDraft(
        customer_name="Ana",
        drink_name="Flat White",
        seating_location="Window 2",
        special_instructions="Extra hot",
        toppings=["Oat Milk"],
    )

