import pytest
from pydantic import ValidationError as SettingsError

from cafe_orders.core.config import (
    DEFAULT_FORM_FIELD_MAP,
    EnvironmentMode,
    StorageBackend,
    get_settings,
)
from cafe_orders.stores import FeedOrderStore, JsonFileOrderStore, SqlOrderStore, get_order_store
from cafe_orders.sync.feed import MockFeedClient, SheetFeedClient, get_feed_client


def test_development_defaults():
    settings = get_settings()

    assert settings.env_mode == EnvironmentMode.DEVELOPMENT
    assert settings.storage_backend == StorageBackend.JSON
    assert settings.identity_cookie_name == "customerUUID"
    assert settings.identity_ttl_days == 365
    assert settings.orders_path.name == "orders.json"
    assert not settings.use_real_feed


@pytest.mark.parametrize("backend,expected", [
    ("json", JsonFileOrderStore),
    ("DATABASE", SqlOrderStore),
    ("sheet", FeedOrderStore),
])
def test_store_factory(monkeypatch, backend, expected):
    monkeypatch.setenv("STORAGE_BACKEND", backend)
    get_settings.cache_clear()

    assert isinstance(get_order_store(), expected)
    assert get_order_store() is get_order_store()


def test_invalid_backend(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "excel")
    get_settings.cache_clear()

    with pytest.raises(SettingsError):
        get_settings()


def test_feed_client_follows_env_mode(monkeypatch):
    assert isinstance(get_feed_client(), MockFeedClient)

    monkeypatch.setenv("ENV_MODE", "staging")
    monkeypatch.setenv("SHEET_ID", "sheet-1")
    monkeypatch.setenv("FORM_ID", "form-1")
    get_settings.cache_clear()
    get_feed_client.cache_clear()

    assert isinstance(get_feed_client(), SheetFeedClient)


def test_missing_feed_config_is_reported(monkeypatch):
    monkeypatch.setenv("ENV_MODE", "production")
    monkeypatch.setenv("STORAGE_BACKEND", "sheet")
    get_settings.cache_clear()

    assert get_settings().validate_feed_config() == ["SHEET_ID", "FORM_ID"]


def test_form_field_map_overrides_merge(monkeypatch):
    monkeypatch.setenv("FORM_FIELD_MAP", '{"id": "entry.42"}')
    get_settings.cache_clear()

    field_map = get_settings().form_field_map

    assert field_map["id"] == "entry.42"
    assert field_map["drinkName"] == DEFAULT_FORM_FIELD_MAP["drinkName"]
