from dataclasses import replace
from datetime import timedelta

from cafe_orders.models import utc_now
from cafe_orders.services.identity import (
    BaseIdentityStore,
    CustomerIdentity,
    FileIdentityStore,
    IdentityProvider,
)


class MemoryIdentityStore(BaseIdentityStore):
    def __init__(self, identity=None, fail_on_save=False):
        self.identity = identity
        self.fail_on_save = fail_on_save
        self.saves = 0

    def load(self):
        return self.identity

    def save(self, identity):
        self.saves += 1
        if self.fail_on_save:
            raise OSError("read-only")
        self.identity = replace(identity, is_new=False)


def test_same_token_on_repeated_calls():
    store = MemoryIdentityStore()
    provider = IdentityProvider(store, ttl_days=365)

    first = provider.get_or_create_identity()
    second = provider.get_or_create_identity()

    assert first.is_new
    assert not second.is_new
    assert first.token == second.token
    assert store.saves == 1
    assert first.expires_at - first.issued_at == timedelta(days=365)


def test_expired_identity_is_replaced():
    now = utc_now()
    old = CustomerIdentity(token="old", issued_at=now - timedelta(days=400), expires_at=now - timedelta(days=35))
    provider = IdentityProvider(MemoryIdentityStore(old), ttl_days=365)

    identity = provider.get_or_create_identity()

    assert identity.token != "old"
    assert identity.is_new


def test_failing_store_still_returns_an_identity():
    provider = IdentityProvider(MemoryIdentityStore(fail_on_save=True))

    identity = provider.get_or_create_identity()

    assert identity.token


def test_file_store_survives_restart(tmp_path):
    path = tmp_path / "identity.json"
    first = IdentityProvider(FileIdentityStore(path)).get_or_create_identity()

    again = IdentityProvider(FileIdentityStore(path)).get_or_create_identity()

    assert again.token == first.token
    assert again.expires_at == first.expires_at


def test_unreadable_file_means_new_identity(tmp_path):
    path = tmp_path / "identity.json"
    path.write_text("{not json", encoding="utf-8")

    identity = IdentityProvider(FileIdentityStore(path)).get_or_create_identity()

    assert identity.is_new
    assert FileIdentityStore(path).load().token == identity.token
