"""
Customer Identity Provider

Issues one opaque token per browser and keeps it for about a year.
The token only partitions "my orders"; it is not a credential and can
be forged by anyone who copies the cookie.

Stores:
    - CookieIdentityStore: the ``customerUUID`` cookie (HTTP callers)
    - FileIdentityStore: a small JSON file (scripts and local tools)

Usage:
    provider = IdentityProvider(CookieIdentityStore(request, response))
    identity = provider.get_or_create_identity()

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from starlette.requests import Request
from starlette.responses import Response

from cafe_orders.core.config import get_settings
from cafe_orders.models import ensure_utc, utc_now

logger = logging.getLogger(__name__)


@dataclass
class CustomerIdentity:
    """
    A browser's customer token.

    Attributes:
        token: Opaque identifier (UUID4 string)
        issued_at: When the token was generated, if known
        expires_at: When the token stops being honoured, if known
        is_new: True when generated by this call
    """
    token: str
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    is_new: bool = False

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or utc_now()) >= self.expires_at

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "customerId": self.token,
            "issuedAt": self.issued_at.isoformat() if self.issued_at else None,
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
        }


class BaseIdentityStore(ABC):
    """Durable, scoped storage for a single CustomerIdentity."""

    @abstractmethod
    def load(self) -> Optional[CustomerIdentity]:
        """Return the stored identity, or None."""
        pass

    @abstractmethod
    def save(self, identity: CustomerIdentity) -> None:
        """Persist the identity."""
        pass


class CookieIdentityStore(BaseIdentityStore):
    """Identity kept in a browser cookie."""

    def __init__(
        self,
        request: Request,
        response: Response,
        cookie_name: Optional[str] = None,
    ):
        settings = get_settings()
        self.request = request
        self.response = response
        self.cookie_name = cookie_name or settings.identity_cookie_name

    def load(self) -> Optional[CustomerIdentity]:
        token = self.request.cookies.get(self.cookie_name)
        if not token:
            return None
        # The browser drops the cookie once max-age passes
        return CustomerIdentity(token=token)

    def save(self, identity: CustomerIdentity) -> None:
        max_age = None
        if identity.expires_at and identity.issued_at:
            max_age = int((identity.expires_at - identity.issued_at).total_seconds())

        self.response.set_cookie(
            key=self.cookie_name,
            value=identity.token,
            max_age=max_age,
            path="/",
            samesite="strict",
            secure=self.request.url.scheme == "https",
        )
        logger.debug(f"Identity cookie set: {identity.token}")


class FileIdentityStore(BaseIdentityStore):
    """Identity kept in a JSON file, for callers without cookies."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else get_settings().identity_path

    def load(self) -> Optional[CustomerIdentity]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return CustomerIdentity(
                token=data["token"],
                issued_at=ensure_utc(datetime.fromisoformat(data["issuedAt"])),
                expires_at=ensure_utc(datetime.fromisoformat(data["expiresAt"])),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable identity file {self.path}: {e}")
            return None

    def save(self, identity: CustomerIdentity) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({
                "token": identity.token,
                "issuedAt": identity.issued_at.isoformat(),
                "expiresAt": identity.expires_at.isoformat(),
            }),
            encoding="utf-8",
        )


class IdentityProvider:
    """
    Hands out the caller's identity, creating it on first use.

    Generation uses a local UUID source and cannot fail; a failing store
    write is logged and the fresh identity is still returned.
    """

    def __init__(self, store: BaseIdentityStore, ttl_days: Optional[int] = None):
        self.store = store
        self.ttl = timedelta(days=ttl_days if ttl_days is not None else get_settings().identity_ttl_days)

    def get_or_create_identity(self) -> CustomerIdentity:
        existing = self.store.load()
        if existing is not None and not existing.is_expired():
            return existing

        if existing is not None:
            logger.info(f"Identity {existing.token} expired, issuing a new one")

        now = utc_now()
        identity = CustomerIdentity(
            token=str(uuid.uuid4()),
            issued_at=now,
            expires_at=now + self.ttl,
            is_new=True,
        )
        try:
            self.store.save(identity)
        except OSError as e:
            logger.error(f"Could not persist identity {identity.token}: {e}")
        else:
            logger.info(f"New customer identity issued: {identity.token}")
        return identity
