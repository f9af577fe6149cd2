"""
Locked JSON Documents

Small helper for the file-backed stores: a JSON array on disk that is
read and rewritten under a ``filelock.FileLock`` so that several worker
processes sharing a data directory never interleave a read-modify-write.

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, TypeVar

from filelock import FileLock, Timeout

from cafe_orders.core.exceptions import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Unchanged:
    """Returned by a ``modify`` change to hand back ``value`` without rewriting the file."""

    def __init__(self, value: Any = None):
        self.value = value


class JsonDocument:
    """
    A JSON array file guarded by a sibling ``.lock`` file.

    The file and its directory are created lazily on first access.
    """

    def __init__(self, path: Path, lock_timeout: float = 10):
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self.lock_timeout = lock_timeout

    def _lock(self) -> FileLock:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        return FileLock(str(self.lock_path), timeout=self.lock_timeout)

    def _load(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise TransportError(f"Could not read {self.path.name}", str(e)) from e
        if not content.strip():
            return []
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise TransportError(f"{self.path.name} is not valid JSON", str(e)) from e
        if not isinstance(data, list):
            raise TransportError(f"{self.path.name} must hold a JSON array")
        return data

    def _dump(self, items: list[dict[str, Any]]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(items, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise TransportError(f"Could not write {self.path.name}", str(e)) from e

    def read(self) -> list[dict[str, Any]]:
        """Return a snapshot of the array."""
        try:
            with self._lock():
                return self._load()
        except Timeout as e:
            logger.error(f"Lock timeout reading {self.path.name}")
            raise TransportError(f"Lock timeout ({self.lock_timeout}s)") from e

    def modify(self, change: Callable[[list[dict[str, Any]]], T]) -> T:
        """
        Read the array, let ``change`` mutate it in place, write it back.

        If ``change`` raises, nothing is written and the exception propagates.
        If it returns ``Unchanged(value)``, nothing is written and ``value``
        is returned.

        Returns:
            Whatever ``change`` returns
        """
        try:
            with self._lock():
                logger.debug(f"Lock acquired for {self.path.name}")
                items = self._load()
                result = change(items)
                if isinstance(result, Unchanged):
                    return result.value
                self._dump(items)
                return result
        except Timeout as e:
            logger.error(f"Lock timeout writing {self.path.name}")
            raise TransportError(f"Lock timeout ({self.lock_timeout}s)") from e
