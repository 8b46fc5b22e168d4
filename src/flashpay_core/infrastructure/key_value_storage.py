"""Shared in-memory key/value medium with per-context views.

Reproduces browser local storage semantics: every context reads and writes
the same keys, and a write made through one view notifies every OTHER
attached view, never the writer itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from flashpay_core.application.ports import (
    KeyValueStorage,
    StorageChange,
    StorageChangeTransport,
)
from flashpay_core.domain.exceptions import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Callable

    from flashpay_core.application.ports.key_value_storage import StorageListener

logger = structlog.get_logger(__name__)


class InMemoryStorageMedium:
    def __init__(self, quota_bytes: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self._views: list[StorageView] = []
        self._quota_bytes = quota_bytes

    def attach(self) -> StorageView:
        """Open a view for one more context."""
        view = StorageView(self)
        self._views.append(view)
        return view

    def detach(self, view: StorageView) -> None:
        if view in self._views:
            self._views.remove(view)

    def keys(self) -> list[str]:
        return sorted(self._data)

    def raw(self, key: str) -> str | None:
        return self._data.get(key)

    def _read(self, key: str) -> str | None:
        return self._data.get(key)

    def _write(self, origin: StorageView, key: str, value: str | None) -> None:
        if value is None:
            self._data.pop(key, None)
        else:
            self._check_quota(key, value)
            self._data[key] = value

        change = StorageChange(key=key, new_value=value)
        for view in list(self._views):
            if view is not origin:
                view._deliver(change)

    def _check_quota(self, key: str, value: str) -> None:
        if self._quota_bytes is None:
            return
        used = sum(len(k) + len(v) for k, v in self._data.items() if k != key)
        if used + len(key) + len(value) > self._quota_bytes:
            raise PersistenceError(f"Storage quota exceeded writing {key}")


class StorageView(KeyValueStorage, StorageChangeTransport):
    """One context's window onto an InMemoryStorageMedium."""

    def __init__(self, medium: InMemoryStorageMedium) -> None:
        self._medium = medium
        self._listeners: list[StorageListener] = []

    def get(self, key: str) -> str | None:
        return self._medium._read(key)

    def set(self, key: str, value: str) -> None:
        self._medium._write(self, key, value)

    def remove(self, key: str) -> None:
        self._medium._write(self, key, None)

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        self._listeners.clear()
        self._medium.detach(self)

    def _deliver(self, change: StorageChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception("storage_listener_failed", key=change.key)
