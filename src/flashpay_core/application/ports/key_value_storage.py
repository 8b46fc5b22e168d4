from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class StorageChange:
    """A write made by another context to the shared medium.

    new_value is None when the key was removed.
    """

    key: str
    new_value: str | None


StorageListener = Callable[[StorageChange], None]


class KeyValueStorage(ABC):
    """Port for the string key/value medium shared by every context.

    Contract:
    - get() returns None for missing keys (no exception)
    - Failures (quota, unavailable medium) raise PersistenceError
    """

    @abstractmethod
    def get(self, key: str) -> str | None: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def remove(self, key: str) -> None: ...


class StorageChangeTransport(ABC):
    """Port for change notifications between contexts.

    Contract:
    - Listeners receive changes made by OTHER contexts only, never their own
    - subscribe() returns a callable that removes the listener
    """

    @abstractmethod
    def subscribe(self, listener: StorageListener) -> Callable[[], None]: ...
