from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class LockProvider(ABC):
    """Port for per-resource in-flight guards.

    Contract:
    - acquire() MUST NOT block; if resource_id is already held it MUST raise
      OperationInProgressError immediately
    - acquire() MUST release the resource when the context exits (normal or exception)
    - Different resource_ids MAY be held concurrently

    Locks are local to one context. Two contexts sharing storage do not
    see each other's locks.
    """

    @abstractmethod
    @contextmanager
    def acquire(self, resource_id: str) -> Iterator[None]:
        """Mark resource_id as in flight for the duration of the context.

        Usage:
            with lock_provider.acquire("create-<payment-id>"):
                # Critical section, may span awaits
                ...

        Raises:
            OperationInProgressError: If resource_id is already held.
        """
        ...
