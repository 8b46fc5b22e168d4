from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(ABC):
    """Port for deferred callbacks.

    Contract:
    - call_later() MUST NOT run the callback synchronously
    - A cancelled handle's callback MUST NOT run
    """

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle: ...
