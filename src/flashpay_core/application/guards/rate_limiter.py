from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from flashpay_core.application.dtos import RateLimitDecision

if TYPE_CHECKING:
    from flashpay_core.application.dtos import RateLimitConfig
    from flashpay_core.application.ports import TimeProvider

logger = structlog.get_logger(__name__)


class RateLimiter:
    """Sliding-window attempt counter, one window per operation key.

    Only allowed attempts are recorded. Timestamps older than the window
    are pruned lazily on every check, so an idle key costs nothing.

    State is local to one context: a user with two contexts open gets
    roughly twice the nominal budget. This is a soft control, not a
    security boundary.
    """

    def __init__(self, time_provider: TimeProvider, enabled: bool = True) -> None:
        self._time_provider = time_provider
        self._enabled = enabled
        self._attempts: dict[str, list[int]] = {}

    def check(self, key: str, config: RateLimitConfig) -> RateLimitDecision:
        if not self._enabled:
            return RateLimitDecision(allowed=True, remaining_attempts=config.max_attempts)

        now = self._time_provider.now_millis()
        window_start = now - config.window_ms

        recent = [ts for ts in self._attempts.get(key, []) if ts > window_start]
        allowed = len(recent) < config.max_attempts
        if allowed:
            recent.append(now)
        self._attempts[key] = recent

        remaining = max(0, config.max_attempts - len(recent))
        if allowed:
            logger.debug("guard_passed", check="rate_limit", key=key, remaining=remaining)
        else:
            logger.warning("guard_blocked", check="rate_limit", key=key)

        return RateLimitDecision(allowed=allowed, remaining_attempts=remaining)

    def reset(self, key: str) -> None:
        self._attempts.pop(key, None)
        logger.info("rate_limit_reset", key=key)

    def reset_all(self) -> None:
        self._attempts.clear()
        logger.info("rate_limit_reset_all")
