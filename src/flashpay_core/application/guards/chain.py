"""Ordered, short-circuiting composition of guards.

A step is any zero-argument callable returning a GuardResult. The first
failing step stops the chain; its failure is written to the error trail
and the returned result carries the trail's tracking id, so the id the
user sees is the id support can look up.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from flashpay_core.application.dtos import GuardResult
from flashpay_core.domain.exceptions import ErrorKind, RateLimitExceededError
from flashpay_core.domain.value_objects import TrackingId

if TYPE_CHECKING:
    from collections.abc import Mapping

    from flashpay_core.application.audit import ErrorTrail
    from flashpay_core.application.dtos import RateLimitConfig, ValidationResult
    from flashpay_core.application.guards.rate_limiter import RateLimiter
    from flashpay_core.application.ports import TimeProvider

GuardStep = Callable[[], GuardResult]


class GuardChain:
    def __init__(
        self,
        operation: str,
        steps: Sequence[GuardStep],
        error_trail: ErrorTrail,
        time_provider: TimeProvider,
    ) -> None:
        self._operation = operation
        self._steps = tuple(steps)
        self._error_trail = error_trail
        self._time_provider = time_provider

    def run(self, details: Mapping[str, Any] | None = None) -> GuardResult:
        for step in self._steps:
            result = step()
            if not result.passed:
                tracking_id = self._error_trail.record(
                    self._operation,
                    result.reason or "Guard check failed",
                    details,
                )
                return replace(result, tracking_id=tracking_id)

        return GuardResult(passed=True, tracking_id=TrackingId.generate(self._time_provider.now()).value)


def rate_limit_step(
    limiter: RateLimiter,
    key: str,
    config: RateLimitConfig,
    time_provider: TimeProvider,
    message: str = "Too many requests. Please wait a moment.",
) -> GuardStep:
    def step() -> GuardResult:
        tracking_id = TrackingId.generate(time_provider.now()).value
        if limiter.check(key, config).allowed:
            return GuardResult(passed=True, tracking_id=tracking_id)
        denial = RateLimitExceededError(message)
        return GuardResult(
            passed=False,
            reason=str(denial),
            kind=denial.kind,
            tracking_id=tracking_id,
        )

    return step


def validation_step(
    validate: Callable[[Any], ValidationResult],
    value: object,
    time_provider: TimeProvider,
) -> GuardStep:
    def step() -> GuardResult:
        tracking_id = TrackingId.generate(time_provider.now()).value
        result = validate(value)
        if result.valid:
            return GuardResult(passed=True, tracking_id=tracking_id)
        return GuardResult(
            passed=False,
            reason=result.error,
            kind=ErrorKind.VALIDATION,
            tracking_id=tracking_id,
        )

    return step
