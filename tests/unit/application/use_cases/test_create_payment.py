"""Tests for payment creation through the orchestrator.

Tests cover:
- Successful creation, audit, cache and backend mirroring
- Guard failures (validation, rate limit, wallet)
- Replay of a known external id and concurrent duplicates
- Provider failure and timeout leaving the ledger untouched
"""

import asyncio
from decimal import Decimal

import pytest

from flashpay_core.domain.entities import PaymentStatus
from flashpay_core.domain.exceptions import ErrorKind, ProviderError, ProviderErrorKind
from flashpay_core.entrypoints import AppContext
from flashpay_core.infrastructure import InMemoryBackendMirror, InMemoryPaymentProvider

# =============================================================================
# Success
# =============================================================================


class TestCreatePaymentSuccess:
    @pytest.mark.asyncio
    async def test_creates_pending_payment_retrievable_by_id(self, context: AppContext) -> None:
        result = await context.orchestrator.create_payment(5, "coffee")

        assert result.success is True
        assert result.data is not None
        assert result.data.status == PaymentStatus.PENDING
        assert result.data.amount == Decimal("5")
        fetched = context.orchestrator.get_payment(result.data.id)
        assert fetched.data == result.data

    @pytest.mark.asyncio
    async def test_records_one_audit_entry(self, context: AppContext) -> None:
        result = await context.orchestrator.create_payment(5, "coffee")

        entries = context.audit_trail.recent()
        assert len(entries) == 1
        assert entries[0].operation == "createPayment"
        assert entries[0].tracking_id == result.tracking_id

    @pytest.mark.asyncio
    async def test_uses_provider_minted_id(
        self, context: AppContext, provider: InMemoryPaymentProvider
    ) -> None:
        result = await context.orchestrator.create_payment(5, "coffee")

        assert len(provider.registered) == 1
        assert result.data is not None
        assert result.data.id

    @pytest.mark.asyncio
    async def test_mirrors_to_backend_and_cache(
        self, context: AppContext, mirror: InMemoryBackendMirror
    ) -> None:
        result = await context.orchestrator.create_payment(5, "coffee")
        await context.orchestrator.drain()

        assert result.data is not None
        assert ("create", result.data.id) in mirror.calls
        assert context.storage.get(f"flashpay_payment_{result.data.id}") is not None

    @pytest.mark.asyncio
    async def test_backend_failure_does_not_fail_creation(
        self, context: AppContext, mirror: InMemoryBackendMirror
    ) -> None:
        mirror.fail = True

        result = await context.orchestrator.create_payment(5, "coffee")
        await context.orchestrator.drain()

        assert result.success is True


# =============================================================================
# Guard Failures
# =============================================================================


class TestCreatePaymentGuards:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [-1, 0, 1e7, 3.12345678, "5"])
    async def test_invalid_amount_is_a_validation_failure(
        self, context: AppContext, provider: InMemoryPaymentProvider, amount: object
    ) -> None:
        result = await context.orchestrator.create_payment(amount, "coffee")

        assert result.success is False
        assert result.error_kind == ErrorKind.VALIDATION
        assert result.tracking_id is not None
        assert context.error_trail.get(result.tracking_id) is not None
        assert provider.registered == []

    @pytest.mark.asyncio
    async def test_long_note_is_a_validation_failure(self, context: AppContext) -> None:
        result = await context.orchestrator.create_payment(5, "x" * 501)

        assert result.error == "Note cannot exceed 500 characters"

    @pytest.mark.asyncio
    async def test_eleventh_create_in_window_is_denied(self, context: AppContext) -> None:
        for _ in range(10):
            assert (await context.orchestrator.create_payment(1, "")).success

        result = await context.orchestrator.create_payment(1, "")

        assert result.success is False
        assert result.error_kind == ErrorKind.GUARD_DENIED
        assert len(context.orchestrator.get_all_payments()) == 10

    @pytest.mark.asyncio
    async def test_disconnected_wallet_is_denied(self, context: AppContext) -> None:
        context.store.update_wallet_status(connected=False)

        result = await context.orchestrator.create_payment(5, "coffee")

        assert result.error_kind == ErrorKind.GUARD_DENIED
        assert result.error is not None
        assert "not connected" in result.error

    @pytest.mark.asyncio
    async def test_each_failure_is_recorded_once(self, context: AppContext) -> None:
        await context.orchestrator.create_payment(-1, "")

        assert len(context.error_trail) == 1


# =============================================================================
# Replay and Concurrency
# =============================================================================


class TestCreatePaymentReplay:
    @pytest.mark.asyncio
    async def test_same_external_id_yields_one_record(
        self, context: AppContext, provider: InMemoryPaymentProvider
    ) -> None:
        first = await context.orchestrator.create_payment(5, "coffee", payment_id="ext-1")
        second = await context.orchestrator.create_payment(5, "coffee", payment_id="ext-1")

        assert first.success and second.success
        assert first.is_replay is False
        assert second.is_replay is True
        assert second.data == first.data
        assert len(context.orchestrator.get_all_payments()) == 1
        assert len(provider.registered) == 1

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_is_a_conflict(
        self, context: AppContext, provider: InMemoryPaymentProvider
    ) -> None:
        provider.delay = 0.01

        first, second = await asyncio.gather(
            context.orchestrator.create_payment(5, "coffee", payment_id="ext-1"),
            context.orchestrator.create_payment(5, "coffee", payment_id="ext-1"),
        )

        assert first.success is True
        assert second.success is False
        assert second.error_kind == ErrorKind.CONFLICT
        assert second.error == "Payment creation already in progress"
        assert len(context.orchestrator.get_all_payments()) == 1


# =============================================================================
# Provider Failures
# =============================================================================


class TestCreatePaymentProviderFailures:
    @pytest.mark.asyncio
    async def test_provider_error_leaves_ledger_untouched(
        self, context: AppContext, provider: InMemoryPaymentProvider
    ) -> None:
        provider.register_error = ProviderError("Provider rejected the payment")

        result = await context.orchestrator.create_payment(5, "coffee")

        assert result.success is False
        assert result.error_kind == ErrorKind.PROVIDER
        assert result.provider_error_kind == ProviderErrorKind.FAILURE
        assert result.error == "Provider rejected the payment"
        assert context.orchestrator.get_all_payments() == []

    @pytest.mark.asyncio
    async def test_provider_timeout_is_distinct(
        self, context: AppContext, provider: InMemoryPaymentProvider
    ) -> None:
        provider.delay = 1.0

        result = await context.orchestrator.create_payment(5, "coffee")

        assert result.success is False
        assert result.provider_error_kind == ProviderErrorKind.TIMEOUT
        assert context.orchestrator.get_all_payments() == []
