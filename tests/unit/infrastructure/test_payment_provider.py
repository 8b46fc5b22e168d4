"""Tests for the scripted in-memory payment provider."""

from decimal import Decimal

import pytest

from flashpay_core.application.ports import (
    ApprovalRequested,
    Cancelled,
    Completed,
    Failed,
    ProviderConfig,
    ProviderEvent,
    ProviderPaymentRequest,
)
from flashpay_core.domain.exceptions import ProviderError
from flashpay_core.infrastructure.payment_provider import InMemoryPaymentProvider


@pytest.fixture
def request_() -> ProviderPaymentRequest:
    return ProviderPaymentRequest(amount=Decimal("5"), memo="coffee", payment_id="pay-1")


class TestInMemoryPaymentProviderSetup:
    @pytest.mark.asyncio
    async def test_init_records_config(self) -> None:
        provider = InMemoryPaymentProvider()

        await provider.init(ProviderConfig(sandbox=True))

        assert provider.config == ProviderConfig(sandbox=True)

    @pytest.mark.asyncio
    async def test_register_mints_id_when_none_given(self) -> None:
        provider = InMemoryPaymentProvider()

        receipt = await provider.register_payment(
            ProviderPaymentRequest(amount=Decimal("5"), memo="")
        )

        assert receipt.payment_id
        assert len(provider.registered) == 1

    @pytest.mark.asyncio
    async def test_register_keeps_supplied_id(self, request_: ProviderPaymentRequest) -> None:
        receipt = await InMemoryPaymentProvider().register_payment(request_)

        assert receipt.payment_id == "pay-1"

    @pytest.mark.asyncio
    async def test_configured_error_is_raised(self) -> None:
        provider = InMemoryPaymentProvider()
        provider.auth_error = ProviderError("denied")

        with pytest.raises(ProviderError, match="denied"):
            await provider.authenticate(["username"])


class TestInMemoryPaymentProviderFlow:
    def test_approval_keeps_flow_open(self, request_: ProviderPaymentRequest) -> None:
        provider = InMemoryPaymentProvider()
        events: list[ProviderEvent] = []
        provider.request_payment(request_, events.append)

        provider.approve("pay-1")

        assert events == [ApprovalRequested(provider_payment_id="pi_pay-1")]
        assert provider.has_open_flow("pay-1") is True

    @pytest.mark.parametrize(
        ("finish", "expected"),
        [
            (lambda p: p.complete("pay-1", "tx-1"), Completed("pi_pay-1", "tx-1")),
            (lambda p: p.cancel("pay-1"), Cancelled("pi_pay-1")),
            (lambda p: p.fail("pay-1", "boom"), Failed("boom", "pi_pay-1")),
        ],
    )
    def test_final_event_closes_flow(
        self, request_: ProviderPaymentRequest, finish, expected: ProviderEvent
    ) -> None:
        provider = InMemoryPaymentProvider()
        events: list[ProviderEvent] = []
        provider.request_payment(request_, events.append)

        finish(provider)

        assert events == [expected]
        assert provider.has_open_flow("pay-1") is False

    def test_flow_requires_payment_id(self) -> None:
        provider = InMemoryPaymentProvider()

        with pytest.raises(ProviderError):
            provider.request_payment(
                ProviderPaymentRequest(amount=Decimal("5"), memo=""), lambda event: None
            )
