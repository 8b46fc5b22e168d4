"""Tests for the HTTP backend mirror using httpx.MockTransport."""

import json
from datetime import datetime
from decimal import Decimal

import httpx
import pytest

from flashpay_core.application.ports import ProviderPaymentRequest
from flashpay_core.domain.entities import Payment, PaymentStatus
from flashpay_core.domain.exceptions import BackendMirrorError
from flashpay_core.infrastructure.backend_mirror import BackendPayment, HttpBackendMirror

BASE_URL = "http://backend.test"


class Recorder:
    """Transport handler that records requests and replays canned responses."""

    def __init__(self, response: httpx.Response | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.response = response or httpx.Response(200, json={"success": True})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


def mirror_for(handler) -> HttpBackendMirror:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return HttpBackendMirror(BASE_URL, client=client)


@pytest.fixture
def payment(fixed_time: datetime) -> Payment:
    return Payment.create("pay-1", "merchant_1", Decimal("5"), "coffee", fixed_time)


@pytest.fixture
def request_() -> ProviderPaymentRequest:
    return ProviderPaymentRequest(amount=Decimal("5"), memo="coffee", payment_id="pay-1")


# =============================================================================
# Requests
# =============================================================================


class TestHttpBackendMirrorRequests:
    @pytest.mark.asyncio
    async def test_create_posts_camel_case_payment(self, payment: Payment) -> None:
        recorder = Recorder()

        await mirror_for(recorder).create(payment)

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/payments"
        assert recorder.last_body["merchantId"] == "merchant_1"
        assert recorder.last_body["status"] == "PENDING"

    @pytest.mark.asyncio
    async def test_update_status_patches_with_txid(self) -> None:
        recorder = Recorder()

        await mirror_for(recorder).update_status("pay-1", PaymentStatus.PAID, "tx-1")

        request = recorder.requests[0]
        assert request.method == "PATCH"
        assert request.url.path == "/api/payments/pay-1"
        assert recorder.last_body == {"status": "PAID", "txid": "tx-1"}

    @pytest.mark.asyncio
    async def test_complete_carries_transaction(self, request_: ProviderPaymentRequest) -> None:
        recorder = Recorder()

        await mirror_for(recorder).complete("pi_pay-1", "tx-1", request_)

        assert recorder.requests[0].url.path == "/api/pi/complete"
        assert recorder.last_body == {
            "identifier": "pi_pay-1",
            "amount": "5",
            "memo": "coffee",
            "metadata": {"paymentId": "pay-1"},
            "transaction": {"txid": "tx-1", "verified": True},
        }

    @pytest.mark.asyncio
    async def test_approve_posts_callback(self, request_: ProviderPaymentRequest) -> None:
        recorder = Recorder()

        await mirror_for(recorder).approve("pi_pay-1", request_)

        assert recorder.requests[0].url.path == "/api/pi/approve"
        assert "transaction" not in recorder.last_body


# =============================================================================
# Fetch
# =============================================================================


class TestHttpBackendMirrorFetch:
    @pytest.mark.asyncio
    async def test_fetch_unwraps_payment(self, payment: Payment) -> None:
        body = {
            "success": True,
            "payment": BackendPayment.from_entity(payment).model_dump(mode="json", by_alias=True),
        }
        recorder = Recorder(httpx.Response(200, json=body))

        result = await mirror_for(recorder).fetch("pay-1")

        assert result == payment

    @pytest.mark.asyncio
    async def test_fetch_404_is_none(self) -> None:
        recorder = Recorder(httpx.Response(404, json={"success": False}))

        assert await mirror_for(recorder).fetch("pay-1") is None

    @pytest.mark.asyncio
    async def test_fetch_malformed_body_raises(self) -> None:
        recorder = Recorder(httpx.Response(200, json={"payment": {"id": "pay-1"}}))

        with pytest.raises(BackendMirrorError, match="Malformed"):
            await mirror_for(recorder).fetch("pay-1")


# =============================================================================
# Error Translation
# =============================================================================


class TestHttpBackendMirrorErrors:
    @pytest.mark.asyncio
    async def test_server_error_is_translated(self, payment: Payment) -> None:
        recorder = Recorder(httpx.Response(500))

        with pytest.raises(BackendMirrorError, match="status 500") as exc_info:
            await mirror_for(recorder).create(payment)

        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_timeout_is_translated(self, payment: Payment) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(BackendMirrorError, match="timed out"):
            await mirror_for(handler).create(payment)

    @pytest.mark.asyncio
    async def test_connection_error_is_translated(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(BackendMirrorError, match="failed"):
            await mirror_for(handler).update_status("pay-1", PaymentStatus.FAILED)
