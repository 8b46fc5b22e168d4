"""Best-effort HTTP mirror of the ledger.

The backend speaks camelCase JSON and wraps single payments as
{"success": true, "payment": {...}}. Every transport, status or decoding
failure is translated into BackendMirrorError.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import httpx
import pydantic
import structlog
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from flashpay_core.application.ports import BackendMirror
from flashpay_core.domain.entities import Payment, PaymentStatus
from flashpay_core.domain.exceptions import BackendMirrorError

if TYPE_CHECKING:
    from flashpay_core.application.ports import ProviderPaymentRequest

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class BackendPayment(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str
    merchant_id: str
    amount: Decimal
    note: str = ""
    status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime
    paid_at: datetime | None = None
    txid: str | None = None

    @classmethod
    def from_entity(cls, payment: Payment) -> BackendPayment:
        return cls(
            id=payment.id,
            merchant_id=payment.merchant_id,
            amount=payment.amount,
            note=payment.note,
            status=payment.status,
            created_at=payment.created_at,
            paid_at=payment.paid_at,
            txid=payment.txid,
        )

    def to_entity(self) -> Payment:
        return Payment(
            id=self.id,
            merchant_id=self.merchant_id,
            amount=self.amount,
            note=self.note,
            status=self.status,
            created_at=self.created_at,
            paid_at=self.paid_at,
            txid=self.txid,
        )


class HttpBackendMirror(BackendMirror):
    """httpx client for the payments and provider-callback routes.

    Routes:
        POST  /api/payments          create
        GET   /api/payments/{id}     fetch (404 means unknown)
        PATCH /api/payments/{id}     status mirror
        POST  /api/pi/approve        provider approval
        POST  /api/pi/complete       provider completion
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create(self, payment: Payment) -> None:
        body = BackendPayment.from_entity(payment).model_dump(mode="json", by_alias=True)
        await self._request("POST", "/api/payments", json=body)
        logger.info("backend_payment_created", payment_id=payment.id)

    async def fetch(self, payment_id: str) -> Payment | None:
        response = await self._request("GET", f"/api/payments/{payment_id}", missing_ok=True)
        if response is None:
            return None

        try:
            data = response.json()
            payload = data.get("payment", data) if isinstance(data, dict) else data
            return BackendPayment.model_validate(payload).to_entity()
        except (ValueError, pydantic.ValidationError) as e:
            raise BackendMirrorError(f"Malformed payment from backend: {payment_id}") from e

    async def update_status(
        self,
        payment_id: str,
        status: PaymentStatus,
        txid: str | None = None,
    ) -> None:
        body: dict[str, Any] = {"status": status.value}
        if txid is not None:
            body["txid"] = txid
        await self._request("PATCH", f"/api/payments/{payment_id}", json=body)
        logger.info("backend_status_mirrored", payment_id=payment_id, status=status.value)

    async def approve(self, provider_payment_id: str, request: ProviderPaymentRequest) -> None:
        await self._request("POST", "/api/pi/approve", json=_callback_body(provider_payment_id, request))
        logger.info("backend_payment_approved", provider_payment_id=provider_payment_id)

    async def complete(
        self,
        provider_payment_id: str,
        txid: str,
        request: ProviderPaymentRequest,
    ) -> None:
        body = _callback_body(provider_payment_id, request)
        body["transaction"] = {"txid": txid, "verified": True}
        await self._request("POST", "/api/pi/complete", json=body)
        logger.info("backend_payment_completed", provider_payment_id=provider_payment_id, txid=txid)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        missing_ok: bool = False,
        **kwargs: Any,
    ) -> httpx.Response | None:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if missing_ok and e.response.status_code == 404:
                return None
            raise BackendMirrorError(
                f"Backend {method} {path} failed with status {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise BackendMirrorError(f"Backend {method} {path} timed out") from e
        except httpx.HTTPError as e:
            raise BackendMirrorError(f"Backend {method} {path} failed: {e}") from e
        return response


class InMemoryBackendMirror(BackendMirror):
    """Records every call; set fail=True to make every call raise."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.payments: dict[str, Payment] = {}
        self.statuses: dict[str, tuple[PaymentStatus, str | None]] = {}
        self.calls: list[tuple[str, str]] = []

    async def create(self, payment: Payment) -> None:
        self._record("create", payment.id)
        self.payments[payment.id] = payment

    async def fetch(self, payment_id: str) -> Payment | None:
        self._record("fetch", payment_id)
        return self.payments.get(payment_id)

    async def update_status(
        self,
        payment_id: str,
        status: PaymentStatus,
        txid: str | None = None,
    ) -> None:
        self._record("update_status", payment_id)
        self.statuses[payment_id] = (status, txid)

    async def approve(self, provider_payment_id: str, request: ProviderPaymentRequest) -> None:
        self._record("approve", provider_payment_id)

    async def complete(
        self,
        provider_payment_id: str,
        txid: str,
        request: ProviderPaymentRequest,
    ) -> None:
        self._record("complete", provider_payment_id)

    def _record(self, call: str, subject: str) -> None:
        self.calls.append((call, subject))
        if self.fail:
            raise BackendMirrorError(f"Backend unavailable: {call}")


def _callback_body(provider_payment_id: str, request: ProviderPaymentRequest) -> dict[str, Any]:
    return {
        "identifier": provider_payment_id,
        "amount": str(request.amount),
        "memo": request.memo,
        "metadata": {"paymentId": request.payment_id},
    }
