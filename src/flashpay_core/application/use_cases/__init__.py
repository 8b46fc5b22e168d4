"""Use cases - Application-specific business rules."""

from flashpay_core.application.use_cases.create_payment import CreatePaymentUseCase
from flashpay_core.application.use_cases.execute_payment import ExecutePaymentUseCase
from flashpay_core.application.use_cases.merchant_session import MerchantSessionUseCase
from flashpay_core.application.use_cases.orchestrator import PaymentOrchestrator
from flashpay_core.application.use_cases.query_payments import QueryPaymentsUseCase

__all__ = [
    "CreatePaymentUseCase",
    "ExecutePaymentUseCase",
    "MerchantSessionUseCase",
    "PaymentOrchestrator",
    "QueryPaymentsUseCase",
]
