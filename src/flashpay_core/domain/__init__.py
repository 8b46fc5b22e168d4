"""Domain layer - Core business logic, entities, and rules.

This layer contains:
- Entities: Payment lifecycle, merchant/session state, the ledger snapshot
- Value Objects: Amount, Note, PaymentId, MerchantId, TrackingId
- Domain Exceptions: The error taxonomy surfaced to callers

The domain layer has NO dependencies on external frameworks or infrastructure.
"""
