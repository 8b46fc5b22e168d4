"""Application layer - Ledger store, guards, use cases and port definitions.

This layer contains:
- Ledger Store: The single mutator of state, with cross-context sync
- Guards: Rate limiting, input validation, wallet/domain/master checks
- Use Cases: Payment creation, execution, queries and merchant sign-in
- Audit: Bounded audit and error trails with tracking ids
- Ports: Abstract interfaces for external dependencies
- DTOs: Results handed back to callers

The application layer depends only on the domain layer.
Infrastructure implementations are injected via ports.
"""
