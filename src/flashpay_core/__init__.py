"""FlashPay core: merchant payment ledger with cross-context sync and guarded operations."""

__version__ = "0.1.0"
