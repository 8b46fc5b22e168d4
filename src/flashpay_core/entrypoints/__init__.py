"""Entrypoints layer - Composition of one application context.

build_context() wires settings, adapters, the ledger store, guards and
use cases into an AppContext. Each context plays the role of one browser
tab: contexts built on the same storage medium share data and observe
each other's writes. bootstrap() is the process entry point.
"""

from flashpay_core.entrypoints.context import AppContext, bootstrap, build_context

__all__ = ["AppContext", "bootstrap", "build_context"]
