"""Two-level switch over the feature domain catalogue.

The master toggle gates every auxiliary domain. The primary domain
carries the core payment routes and stays enabled whatever the toggles
say, so a merchant can always reach create, pay and history pages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from flashpay_core.domain.entities.feature_domain import (
    CONTROL_PANEL_ROUTE,
    OPERATIONAL_DOMAINS,
    find_domain,
    is_core_route,
)
from flashpay_core.domain.entities.feature_domain import domain_for_route as _domain_for_route

if TYPE_CHECKING:
    from flashpay_core.application.audit import AuditTrail, ErrorTrail
    from flashpay_core.application.ledger_store import LedgerStore
    from flashpay_core.domain.entities import FeatureDomain

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class DomainStatus:
    domain: FeatureDomain
    enabled: bool


class FeatureToggle:
    def __init__(self, store: LedgerStore, audit_trail: AuditTrail, error_trail: ErrorTrail) -> None:
        self._store = store
        self._audit_trail = audit_trail
        self._error_trail = error_trail

    def is_master_enabled(self) -> bool:
        return self._store.domain_state.master_enabled

    def set_master_enabled(self, enabled: bool) -> None:
        self._store.set_domain_state(self._store.domain_state.with_master(enabled))
        self._audit_trail.record("setMasterEnabled", {"enabled": enabled})
        logger.info("master_toggle_changed", enabled=enabled)

    def is_domain_enabled(self, domain_id: str) -> bool:
        domain = find_domain(domain_id)
        if domain is None:
            return False
        if domain.is_primary:
            return True

        state = self._store.domain_state
        if not state.master_enabled:
            return False
        return state.domains.get(domain_id, domain.default_enabled)

    def set_domain_enabled(self, domain_id: str, enabled: bool) -> bool:
        """Returns False, recording an error, when the change is refused."""
        domain = find_domain(domain_id)
        if domain is None:
            self._error_trail.record(
                "setDomainEnabled",
                f"Unknown domain: {domain_id}",
                {"domain_id": domain_id},
            )
            return False

        if domain.is_primary:
            self._error_trail.record(
                "setDomainEnabled",
                f"Cannot change domain {domain_id}: core domain is always enabled",
                {"domain_id": domain_id},
            )
            return False

        if not self.is_master_enabled():
            self._error_trail.record(
                "setDomainEnabled",
                f"Cannot change domain {domain_id}: master toggle is OFF",
                {"domain_id": domain_id, "enabled": enabled},
            )
            return False

        self._store.set_domain_state(self._store.domain_state.with_domain(domain_id, enabled))
        self._audit_trail.record("setDomainEnabled", {"domain_id": domain_id, "enabled": enabled})
        logger.info("domain_toggle_changed", domain_id=domain_id, enabled=enabled)
        return True

    def all_domains(self) -> list[DomainStatus]:
        return [DomainStatus(d, self.is_domain_enabled(d.id)) for d in OPERATIONAL_DOMAINS]

    def get_domain(self, domain_id: str) -> DomainStatus | None:
        domain = find_domain(domain_id)
        if domain is None:
            return None
        return DomainStatus(domain, self.is_domain_enabled(domain_id))

    def domain_for_route(self, route: str) -> FeatureDomain | None:
        return _domain_for_route(route)

    def can_access_route(self, route: str) -> bool:
        if route == CONTROL_PANEL_ROUTE or is_core_route(route):
            return True

        domain = _domain_for_route(route)
        if domain is None:
            logger.debug("route_unowned", route=route)
            return False

        allowed = self.is_domain_enabled(domain.id)
        if not allowed:
            logger.info("route_blocked", route=route, domain_id=domain.id)
        return allowed
