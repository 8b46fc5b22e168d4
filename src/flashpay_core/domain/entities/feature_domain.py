"""Feature domains gated by the two-level toggle.

The primary domain carries the core payment routes and is always
reachable. Auxiliary domains are integration surfaces that can be
suspended independently, but only while the master toggle is on.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

PRIMARY_DOMAIN_ID = "flashpay"
CONTROL_PANEL_ROUTE = "/control-panel"
CORE_ROUTES = ("/", "/create", "/pay", "/payments", "/profile")


@dataclass(frozen=True, slots=True)
class FeatureDomain:
    id: str
    name: str
    host: str
    routes: tuple[str, ...]
    description: str
    default_enabled: bool
    is_primary: bool = False

    def owns_route(self, route: str) -> bool:
        return any(_route_matches(prefix, route) for prefix in self.routes)


OPERATIONAL_DOMAINS: tuple[FeatureDomain, ...] = (
    FeatureDomain(
        id=PRIMARY_DOMAIN_ID,
        name="FlashPay",
        host="flashpay.pi",
        routes=CORE_ROUTES,
        description="Primary payment request system",
        default_enabled=True,
        is_primary=True,
    ),
    FeatureDomain(
        id="pinet",
        name="PiNet Metadata",
        host="flashpay.pi",
        routes=("/pinet",),
        description="Link preview metadata for shared payment links",
        default_enabled=True,
    ),
    FeatureDomain(
        id="diagnostics",
        name="Diagnostics",
        host="flashpay.pi",
        routes=("/diagnostics",),
        description="Operational diagnostics and readiness checks",
        default_enabled=False,
    ),
)


@dataclass(frozen=True, slots=True)
class DomainState:
    """Persisted toggle values: the master switch plus one flag per domain."""

    master_enabled: bool = False
    domains: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def default(cls) -> DomainState:
        return cls(
            master_enabled=False,
            domains={domain.id: domain.default_enabled for domain in OPERATIONAL_DOMAINS},
        )

    def with_master(self, enabled: bool) -> DomainState:
        return replace(self, master_enabled=enabled)

    def with_domain(self, domain_id: str, enabled: bool) -> DomainState:
        return replace(self, domains={**self.domains, domain_id: enabled})


def find_domain(domain_id: str) -> FeatureDomain | None:
    return next((d for d in OPERATIONAL_DOMAINS if d.id == domain_id), None)


def domain_for_route(route: str) -> FeatureDomain | None:
    return next((d for d in OPERATIONAL_DOMAINS if d.owns_route(route)), None)


def is_core_route(route: str) -> bool:
    return any(_route_matches(prefix, route) for prefix in CORE_ROUTES)


def _route_matches(prefix: str, route: str) -> bool:
    if route == prefix:
        return True
    # "/" only matches itself; every other prefix also owns its sub-paths
    return prefix != "/" and route.startswith(prefix + "/")
