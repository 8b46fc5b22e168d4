"""Tests for the feature domain catalogue and route ownership."""

import pytest

from flashpay_core.domain.entities import DomainState
from flashpay_core.domain.entities.feature_domain import (
    PRIMARY_DOMAIN_ID,
    domain_for_route,
    find_domain,
    is_core_route,
)


class TestRouteOwnership:
    @pytest.mark.parametrize("route", ["/", "/create", "/pay", "/pay/abc-123", "/payments", "/profile"])
    def test_core_routes(self, route: str) -> None:
        assert is_core_route(route)

    @pytest.mark.parametrize("route", ["/pinet", "/diagnostics", "/created", "/unknown"])
    def test_non_core_routes(self, route: str) -> None:
        assert not is_core_route(route)

    def test_root_does_not_own_sub_paths(self) -> None:
        assert domain_for_route("/unknown") is None

    def test_auxiliary_route_owner(self) -> None:
        domain = domain_for_route("/pinet/preview")

        assert domain is not None
        assert domain.id == "pinet"


class TestDomainState:
    def test_default_master_is_off_with_catalogue_defaults(self) -> None:
        state = DomainState.default()

        assert state.master_enabled is False
        assert state.domains == {"flashpay": True, "pinet": True, "diagnostics": False}

    def test_with_domain_returns_new_state(self) -> None:
        state = DomainState.default()

        changed = state.with_domain("diagnostics", True)

        assert changed.domains["diagnostics"] is True
        assert state.domains["diagnostics"] is False

    def test_primary_domain_is_flagged(self) -> None:
        domain = find_domain(PRIMARY_DOMAIN_ID)

        assert domain is not None
        assert domain.is_primary
