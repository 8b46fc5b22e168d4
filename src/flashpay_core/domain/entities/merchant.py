from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True)
class MerchantContext:
    """The tenant operating this context.

    merchant_id is generated once and is immutable; every payment created
    here is scoped to it.
    """

    merchant_id: str
    setup_complete: bool = False
    external_identity: str | None = None
    wallet_address: str | None = None
    connected_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Session:
    """Who is acting right now and on behalf of which merchant.

    An empty merchant_id means "use the merchant context's id".
    """

    authenticated: bool
    merchant_id: str
    last_activity: datetime
    user_id: str | None = None
    username: str | None = None


@dataclass(frozen=True, slots=True)
class WalletStatus:
    connected: bool
    sdk_available: bool
    initialized: bool
    last_checked: datetime


class Theme(Enum):
    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True, slots=True)
class UIState:
    theme: Theme = Theme.LIGHT
    sidebar_open: bool = False
    last_visited_route: str = "/"
