from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Mapping, Optional, Tuple

from hfv.config import settings


class Page(str, Enum):
    """Bottom navigation destinations."""

    MARKET = "market"
    PORTFOLIO = "portfolio"
    SEARCH = "search"
    EXPLORE = "explore"
    PROFILE = "profile"


class MarketTab(str, Enum):
    """Top tabs shown on the market page."""

    CRYPTO = "crypto"
    CATEGORIES = "categories"
    NFT = "nft"
    EXCHANGES = "exchanges"


@dataclass(frozen=True)
class SelectedCoin:
    symbol: str
    name: str


def toggle_membership(favorites: FrozenSet[str], symbol: str) -> FrozenSet[str]:
    if symbol in favorites:
        return favorites - {symbol}
    return favorites | {symbol}


def favorite_toggles(favorites: FrozenSet[str], flags: Mapping[str, bool]) -> List[str]:
    """Symbols whose checkbox in ``flags`` disagrees with ``favorites``, in row order."""
    return [symbol for symbol, starred in flags.items() if bool(starred) != (symbol in favorites)]


@dataclass
class AppState:
    """Everything the dashboard shows that is not fetched data.

    Owned by one :class:`~hfv.dashboard.session.DashboardSession`; views get
    read-only slices of it.
    """

    page: Page = Page.MARKET
    market_tab: MarketTab = MarketTab.CRYPTO
    currency: str = settings.default_convert
    query: str = ""
    selected: Optional[SelectedCoin] = None
    favorites: FrozenSet[str] = field(default_factory=lambda: frozenset({"HFV"}))
    supported_currencies: Tuple[str, ...] = settings.supported_currencies

    def set_currency(self, code: str) -> bool:
        """Switch the target currency; returns False when it was already active."""
        normalized = code.strip().upper()
        if normalized not in self.supported_currencies:
            raise ValueError(f"Unsupported currency {code!r}; expected one of {self.supported_currencies}")
        if normalized == self.currency:
            return False
        self.currency = normalized
        return True

    def toggle_favorite(self, symbol: str) -> FrozenSet[str]:
        self.favorites = toggle_membership(self.favorites, symbol)
        return self.favorites

    def is_favorite(self, symbol: str) -> bool:
        return symbol in self.favorites
