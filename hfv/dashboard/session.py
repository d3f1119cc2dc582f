from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from hfv.config import settings
from hfv.dashboard.controller import PollingViewController, ViewSnapshot, ViewStatus
from hfv.dashboard.state import AppState, MarketTab, Page, SelectedCoin
from hfv.dashboard.views import (
    JsonCaller,
    coin_detail_view,
    exchanges_view,
    filter_quotes,
    global_stats_view,
    markets_view,
)
from hfv.models import MarketQuote

logger = logging.getLogger(__name__)


class ViewKey(str, Enum):
    GLOBAL_STATS = "global_stats"
    MARKETS = "markets"
    EXCHANGES = "exchanges"
    COIN_DETAIL = "coin_detail"


CURRENCY_DEPENDENT: FrozenSet[ViewKey] = frozenset({ViewKey.GLOBAL_STATS, ViewKey.MARKETS, ViewKey.COIN_DETAIL})


def active_views(state: AppState) -> FrozenSet[ViewKey]:
    """Views that fetch data for the given navigation state."""
    match state.page:
        case Page.MARKET:
            views = {ViewKey.GLOBAL_STATS}
            match state.market_tab:
                case MarketTab.CRYPTO:
                    views.add(ViewKey.MARKETS)
                case MarketTab.EXCHANGES:
                    views.add(ViewKey.EXCHANGES)
                case MarketTab.CATEGORIES | MarketTab.NFT:
                    pass
                case _:
                    raise ValueError(f"Unknown market tab {state.market_tab!r}")
            if state.selected is not None:
                views.add(ViewKey.COIN_DETAIL)
            return frozenset(views)
        case Page.PORTFOLIO | Page.SEARCH | Page.EXPLORE | Page.PROFILE:
            return frozenset()
        case _:
            raise ValueError(f"Unknown page {state.page!r}")


class DashboardSession:
    """Root of one dashboard: owns the app state and the controllers of visible views.

    All methods must run on the event loop that drives the controllers.
    """

    def __init__(
        self,
        proxy: JsonCaller,
        state: Optional[AppState] = None,
        interval_seconds: Optional[float] = settings.poll_interval_seconds,
    ) -> None:
        self.proxy = proxy
        self.state = state or AppState()
        self.interval_seconds = interval_seconds
        self.controllers: Dict[ViewKey, PollingViewController] = {}

    def _build(self, key: ViewKey) -> PollingViewController:
        currency = self.state.currency
        match key:
            case ViewKey.GLOBAL_STATS:
                return global_stats_view(self.proxy, currency, interval_seconds=self.interval_seconds)
            case ViewKey.MARKETS:
                return markets_view(self.proxy, currency, interval_seconds=self.interval_seconds)
            case ViewKey.EXCHANGES:
                return exchanges_view(self.proxy, interval_seconds=self.interval_seconds)
            case ViewKey.COIN_DETAIL:
                if self.state.selected is None:
                    raise ValueError("coin detail requested without a selected coin")
                return coin_detail_view(self.proxy, self.state.selected.symbol, currency)
            case _:
                raise ValueError(f"Unknown view {key!r}")

    def sync(self) -> None:
        """Mount newly visible views and unmount the ones that went away."""
        wanted = active_views(self.state)
        for key in list(self.controllers):
            if key not in wanted:
                self.controllers.pop(key).unmount()
        for key in ViewKey:
            if key in wanted and key not in self.controllers:
                controller = self._build(key)
                self.controllers[key] = controller
                controller.mount()
        logger.debug("active views: %s", sorted(k.value for k in self.controllers))

    def set_page(self, page: Page | str) -> None:
        self.state.page = Page(page)
        self.sync()

    def set_market_tab(self, tab: MarketTab | str) -> None:
        self.state.market_tab = MarketTab(tab)
        self.sync()

    def set_currency(self, code: str) -> None:
        if not self.state.set_currency(code):
            return
        logger.info("currency -> %s", self.state.currency)
        for key, controller in self.controllers.items():
            if key in CURRENCY_DEPENDENT:
                controller.update_params(convert=self.state.currency)

    def set_query(self, query: str) -> None:
        # Filtering is local; no fetch.
        self.state.query = query

    def toggle_favorite(self, symbol: str) -> FrozenSet[str]:
        return self.state.toggle_favorite(symbol)

    def select_coin(self, symbol: str, name: str) -> None:
        selected = SelectedCoin(symbol=symbol, name=name)
        if self.state.selected == selected:
            return
        detail = self.controllers.pop(ViewKey.COIN_DETAIL, None)
        if detail is not None:
            detail.unmount()
        self.state.selected = selected
        self.sync()

    def close_detail(self) -> None:
        self.state.selected = None
        self.sync()

    def refresh(self, key: ViewKey) -> None:
        controller = self.controllers.get(key)
        if controller is not None:
            controller.refresh()

    def snapshot(self, key: ViewKey) -> Optional[ViewSnapshot]:
        controller = self.controllers.get(key)
        return controller.snapshot if controller is not None else None

    def visible_markets(self) -> List[MarketQuote]:
        snap = self.snapshot(ViewKey.MARKETS)
        if snap is None or snap.status is not ViewStatus.READY or snap.data is None:
            return []
        return filter_quotes(snap.data, self.state.query)

    async def wait_idle(self) -> None:
        for controller in list(self.controllers.values()):
            await controller.wait_idle()

    def close(self) -> None:
        for controller in self.controllers.values():
            controller.unmount()
        self.controllers.clear()
