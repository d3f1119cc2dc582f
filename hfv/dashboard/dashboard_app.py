from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import pandas as pd
import plotly.express as px
import streamlit as st

from hfv.config import settings
from hfv.dashboard.client import ProxyClient
from hfv.dashboard.controller import ViewSnapshot, ViewStatus
from hfv.dashboard.formatting import (
    format_count,
    format_money,
    format_percent,
    format_price,
    trend_arrow,
)
from hfv.dashboard.runtime import ViewRuntime
from hfv.dashboard.session import DashboardSession, ViewKey
from hfv.dashboard.state import MarketTab, Page, favorite_toggles
from hfv.models import CoinDetail, ExchangeListing, GlobalMetrics, MarketQuote

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

RENDER_EVERY_SECONDS = 2
# Missed renders before an abandoned session's timers are torn down.
IDLE_RENDERS = 15

PAGE_NOTES = {
    Page.PORTFOLIO: ("Portfolio", "Add coins to track PnL here (no history stored)."),
    Page.SEARCH: ("Search", "Use the sidebar search box; it filters the market list locally."),
    Page.EXPLORE: ("Explore", "Trending and discovery (latest only)."),
    Page.PROFILE: ("Profile", "Settings live in the proxy's environment; the API key never reaches this page."),
}

TAB_NOTES = {
    MarketTab.CATEGORIES: ("Categories", "Connect a categories endpoint later (latest snapshot only)."),
    MarketTab.NFT: ("NFT", "If the plan includes NFT APIs, fetch latest on demand only (no storage)."),
}

st.set_page_config(page_title="HFV Markets", layout="wide")
st.title("HFV Markets")
st.caption("Latest values only • No history stored")
st.markdown(
    """
    <style>
    body, input, select, textarea {font-family: 'Inter', 'Helvetica', sans-serif !important;}
    h1, h2, h3, h4 {font-weight: 700;}
    .stMetric {background: #071a12; border-radius: 12px; padding: 12px;}
    [data-testid="stSidebar"] {background: #0b1f17; color: #d1fae5;}
    .hfv-up {color: #22c55e;}
    .hfv-down {color: #ef4444;}
    </style>
    """,
    unsafe_allow_html=True,
)


def get_session() -> Tuple[ViewRuntime, DashboardSession]:
    """One runtime and dashboard session per browser session.

    The runtime shuts itself down once the page stops rendering; a returning
    tab then gets a fresh pair.
    """
    runtime: Optional[ViewRuntime] = st.session_state.get("hfv_runtime")
    if runtime is None or not runtime.running:
        runtime = ViewRuntime()
        session = DashboardSession(ProxyClient())
        runtime.call(session.sync)
        runtime.watch(session.close, idle_seconds=RENDER_EVERY_SECONDS * IDLE_RENDERS)
        st.session_state.hfv_runtime = runtime
        st.session_state.hfv_session = session
    return st.session_state.hfv_runtime, st.session_state.hfv_session


runtime, session = get_session()


def render_snapshot_status(snap: Optional[ViewSnapshot], what: str) -> bool:
    """Render loading/error notices; True when the snapshot holds data to show."""
    if snap is None or snap.status is ViewStatus.LOADING:
        st.caption(f"Loading {what}…")
        return False
    if snap.status is ViewStatus.ERROR:
        st.error(snap.error)
        return False
    return True


def render_global_stats(snap: Optional[ViewSnapshot], currency: str) -> None:
    metrics: Optional[GlobalMetrics] = snap.data if snap is not None and snap.status is ViewStatus.READY else None
    cols = st.columns(4)
    cols[0].metric("Global Market Cap", format_money(metrics.total_market_cap if metrics else None, currency))
    cols[1].metric("24h Volume", format_money(metrics.total_volume_24h if metrics else None, currency))
    cols[2].metric("BTC Dominance", format_percent(metrics.btc_dominance if metrics else None))
    cols[3].metric("ETH Dominance", format_percent(metrics.eth_dominance if metrics else None))
    if snap is not None and snap.status is ViewStatus.ERROR:
        st.error(snap.error)


MARKET_COLUMNS = ["fav", "logo", "name", "symbol", "price", "24h", "market_cap"]


def markets_frame(items: List[MarketQuote], favorites: frozenset, currency: str) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "fav": item.symbol in favorites,
                "logo": item.logo_url,
                "name": item.name,
                "symbol": item.symbol,
                "price": format_price(item.price, currency),
                "24h": f"{trend_arrow(item.percent_change_24h)} {format_percent(item.percent_change_24h or 0)}",
                "market_cap": item.market_cap,
            }
            for item in items
        ],
        columns=MARKET_COLUMNS,
    )


def render_markets(snap: Optional[ViewSnapshot]) -> None:
    state = session.state
    head = st.columns([4, 1])
    head[0].subheader("Cryptocurrency")
    if head[1].button("Refresh", key="refresh_markets"):
        runtime.call(session.refresh, ViewKey.MARKETS)

    if not render_snapshot_status(snap, "markets"):
        return

    items = session.visible_markets()
    if not items:
        st.info("No coins match the current search.")
        return

    df = markets_frame(items, state.favorites, state.currency)
    # Edits are stored per row position; a new key drops them once applied.
    version = st.session_state.get("markets_editor_version", 0)
    edited = st.data_editor(
        df,
        hide_index=True,
        use_container_width=True,
        key=f"markets_editor_{version}",
        disabled=[c for c in MARKET_COLUMNS if c != "fav"],
        column_config={
            "fav": st.column_config.CheckboxColumn("★", width="small"),
            "logo": st.column_config.ImageColumn("", width="small"),
            "market_cap": st.column_config.NumberColumn("Market Cap", format="%.0f"),
        },
    )
    toggles = favorite_toggles(state.favorites, dict(zip(edited["symbol"], edited["fav"])))
    if toggles:
        for symbol in toggles:
            runtime.call(session.toggle_favorite, symbol)
        st.session_state.markets_editor_version = version + 1
        st.rerun()

    by_symbol = {item.symbol: item for item in items}
    current = state.selected.symbol if state.selected is not None and state.selected.symbol in by_symbol else ""
    choice = st.selectbox(
        "Coin details",
        options=[""] + list(by_symbol),
        index=([""] + list(by_symbol)).index(current),
        format_func=lambda s: "—" if not s else f"{by_symbol[s].name} ({s})",
    )
    if choice and choice != current:
        runtime.call(session.select_coin, choice, by_symbol[choice].name)

    top_market_cap = df.dropna(subset=["market_cap"]).nlargest(15, "market_cap")
    if not top_market_cap.empty:
        fig = px.bar(
            top_market_cap,
            x="market_cap",
            y="name",
            orientation="h",
            color="market_cap",
            color_continuous_scale="Greens",
            title=f"Top assets by market cap ({state.currency})",
        )
        fig.update_layout(yaxis={"categoryorder": "total ascending"})
        st.plotly_chart(fig, use_container_width=True)


def render_exchanges(snap: Optional[ViewSnapshot]) -> None:
    st.subheader("Exchanges")
    if not render_snapshot_status(snap, "exchanges"):
        return
    listings: List[ExchangeListing] = snap.data or []
    for exchange in listings:
        cols = st.columns([1, 6, 3])
        cols[0].image(exchange.logo_url, width=32)
        cols[1].markdown(f"**{exchange.name}**  \nMarkets: {format_count(exchange.num_market_pairs)}")
        cols[2].markdown(f"24h Vol: {format_money(exchange.volume_24h, 'USD')}")


def render_coin_detail(snap: Optional[ViewSnapshot]) -> None:
    state = session.state
    selected = state.selected
    if selected is None:
        return
    st.divider()
    head = st.columns([6, 2, 1])
    head[0].subheader(f"{selected.name} ({selected.symbol})")
    fav_label = "Unfavorite" if state.is_favorite(selected.symbol) else "Favorite"
    if head[1].button(fav_label, key="toggle_fav"):
        runtime.call(session.toggle_favorite, selected.symbol)
    if head[2].button("Close", key="close_detail"):
        runtime.call(session.close_detail)
        return

    if snap is not None and snap.status is ViewStatus.ERROR:
        st.error(snap.error)
    detail: Optional[CoinDetail] = snap.data if snap is not None and snap.status is ViewStatus.READY else None

    if detail is not None and detail.logo_url:
        st.image(detail.logo_url, width=48)
    cols = st.columns(3)
    cols[0].metric("Price", format_price(detail.price if detail else None, state.currency))
    change = detail.percent_change_24h if detail else None
    cols[1].metric("24h Change", format_percent(change), delta=None if change is None else f"{change:.2f}%")
    cols[2].metric("Market Cap", format_money(detail.market_cap if detail else None, state.currency))
    if detail is not None and detail.official_site_url:
        st.link_button("Official Site", detail.official_site_url)
    st.caption("Latest values only • No history stored")


def render_market_page() -> None:
    state = session.state
    tab = st.radio(
        "Section",
        options=list(MarketTab),
        index=list(MarketTab).index(state.market_tab),
        format_func=lambda t: t.value.title(),
        horizontal=True,
        label_visibility="collapsed",
    )
    if tab != state.market_tab:
        runtime.call(session.set_market_tab, tab)

    render_global_stats(session.snapshot(ViewKey.GLOBAL_STATS), state.currency)

    match state.market_tab:
        case MarketTab.CRYPTO:
            render_markets(session.snapshot(ViewKey.MARKETS))
        case MarketTab.EXCHANGES:
            render_exchanges(session.snapshot(ViewKey.EXCHANGES))
        case MarketTab.CATEGORIES | MarketTab.NFT:
            title, note = TAB_NOTES[state.market_tab]
            st.subheader(title)
            st.caption(note)
        case _:
            raise ValueError(f"Unknown market tab {state.market_tab!r}")

    render_coin_detail(session.snapshot(ViewKey.COIN_DETAIL))


@st.fragment(run_every=RENDER_EVERY_SECONDS)
def render_page() -> None:
    if not runtime.running:
        st.rerun()
    runtime.touch()
    page = session.state.page
    match page:
        case Page.MARKET:
            render_market_page()
        case Page.PORTFOLIO | Page.SEARCH | Page.EXPLORE | Page.PROFILE:
            title, note = PAGE_NOTES[page]
            st.subheader(title)
            st.caption(note)
        case _:
            raise ValueError(f"Unknown page {page!r}")


with st.sidebar:
    st.subheader("Navigation")
    page = st.radio(
        "Page",
        options=list(Page),
        index=list(Page).index(session.state.page),
        format_func=lambda p: p.value.title(),
    )
    if page != session.state.page:
        runtime.call(session.set_page, page)

    currencies = list(session.state.supported_currencies)
    currency = st.selectbox("Currency", options=currencies, index=currencies.index(session.state.currency))
    if currency != session.state.currency:
        runtime.call(session.set_currency, currency)

    query = st.text_input("Search", value=session.state.query, placeholder="Search by name or symbol...")
    if query != session.state.query:
        runtime.call(session.set_query, query)

    if session.state.favorites:
        st.caption("Favorites: " + ", ".join(sorted(session.state.favorites)))
    st.caption(f"Auto-refresh every {int(settings.poll_interval_seconds)}s")

render_page()
