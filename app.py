from __future__ import annotations

import logging

import streamlit as st

from stocksim.analysis import build_stock_analysis
from stocksim.cache_store import TTLCache
from stocksim.config import CACHE_TTL_SECONDS, DEFAULT_HISTORY_MONTHS, LOG_FORMAT
from stocksim.ui_components import render_hero, render_oscillators, render_price_chart, render_projection, render_valuation
from stocksim.ui_theme import inject_theme

logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)


@st.cache_resource
def _market_cache() -> TTLCache:
    return TTLCache(ttl_seconds=CACHE_TTL_SECONDS)


@st.cache_data(show_spinner=False, ttl=CACHE_TTL_SECONDS)
def _analyze(ticker_input: str, months: int, include_valuation: bool):
    return build_stock_analysis(
        ticker_input, months=months, include_valuation=include_valuation, cache=_market_cache()
    )


def main() -> None:
    st.set_page_config(page_title="Virtual Trading Lab", layout="wide")
    st.markdown(inject_theme(), unsafe_allow_html=True)

    st.sidebar.title("Stock lookup")
    ticker_input = st.sidebar.text_input("Ticker", value="", placeholder="e.g. AAPL, BRK.B, TSX:RY")
    months = st.sidebar.select_slider("History (months)", options=[3, 6, 12], value=DEFAULT_HISTORY_MONTHS)
    include_valuation = st.sidebar.checkbox("Include fair-value estimate", value=True)

    if not ticker_input.strip():
        st.info("Enter a ticker in the sidebar to see indicators, a price projection and a fair-value estimate.")
        return

    with st.spinner("Crunching the numbers..."):
        result = _analyze(ticker_input, months, include_valuation)

    if result is None:
        st.error("That ticker could not be parsed.")
        return

    render_hero(result)
    render_price_chart(result)
    render_oscillators(result)
    render_projection(result)
    if include_valuation:
        render_valuation(result)
    st.caption("Educational simulation only. Signals and projections are heuristic, not investment advice.")


if __name__ == "__main__":
    main()
