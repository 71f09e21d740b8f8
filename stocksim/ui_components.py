from __future__ import annotations

import pandas as pd
import plotly.graph_objects as go
import streamlit as st
from plotly.subplots import make_subplots

from .config import BB_OVERBOUGHT, BB_OVERSOLD, RSI_OVERBOUGHT, RSI_OVERSOLD
from .predictor import signal_color, signal_label

VERDICT_LABELS = {
    "significantly_undervalued": "Significantly Undervalued",
    "undervalued": "Undervalued",
    "fairly_valued": "Fairly Valued",
    "overvalued": "Overvalued",
    "significantly_overvalued": "Significantly Overvalued",
}


def _fmt_price(value: float | None) -> str:
    if value is None or pd.isna(value):
        return "-"
    return f"{float(value):,.2f}"


def _fmt_pct(value: float | None) -> str:
    if value is None or pd.isna(value):
        return "-"
    return f"{float(value):+.2f}%"


def _frame(rows: list[dict]) -> pd.DataFrame:
    df = pd.DataFrame(rows)
    if not df.empty and "date" in df.columns:
        df["date"] = pd.to_datetime(df["date"])
    return df


def render_hero(result: dict) -> None:
    quote = result["quote"]
    prediction = result["prediction"]
    signal = prediction["signal"]
    st.markdown(
        f"""
<div class="hero">
  <h2 style="margin:0">{quote.get("name") or result["symbol"]} ({result["symbol"]})</h2>
  <p style="margin:.3rem 0 0 0">
    <span class="badge" style="background:{signal_color(signal)}">{signal_label(signal)}</span>
    confidence {prediction["confidence"]:.0f}%
  </p>
</div>
""",
        unsafe_allow_html=True,
    )
    if result.get("is_mock_data"):
        st.warning("No market data was returned for this symbol. Charts use a simulated series.")

    c1, c2, c3, c4, c5 = st.columns(5)
    c1.metric("Price", _fmt_price(quote["price"]), _fmt_pct(quote.get("change_percent")))
    c2.metric("Target (mid)", _fmt_price(prediction["target_price"]["mid"]))
    c3.metric("Buy zone", f'{_fmt_price(prediction["buy_zone"]["low"])} - {_fmt_price(prediction["buy_zone"]["high"])}')
    c4.metric("Sell zone", f'{_fmt_price(prediction["sell_zone"]["low"])} - {_fmt_price(prediction["sell_zone"]["high"])}')
    c5.metric("Score", f'{prediction["score"]:+.1f}')


def render_price_chart(result: dict) -> None:
    prices = _frame(result["historical_data"])
    if prices.empty:
        return
    bands = _frame(result["indicators"]["bollinger_bands"]["history"])
    sma20 = _frame(result["sma20_history"])
    sma50 = _frame(result["sma50_history"])

    fig = go.Figure()
    fig.add_trace(
        go.Candlestick(
            x=prices["date"],
            open=prices["open"],
            high=prices["high"],
            low=prices["low"],
            close=prices["close"],
            name="Daily OHLC",
            increasing_line_color="#0d9488",
            decreasing_line_color="#dc2626",
        )
    )
    if not bands.empty:
        fig.add_trace(go.Scatter(x=bands["date"], y=bands["upper"], mode="lines", name="Upper band", line=dict(color="#94a3b8", dash="dot")))
        fig.add_trace(go.Scatter(x=bands["date"], y=bands["lower"], mode="lines", name="Lower band", line=dict(color="#94a3b8", dash="dot"), fill="tonexty", fillcolor="rgba(148,163,184,0.12)"))
    if not sma20.empty:
        fig.add_trace(go.Scatter(x=sma20["date"], y=sma20["value"], mode="lines", name="SMA20", line=dict(color="#2563eb", width=2)))
    if not sma50.empty:
        fig.add_trace(go.Scatter(x=sma50["date"], y=sma50["value"], mode="lines", name="SMA50", line=dict(color="#f59e0b", width=2)))

    fig.update_layout(
        height=520,
        margin=dict(t=16, b=12, l=12, r=12),
        xaxis_rangeslider_visible=False,
        legend=dict(orientation="h", yanchor="bottom", y=1.0, xanchor="left", x=0),
    )
    st.plotly_chart(fig, use_container_width=True)


def render_oscillators(result: dict) -> None:
    indicators = result["indicators"]
    rsi = _frame(indicators["rsi"]["history"])
    macd = _frame(indicators["macd"]["history"])
    volume = _frame(result["volume_history"])

    fig = make_subplots(rows=3, cols=1, shared_xaxes=True, vertical_spacing=0.06, subplot_titles=("RSI", "MACD", "Volume"))
    if not rsi.empty:
        fig.add_trace(go.Scatter(x=rsi["date"], y=rsi["value"], mode="lines", name="RSI", line=dict(color="#7c3aed")), row=1, col=1)
        fig.add_hline(y=RSI_OVERBOUGHT, line_dash="dash", line_color="#dc2626", row=1, col=1)
        fig.add_hline(y=RSI_OVERSOLD, line_dash="dash", line_color="#16a34a", row=1, col=1)
    if not macd.empty:
        colors = ["#16a34a" if h >= 0 else "#dc2626" for h in macd["histogram"]]
        fig.add_trace(go.Bar(x=macd["date"], y=macd["histogram"], name="Histogram", marker_color=colors), row=2, col=1)
        fig.add_trace(go.Scatter(x=macd["date"], y=macd["macd"], mode="lines", name="MACD", line=dict(color="#2563eb")), row=2, col=1)
        fig.add_trace(go.Scatter(x=macd["date"], y=macd["signal"], mode="lines", name="Signal", line=dict(color="#f59e0b")), row=2, col=1)
    if not volume.empty:
        fig.add_trace(go.Bar(x=volume["date"], y=volume["volume"], name="Volume", marker_color="#94a3b8"), row=3, col=1)
        fig.add_trace(go.Scatter(x=volume["date"], y=volume["avg"], mode="lines", name="20d avg", line=dict(color="#0f172a")), row=3, col=1)

    fig.update_layout(height=720, margin=dict(t=30, b=12, l=12, r=12), showlegend=False)
    st.plotly_chart(fig, use_container_width=True)

    bands = indicators["bollinger_bands"]
    vol = indicators["volume"]
    ma = indicators["moving_averages"]
    st.caption(
        f'RSI {indicators["rsi"]["value"]:.2f} ({indicators["rsi"]["signal"]}) | '
        f'MACD trend {indicators["macd"]["trend"]} | '
        f'SMA20 {ma["sma20"]:.2f} / SMA50 {ma["sma50"]:.2f} ({ma["signal"]}) | '
        f'%B {bands["percent_b"]:.2f} (oversold <= {BB_OVERSOLD:g}, overbought >= {BB_OVERBOUGHT:g}) | '
        f'volume {vol["percent_vs_average"]:+.2f}% vs average'
    )


def render_projection(result: dict) -> None:
    projected = pd.DataFrame(result["prediction"]["projected_prices"])
    if projected.empty:
        return
    st.subheader("Five-month projection")
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=projected["period_label"], y=projected["high"], mode="lines", name="High", line=dict(color="#16a34a", dash="dot")))
    fig.add_trace(go.Scatter(x=projected["period_label"], y=projected["low"], mode="lines", name="Low", line=dict(color="#dc2626", dash="dot"), fill="tonexty", fillcolor="rgba(37,99,235,0.10)"))
    fig.add_trace(go.Scatter(x=projected["period_label"], y=projected["mid"], mode="lines+markers", name="Mid", line=dict(color="#2563eb", width=2)))
    fig.update_layout(height=360, margin=dict(t=16, b=12, l=12, r=12))
    st.plotly_chart(fig, use_container_width=True)


def render_valuation(result: dict) -> None:
    valuation = result.get("valuation")
    st.subheader("Fair value")
    if valuation is None:
        st.info("Company fundamentals are unavailable, so no valuation was computed.")
        return

    composite = valuation["composite_fair_value"]
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Composite fair value", _fmt_price(composite["mid"]))
    c2.metric("Range", f'{_fmt_price(composite["low"])} - {_fmt_price(composite["high"])}')
    c3.metric("Price vs fair value", _fmt_pct(valuation["percent_over_undervalued"]))
    c4.metric("Verdict", VERDICT_LABELS.get(valuation["verdict"], valuation["verdict"]))
    st.caption(f'Beta {valuation["beta"]:.2f} | CAPM expected return {valuation["capm_expected_return"]:.2f}%')

    models = pd.DataFrame(valuation["models"])
    shown = models[models["fair_value"].notna()]
    if not shown.empty:
        fig = go.Figure(go.Bar(x=shown["name"], y=shown["fair_value"], marker_color="#1565c0", name="Fair value"))
        fig.add_hline(y=valuation["current_price"], line_dash="dash", line_color="#dc2626", annotation_text="Current price")
        fig.update_layout(height=360, margin=dict(t=16, b=12, l=12, r=12))
        st.plotly_chart(fig, use_container_width=True)

    table = models[["name", "fair_value", "confidence", "reason", "description"]]
    st.dataframe(table, use_container_width=True, hide_index=True)
