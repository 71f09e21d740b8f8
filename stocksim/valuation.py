from __future__ import annotations

import logging
import math
from collections.abc import Mapping

from .config import (
    CONFIDENCE_WEIGHTS,
    DCF_DEFAULT_GROWTH,
    DCF_GROWTH_BOUNDS,
    DCF_TERMINAL_GROWTH,
    DCF_YEARS,
    DEFAULT_SECTOR_PE,
    GAP_PCT,
    GRAHAM_MULTIPLIER,
    MARKET_RETURN,
    RISK_FREE_RATE,
    ROE_BOOK_CAP,
    SECTOR_PE,
    SIGNIFICANT_GAP_PCT,
)
from .models import FundamentalsSnapshot, PriceBand, ValuationModel, ValuationResult

logger = logging.getLogger(__name__)


def _finite_positive(value: float) -> float | None:
    if not math.isfinite(value) or value <= 0:
        return None
    return round(value, 2)


def capm_expected_return(beta: float) -> float:
    return RISK_FREE_RATE + beta * (MARKET_RETURN - RISK_FREE_RATE)


def graham_number(f: FundamentalsSnapshot) -> tuple[float | None, str]:
    if f.eps <= 0:
        return None, "EPS<=0"
    if f.book_value <= 0:
        return None, "Book value<=0"
    return _finite_positive(math.sqrt(GRAHAM_MULTIPLIER * f.eps * f.book_value)), ""


def pe_fair_value(f: FundamentalsSnapshot, sector_pe: float) -> tuple[float | None, str]:
    if f.eps <= 0:
        return None, "EPS<=0"
    return _finite_positive(f.eps * sector_pe), ""


def dcf_growth_rate(f: FundamentalsSnapshot) -> float:
    if f.peg_ratio > 0 and f.pe_ratio > 0:
        lo, hi = DCF_GROWTH_BOUNDS
        return max(lo, min(hi, f.pe_ratio / f.peg_ratio / 100.0))
    return DCF_DEFAULT_GROWTH


def simple_dcf(f: FundamentalsSnapshot, discount_rate: float) -> tuple[float | None, str]:
    if f.eps <= 0:
        return None, "EPS<=0"
    if discount_rate <= 0:
        return None, "Discount rate<=0"

    growth = dcf_growth_rate(f)
    future_eps = f.eps
    total_pv = 0.0
    for year in range(1, DCF_YEARS + 1):
        future_eps *= 1 + growth
        total_pv += future_eps / (1 + discount_rate) ** year

    spread = discount_rate - DCF_TERMINAL_GROWTH
    if spread == 0:
        return None, "Non-finite result"
    terminal_value = future_eps * (1 + DCF_TERMINAL_GROWTH) / spread
    terminal_pv = terminal_value / (1 + discount_rate) ** DCF_YEARS

    value = _finite_positive(total_pv + terminal_pv)
    if value is None:
        return None, "Non-finite result"
    return value, ""


def roe_value(f: FundamentalsSnapshot, discount_rate: float) -> tuple[float | None, str]:
    if f.book_value <= 0:
        return None, "Book value<=0"
    if f.return_on_equity <= 0:
        return None, "ROE<=0"
    if discount_rate <= 0:
        return None, "Discount rate<=0"

    raw = f.book_value * (1 + f.return_on_equity) / discount_rate
    if not math.isfinite(raw) or raw <= 0:
        return None, "Non-finite result"
    return round(min(raw, f.book_value * ROE_BOOK_CAP), 2), ""


def composite_fair_value(models: list[ValuationModel], current_price: float) -> PriceBand:
    valid = [m for m in models if m.fair_value is not None and m.fair_value > 0]
    if not valid:
        return PriceBand(low=current_price, mid=current_price, high=current_price)

    weights = [CONFIDENCE_WEIGHTS[m.confidence] for m in valid]
    values = [float(m.fair_value) for m in valid]
    mid = sum(v * w for v, w in zip(values, weights)) / sum(weights)
    return PriceBand(low=round(min(values), 2), mid=round(mid, 2), high=round(max(values), 2))


def classify_verdict(percent_diff: float) -> str:
    if percent_diff <= -SIGNIFICANT_GAP_PCT:
        return "significantly_undervalued"
    if percent_diff <= -GAP_PCT:
        return "undervalued"
    if percent_diff >= SIGNIFICANT_GAP_PCT:
        return "significantly_overvalued"
    if percent_diff >= GAP_PCT:
        return "overvalued"
    return "fairly_valued"


def calculate_valuation(
    fundamentals: FundamentalsSnapshot,
    current_price: float,
    sector_pe: Mapping[str, float] | None = None,
    default_pe: float = DEFAULT_SECTOR_PE,
) -> ValuationResult:
    """Run the five fair-value models and fold them into a composite verdict.

    Models always appear in the same order: Graham Number, P/E Fair Value,
    Simple DCF, Analyst Target, ROE-Based Value. A model whose inputs are
    unknown keeps its slot with ``fair_value=None`` and a ``reason``.
    ``sector_pe`` replaces the built-in sector multiple table.
    """
    table = SECTOR_PE if sector_pe is None else sector_pe
    f = fundamentals
    discount_rate = capm_expected_return(f.beta)
    pe = table.get(f.sector) or default_pe
    sector_name = f.sector if f.sector and f.sector != "Unknown" else "Market"

    models: list[ValuationModel] = []

    graham, reason = graham_number(f)
    models.append(
        ValuationModel(
            name="Graham Number",
            fair_value=graham,
            description="sqrt(22.5 x EPS x Book Value), Benjamin Graham's intrinsic value formula",
            confidence="medium" if graham is not None else "low",
            reason=reason,
        )
    )

    pe_value, reason = pe_fair_value(f, pe)
    models.append(
        ValuationModel(
            name="P/E Fair Value",
            fair_value=pe_value,
            description=f"EPS x sector avg P/E ({pe:g} for {sector_name})",
            confidence="medium" if pe_value is not None and f.pe_ratio > 0 else "low",
            reason=reason,
        )
    )

    dcf, reason = simple_dcf(f, discount_rate)
    models.append(
        ValuationModel(
            name="Simple DCF",
            fair_value=dcf,
            description="Discounted cash flow using CAPM rate and PEG-implied growth",
            confidence="medium" if dcf is not None else "low",
            reason=reason,
        )
    )

    target = round(f.analyst_target_price, 2) if f.analyst_target_price > 0 else None
    models.append(
        ValuationModel(
            name="Analyst Target",
            fair_value=target,
            description="Consensus analyst 12-month price target",
            confidence="high" if target is not None else "low",
            reason="" if target is not None else "No analyst target",
        )
    )

    roe, reason = roe_value(f, discount_rate)
    models.append(
        ValuationModel(
            name="ROE-Based Value",
            fair_value=roe,
            description="Book Value x (1 + ROE) / discount rate, earnings power model",
            confidence="medium" if roe is not None else "low",
            reason=reason,
        )
    )

    skipped = [m.name for m in models if m.fair_value is None]
    if skipped:
        logger.debug("valuation for %s skipped models: %s", f.symbol or "<unnamed>", ", ".join(skipped))

    composite = composite_fair_value(models, current_price)
    percent_diff = (current_price - composite.mid) / composite.mid * 100.0 if composite.mid > 0 else 0.0

    return ValuationResult(
        beta=f.beta,
        current_price=current_price,
        capm_expected_return=round(discount_rate * 100.0, 2),
        models=models,
        composite_fair_value=composite,
        percent_over_undervalued=round(percent_diff, 2),
        verdict=classify_verdict(percent_diff),
    )
