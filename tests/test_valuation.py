import pytest

from stocksim.models import FundamentalsSnapshot, ValuationModel
from stocksim.valuation import (
    calculate_valuation,
    capm_expected_return,
    classify_verdict,
    composite_fair_value,
    dcf_growth_rate,
    roe_value,
    simple_dcf,
)

MODEL_ORDER = ["Graham Number", "P/E Fair Value", "Simple DCF", "Analyst Target", "ROE-Based Value"]


def _fundamentals(**kwargs):
    base = dict(symbol="TEST", sector="Technology", beta=1.0)
    base.update(kwargs)
    return FundamentalsSnapshot(**base)


def _by_name(result):
    return {m.name: m for m in result.models}


def test_graham_number_documented_example():
    result = calculate_valuation(_fundamentals(eps=6.0, book_value=30.0), current_price=60.0)
    graham = _by_name(result)["Graham Number"]
    assert graham.fair_value == 63.64
    assert graham.confidence == "medium"


def test_models_keep_fixed_order_and_nulls():
    result = calculate_valuation(_fundamentals(), current_price=42.0)
    assert [m.name for m in result.models] == MODEL_ORDER
    assert all(m.fair_value is None for m in result.models)
    assert all(m.confidence == "low" for m in result.models)
    assert all(m.reason for m in result.models)


def test_composite_falls_back_to_current_price():
    result = calculate_valuation(
        _fundamentals(eps=0.0, book_value=0.0, peg_ratio=0.0, analyst_target_price=0.0, return_on_equity=0.0),
        current_price=42.0,
    )
    band = result.composite_fair_value
    assert (band.low, band.mid, band.high) == (42.0, 42.0, 42.0)
    assert result.percent_over_undervalued == 0
    assert result.verdict == "fairly_valued"


@pytest.mark.parametrize(
    "price, verdict",
    [
        (75.0, "significantly_undervalued"),
        (75.5, "undervalued"),
        (90.0, "undervalued"),
        (90.5, "fairly_valued"),
        (109.5, "fairly_valued"),
        (110.0, "overvalued"),
        (124.5, "overvalued"),
        (125.0, "significantly_overvalued"),
    ],
)
def test_verdict_boundaries_are_inclusive(price, verdict):
    result = calculate_valuation(_fundamentals(analyst_target_price=100.0), current_price=price)
    assert result.composite_fair_value.mid == 100.0
    assert result.verdict == verdict


def test_classify_verdict_direct():
    assert classify_verdict(-25) == "significantly_undervalued"
    assert classify_verdict(-24.99) == "undervalued"
    assert classify_verdict(-10) == "undervalued"
    assert classify_verdict(-9.99) == "fairly_valued"
    assert classify_verdict(9.99) == "fairly_valued"
    assert classify_verdict(10) == "overvalued"
    assert classify_verdict(24.99) == "overvalued"
    assert classify_verdict(25) == "significantly_overvalued"


def test_composite_weights_by_confidence_with_raw_bounds():
    models = [
        ValuationModel(name="a", fair_value=100.0, description="", confidence="high"),
        ValuationModel(name="b", fair_value=50.0, description="", confidence="medium"),
        ValuationModel(name="c", fair_value=80.0, description="", confidence="low"),
        ValuationModel(name="d", fair_value=None, description="", confidence="low"),
    ]
    band = composite_fair_value(models, current_price=10.0)
    assert band.mid == 80.0
    assert band.low == 50.0
    assert band.high == 100.0


def test_capm_rate_reported_as_percent():
    assert capm_expected_return(1.0) == pytest.approx(0.10)
    result = calculate_valuation(_fundamentals(beta=1.0), current_price=10.0)
    assert result.capm_expected_return == 10.0
    assert result.beta == 1.0


def test_pe_fair_value_uses_sector_table():
    tech = _by_name(calculate_valuation(_fundamentals(eps=2.0, pe_ratio=25.0), current_price=50.0))
    assert tech["P/E Fair Value"].fair_value == 56.0
    assert tech["P/E Fair Value"].confidence == "medium"

    unknown = _by_name(calculate_valuation(_fundamentals(eps=2.0, sector="Unknown"), current_price=50.0))
    assert unknown["P/E Fair Value"].fair_value == 40.0
    assert unknown["P/E Fair Value"].confidence == "low"


def test_sector_table_is_injectable():
    result = calculate_valuation(
        _fundamentals(eps=2.0, pe_ratio=25.0), current_price=50.0, sector_pe={"Technology": 10}
    )
    assert _by_name(result)["P/E Fair Value"].fair_value == 20.0


def test_dcf_growth_from_peg_is_clamped():
    assert dcf_growth_rate(_fundamentals(pe_ratio=20.0, peg_ratio=2.0)) == pytest.approx(0.10)
    assert dcf_growth_rate(_fundamentals(pe_ratio=100.0, peg_ratio=0.5)) == 0.30
    assert dcf_growth_rate(_fundamentals(pe_ratio=5.0, peg_ratio=5.0)) == 0.02
    assert dcf_growth_rate(_fundamentals(pe_ratio=20.0)) == 0.08


def test_dcf_matches_hand_rolled_projection():
    f = _fundamentals(eps=5.0)
    rate = 0.10
    eps, pv = 5.0, 0.0
    for year in range(1, 6):
        eps *= 1.08
        pv += eps / 1.10**year
    pv += eps * 1.025 / (rate - 0.025) / 1.10**5

    value, reason = simple_dcf(f, rate)
    assert reason == ""
    assert value == round(pv, 2)


def test_negative_discount_rate_nulls_rate_models():
    result = calculate_valuation(
        _fundamentals(eps=5.0, book_value=20.0, return_on_equity=0.2, beta=-1.0), current_price=50.0
    )
    models = _by_name(result)
    assert models["Simple DCF"].fair_value is None
    assert models["Simple DCF"].reason == "Discount rate<=0"
    assert models["ROE-Based Value"].fair_value is None
    assert models["Graham Number"].fair_value is not None


def test_roe_value_and_cap():
    normal = _by_name(calculate_valuation(_fundamentals(book_value=10.0, return_on_equity=0.2), current_price=50.0))
    assert normal["ROE-Based Value"].fair_value == 120.0

    capped = _by_name(calculate_valuation(_fundamentals(book_value=10.0, return_on_equity=5.0), current_price=50.0))
    assert capped["ROE-Based Value"].fair_value == 200.0


def test_analyst_target_passthrough_is_high_confidence():
    models = _by_name(calculate_valuation(_fundamentals(analyst_target_price=187.456), current_price=150.0))
    assert models["Analyst Target"].fair_value == 187.46
    assert models["Analyst Target"].confidence == "high"


def test_dcf_at_terminal_growth_rate_is_null():
    assert simple_dcf(_fundamentals(eps=5.0), 0.025) == (None, "Non-finite result")


def test_dcf_below_terminal_growth_is_null_not_negative():
    value, reason = simple_dcf(_fundamentals(eps=5.0), 0.02)
    assert value is None
    assert reason == "Non-finite result"


def test_roe_value_overflow_is_null():
    assert roe_value(_fundamentals(book_value=1e308, return_on_equity=1.0), 1e-10) == (None, "Non-finite result")
