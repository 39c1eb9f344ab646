"""AffordabilityCalculator unit tests

Affordability, equity and upgrade feasibility maths.
"""

import pytest

from decision_engine.models.enums import RateProfile
from decision_engine.services.rules.affordability import (
    CALCULATOR_CONFIG,
    AffordabilityCalculator,
    calculate_equity,
    installment_to_principal,
    principal_to_installment,
)


def _annuity_pv(installment: float, annual_rate: float, years: int) -> float:
    r = annual_rate / 12
    n = years * 12
    return installment * (1 - (1 + r) ** -n) / r


calc = AffordabilityCalculator()


# ──────────────────────────────────────
# Affordability
# ──────────────────────────────────────


class TestAffordability:
    """calculate_affordability"""

    def test_reference_scenario_reproducible(self):
        """RM8,000 income, RM1,500 commitments, first-time, age 35, conservative"""
        result = calc.calculate_affordability(
            8_000, 1_500, age=35, is_first_time_buyer=True,
            rate_profile=RateProfile.CONSERVATIVE,
        )
        assert result.disposable_income == 6_500
        assert result.effective_tenure_years == 30
        assert result.interest_rate == 0.058
        assert result.downpayment_ratio == 0.10

        expected_loan = _annuity_pv(6_500 * 0.60, 0.058, 30)
        expected_price = expected_loan / (1 - 0.10)
        assert abs(result.conservative_property_price - expected_price) <= 1

    def test_installment_within_dsr(self):
        result = calc.calculate_affordability(8_000, 1_500)
        assert result.max_monthly_installment == pytest.approx(6_500 * 0.70)
        assert result.conservative_monthly_installment <= 6_500 * CALCULATOR_CONFIG.MAX_DSR_RATIO
        assert result.conservative_property_price <= result.max_property_price

    def test_upfront_costs_add_up(self):
        result = calc.calculate_affordability(8_000, 1_500)
        assert result.required_downpayment == round(result.conservative_property_price * 0.10)
        assert result.misc_fees == 5_000
        assert result.total_upfront_cost == (
            result.required_downpayment + result.stamp_duty
            + result.legal_fees + result.misc_fees
        )

    def test_subsequent_home_needs_20pct(self):
        # same loan, larger downpayment on top of it
        first = calc.calculate_affordability(8_000, 0, is_first_time_buyer=True)
        second = calc.calculate_affordability(8_000, 0, is_first_time_buyer=False)
        assert second.downpayment_ratio == 0.20
        assert second.conservative_loan_amount == first.conservative_loan_amount
        assert second.conservative_property_price > first.conservative_property_price
        assert second.required_downpayment / second.conservative_property_price == (
            pytest.approx(0.20, abs=1e-5)
        )

    def test_zero_income_all_zero(self):
        result = calc.calculate_affordability(0, 0)
        assert result.conservative_property_price == 0
        assert result.max_property_price == 0
        assert result.total_upfront_cost == 0
        assert result.assumptions

    def test_commitments_exceed_income(self):
        result = calc.calculate_affordability(3_000, 4_000)
        assert result.disposable_income == 0
        assert result.max_loan_amount == 0
        assert result.misc_fees == 0

    def test_nan_income_treated_as_zero(self):
        result = calc.calculate_affordability(float("nan"), 0)
        assert result.conservative_property_price == 0

    def test_rate_profiles_ordered(self):
        cons = calc.calculate_affordability(8_000, 0, rate_profile="conservative")
        std = calc.calculate_affordability(8_000, 0, rate_profile="standard")
        opt = calc.calculate_affordability(8_000, 0, rate_profile="optimistic")
        assert cons.conservative_property_price < std.conservative_property_price
        assert std.conservative_property_price < opt.conservative_property_price


class TestTenure:
    """Age-capped tenure"""

    def test_young_capped_at_35_years(self):
        assert calc.effective_tenure(25) == 35

    def test_age_60_five_years(self):
        assert calc.effective_tenure(60) == 5

    def test_past_maturity_age_zero_loan(self):
        result = calc.calculate_affordability(8_000, 0, age=70)
        assert result.effective_tenure_years == 0
        assert result.conservative_property_price == 0

    def test_none_age_uses_default(self):
        assert calc.effective_tenure(None) == 30


class TestFees:
    """Tiered stamp duty and legal fees"""

    def test_stamp_duty_500k(self):
        # 100k × 1% + 400k × 2%
        assert calc.calculate_stamp_duty(500_000) == 9_000

    def test_stamp_duty_1_2m(self):
        # 1,000 + 8,000 + 500k × 3% + 200k × 4%
        assert calc.calculate_stamp_duty(1_200_000) == 32_000

    def test_legal_fees(self):
        assert calc.calculate_legal_fees(500_000) == 6_250
        assert calc.calculate_legal_fees(800_000) == 9_250

    def test_zero_price_no_fees(self):
        assert calc.calculate_stamp_duty(0) == 0
        assert calc.calculate_legal_fees(0) == 0


class TestAmortizationHelpers:
    """installment_to_principal / principal_to_installment"""

    def test_inverse(self):
        principal = installment_to_principal(3_000, 0.05, 30)
        assert principal_to_installment(principal, 0.05, 30) == pytest.approx(3_000)

    def test_zero_rate(self):
        assert installment_to_principal(1_000, 0.0, 10) == 120_000

    def test_zero_tenure(self):
        assert installment_to_principal(1_000, 0.05, 0) == 0.0
        assert principal_to_installment(100_000, 0.05, 0) == 0.0


# ──────────────────────────────────────
# Equity
# ──────────────────────────────────────


class TestEquity:
    """calculate_equity"""

    def test_reference_scenario(self):
        """RM500k value, RM350k loan, selling costs included"""
        result = calculate_equity(500_000, 350_000, include_selling_costs=True)
        assert result.gross_equity == 150_000
        assert result.gross_equity_percent == 30.0
        assert result.selling_costs == 15_000
        assert result.safety_buffer == 30_000
        assert result.usable_equity == 105_000
        assert result.affordable_upgrade_property == 1_050_000

    def test_without_selling_costs(self):
        result = calculate_equity(500_000, 350_000, include_selling_costs=False)
        assert result.selling_costs == 0
        assert result.usable_equity == 120_000

    def test_underwater_clamped(self):
        result = calculate_equity(300_000, 400_000)
        assert result.gross_equity == 0
        assert result.usable_equity == 0
        assert result.affordable_upgrade_property == 0

    def test_usable_never_exceeds_gross(self):
        for loan in (0, 100_000, 450_000, 490_000):
            result = calculate_equity(500_000, loan)
            assert 0 <= result.usable_equity <= result.gross_equity

    def test_affordable_upgrade_non_decreasing_in_usable_equity(self):
        # paying the loan down only ever raises usable equity and the upgrade price
        results = [
            calculate_equity(600_000, loan)
            for loan in range(650_000, -1, -25_000)
        ]
        usable = [r.usable_equity for r in results]
        affordable = [r.affordable_upgrade_property for r in results]
        assert usable == sorted(usable)
        assert affordable == sorted(affordable)
        assert affordable[0] == 0
        assert affordable[-1] > 0

    def test_no_property_value(self):
        result = calculate_equity(0, 100_000)
        assert result.gross_equity == 0
        assert result.assumptions == ["Property value not recorded"]

    def test_none_loan_balance(self):
        result = calculate_equity(400_000, None)
        assert result.gross_equity == 400_000


# ──────────────────────────────────────
# Upgrade analysis
# ──────────────────────────────────────


class TestAnalyzeUpgrade:
    """analyze_upgrade"""

    def test_no_current_property(self):
        result = calc.analyze_upgrade(10_000, 0, current_property_value=None)
        assert result.is_feasible is False
        assert result.equity is None
        assert "No current property value" in result.reasons[0]

    def test_feasible_upgrade(self):
        result = calc.analyze_upgrade(
            20_000, 2_000, age=35,
            current_property_value=500_000,
            outstanding_loan_balance=200_000,
            current_monthly_installment=2_000,
        )
        assert result.target_property_price == 600_000
        assert result.equity.usable_equity == 225_000
        assert result.is_feasible is True
        # current installment excluded from commitments
        assert result.affordability.disposable_income == 20_000
        assert result.monthly_difference <= 20_000 * 0.20
        assert "Request mortgage pre-approval from 2-3 banks" in result.recommended_steps

    def test_monthly_increase_too_high(self):
        result = calc.analyze_upgrade(
            5_000, 1_500, age=35,
            current_property_value=500_000,
            outstanding_loan_balance=450_000,
            current_monthly_installment=1_500,
        )
        assert result.affordability.conservative_property_price >= result.target_property_price
        assert result.monthly_difference > 5_000 * 0.20
        assert result.is_feasible is False
        assert "Build additional savings for downpayment" in result.recommended_steps
        assert any("short of" in r for r in result.reasons)

    def test_low_income_not_feasible(self):
        result = calc.analyze_upgrade(
            3_000, 0, current_property_value=800_000, outstanding_loan_balance=100_000,
        )
        assert result.is_feasible is False
        assert any("below the upgrade target" in r for r in result.reasons)
