"""Affordability / equity calculator

Conservative Malaysia-specific purchase maths. No I/O, pure functions only.

Structure:
  calculate_affordability: disposable income × DSR → installment → loan (annuity)
                           → property price → upfront costs
  calculate_equity:        gross equity − selling costs − safety buffer
  analyze_upgrade:         both of the above, current vs. projected commitment

Rationale:
  - DSR is applied to disposable income (income − existing commitments), so
    the installment can never exceed disposable × MAX_DSR_RATIO.
  - Tenure is capped by age at maturity, so older clients borrow less.
  - Equity keeps a 20% buffer on top of selling costs so the usable figure is
    never overstated.
  - Disposable income ≤ 0 yields an all-zero result, never an exception.
"""

from __future__ import annotations

import logging
import math

from pydantic import BaseModel, ConfigDict

from decision_engine.config import Settings, settings
from decision_engine.models.enums import RateProfile
from decision_engine.models.scores import (
    AffordabilityResult,
    EquityResult,
    UpgradeAnalysisResult,
)
from decision_engine.services.formatting import format_rm, format_rm_full

logger = logging.getLogger(__name__)

AFFORDABILITY_DISCLAIMER = (
    "This is an illustrative estimate only. Actual loan approval depends on bank "
    "assessment, credit score, documentation, and other eligibility criteria. "
    "This is NOT a loan approval."
)
EQUITY_DISCLAIMER = (
    "Actual equity depends on final property valuation and settlement costs. "
    "Bank valuations may differ from market estimates. This is an estimate only."
)

DEFAULT_AGE = 35


class InterestRateConfig(BaseModel):
    """One interest rate assumption"""

    model_config = ConfigDict(frozen=True)

    rate: float
    label: str
    description: str


class CalculatorConfig(BaseModel):
    """Read-only calculator constants"""

    model_config = ConfigDict(frozen=True)

    INTEREST_RATES: dict[RateProfile, InterestRateConfig]
    MAX_DSR_RATIO: float
    CONSERVATIVE_DSR_RATIO: float
    MAX_TENURE_YEARS: int
    MAX_AGE_AT_MATURITY: int
    FIRST_HOME_DOWNPAYMENT: float
    SUBSEQUENT_HOME_DOWNPAYMENT: float
    EQUITY_BUFFER_PERCENT: float
    SELLING_COSTS_PERCENT: float
    MISC_FEES_BUFFER: int
    MIN_UPGRADE_UPLIFT: float
    MONTHLY_INCREASE_TOLERANCE: float
    # Marginal tiers: (upper bound RM or None for the rest, rate)
    STAMP_DUTY_TIERS: tuple[tuple[float | None, float], ...] = (
        (100_000, 0.01),
        (500_000, 0.02),
        (1_000_000, 0.03),
        (None, 0.04),
    )
    LEGAL_FEE_TIERS: tuple[tuple[float | None, float], ...] = (
        (500_000, 0.0125),
        (None, 0.01),
    )

    @classmethod
    def from_settings(cls, s: Settings) -> CalculatorConfig:
        return cls(
            INTEREST_RATES={
                RateProfile.CONSERVATIVE: InterestRateConfig(
                    rate=s.RATE_CONSERVATIVE,
                    label=f"Conservative ({s.RATE_CONSERVATIVE * 100:.1f}%)",
                    description="Assumes higher-than-market rate for safety",
                ),
                RateProfile.STANDARD: InterestRateConfig(
                    rate=s.RATE_STANDARD,
                    label=f"Standard ({s.RATE_STANDARD * 100:.1f}%)",
                    description="Close to current market rates",
                ),
                RateProfile.OPTIMISTIC: InterestRateConfig(
                    rate=s.RATE_OPTIMISTIC,
                    label=f"Optimistic ({s.RATE_OPTIMISTIC * 100:.1f}%)",
                    description="Best-case scenario (internal planning only)",
                ),
            },
            MAX_DSR_RATIO=s.MAX_DSR_RATIO,
            CONSERVATIVE_DSR_RATIO=min(s.CONSERVATIVE_DSR_RATIO, s.MAX_DSR_RATIO),
            MAX_TENURE_YEARS=s.MAX_TENURE_YEARS,
            MAX_AGE_AT_MATURITY=s.MAX_AGE_AT_MATURITY,
            FIRST_HOME_DOWNPAYMENT=s.FIRST_HOME_DOWNPAYMENT,
            SUBSEQUENT_HOME_DOWNPAYMENT=s.SUBSEQUENT_HOME_DOWNPAYMENT,
            EQUITY_BUFFER_PERCENT=s.EQUITY_BUFFER_PERCENT,
            SELLING_COSTS_PERCENT=s.SELLING_COSTS_PERCENT,
            MISC_FEES_BUFFER=s.MISC_FEES_BUFFER,
            MIN_UPGRADE_UPLIFT=s.MIN_UPGRADE_UPLIFT,
            MONTHLY_INCREASE_TOLERANCE=s.MONTHLY_INCREASE_TOLERANCE,
        )


CALCULATOR_CONFIG = CalculatorConfig.from_settings(settings)


class AffordabilityCalculator:
    """Affordability, equity and upgrade feasibility calculator"""

    def __init__(self, config: CalculatorConfig | None = None) -> None:
        self.config = config or CALCULATOR_CONFIG

    # ──────────────────────────────────────
    # Affordability
    # ──────────────────────────────────────

    def calculate_affordability(
        self,
        income: float,
        existing_commitments: float = 0.0,
        age: int | None = DEFAULT_AGE,
        is_first_time_buyer: bool = True,
        rate_profile: RateProfile | str = RateProfile.CONSERVATIVE,
    ) -> AffordabilityResult:
        """Maximum and conservative property price

        Args:
            income: monthly net income (RM)
            existing_commitments: existing monthly debt repayments (RM)
            age: current age, caps tenure at MAX_AGE_AT_MATURITY
            is_first_time_buyer: 10% downpayment if True, else 20%
            rate_profile: conservative / standard / optimistic

        Returns:
            AffordabilityResult (all-zero when disposable income ≤ 0)
        """
        cfg = self.config
        profile = RateProfile(rate_profile)
        annual_rate = cfg.INTEREST_RATES[profile].rate
        age = DEFAULT_AGE if age is None else age

        income = _finite(income)
        existing_commitments = max(0.0, _finite(existing_commitments))
        disposable = income - existing_commitments

        if income <= 0 or disposable <= 0:
            return AffordabilityResult(
                assumptions=[
                    f"No disposable income: income {format_rm_full(income)}, "
                    f"commitments {format_rm_full(existing_commitments)}/month"
                ],
                disclaimer=AFFORDABILITY_DISCLAIMER,
            )

        tenure = self.effective_tenure(age)

        max_installment = disposable * cfg.MAX_DSR_RATIO
        conservative_installment = disposable * cfg.CONSERVATIVE_DSR_RATIO

        max_loan = installment_to_principal(max_installment, annual_rate, tenure)
        conservative_loan = installment_to_principal(
            conservative_installment, annual_rate, tenure
        )

        downpayment_ratio = (
            cfg.FIRST_HOME_DOWNPAYMENT
            if is_first_time_buyer
            else cfg.SUBSEQUENT_HOME_DOWNPAYMENT
        )

        # property price = loan / (1 − downpayment ratio)
        max_price = round(max_loan / (1 - downpayment_ratio))
        conservative_price = round(conservative_loan / (1 - downpayment_ratio))

        # upfront costs on the conservative price
        required_downpayment = round(conservative_price * downpayment_ratio)
        stamp_duty = self.calculate_stamp_duty(conservative_price)
        legal_fees = self.calculate_legal_fees(conservative_price)
        misc_fees = cfg.MISC_FEES_BUFFER if conservative_price > 0 else 0
        total_upfront = required_downpayment + stamp_duty + legal_fees + misc_fees

        assumptions = [
            f"Interest rate: {annual_rate * 100:.1f}% p.a. "
            f"({cfg.INTEREST_RATES[profile].description})",
            f"Max DSR used: {cfg.MAX_DSR_RATIO * 100:.0f}% of disposable income "
            f"(conservative {cfg.CONSERVATIVE_DSR_RATIO * 100:.0f}%)",
            f"Loan tenure: {tenure} years (based on age {age})",
            f"Downpayment: {downpayment_ratio * 100:.0f}% "
            f"({'first home' if is_first_time_buyer else 'subsequent home'})",
            f"Existing commitments: {format_rm_full(existing_commitments)}/month",
        ]

        logger.debug(
            "affordability: disposable=%.0f tenure=%d rate=%.3f price=%d",
            disposable, tenure, annual_rate, conservative_price,
        )

        return AffordabilityResult(
            disposable_income=round(disposable, 2),
            max_property_price=max_price,
            conservative_property_price=conservative_price,
            max_monthly_installment=round(max_installment, 2),
            conservative_monthly_installment=round(conservative_installment, 2),
            max_loan_amount=round(max_loan),
            conservative_loan_amount=round(conservative_loan),
            effective_tenure_years=tenure,
            interest_rate=annual_rate,
            downpayment_ratio=downpayment_ratio,
            required_downpayment=required_downpayment,
            stamp_duty=stamp_duty,
            legal_fees=legal_fees,
            misc_fees=misc_fees,
            total_upfront_cost=total_upfront,
            assumptions=assumptions,
            disclaimer=AFFORDABILITY_DISCLAIMER,
        )

    def effective_tenure(self, age: int | None) -> int:
        """min(MAX_TENURE_YEARS, MAX_AGE_AT_MATURITY − age), floored at 0"""
        age = DEFAULT_AGE if age is None else age
        years_to_max_age = max(0, self.config.MAX_AGE_AT_MATURITY - age)
        return min(self.config.MAX_TENURE_YEARS, years_to_max_age)

    def calculate_stamp_duty(self, property_price: float) -> int:
        """Tiered stamp duty on the instrument of transfer"""
        return round(_tiered_amount(property_price, self.config.STAMP_DUTY_TIERS))

    def calculate_legal_fees(self, property_price: float) -> int:
        """Tiered legal fees on the sale and purchase agreement"""
        return round(_tiered_amount(property_price, self.config.LEGAL_FEE_TIERS))

    # ──────────────────────────────────────
    # Equity
    # ──────────────────────────────────────

    def calculate_equity(
        self,
        property_value: float,
        outstanding_loan_balance: float | None = 0.0,
        include_selling_costs: bool = True,
    ) -> EquityResult:
        """Usable equity after selling costs and safety buffer

        gross = max(0, value − loan)
        usable = max(0, gross − selling costs − gross × buffer)
        affordable upgrade = usable / first-home downpayment ratio
        """
        cfg = self.config
        value = max(0.0, _finite(property_value))
        loan = max(0.0, _finite(outstanding_loan_balance or 0.0))

        if value <= 0:
            return EquityResult(
                assumptions=["Property value not recorded"],
                disclaimer=EQUITY_DISCLAIMER,
            )

        gross = max(0.0, value - loan)
        selling_costs = value * cfg.SELLING_COSTS_PERCENT if include_selling_costs else 0.0
        safety_buffer = gross * cfg.EQUITY_BUFFER_PERCENT
        usable = max(0.0, gross - selling_costs - safety_buffer)
        affordable_upgrade = usable / cfg.FIRST_HOME_DOWNPAYMENT

        assumptions = [
            f"Property value: {format_rm_full(value)}",
            f"Outstanding loan: {format_rm_full(loan)}",
            f"Safety buffer: {cfg.EQUITY_BUFFER_PERCENT * 100:.0f}% of equity held back",
            (
                f"Selling costs: {cfg.SELLING_COSTS_PERCENT * 100:.1f}% (agent, legal, etc.)"
                if include_selling_costs
                else "Selling costs not included"
            ),
        ]

        return EquityResult(
            gross_equity=round(gross),
            gross_equity_percent=round(gross / value * 100, 2),
            selling_costs=round(selling_costs),
            safety_buffer=round(safety_buffer),
            usable_equity=round(usable),
            usable_equity_percent=round(usable / value * 100, 2),
            available_for_downpayment=round(usable),
            affordable_upgrade_property=round(affordable_upgrade),
            assumptions=assumptions,
            disclaimer=EQUITY_DISCLAIMER,
        )

    # ──────────────────────────────────────
    # Upgrade analysis
    # ──────────────────────────────────────

    def analyze_upgrade(
        self,
        income: float,
        existing_commitments: float = 0.0,
        age: int | None = DEFAULT_AGE,
        current_property_value: float | None = None,
        outstanding_loan_balance: float | None = 0.0,
        current_monthly_installment: float | None = 0.0,
        is_first_time_buyer: bool = False,
        rate_profile: RateProfile | str = RateProfile.CONSERVATIVE,
    ) -> UpgradeAnalysisResult:
        """Sell-and-buy feasibility

        The current mortgage installment is retired on sale, so it is removed
        from the commitments before computing affordability. Feasible only when
        the conservative price reaches the uplift target AND the monthly
        increase stays within MONTHLY_INCREASE_TOLERANCE of income.
        """
        cfg = self.config
        profile = RateProfile(rate_profile)
        income = _finite(income)
        current_installment = max(0.0, _finite(current_monthly_installment or 0.0))
        non_mortgage = max(0.0, _finite(existing_commitments) - current_installment)

        affordability = self.calculate_affordability(
            income,
            non_mortgage,
            age=age,
            is_first_time_buyer=is_first_time_buyer,
            rate_profile=profile,
        )

        reasons: list[str] = []
        value = _finite(current_property_value or 0.0)

        if value <= 0:
            reasons.append(
                "No current property value recorded; upgrade analysis needs an existing home."
            )
            return UpgradeAnalysisResult(
                affordability=affordability,
                current_monthly_commitment=round(current_installment, 2),
                reasons=reasons,
                recommended_steps=[
                    "Record the client's current property value and loan balance",
                    "Reassess in 6-12 months",
                ],
            )

        equity = self.calculate_equity(value, outstanding_loan_balance, True)

        target_price = round(value * (1 + cfg.MIN_UPGRADE_UPLIFT))
        required_downpayment = round(target_price * affordability.downpayment_ratio)
        downpayment = min(target_price, max(equity.usable_equity, required_downpayment))
        new_loan = target_price - downpayment
        new_installment = principal_to_installment(
            new_loan,
            cfg.INTEREST_RATES[profile].rate,
            affordability.effective_tenure_years,
        )
        monthly_difference = new_installment - current_installment
        tolerance = income * cfg.MONTHLY_INCREASE_TOLERANCE

        price_ok = (
            affordability.conservative_property_price > 0
            and affordability.conservative_property_price >= target_price
        )
        monthly_ok = (
            affordability.effective_tenure_years > 0
            and monthly_difference <= tolerance
        )

        if affordability.disposable_income <= 0:
            reasons.append("Existing commitments exceed income. Not feasible.")
        elif affordability.effective_tenure_years == 0:
            reasons.append("No loan tenure available at the client's age.")
        elif price_ok:
            reasons.append(
                f"Conservative affordable price {format_rm(affordability.conservative_property_price)} "
                f"covers the upgrade target {format_rm(target_price)} "
                f"({cfg.MIN_UPGRADE_UPLIFT * 100:.0f}% above current value)."
            )
        else:
            reasons.append(
                f"Conservative affordable price {format_rm(affordability.conservative_property_price)} "
                f"is below the upgrade target {format_rm(target_price)}. Lateral move possible."
            )

        if affordability.effective_tenure_years > 0:
            if monthly_ok:
                reasons.append(
                    f"Monthly commitment changes by {format_rm_full(monthly_difference)}, "
                    f"within the {format_rm_full(tolerance)} tolerance."
                )
            else:
                reasons.append(
                    f"Monthly commitment rises by {format_rm_full(monthly_difference)}, "
                    f"above the {format_rm_full(tolerance)} tolerance."
                )

        equity_short = equity.usable_equity < required_downpayment
        if equity_short:
            reasons.append(
                f"Usable equity {format_rm_full(equity.usable_equity)} is short of the "
                f"{format_rm_full(required_downpayment)} downpayment; additional savings needed."
            )

        is_feasible = price_ok and monthly_ok

        steps: list[str] = []
        if is_feasible:
            steps.append("Get updated property valuation for current home")
            steps.append("Request mortgage pre-approval from 2-3 banks")
            if equity.usable_equity > 0:
                steps.append("Confirm equity release timeline with current lender")
            steps.append("Identify target properties in affordable range")
        else:
            if affordability.disposable_income <= 0 or not monthly_ok:
                steps.append("Focus on reducing existing debt first")
            if equity_short:
                steps.append("Build additional savings for downpayment")
            steps.append("Reassess in 6-12 months")

        return UpgradeAnalysisResult(
            affordability=affordability,
            equity=equity,
            target_property_price=target_price,
            current_monthly_commitment=round(current_installment, 2),
            new_monthly_commitment=round(new_installment, 2),
            monthly_difference=round(monthly_difference, 2),
            is_feasible=is_feasible,
            reasons=reasons,
            recommended_steps=steps,
        )


# ──────────────────────────────────────
# Amortization helpers
# ──────────────────────────────────────


def installment_to_principal(
    installment: float, annual_rate: float, tenure_years: int
) -> float:
    """Present value of an annuity: PV = PMT × (1 − (1 + r)^−n) / r"""
    months = tenure_years * 12
    if installment <= 0 or months <= 0:
        return 0.0
    r = annual_rate / 12
    if r == 0:
        return installment * months
    return installment * (1 - (1 + r) ** -months) / r


def principal_to_installment(
    principal: float, annual_rate: float, tenure_years: int
) -> float:
    """Fixed monthly payment: PMT = PV × r / (1 − (1 + r)^−n)"""
    months = tenure_years * 12
    if principal <= 0 or months <= 0:
        return 0.0
    r = annual_rate / 12
    if r == 0:
        return principal / months
    return principal * r / (1 - (1 + r) ** -months)


def _tiered_amount(
    amount: float, tiers: tuple[tuple[float | None, float], ...]
) -> float:
    """Marginal tiered percentage (each band charged at its own rate)"""
    if amount <= 0:
        return 0.0
    total = 0.0
    lower = 0.0
    for upper, rate in tiers:
        if upper is None or amount <= upper:
            total += (amount - lower) * rate
            break
        total += (upper - lower) * rate
        lower = upper
    return total


def _finite(value: float | None) -> float:
    """NaN / ±inf / None → 0.0"""
    if value is None:
        return 0.0
    value = float(value)
    if not math.isfinite(value):
        return 0.0
    return value


_default = AffordabilityCalculator()

calculate_affordability = _default.calculate_affordability
calculate_equity = _default.calculate_equity
analyze_upgrade = _default.analyze_upgrade
