"""'Why now?' justification generator

Factual talking points selected from stored data and the calculator outputs.
A point is emitted only when its supporting data exists; nothing is inferred.
"""

from __future__ import annotations

import logging

from decision_engine.models.enums import RateProfile
from decision_engine.models.lead import LeadSnapshot
from decision_engine.models.scores import JustificationPoint, WhyNowJustification
from decision_engine.services.formatting import format_rm, format_rm_full
from decision_engine.services.rules.affordability import AffordabilityCalculator

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA = "Insufficient data for upgrade justification summary."


class WhyNowGenerator:
    """Selects up to three data-backed justification points"""

    def __init__(self, calculator: AffordabilityCalculator | None = None) -> None:
        self.calculator = calculator or AffordabilityCalculator()

    def generate_why_now_justification(self, lead: LeadSnapshot) -> WhyNowJustification:
        """Income growth / equity / affordability points (0~3)"""
        income = self._income_growth_point(lead)
        equity = self._equity_point(lead)
        affordability = self._affordability_point(lead)

        summary = [
            p.factual_statement for p in (income, equity, affordability) if p is not None
        ]
        return WhyNowJustification(
            income_growth=income,
            equity_position=equity,
            affordability_threshold=affordability,
            summary=summary,
        )

    def compact_summary(self, lead: LeadSnapshot) -> list[str]:
        """Short shareable lines (messaging-ready)"""
        justification = self.generate_why_now_justification(lead)
        lines = [f"{p.title}: {p.factual_statement}" for p in justification.points]
        return lines or [INSUFFICIENT_DATA]

    @staticmethod
    def _income_growth_point(lead: LeadSnapshot) -> JustificationPoint | None:
        history = sorted(lead.income_history, key=lambda e: e.recorded_on)
        if len(history) < 2:
            return None
        oldest, newest = history[0], history[-1]
        if oldest.amount <= 0 or newest.amount <= oldest.amount:
            return None

        growth = newest.amount - oldest.amount
        pct = growth / oldest.amount * 100
        months = max(
            1,
            (newest.recorded_on.year - oldest.recorded_on.year) * 12
            + newest.recorded_on.month - oldest.recorded_on.month,
        )
        return JustificationPoint(
            title="Income Growth",
            factual_statement=(
                f"Income increased by {format_rm_full(growth)} ({pct:.1f}%) "
                f"over {months} months."
            ),
            data_source=(
                f"income_history: {len(history)} entries "
                f"({oldest.recorded_on.isoformat()} to {newest.recorded_on.isoformat()})"
            ),
            recorded_at=lead.income_last_updated or newest.recorded_on,
        )

    def _equity_point(self, lead: LeadSnapshot) -> JustificationPoint | None:
        value = lead.current_property_value
        loan = lead.outstanding_loan_balance
        if not value or value <= 0 or loan is None:
            return None

        equity = self.calculator.calculate_equity(value, loan, include_selling_costs=True)
        if equity.usable_equity <= 0:
            return None

        buffer_pct = self.calculator.config.EQUITY_BUFFER_PERCENT * 100
        return JustificationPoint(
            title="Equity Position",
            factual_statement=(
                f"Gross equity of {format_rm_full(equity.gross_equity)} "
                f"({equity.gross_equity_percent:.1f}% of property value). "
                f"Usable equity after costs: {format_rm_full(equity.usable_equity)}."
            ),
            data_source=(
                f"property value {format_rm_full(value)} and loan balance "
                f"{format_rm_full(loan)}; {buffer_pct:.0f}% safety buffer applied"
            ),
            recorded_at=lead.property_value_last_updated,
        )

    def _affordability_point(self, lead: LeadSnapshot) -> JustificationPoint | None:
        value = lead.current_property_value
        if not value or value <= 0:
            return None
        income = lead.effective_income
        if income <= 0:
            return None

        commitments = income * max(0.0, lead.existing_loan_commitment_percent or 0.0) / 100
        result = self.calculator.calculate_affordability(
            income,
            commitments,
            age=lead.age,
            is_first_time_buyer=False,
            rate_profile=RateProfile.CONSERVATIVE,
        )
        uplift = self.calculator.config.MIN_UPGRADE_UPLIFT
        target = value * (1 + uplift)
        price = result.conservative_property_price
        if price < target:
            return None

        return JustificationPoint(
            title="Affordability Threshold",
            factual_statement=(
                f"Conservative affordable price {format_rm(price)} is "
                f"{(price / value - 1) * 100:.0f}% above the current property value "
                f"{format_rm(value)}."
            ),
            data_source=(
                f"income {format_rm_full(income)}/month, "
                f"{result.interest_rate * 100:.1f}% rate, "
                f"{result.effective_tenure_years}-year tenure"
            ),
            recorded_at=lead.income_last_updated,
        )


_default = WhyNowGenerator()

generate_why_now_justification = _default.generate_why_now_justification
compact_summary = _default.compact_summary
