"""Upgrade readiness scorer

Five independent components, summed and clamped to 0~100:
  income growth ≤30 / equity ≤25 / debt ≤20 / employment ≤15 / rejection ≤10

State: not_ready <40, monitoring 40~69, ready ≥70 (lower bounds inclusive).

The scorer is stateless: it never looks at the previously stored state.
Edge detection (entering ready) belongs to UpgradeTriggerDetector.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from decision_engine.models.enums import EmploymentType, ReadinessState
from decision_engine.models.lead import LeadSnapshot
from decision_engine.models.scores import (
    UpgradeReadinessBreakdown,
    UpgradeReadinessResult,
)
from decision_engine.services.formatting import format_rm_full
from decision_engine.services.rules.affordability import (
    AffordabilityCalculator,
)

logger = logging.getLogger(__name__)


class ScoringConfig(BaseModel):
    """Readiness bands: ordered (lower bound, points), highest first"""

    model_config = ConfigDict(frozen=True)

    WEIGHTS: dict[str, int] = {
        "income_growth": 30,
        "equity": 25,
        "debt": 20,
        "employment": 15,
        "no_rejection": 10,
    }

    # growth % (oldest → newest history entry)
    INCOME_GROWTH_BANDS: tuple[tuple[float, int], ...] = ((25, 30), (15, 20), (5, 10))
    # gross equity % of property value
    EQUITY_BANDS: tuple[tuple[float, int], ...] = ((30, 25), (20, 18), (10, 8))
    # commitment % of income: (upper bound, points), lowest first
    DEBT_BANDS: tuple[tuple[float, int], ...] = ((20, 20), (30, 14), (50, 6))
    DEBT_UNKNOWN_SCORE: int = 10

    STABLE_EMPLOYMENT_TYPES: frozenset[EmploymentType] = frozenset(
        {EmploymentType.PERMANENT, EmploymentType.BUSINESS_OWNER}
    )
    STABLE_EMPLOYMENT_YEARS: float = 2
    EMPLOYMENT_FULL_SCORE: int = 15
    EMPLOYMENT_PARTIAL_SCORE: int = 9
    EMPLOYMENT_UNKNOWN_SCORE: int = 5
    EMPLOYMENT_VARIABLE_SCORE: int = 5

    NO_REJECTION_SCORE: int = 10
    # binary, not time-decayed
    REJECTION_SCORE: int = 0
    REJECTION_UNKNOWN_SCORE: int = 5

    READY_THRESHOLD: int = 70
    MONITORING_THRESHOLD: int = 40


SCORING_CONFIG = ScoringConfig()


class UpgradeReadinessScorer:
    """Upgrade readiness score and state"""

    def __init__(
        self,
        config: ScoringConfig | None = None,
        calculator: AffordabilityCalculator | None = None,
    ) -> None:
        self.config = config or SCORING_CONFIG
        self.calculator = calculator or AffordabilityCalculator()

    def calculate_upgrade_readiness(self, lead: LeadSnapshot) -> UpgradeReadinessResult:
        """Readiness score (0~100), state and 5-factor breakdown

        Args:
            lead: snapshot including income history and property data

        Returns:
            UpgradeReadinessResult
        """
        income, income_reason = self._calc_income_growth_score(lead)
        equity, equity_reason = self._calc_equity_score(lead)
        debt, debt_reason = self._calc_debt_score(lead)
        employment, employment_reason = self._calc_employment_score(lead)
        rejection, rejection_reason = self._calc_rejection_score(lead)

        total = max(0, min(100, income + equity + debt + employment + rejection))
        state = self.determine_readiness_state(total)

        breakdown = UpgradeReadinessBreakdown(
            income_growth_score=income,
            income_growth_reason=income_reason,
            equity_score=equity,
            equity_reason=equity_reason,
            debt_score=debt,
            debt_reason=debt_reason,
            employment_score=employment,
            employment_reason=employment_reason,
            rejection_score=rejection,
            rejection_reason=rejection_reason,
            total_score=total,
        )

        logger.debug(
            "readiness %s: %d/%d/%d/%d/%d → %d (%s)",
            lead.id, income, equity, debt, employment, rejection, total, state.value,
        )

        return UpgradeReadinessResult(
            score=total,
            state=state,
            breakdown=breakdown,
            explanation=readiness_explanation(state),
            next_steps=self.readiness_next_steps(state, breakdown),
        )

    def determine_readiness_state(self, score: float) -> ReadinessState:
        if score >= self.config.READY_THRESHOLD:
            return ReadinessState.READY
        if score >= self.config.MONITORING_THRESHOLD:
            return ReadinessState.MONITORING
        return ReadinessState.NOT_READY

    # ──────────────────────────────────────
    # Components
    # ──────────────────────────────────────

    def _calc_income_growth_score(self, lead: LeadSnapshot) -> tuple[int, str]:
        """Growth between the oldest and newest history entries (30)"""
        growth = income_growth(lead)
        if growth is None:
            return 0, "Insufficient history: need at least two income records."

        pct, oldest, newest = growth
        for lower, points in self.config.INCOME_GROWTH_BANDS:
            if pct >= lower:
                return points, (
                    f"Income grew {pct:.0f}% "
                    f"(from {format_rm_full(oldest)} to {format_rm_full(newest)})."
                )
        if pct < 0:
            return 0, f"Income decreased by {abs(pct):.0f}%."
        return 0, f"Income growth of {pct:.0f}% is below the 5% threshold."

    def _calc_equity_score(self, lead: LeadSnapshot) -> tuple[int, str]:
        """Gross equity % of property value (25)"""
        value = lead.current_property_value
        if not value or value <= 0:
            return 0, "No current property value recorded. Client may be renting."

        equity = self.calculator.calculate_equity(
            value, lead.outstanding_loan_balance, include_selling_costs=True
        )
        pct = equity.gross_equity_percent
        for lower, points in self.config.EQUITY_BANDS:
            if pct >= lower:
                return points, (
                    f"Equity {pct:.0f}% of property value "
                    f"({format_rm_full(equity.gross_equity)} gross, "
                    f"{format_rm_full(equity.usable_equity)} usable)."
                )
        if pct <= 0:
            return 0, "Property has no equity."
        return 0, f"Very low equity ({pct:.0f}%). Not enough for an upgrade."

    def _calc_debt_score(self, lead: LeadSnapshot) -> tuple[int, str]:
        """Existing commitments as % of income, inverse (20)"""
        pct = lead.existing_loan_commitment_percent
        if pct is None:
            return self.config.DEBT_UNKNOWN_SCORE, "Existing debt commitment not recorded."

        pct = max(0.0, pct)
        for upper, points in self.config.DEBT_BANDS:
            if pct <= upper:
                return points, f"Existing debt at {pct:g}% of income."
        return 0, f"Very high debt at {pct:g}% of income. Upgrade unlikely to be approved."

    def _calc_employment_score(self, lead: LeadSnapshot) -> tuple[int, str]:
        """Stable type and tenure (15)"""
        cfg = self.config
        etype = lead.employment_type
        years = lead.years_in_current_job

        if etype is None and years is None:
            return cfg.EMPLOYMENT_UNKNOWN_SCORE, "Employment information not recorded."

        stable_type = etype in cfg.STABLE_EMPLOYMENT_TYPES
        stable_tenure = (years or 0) >= cfg.STABLE_EMPLOYMENT_YEARS
        label = etype.value.replace("_", " ") if etype else "unknown type"

        if stable_type and stable_tenure:
            return cfg.EMPLOYMENT_FULL_SCORE, f"Stable: {label} for {years:g}+ years."
        if stable_type:
            return cfg.EMPLOYMENT_PARTIAL_SCORE, (
                f"Stable employment type but short tenure ({years or 0:g} years)."
            )
        if stable_tenure:
            return cfg.EMPLOYMENT_PARTIAL_SCORE, (
                f"Good tenure ({years:g} years) but variable employment type ({label})."
            )
        return cfg.EMPLOYMENT_VARIABLE_SCORE, (
            f"Variable income source ({label}). May need longer credit history."
        )

    def _calc_rejection_score(self, lead: LeadSnapshot) -> tuple[int, str]:
        """Prior loan rejection (10)"""
        if lead.previous_loan_rejection is None:
            return self.config.REJECTION_UNKNOWN_SCORE, "Loan rejection history not recorded."
        if lead.previous_loan_rejection is False:
            return self.config.NO_REJECTION_SCORE, "No previous loan rejections on record."
        return self.config.REJECTION_SCORE, (
            "Previous loan rejection. Credit issues need addressing before upgrade."
        )

    # ──────────────────────────────────────
    # Presentation helpers
    # ──────────────────────────────────────

    @staticmethod
    def readiness_next_steps(
        state: ReadinessState, breakdown: UpgradeReadinessBreakdown
    ) -> list[str]:
        steps: list[str] = []
        if state == ReadinessState.READY:
            steps.append("Schedule upgrade conversation with client")
            steps.append("Prepare affordability analysis")
            steps.append("Identify suitable upgrade properties")
        elif state == ReadinessState.MONITORING:
            if breakdown.income_growth_score < 20:
                steps.append("Check for income updates at next touchpoint")
            if breakdown.equity_score < 15:
                steps.append("Request updated property valuation")
            if breakdown.debt_score < 10:
                steps.append("Discuss debt reduction strategies")
            steps.append("Schedule 3-month follow-up")
        else:
            if breakdown.income_growth_score < 10:
                steps.append("Encourage client to report income changes")
            if breakdown.employment_score < 10:
                steps.append("Wait for employment stability")
            if breakdown.rejection_score == 0:
                steps.append("Recommend credit repair before upgrade discussion")
            steps.append("Schedule 6-month follow-up")
        return steps


def income_growth(lead: LeadSnapshot) -> tuple[float, float, float] | None:
    """(growth %, oldest amount, newest amount) over income history

    None when fewer than two entries or the oldest amount is not positive.
    """
    history = sorted(lead.income_history, key=lambda e: e.recorded_on)
    if len(history) < 2:
        return None
    oldest, newest = history[0].amount, history[-1].amount
    if oldest <= 0:
        return None
    return (newest - oldest) * 100 / oldest, oldest, newest


def readiness_explanation(state: ReadinessState) -> str:
    if state == ReadinessState.READY:
        return "Client shows strong upgrade indicators. Proceed with upgrade conversation."
    if state == ReadinessState.MONITORING:
        return "Client has some positive indicators. Continue monitoring for improvement."
    return "Client does not meet upgrade criteria yet. Focus on other priorities."


_default = UpgradeReadinessScorer()

calculate_upgrade_readiness = _default.calculate_upgrade_readiness
determine_readiness_state = _default.determine_readiness_state
readiness_next_steps = UpgradeReadinessScorer.readiness_next_steps
