"""Lead qualification engine

New or edited leads are scored against the pricing rule for their
(city, intent). Total 0~100 from four weighted components.

Structure:
  income    ≤40: budget vs. income (rent ratio / buy max price), raw 0~100 × 0.4
  location  ≤30: share of the budget range inside preferred area bands × 30
  financing ≤20: credit profile (base 70 ± factors), raw 0~100 × 0.2
  urgency   ≤10: move-in timeline (+20 when lease ends within 3 months) × 0.1

Status: qualified ≥70, stretch 45~69, not_qualified <45.
financing_readiness is a separate points table ("will a bank approve them"),
not a copy of the financing score.

Only an empty active pricing rule set raises; everything else is best effort.
"""

from __future__ import annotations

import logging
from datetime import datetime

from decision_engine.errors import ConfigurationPreconditionError
from decision_engine.models.enums import (
    AreaFit,
    EmploymentType,
    FinancingReadiness,
    Intent,
    MoveInTimeline,
    QualificationStatus,
)
from decision_engine.models.lead import LeadSnapshot, PricingRule
from decision_engine.models.scores import (
    BudgetRange,
    QualificationBreakdown,
    QualificationResult,
    SuggestedArea,
)
from decision_engine.services.areas import get_area_label
from decision_engine.services.clock import days_between, resolve_as_of
from decision_engine.services.formatting import format_rm

logger = logging.getLogger(__name__)


class QualificationEngine:
    """Lead qualification scorer"""

    # Component weights (raw 0~100 → points)
    W_INCOME = 0.40
    W_FINANCING = 0.20
    W_URGENCY = 0.10
    MAX_LOCATION = 30.0

    # Status thresholds
    QUALIFIED_THRESHOLD = 70
    STRETCH_THRESHOLD = 45

    # Rent: (max rent-to-income ratio, raw score, label)
    RENT_RATIO_BANDS: tuple[tuple[float, int, str], ...] = (
        (0.25, 100, "Excellent. Very comfortable"),
        (0.30, 90, "Good. Healthy ratio"),
        (0.35, 70, "Acceptable. At recommended limit"),
        (0.40, 50, "Stretch. Above recommended 35%"),
    )
    RENT_FLOOR_SCORE = 20

    # Buy: (max budget / affordable price, raw score)
    BUY_PRICE_BANDS: tuple[tuple[float, int], ...] = (
        (0.80, 100),
        (1.00, 80),
        (1.15, 55),
    )
    BUY_FLOOR_SCORE = 20
    MIN_ADJUSTED_DTI = 0.10

    # Financing (credit) raw score
    CREDIT_BASE = 70
    EMPLOYMENT_POINTS: dict[EmploymentType, int] = {
        EmploymentType.PERMANENT: 25,
        EmploymentType.BUSINESS_OWNER: 20,
        EmploymentType.CONTRACT: 10,
        EmploymentType.SELF_EMPLOYED: 5,
        EmploymentType.FREELANCE: 0,
    }
    REJECTION_PENALTY = 25
    FIRST_TIME_BUYER_BONUS = 5

    TIMELINE_SCORES: dict[MoveInTimeline, int] = {
        MoveInTimeline.IMMEDIATE: 100,
        MoveInTimeline.ONE_TO_THREE_MONTHS: 90,
        MoveInTimeline.THREE_TO_SIX_MONTHS: 70,
        MoveInTimeline.SIX_TO_TWELVE_MONTHS: 50,
        MoveInTimeline.FLEXIBLE: 30,
    }
    TIMELINE_ANALYSIS: dict[MoveInTimeline, str] = {
        MoveInTimeline.IMMEDIATE: "High urgency - ready to move immediately.",
        MoveInTimeline.ONE_TO_THREE_MONTHS: "Good urgency - looking within 1-3 months.",
        MoveInTimeline.THREE_TO_SIX_MONTHS: "Moderate timeline - 3-6 months. Good for nurturing.",
        MoveInTimeline.SIX_TO_TWELVE_MONTHS: "Long timeline - 6-12 months. Keep in touch.",
        MoveInTimeline.FLEXIBLE: "No timeline pressure - may be exploring options.",
    }
    LEASE_URGENCY_DAYS = 90
    LEASE_URGENCY_BONUS = 20

    # financing_readiness points
    STRONG_POINTS = 7
    MODERATE_POINTS = 4

    # Area suggestions
    STRETCH_TOLERANCE = 0.15
    MAX_SUGGESTIONS = 5
    _FIT_ORDER = {AreaFit.PERFECT: 0, AreaFit.STRETCH: 1, AreaFit.ALTERNATIVE: 2}

    def qualify_lead(
        self,
        lead: LeadSnapshot,
        pricing_rules: list[PricingRule],
        *,
        as_of: datetime | None = None,
    ) -> QualificationResult:
        """Qualification score, status and area suggestions

        Args:
            lead: financial / preference snapshot
            pricing_rules: configured pricing rules (inactive ones are ignored)
            as_of: reference time for lease urgency

        Returns:
            QualificationResult

        Raises:
            ConfigurationPreconditionError: no active pricing rules
        """
        active = [r for r in pricing_rules if r.is_active]
        if not active:
            raise ConfigurationPreconditionError(
                "No active pricing rules configured",
                details={"rules_received": len(pricing_rules)},
            )

        now = resolve_as_of(as_of)
        rule = self._find_rule(lead, active)

        if rule is None:
            msg = (
                f"No pricing rule for {lead.preferred_city.value} / "
                f"{lead.intent.value}; cannot assess against market prices."
            )
            income_score, income_analysis = 0.0, msg
            location_score, location_analysis = 0.0, msg
        else:
            raw_income, income_analysis = self._calc_income_score(lead, rule)
            income_score = round(raw_income * self.W_INCOME, 1)
            location_score, location_analysis = self._calc_location_score(lead, rule)

        raw_financing, financing_analysis = self._calc_financing_score(lead)
        financing_score = round(raw_financing * self.W_FINANCING, 1)

        raw_urgency, urgency_analysis = self._calc_urgency_score(lead, now)
        urgency_score = round(raw_urgency * self.W_URGENCY, 1)

        total = round(income_score + location_score + financing_score + urgency_score, 1)
        total = max(0.0, min(100.0, total))

        status = self.determine_status(total)
        readiness = self.calculate_financing_readiness(lead)
        suggested = self.suggest_areas(lead, rule) if rule else []

        logger.debug(
            "qualify %s: income=%.1f location=%.1f financing=%.1f urgency=%.1f → %.1f (%s)",
            lead.id, income_score, location_score, financing_score,
            urgency_score, total, status.value,
        )

        return QualificationResult(
            score=total,
            status=status,
            financing_readiness=readiness,
            breakdown=QualificationBreakdown(
                income_score=income_score,
                income_analysis=income_analysis,
                location_score=location_score,
                location_analysis=location_analysis,
                financing_score=financing_score,
                financing_analysis=financing_analysis,
                urgency_score=urgency_score,
                urgency_analysis=urgency_analysis,
                total_score=total,
            ),
            suggested_areas=suggested,
            pricing_rule_matched=rule is not None,
        )

    def determine_status(self, score: float) -> QualificationStatus:
        if score >= self.QUALIFIED_THRESHOLD:
            return QualificationStatus.QUALIFIED
        if score >= self.STRETCH_THRESHOLD:
            return QualificationStatus.STRETCH
        return QualificationStatus.NOT_QUALIFIED

    @staticmethod
    def _find_rule(
        lead: LeadSnapshot, rules: list[PricingRule]
    ) -> PricingRule | None:
        for rule in rules:
            if rule.city == lead.preferred_city and rule.intent == lead.intent:
                return rule
        return None

    # ──────────────────────────────────────
    # Income (40)
    # ──────────────────────────────────────

    def _calc_income_score(
        self, lead: LeadSnapshot, rule: PricingRule
    ) -> tuple[float, str]:
        """Budget vs. income, raw 0~100"""
        avg_income = lead.average_income
        avg_budget = lead.average_budget

        if avg_income <= 0:
            return 0.0, "No income recorded; affordability cannot be assessed."
        if avg_budget <= 0:
            return 0.0, "Budget not recorded; affordability cannot be assessed."

        if lead.intent == Intent.RENT:
            ratio = avg_budget / avg_income
            for max_ratio, score, label in self.RENT_RATIO_BANDS:
                if ratio <= max_ratio:
                    return float(score), (
                        f"{label}: rent budget {format_rm(avg_budget)} is "
                        f"{ratio:.0%} of income."
                    )
            return float(self.RENT_FLOOR_SCORE), (
                f"Warning: rent budget is {ratio:.0%} of income. "
                "Too high, may struggle with expenses."
            )

        commitment = max(0.0, lead.existing_loan_commitment_percent or 0.0)
        adjusted_dti = max(rule.max_dti_ratio - commitment / 100, self.MIN_ADJUSTED_DTI)
        max_price = avg_income * adjusted_dti * rule.price_to_installment_ratio

        if max_price <= 0:
            return 0.0, "Pricing rule yields no affordable price."

        ratio = avg_budget / max_price
        for max_ratio, score in self.BUY_PRICE_BANDS:
            if ratio <= max_ratio:
                if score == 100:
                    text = "Excellent. Budget is well within affordability"
                elif score == 80:
                    text = "Good. Budget is within affordability"
                else:
                    text = "Stretch. Budget slightly exceeds affordability; may need co-borrower"
                return float(score), (
                    f"{text} (budget {format_rm(avg_budget)}, max {format_rm(max_price)})."
                )
        return float(self.BUY_FLOOR_SCORE), (
            f"Overbudget. Target {format_rm(avg_budget)} exceeds affordable range "
            f"({format_rm(max_price)})."
        )

    # ──────────────────────────────────────
    # Location (30)
    # ──────────────────────────────────────

    def _calc_location_score(
        self, lead: LeadSnapshot, rule: PricingRule
    ) -> tuple[float, str]:
        """Mean budget overlap over preferred areas, × 30"""
        area_rules = rule.area_rules
        if not area_rules:
            return 0.0, "Pricing rule has no area bands."

        if not lead.preferred_areas:
            best_key, best = None, 0.0
            for key, area_rule in area_rules.items():
                frac = self._budget_overlap(
                    lead.budget_min, lead.budget_max,
                    area_rule.min_budget, area_rule.max_budget,
                )
                if frac > best:
                    best_key, best = key, frac
            score = round(best * self.MAX_LOCATION, 1)
            if best_key is None:
                return score, "No preferred areas and no city area fits the budget."
            return score, (
                f"No preferred areas; best city fit is "
                f"{get_area_label(lead.preferred_city, best_key)} ({best:.0%} of budget range)."
            )

        parts: list[str] = []
        fractions: list[float] = []
        for key in lead.preferred_areas:
            label = get_area_label(lead.preferred_city, key)
            area_rule = area_rules.get(key)
            if area_rule is None:
                fractions.append(0.0)
                parts.append(f"{label}: no price data")
                continue
            frac = self._budget_overlap(
                lead.budget_min, lead.budget_max,
                area_rule.min_budget, area_rule.max_budget,
            )
            fractions.append(frac)
            parts.append(f"{label}: {frac:.0%} in band")

        mean = sum(fractions) / len(fractions)
        return round(mean * self.MAX_LOCATION, 1), (
            f"Budget overlap {mean:.0%} across preferred areas. " + "; ".join(parts) + "."
        )

    @staticmethod
    def _budget_overlap(
        budget_min: float, budget_max: float, band_min: float, band_max: float
    ) -> float:
        """Fraction (0~1) of [budget_min, budget_max] inside the band"""
        lo, hi = min(budget_min, budget_max), max(budget_min, budget_max)
        if hi <= 0 or band_max < band_min:
            return 0.0
        if hi == lo:
            return 1.0 if band_min <= lo <= band_max else 0.0
        overlap = min(hi, band_max) - max(lo, band_min)
        return max(0.0, min(1.0, overlap / (hi - lo)))

    # ──────────────────────────────────────
    # Financing (20)
    # ──────────────────────────────────────

    def _calc_financing_score(self, lead: LeadSnapshot) -> tuple[float, str]:
        """Credit profile, raw 0~100"""
        score = self.CREDIT_BASE
        factors: list[str] = []

        if lead.employment_type is not None:
            points = self.EMPLOYMENT_POINTS.get(lead.employment_type, 0)
            score += points
            if points >= 20:
                factors.append(
                    f"Stable employment ({lead.employment_type.value.replace('_', ' ')})"
                )
            else:
                factors.append("Variable income source may affect loan approval")

        years = lead.years_in_current_job
        if years is not None:
            if years >= 3:
                score += 15
                factors.append(f"{years:g}+ years employment stability")
            elif years >= 1:
                score += 8
                factors.append("Moderate job tenure")
            else:
                score -= 10
                factors.append("Less than 1 year at current job")

        commitment = lead.existing_loan_commitment_percent
        if commitment is not None:
            if commitment <= 20:
                score += 10
                factors.append("Low existing debt obligations")
            elif commitment <= 40:
                score -= 5
                factors.append("Moderate existing debt")
            else:
                score -= 20
                factors.append("High existing debt may limit loan eligibility")

        if lead.previous_loan_rejection:
            score -= self.REJECTION_PENALTY
            factors.append("Previous loan rejection - needs addressing")

        if lead.intent == Intent.BUY and lead.is_first_time_buyer:
            score += self.FIRST_TIME_BUYER_BONUS
            factors.append("First-time buyer - may qualify for special schemes")

        score = max(0, min(100, score))
        analysis = ". ".join(factors) + "." if factors else "Limited financing information provided."
        return float(score), analysis

    def calculate_financing_readiness(self, lead: LeadSnapshot) -> FinancingReadiness:
        """Bank approval likelihood from an independent points table"""
        points = 0

        if lead.employment_type == EmploymentType.PERMANENT:
            points += 3
        elif lead.employment_type == EmploymentType.BUSINESS_OWNER:
            points += 2
        elif lead.employment_type == EmploymentType.CONTRACT:
            points += 1

        years = lead.years_in_current_job or 0
        if years >= 2:
            points += 2
        elif years >= 1:
            points += 1

        commitment = lead.existing_loan_commitment_percent
        if commitment is not None:
            if commitment <= 20:
                points += 2
            elif commitment <= 40:
                points += 1
            else:
                points -= 1

        if lead.previous_loan_rejection is False:
            points += 2
        elif lead.previous_loan_rejection is True:
            points -= 2

        if lead.is_first_time_buyer:
            points += 1

        if points >= self.STRONG_POINTS:
            return FinancingReadiness.STRONG
        if points >= self.MODERATE_POINTS:
            return FinancingReadiness.MODERATE
        return FinancingReadiness.WEAK

    # ──────────────────────────────────────
    # Urgency (10)
    # ──────────────────────────────────────

    def _calc_urgency_score(
        self, lead: LeadSnapshot, now: datetime
    ) -> tuple[float, str]:
        """Timeline proximity, raw 0~100"""
        timeline = lead.move_in_timeline
        score = self.TIMELINE_SCORES.get(timeline, 30)
        analysis = self.TIMELINE_ANALYSIS.get(timeline, "")

        if lead.lease_end_date is not None:
            days_left = days_between(now, lead.lease_end_date)
            if 0 < days_left <= self.LEASE_URGENCY_DAYS:
                score = min(100, score + self.LEASE_URGENCY_BONUS)
                analysis += " Lease ending soon - added urgency."

        return float(score), analysis

    # ──────────────────────────────────────
    # Area suggestions
    # ──────────────────────────────────────

    def suggest_areas(
        self, lead: LeadSnapshot, rule: PricingRule
    ) -> list[SuggestedArea]:
        """Preferred areas (perfect / stretch), then in-band alternatives; top 5"""
        avg_budget = lead.average_budget
        tol = self.STRETCH_TOLERANCE
        suggestions: list[SuggestedArea] = []

        for key in lead.preferred_areas:
            area_rule = rule.area_rules.get(key)
            if area_rule is None:
                continue
            if area_rule.min_budget <= avg_budget <= area_rule.max_budget:
                fit, reason = AreaFit.PERFECT, "Perfect fit for your budget"
            elif (
                area_rule.min_budget * (1 - tol)
                <= avg_budget
                <= area_rule.max_budget * (1 + tol)
            ):
                fit, reason = AreaFit.STRETCH, "Slightly outside typical budget but achievable"
            else:
                continue
            suggestions.append(self._suggestion(lead, key, area_rule, fit, reason))

        for key, area_rule in rule.area_rules.items():
            if key in lead.preferred_areas:
                continue
            if area_rule.min_budget <= avg_budget <= area_rule.max_budget:
                suggestions.append(
                    self._suggestion(
                        lead, key, area_rule, AreaFit.ALTERNATIVE,
                        "Alternative area within your budget",
                    )
                )

        # stable: keeps declaration order within each fit
        suggestions.sort(key=lambda s: self._FIT_ORDER[s.fit])
        return suggestions[: self.MAX_SUGGESTIONS]

    @staticmethod
    def _suggestion(lead, key, area_rule, fit, reason) -> SuggestedArea:
        return SuggestedArea(
            area=get_area_label(lead.preferred_city, key),
            area_key=key,
            reason=reason,
            fit=fit,
            estimated_budget=BudgetRange(
                min=round(area_rule.min_budget), max=round(area_rule.max_budget)
            ),
        )


_default = QualificationEngine()

qualify_lead = _default.qualify_lead
calculate_financing_readiness = _default.calculate_financing_readiness
