"""Deal risk rule definitions

Each rule is a (LeadSnapshot, as_of) -> (reason, details) | None function.
None means no match. The registry order is the tie-break order within a
severity, so new rules are appended, never inserted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from pydantic import BaseModel, ConfigDict

from decision_engine.models.enums import (
    DealRiskType,
    EmploymentType,
    FamilyAlignmentStatus,
    RiskSeverity,
    UpgradeStage,
)
from decision_engine.models.lead import LeadSnapshot
from decision_engine.services.clock import days_between, to_utc
from decision_engine.services.formatting import format_rm_full
from decision_engine.services.rules.affordability import (
    AffordabilityCalculator,
    installment_to_principal,
)

RuleMatch = tuple[str, str]
RuleFunc = Callable[[LeadSnapshot, datetime], RuleMatch | None]


class RiskConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    TIGHT_MARGIN_DSR_THRESHOLD: float = 55
    CRITICAL_DSR_THRESHOLD: float = 65
    BNM_MAX_DSR: float = 70
    SHORT_TENURE_MONTHS: int = 24
    RATE_INCREASE_TEST: float = 0.01
    RATE_SENSITIVITY_DROP_PERCENT: float = 10
    STALE_STAGE_DAYS: int = 60
    STALE_STAGES: frozenset[UpgradeStage] = frozenset(
        {UpgradeStage.WINDOW_OPEN, UpgradeStage.PLANNING}
    )
    VALUATION_MAX_AGE_MONTHS: int = 6
    LEASE_UNMATCHED_DAYS: int = 60


RISK_CONFIG = RiskConfig()

_calculator = AffordabilityCalculator()


# === HIGH ===


def check_d001_family_objection(lead: LeadSnapshot, as_of: datetime) -> RuleMatch | None:
    """D001: family objection recorded"""
    if lead.family_alignment_status != FamilyAlignmentStatus.FAMILY_OBJECTION:
        return None
    return (
        "Family members have objected to the move.",
        "Deals with an unresolved family objection often stall at the offer stage. "
        "Address the objection with all decision makers before viewings.",
    )


def check_d002_tight_margin(lead: LeadSnapshot, as_of: datetime) -> RuleMatch | None:
    """D002: existing commitments leave little DSR headroom"""
    used = lead.existing_loan_commitment_percent
    if used is None or used < RISK_CONFIG.TIGHT_MARGIN_DSR_THRESHOLD:
        return None
    remaining = max(0.0, RISK_CONFIG.BNM_MAX_DSR - used)
    critical = used >= RISK_CONFIG.CRITICAL_DSR_THRESHOLD
    status = (
        "Critical - very limited room for additional commitment."
        if critical
        else "Warning - limited buffer for unexpected expenses or rate increases."
    )
    return (
        f"Current DSR at {used:.1f}% leaves only {remaining:.1f}% for new commitments.",
        f"Existing loan commitment uses {used:.1f}% of monthly income.\n"
        f"Maximum DSR is {RISK_CONFIG.BNM_MAX_DSR:.0f}%.\n"
        f"Status: {status}",
    )


def check_d003_short_tenure(lead: LeadSnapshot, as_of: datetime) -> RuleMatch | None:
    """D003: less than two years in the current job / business"""
    years = lead.years_in_current_job
    if years is None:
        return None
    months = years * 12
    if months >= RISK_CONFIG.SHORT_TENURE_MONTHS:
        return None
    if lead.employment_type in (EmploymentType.SELF_EMPLOYED, EmploymentType.BUSINESS_OWNER):
        subject = (
            "Business" if lead.employment_type == EmploymentType.BUSINESS_OWNER
            else "Self-employment"
        )
        return (
            f"{subject} is less than 2 years old.",
            f"Current tenure: {years:.1f} years ({months:.0f} months).\n"
            "Banks typically expect 2 years of operation, SSM registration and "
            "2 years of audited accounts or Form B returns.",
        )
    return (
        f"Employment tenure is {years:.1f} years (less than 2 years).",
        f"Current tenure: {years:.1f} years ({months:.0f} months).\n"
        "Most banks prefer at least 24 months in current employment; expect "
        "stricter income verification.",
    )


# === MEDIUM ===


def check_d004_previous_rejection(lead: LeadSnapshot, as_of: datetime) -> RuleMatch | None:
    """D004: prior loan rejection"""
    if lead.previous_loan_rejection is not True:
        return None
    return (
        "Client has a previous loan rejection on record.",
        "Identify the rejection reason (CCRIS / CTOS) and resolve it before "
        "submitting a new application.",
    )


def check_d005_rate_sensitive(lead: LeadSnapshot, as_of: datetime) -> RuleMatch | None:
    """D005: +1% rate stress cuts max price by more than 10%"""
    income = lead.effective_income
    pct = lead.existing_loan_commitment_percent or 0.0
    if income <= 0 or pct <= 0:
        return None

    base = _calculator.calculate_affordability(
        income, income * pct / 100, age=lead.age, is_first_time_buyer=bool(lead.is_first_time_buyer)
    )
    if base.max_loan_amount <= 0:
        return None

    stressed_loan = installment_to_principal(
        base.max_monthly_installment,
        base.interest_rate + RISK_CONFIG.RATE_INCREASE_TEST,
        base.effective_tenure_years,
    )
    stressed_price = round(stressed_loan / (1 - base.downpayment_ratio))
    drop = base.max_property_price - stressed_price
    drop_pct = drop / base.max_property_price * 100 if base.max_property_price else 0.0
    if drop_pct <= RISK_CONFIG.RATE_SENSITIVITY_DROP_PERCENT:
        return None
    return (
        f"A 1% rate increase would reduce maximum property price by {drop_pct:.1f}%.",
        f"Max property at {base.interest_rate * 100:.1f}%: {format_rm_full(base.max_property_price)}\n"
        f"Max property at {(base.interest_rate + RISK_CONFIG.RATE_INCREASE_TEST) * 100:.1f}%: "
        f"{format_rm_full(stressed_price)}\n"
        f"Reduction: {format_rm_full(drop)} ({drop_pct:.1f}%)",
    )


def check_d006_stale_stage(lead: LeadSnapshot, as_of: datetime) -> RuleMatch | None:
    """D006: active upgrade stage unchanged for too long"""
    if lead.upgrade_stage not in RISK_CONFIG.STALE_STAGES:
        return None
    changed = lead.upgrade_stage_changed_at
    if changed is None:
        return None
    days = days_between(to_utc(changed), as_of)
    if days < RISK_CONFIG.STALE_STAGE_DAYS:
        return None
    stage = lead.upgrade_stage.value.replace("_", " ")
    return (
        f"Lead has been in '{stage}' for {days:.0f} days.",
        f"Stage last changed on {changed.date().isoformat()}. Momentum is lost after "
        f"{RISK_CONFIG.STALE_STAGE_DAYS} days; schedule a decision call.",
    )


# === LOW ===


def check_d007_optimistic_equity(lead: LeadSnapshot, as_of: datetime) -> RuleMatch | None:
    """D007: property valuation is stale"""
    value = lead.current_property_value
    updated = lead.property_value_last_updated
    if not value or updated is None:
        return None
    updated = to_utc(updated)
    months = (as_of.year - updated.year) * 12 + (as_of.month - updated.month)
    if months < RISK_CONFIG.VALUATION_MAX_AGE_MONTHS:
        return None
    return (
        f"Property value was last updated {months} months ago.",
        f"Recorded value: {format_rm_full(value)} as of {updated.date().isoformat()}.\n"
        "Get an updated valuation before relying on the equity figure.",
    )


def check_d008_lease_ending_unmatched(lead: LeadSnapshot, as_of: datetime) -> RuleMatch | None:
    """D008: lease ends soon and nothing matches the budget"""
    end = lead.lease_end_date
    if end is None or lead.suggested_areas:
        return None
    days = days_between(as_of, end)
    if not 0 <= days <= RISK_CONFIG.LEASE_UNMATCHED_DAYS:
        return None
    return (
        f"Lease ends in {days:.0f} days with no matching area.",
        f"Lease end date: {end.isoformat()}. No suggested area fits the budget; "
        "widen the area list or revisit the budget now.",
    )


# Rule registry: (id, type, severity, func)
DEAL_RISK_RULES: list[tuple[str, DealRiskType, RiskSeverity, RuleFunc]] = [
    ("D001", DealRiskType.FAMILY_OBJECTION, RiskSeverity.HIGH, check_d001_family_objection),
    ("D002", DealRiskType.TIGHT_MARGIN, RiskSeverity.HIGH, check_d002_tight_margin),
    ("D003", DealRiskType.SHORT_TENURE, RiskSeverity.HIGH, check_d003_short_tenure),
    ("D004", DealRiskType.PREVIOUS_REJECTION, RiskSeverity.MEDIUM, check_d004_previous_rejection),
    ("D005", DealRiskType.RATE_SENSITIVE, RiskSeverity.MEDIUM, check_d005_rate_sensitive),
    ("D006", DealRiskType.STALE_STAGE, RiskSeverity.MEDIUM, check_d006_stale_stage),
    ("D007", DealRiskType.OPTIMISTIC_EQUITY, RiskSeverity.LOW, check_d007_optimistic_equity),
    ("D008", DealRiskType.LEASE_ENDING_UNMATCHED, RiskSeverity.LOW, check_d008_lease_ending_unmatched),
]
