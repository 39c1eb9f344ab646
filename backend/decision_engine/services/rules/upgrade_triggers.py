"""Upgrade trigger detector

Compares a previous and an updated lead snapshot and emits one trigger per
meaningful delta. Every check is a delta, so detect(x, x) emits nothing.

Hard triggers (can make a lead upgrade-ready):
  income_increase           income up ≥ 15% (tracked vs tracked, else range midpoints)
  equity_threshold_crossed  gross equity % moved into a higher band (20%, 30%)
  readiness_state_changed   computed readiness entered ready
Soft signals (alert only):
  higher_tier_interest      budget midpoint up ≥ 20%
  lease_ending              lease end date changed and now within 90 days
  life_milestone            one per newly recorded milestone

No memory of earlier triggers: the caller invokes this once per persisted change.
"""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from decision_engine.models.enums import Intent, ReadinessState, TriggerType
from decision_engine.models.lead import LeadSnapshot
from decision_engine.models.scores import (
    TriggerDetectionResult,
    UpgradeAlert,
    UpgradeTrigger,
)
from decision_engine.services.clock import days_between, resolve_as_of
from decision_engine.services.formatting import format_rm_full
from decision_engine.services.rules.upgrade_readiness import UpgradeReadinessScorer

logger = logging.getLogger(__name__)


class TriggerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    INCOME_INCREASE_THRESHOLD_PERCENT: float = 15
    BUDGET_INCREASE_THRESHOLD_PERCENT: float = 20
    LEASE_ENDING_WINDOW_DAYS: int = 90
    # gross equity % band boundaries, ascending
    EQUITY_BANDS: tuple[float, ...] = (20, 30)
    HARD_TRIGGERS: frozenset[TriggerType] = frozenset(
        {
            TriggerType.INCOME_INCREASE,
            TriggerType.EQUITY_THRESHOLD_CROSSED,
            TriggerType.READINESS_STATE_CHANGED,
        }
    )


TRIGGER_CONFIG = TriggerConfig()

ALERT_TITLES: dict[TriggerType, str] = {
    TriggerType.INCOME_INCREASE: "Income Increase Detected",
    TriggerType.EQUITY_THRESHOLD_CROSSED: "Equity Threshold Crossed",
    TriggerType.READINESS_STATE_CHANGED: "Client Is Now Upgrade-Ready",
    TriggerType.HIGHER_TIER_INTEREST: "Higher Budget Interest",
    TriggerType.LEASE_ENDING: "Lease Ending Soon",
    TriggerType.LIFE_MILESTONE: "Life Milestone Recorded",
}

ALERT_MESSAGES: dict[TriggerType, str] = {
    TriggerType.INCOME_INCREASE: "Income has increased - may afford higher tier properties",
    TriggerType.EQUITY_THRESHOLD_CROSSED: "Equity has grown into a higher band - upgrade downpayment may be covered",
    TriggerType.READINESS_STATE_CHANGED: "Upgrade readiness state has changed to ready",
    TriggerType.HIGHER_TIER_INTEREST: "Showing interest in higher budget range",
    TriggerType.LEASE_ENDING: "Current lease ending soon - urgent opportunity",
    TriggerType.LIFE_MILESTONE: "New life milestone - space or location needs may change",
}


def alert_message(trigger_type: TriggerType) -> str:
    """Canned one-line alert message"""
    return ALERT_MESSAGES[TriggerType(trigger_type)]


class UpgradeTriggerDetector:
    """Previous vs. updated snapshot comparison"""

    def __init__(
        self,
        config: TriggerConfig | None = None,
        readiness_scorer: UpgradeReadinessScorer | None = None,
    ) -> None:
        self.config = config or TRIGGER_CONFIG
        self.readiness_scorer = readiness_scorer or UpgradeReadinessScorer()

    def detect_upgrade_triggers(
        self,
        updated: LeadSnapshot,
        previous: LeadSnapshot,
        *,
        as_of: datetime | None = None,
    ) -> TriggerDetectionResult:
        """Triggers, alert payloads and upgrade-ready flag

        Args:
            updated: snapshot after the change
            previous: snapshot before the change
            as_of: trigger timestamp and lease window reference

        Returns:
            TriggerDetectionResult
        """
        now = resolve_as_of(as_of)
        found: list[tuple[TriggerType, str, str, str]] = []

        checks = (
            self._check_income_increase,
            self._check_equity_threshold,
            self._check_readiness_state,
            self._check_higher_tier_interest,
        )
        for check in checks:
            hit = check(updated, previous)
            if hit is not None:
                found.append(hit)

        lease = self._check_lease_ending(updated, previous, now)
        if lease is not None:
            found.append(lease)

        found.extend(self._check_life_milestones(updated, previous))

        triggers: list[UpgradeTrigger] = []
        alerts: list[UpgradeAlert] = []
        for ttype, reason, description, action in found:
            triggers.append(UpgradeTrigger(type=ttype, reason=reason, triggered_at=now))
            alerts.append(
                UpgradeAlert(
                    lead_id=updated.id,
                    alert_type=ttype,
                    title=ALERT_TITLES[ttype],
                    description=description,
                    suggested_action=action,
                )
            )

        has_hard = any(t.type in self.config.HARD_TRIGGERS for t in triggers)
        is_ready = previous.is_upgrade_ready or has_hard

        if triggers:
            logger.debug(
                "triggers %s: %s (ready=%s)",
                updated.id, [t.type.value for t in triggers], is_ready,
            )

        return TriggerDetectionResult(
            triggers=triggers,
            alerts=alerts,
            is_upgrade_ready=is_ready,
            should_alert=bool(alerts),
        )

    # ──────────────────────────────────────
    # Hard triggers
    # ──────────────────────────────────────

    def _check_income_increase(self, updated, previous):
        before, after = _comparable_incomes(updated, previous)
        if before <= 0:
            return None
        pct = (after - before) / before * 100
        if pct < self.config.INCOME_INCREASE_THRESHOLD_PERCENT:
            return None
        action = (
            "Consider premium rental options or discuss a home purchase."
            if updated.intent == Intent.RENT
            else "Re-qualify for a higher price range. May now afford premium areas."
        )
        return (
            TriggerType.INCOME_INCREASE,
            f"Income increased by {pct:.0f}%",
            f"{_name(updated)}'s income rose from {format_rm_full(before)} to "
            f"{format_rm_full(after)} ({pct:.0f}% increase).",
            action,
        )

    def _check_equity_threshold(self, updated, previous):
        before = _gross_equity_percent(previous)
        after = _gross_equity_percent(updated)
        if after is None:
            return None
        before_band = self._equity_band(before or 0.0)
        after_band = self._equity_band(after)
        if after_band <= before_band:
            return None
        threshold = self.config.EQUITY_BANDS[after_band - 1]
        return (
            TriggerType.EQUITY_THRESHOLD_CROSSED,
            f"Equity crossed {threshold:g}% of property value ({after:.0f}%)",
            f"{_name(updated)}'s equity is now {after:.0f}% of the property value, "
            f"above the {threshold:g}% threshold.",
            "Prepare an equity release and upgrade affordability analysis.",
        )

    def _equity_band(self, pct: float) -> int:
        return sum(1 for boundary in self.config.EQUITY_BANDS if pct >= boundary)

    def _check_readiness_state(self, updated, previous):
        scorer = self.readiness_scorer
        before = scorer.calculate_upgrade_readiness(previous)
        after = scorer.calculate_upgrade_readiness(updated)
        if after.state != ReadinessState.READY or before.state == ReadinessState.READY:
            return None
        return (
            TriggerType.READINESS_STATE_CHANGED,
            f"Readiness changed from {before.state.value} to ready "
            f"(score {before.score} → {after.score})",
            f"{_name(updated)}'s upgrade readiness score reached {after.score}/100.",
            "Schedule an upgrade conversation and prepare an affordability analysis.",
        )

    # ──────────────────────────────────────
    # Soft signals
    # ──────────────────────────────────────

    def _check_higher_tier_interest(self, updated, previous):
        before = previous.average_budget
        after = updated.average_budget
        if before <= 0:
            return None
        pct = (after - before) / before * 100
        if pct < self.config.BUDGET_INCREASE_THRESHOLD_PERCENT:
            return None
        return (
            TriggerType.HIGHER_TIER_INTEREST,
            f"Budget increased by {pct:.0f}%",
            f"{_name(updated)} raised their budget from {format_rm_full(before)} "
            f"to {format_rm_full(after)}.",
            "Show properties in newly accessible areas.",
        )

    def _check_lease_ending(self, updated, previous, now: datetime):
        end = updated.lease_end_date
        if end is None or end == previous.lease_end_date:
            return None
        days_left = days_between(now, end)
        if not 0 < days_left <= self.config.LEASE_ENDING_WINDOW_DAYS:
            return None
        action = (
            "Contact with rental options now."
            if updated.intent == Intent.RENT
            else "Good time to discuss purchasing; a decision is due soon."
        )
        return (
            TriggerType.LEASE_ENDING,
            f"Lease ending in {days_left:.0f} days",
            f"{_name(updated)}'s lease ends on {end.isoformat()}.",
            action,
        )

    def _check_life_milestones(self, updated, previous):
        # append-only log: entries past the previous length are new
        added = updated.life_milestones[len(previous.life_milestones):]
        hits = []
        for milestone in added:
            label = milestone.type.value.replace("_", " ")
            hits.append(
                (
                    TriggerType.LIFE_MILESTONE,
                    f"Life milestone recorded: {label}",
                    f"{_name(updated)} recorded a {label} milestone on "
                    f"{milestone.recorded_on.isoformat()}.",
                    "Check in on changing space or location needs.",
                )
            )
        return hits


def _comparable_incomes(
    updated: LeadSnapshot, previous: LeadSnapshot
) -> tuple[float, float]:
    """(before, after): tracked income when both snapshots have it, else range midpoints"""
    if (
        previous.current_income is not None and previous.current_income > 0
        and updated.current_income is not None and updated.current_income > 0
    ):
        return previous.current_income, updated.current_income
    return previous.average_income, updated.average_income


def _gross_equity_percent(lead: LeadSnapshot) -> float | None:
    value = lead.current_property_value
    if not value or value <= 0:
        return None
    loan = max(0.0, lead.outstanding_loan_balance or 0.0)
    return max(0.0, value - loan) / value * 100


def _name(lead: LeadSnapshot) -> str:
    return lead.name or "Client"


_default = UpgradeTriggerDetector()

detect_upgrade_triggers = _default.detect_upgrade_triggers
