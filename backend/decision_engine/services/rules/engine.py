"""Decision engine orchestrator

Wires the components for the two caller flows plus an on-demand summary.
Persistence is the caller's responsibility; every method returns new values.

Flows:
  1. evaluate_lead_update: lead edit → requalify (relevant fields only)
                           → trigger detection (previous vs. updated)
  2. apply_financial_update: financial snapshot edit → append history
                             → readiness → trigger detection
  3. summarize: readiness + deal risks + why-now + upgrade analysis
"""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import BaseModel

from decision_engine.models.enums import ReadinessState
from decision_engine.models.lead import (
    FinancialSnapshotUpdate,
    LeadSnapshot,
    PricingRule,
)
from decision_engine.models.scores import (
    DealRiskFlag,
    QualificationResult,
    UpgradeAlert,
    UpgradeAnalysisResult,
    UpgradeReadinessResult,
    UpgradeTrigger,
    WhyNowJustification,
)
from decision_engine.services.clock import resolve_as_of
from decision_engine.services.deal_risk_analyzer import DealRiskAnalyzer, has_high_risk
from decision_engine.services.rules.affordability import AffordabilityCalculator
from decision_engine.services.rules.qualification import QualificationEngine
from decision_engine.services.rules.upgrade_readiness import UpgradeReadinessScorer
from decision_engine.services.rules.upgrade_triggers import UpgradeTriggerDetector
from decision_engine.services.rules.why_now import WhyNowGenerator
from decision_engine.services.snapshot import (
    apply_financial_snapshot,
    needs_requalification,
)

logger = logging.getLogger(__name__)


class LeadUpdateEvaluation(BaseModel):
    """Lead edit outcome"""

    qualification: QualificationResult | None = None
    triggers: list[UpgradeTrigger] = []
    alerts: list[UpgradeAlert] = []
    is_upgrade_ready: bool = False
    upgrade_triggers: list[UpgradeTrigger] = []


class FinancialUpdateEvaluation(BaseModel):
    """Financial snapshot edit outcome"""

    snapshot: LeadSnapshot
    readiness: UpgradeReadinessResult
    triggers: list[UpgradeTrigger] = []
    alerts: list[UpgradeAlert] = []
    readiness_became_ready: bool = False


class LeadSummary(BaseModel):
    """On-demand presentation bundle"""

    readiness: UpgradeReadinessResult
    deal_risks: list[DealRiskFlag]
    has_high_risk: bool
    why_now: WhyNowJustification
    upgrade_analysis: UpgradeAnalysisResult


class DecisionEngine:
    """Decision engine: qualification, readiness, triggers, risks, why-now"""

    def __init__(
        self,
        calculator: AffordabilityCalculator | None = None,
        qualification_engine: QualificationEngine | None = None,
        readiness_scorer: UpgradeReadinessScorer | None = None,
        trigger_detector: UpgradeTriggerDetector | None = None,
        risk_analyzer: DealRiskAnalyzer | None = None,
        why_now_generator: WhyNowGenerator | None = None,
    ) -> None:
        self._calculator = calculator or AffordabilityCalculator()
        self._qualification = qualification_engine or QualificationEngine()
        self._readiness = readiness_scorer or UpgradeReadinessScorer(
            calculator=self._calculator
        )
        self._triggers = trigger_detector or UpgradeTriggerDetector(
            readiness_scorer=self._readiness
        )
        self._risks = risk_analyzer or DealRiskAnalyzer()
        self._why_now = why_now_generator or WhyNowGenerator(calculator=self._calculator)

    def evaluate_lead_update(
        self,
        updated: LeadSnapshot,
        previous: LeadSnapshot,
        pricing_rules: list[PricingRule],
        *,
        as_of: datetime | None = None,
    ) -> LeadUpdateEvaluation:
        """Lead edit flow

        Args:
            updated: snapshot after the edit
            previous: persisted snapshot before the edit
            pricing_rules: configured pricing rules
            as_of: reference time

        Returns:
            LeadUpdateEvaluation (qualification is None when no relevant field changed)

        Raises:
            ConfigurationPreconditionError: requalification needed but no active rules
        """
        now = resolve_as_of(as_of)

        qualification: QualificationResult | None = None
        if needs_requalification(updated, previous):
            qualification = self._qualification.qualify_lead(
                updated, pricing_rules, as_of=now
            )

        detection = self._triggers.detect_upgrade_triggers(updated, previous, as_of=now)

        return LeadUpdateEvaluation(
            qualification=qualification,
            triggers=detection.triggers,
            alerts=detection.alerts,
            is_upgrade_ready=detection.is_upgrade_ready,
            upgrade_triggers=list(updated.upgrade_triggers) + detection.triggers,
        )

    def apply_financial_update(
        self,
        lead: LeadSnapshot,
        update: FinancialSnapshotUpdate,
        *,
        as_of: datetime | None = None,
    ) -> FinancialUpdateEvaluation:
        """Financial snapshot flow

        The returned snapshot carries the recomputed readiness, the
        upgrade-ready flag and the extended trigger log, ready to persist.
        """
        now = resolve_as_of(as_of)
        applied = apply_financial_snapshot(lead, update, as_of=now)

        readiness = self._readiness.calculate_upgrade_readiness(applied)
        detection = self._triggers.detect_upgrade_triggers(applied, lead, as_of=now)

        became_ready = (
            readiness.state == ReadinessState.READY
            and lead.upgrade_readiness_state != ReadinessState.READY
        )

        snapshot = applied.model_copy(
            update={
                "upgrade_readiness_score": readiness.score,
                "upgrade_readiness_state": readiness.state,
                "is_upgrade_ready": detection.is_upgrade_ready,
                "upgrade_triggers": applied.upgrade_triggers + tuple(detection.triggers),
            }
        )

        logger.debug(
            "financial update %s: readiness %s→%s, %d triggers",
            lead.id,
            lead.upgrade_readiness_state.value if lead.upgrade_readiness_state else None,
            readiness.state.value,
            len(detection.triggers),
        )

        return FinancialUpdateEvaluation(
            snapshot=snapshot,
            readiness=readiness,
            triggers=detection.triggers,
            alerts=detection.alerts,
            readiness_became_ready=became_ready,
        )

    def summarize(
        self, lead: LeadSnapshot, *, as_of: datetime | None = None
    ) -> LeadSummary:
        """Readiness, deal risks, why-now points and upgrade analysis"""
        now = resolve_as_of(as_of)
        income = lead.effective_income
        commitments = income * max(0.0, lead.existing_loan_commitment_percent or 0.0) / 100

        deal_risks = self._risks.analyze_deal_risks(lead, as_of=now)

        return LeadSummary(
            readiness=self._readiness.calculate_upgrade_readiness(lead),
            deal_risks=deal_risks,
            has_high_risk=has_high_risk(deal_risks),
            why_now=self._why_now.generate_why_now_justification(lead),
            upgrade_analysis=self._calculator.analyze_upgrade(
                income,
                commitments,
                age=lead.age,
                current_property_value=lead.current_property_value,
                outstanding_loan_balance=lead.outstanding_loan_balance,
                current_monthly_installment=lead.current_monthly_installment,
                is_first_time_buyer=False,
            ),
        )
