"""DecisionEngine integration tests

Checks that the orchestrator wires requalification, readiness, trigger
detection and the summary bundle together correctly.
"""

from datetime import date

import pytest

from decision_engine.errors import ConfigurationPreconditionError
from decision_engine.models.enums import (
    FamilyAlignmentStatus,
    Intent,
    ReadinessState,
    TriggerType,
)
from decision_engine.models.lead import (
    FinancialSnapshotUpdate,
    IncomeHistoryEntry,
    LeadSnapshot,
)
from decision_engine.services.rules.engine import DecisionEngine


# ──────────────────────────────────────
# Test helpers
# ──────────────────────────────────────


def _make_lead(**overrides) -> LeadSnapshot:
    defaults = {
        "id": "lead-e",
        "name": "Aisyah",
        "monthly_income_min": 8_000,
        "monthly_income_max": 8_000,
        "intent": Intent.BUY,
        "budget_min": 400_000,
        "budget_max": 500_000,
        "preferred_areas": ("cheras",),
    }
    defaults.update(overrides)
    return LeadSnapshot(**defaults)


def _owner_lead(**overrides) -> LeadSnapshot:
    """Owner scoring 55 (0 + 25 + 20 + 5 + 5) before any income update"""
    defaults = {
        "monthly_income_min": 6_000,
        "monthly_income_max": 6_000,
        "income_history": (IncomeHistoryEntry(amount=5_000, recorded_on=date(2024, 1, 1)),),
        "current_property_value": 500_000,
        "outstanding_loan_balance": 350_000,
        "existing_loan_commitment_percent": 10,
        "upgrade_readiness_score": 55,
        "upgrade_readiness_state": ReadinessState.MONITORING,
    }
    defaults.update(overrides)
    return _make_lead(**defaults)


engine = DecisionEngine()


class TestEvaluateLeadUpdate:
    """Lead edit flow"""

    def test_notes_only_skips_qualification(self, as_of, pricing_rules):
        previous = _make_lead()
        updated = previous.model_copy(update={"notes": "prefers high floor"})
        result = engine.evaluate_lead_update(updated, previous, pricing_rules, as_of=as_of)
        assert result.qualification is None
        assert result.triggers == []
        assert result.alerts == []

    def test_notes_only_does_not_need_rules(self, as_of):
        previous = _make_lead()
        updated = previous.model_copy(update={"notes": "call after 6pm"})
        result = engine.evaluate_lead_update(updated, previous, [], as_of=as_of)
        assert result.qualification is None

    def test_budget_change_requalifies(self, as_of, pricing_rules):
        previous = _make_lead()
        updated = previous.model_copy(update={"budget_max": 550_000})
        result = engine.evaluate_lead_update(updated, previous, pricing_rules, as_of=as_of)
        assert result.qualification is not None
        assert 0 <= result.qualification.score <= 100
        assert result.qualification.pricing_rule_matched is True

    def test_requalification_without_rules_raises(self, as_of):
        previous = _make_lead()
        updated = previous.model_copy(update={"budget_max": 550_000})
        with pytest.raises(ConfigurationPreconditionError):
            engine.evaluate_lead_update(updated, previous, [], as_of=as_of)

    def test_triggers_appended_to_log(self, as_of, pricing_rules):
        previous = _make_lead()
        updated = previous.model_copy(update={"budget_min": 500_000, "budget_max": 600_000})
        result = engine.evaluate_lead_update(updated, previous, pricing_rules, as_of=as_of)
        assert [t.type for t in result.triggers] == [TriggerType.HIGHER_TIER_INTEREST]
        assert result.upgrade_triggers == result.triggers
        assert result.is_upgrade_ready is False


class TestApplyFinancialUpdate:
    """Financial snapshot flow"""

    def test_entering_ready(self, as_of):
        lead = _owner_lead()
        result = engine.apply_financial_update(
            lead, FinancialSnapshotUpdate(current_income=6_500), as_of=as_of
        )
        assert result.readiness.score == 85
        assert result.readiness.state == ReadinessState.READY
        assert result.readiness_became_ready is True
        assert [t.type for t in result.triggers] == [TriggerType.READINESS_STATE_CHANGED]

        snapshot = result.snapshot
        assert snapshot.upgrade_readiness_state == ReadinessState.READY
        assert snapshot.upgrade_readiness_score == 85
        assert snapshot.is_upgrade_ready is True
        assert len(snapshot.income_history) == 2
        assert snapshot.upgrade_triggers == tuple(result.triggers)
        # input untouched
        assert len(lead.income_history) == 1

    def test_staying_ready_is_not_an_edge(self, as_of):
        first = engine.apply_financial_update(
            _owner_lead(), FinancialSnapshotUpdate(current_income=6_500), as_of=as_of
        )
        second = engine.apply_financial_update(
            first.snapshot, FinancialSnapshotUpdate(current_income=6_600), as_of=as_of
        )
        assert second.readiness.state == ReadinessState.READY
        assert second.readiness_became_ready is False
        assert second.triggers == []
        assert len(second.snapshot.upgrade_triggers) == 1

    def test_empty_update(self, as_of):
        lead = _owner_lead()
        result = engine.apply_financial_update(lead, FinancialSnapshotUpdate(), as_of=as_of)
        assert result.triggers == []
        assert result.readiness.score == 55
        assert result.snapshot.income_history == lead.income_history

    def test_first_income_within_declared_range(self, as_of):
        lead = _make_lead(monthly_income_min=5_000, monthly_income_max=7_000)
        result = engine.apply_financial_update(
            lead, FinancialSnapshotUpdate(current_income=7_000), as_of=as_of
        )
        assert result.triggers == []
        assert result.snapshot.is_upgrade_ready is False
        assert result.snapshot.current_income == 7_000


class TestSummarize:
    """On-demand bundle"""

    def test_owner_with_family_objection(self, as_of):
        lead = _make_lead(
            current_income=15_000,
            current_property_value=500_000,
            outstanding_loan_balance=350_000,
            family_alignment_status=FamilyAlignmentStatus.FAMILY_OBJECTION,
        )
        summary = engine.summarize(lead, as_of=as_of)
        assert summary.has_high_risk is True
        assert summary.deal_risks[0].rule_id == "D001"
        assert summary.why_now.equity_position is not None
        assert summary.upgrade_analysis.target_property_price == 600_000
        assert summary.upgrade_analysis.equity is not None

    def test_renter(self, as_of):
        summary = engine.summarize(_make_lead(), as_of=as_of)
        assert summary.has_high_risk is False
        assert summary.why_now.points == []
        assert summary.upgrade_analysis.equity is None
        assert summary.readiness.state == ReadinessState.NOT_READY
