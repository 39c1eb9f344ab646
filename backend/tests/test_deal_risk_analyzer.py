"""DealRiskAnalyzer / deal risk rule tests"""

from datetime import date, datetime, timezone

from decision_engine.models.enums import (
    AreaFit,
    DealRiskType,
    EmploymentType,
    FamilyAlignmentStatus,
    RiskSeverity,
    UpgradeStage,
)
from decision_engine.models.lead import LeadSnapshot
from decision_engine.models.scores import BudgetRange, SuggestedArea
from decision_engine.services.deal_risk_analyzer import DealRiskAnalyzer, has_high_risk
from decision_engine.services.deal_risk_rules import (
    DEAL_RISK_RULES,
    check_d002_tight_margin,
    check_d003_short_tenure,
    check_d005_rate_sensitive,
)


def _make_lead(**overrides) -> LeadSnapshot:
    defaults = {
        "id": "lead-d",
        "name": "Farid",
        "monthly_income_min": 8_000,
        "monthly_income_max": 8_000,
    }
    defaults.update(overrides)
    return LeadSnapshot(**defaults)


def _ids(flags) -> list[str]:
    return [f.rule_id for f in flags]


analyzer = DealRiskAnalyzer()


class TestRuleTable:
    """Registry shape"""

    def test_ids_unique_and_ordered(self):
        ids = [rule_id for rule_id, _, _, _ in DEAL_RISK_RULES]
        assert ids == sorted(ids)
        assert len(ids) == len(set(ids)) == 8


class TestIndividualRules:
    """One rule at a time"""

    def test_clean_lead_no_flags(self, as_of):
        assert analyzer.analyze_deal_risks(_make_lead(), as_of=as_of) == []

    def test_family_objection(self, as_of):
        lead = _make_lead(family_alignment_status=FamilyAlignmentStatus.FAMILY_OBJECTION)
        flags = analyzer.analyze_deal_risks(lead, as_of=as_of)
        assert _ids(flags) == ["D001"]
        assert flags[0].type == DealRiskType.FAMILY_OBJECTION
        assert flags[0].severity == RiskSeverity.HIGH

    def test_tight_margin_warning_and_critical(self, as_of):
        warning = check_d002_tight_margin(_make_lead(existing_loan_commitment_percent=58), as_of)
        critical = check_d002_tight_margin(_make_lead(existing_loan_commitment_percent=66), as_of)
        assert warning is not None and "Warning" in warning[1]
        assert critical is not None and "Critical" in critical[1]
        assert check_d002_tight_margin(_make_lead(existing_loan_commitment_percent=40), as_of) is None

    def test_short_tenure_wording(self, as_of):
        employee = check_d003_short_tenure(_make_lead(years_in_current_job=1.5), as_of)
        business = check_d003_short_tenure(
            _make_lead(years_in_current_job=1, employment_type=EmploymentType.SELF_EMPLOYED),
            as_of,
        )
        assert employee[0].startswith("Employment tenure is 1.5 years")
        assert business[0].startswith("Self-employment")
        assert check_d003_short_tenure(_make_lead(years_in_current_job=2), as_of) is None

    def test_previous_rejection_medium(self, as_of):
        flags = analyzer.analyze_deal_risks(_make_lead(previous_loan_rejection=True), as_of=as_of)
        assert _ids(flags) == ["D004"]
        assert flags[0].severity == RiskSeverity.MEDIUM

    def test_rate_sensitive_long_tenure(self, as_of):
        # 35-year tenure: +1% cuts the loan by ~11%
        lead = _make_lead(age=25, existing_loan_commitment_percent=20)
        match = check_d005_rate_sensitive(lead, as_of)
        assert match is not None
        assert "1% rate increase" in match[0]

    def test_rate_sensitive_short_tenure(self, as_of):
        lead = _make_lead(age=50, existing_loan_commitment_percent=20)
        assert check_d005_rate_sensitive(lead, as_of) is None

    def test_rate_sensitive_needs_commitments(self, as_of):
        lead = _make_lead(age=25, existing_loan_commitment_percent=0)
        assert check_d005_rate_sensitive(lead, as_of) is None

    def test_stale_stage(self, as_of):
        lead = _make_lead(
            upgrade_stage=UpgradeStage.WINDOW_OPEN,
            upgrade_stage_changed_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
        )
        flags = analyzer.analyze_deal_risks(lead, as_of=as_of)
        assert _ids(flags) == ["D006"]

    def test_recent_stage_change_not_stale(self, as_of):
        lead = _make_lead(
            upgrade_stage=UpgradeStage.PLANNING,
            upgrade_stage_changed_at=datetime(2026, 5, 1),
        )
        assert analyzer.analyze_deal_risks(lead, as_of=as_of) == []

    def test_monitoring_stage_never_stale(self, as_of):
        lead = _make_lead(
            upgrade_stage=UpgradeStage.MONITORING,
            upgrade_stage_changed_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        assert analyzer.analyze_deal_risks(lead, as_of=as_of) == []

    def test_stale_valuation(self, as_of):
        lead = _make_lead(
            current_property_value=600_000,
            property_value_last_updated=datetime(2025, 10, 1, tzinfo=timezone.utc),
        )
        flags = analyzer.analyze_deal_risks(lead, as_of=as_of)
        assert _ids(flags) == ["D007"]
        assert "8 months" in flags[0].reason

    def test_recent_valuation(self, as_of):
        lead = _make_lead(
            current_property_value=600_000,
            property_value_last_updated=datetime(2026, 3, 1, tzinfo=timezone.utc),
        )
        assert analyzer.analyze_deal_risks(lead, as_of=as_of) == []

    def test_lease_ending_unmatched(self, as_of):
        lead = _make_lead(lease_end_date=date(2026, 7, 1))
        flags = analyzer.analyze_deal_risks(lead, as_of=as_of)
        assert _ids(flags) == ["D008"]
        assert flags[0].severity == RiskSeverity.LOW

    def test_lease_ending_with_match(self, as_of):
        area = SuggestedArea(
            area="Cheras", area_key="cheras", reason="Perfect fit for your budget",
            fit=AreaFit.PERFECT, estimated_budget=BudgetRange(min=300_000, max=500_000),
        )
        lead = _make_lead(lease_end_date=date(2026, 7, 1), suggested_areas=(area,))
        assert analyzer.analyze_deal_risks(lead, as_of=as_of) == []


class TestOrdering:
    """Severity, then table order"""

    def test_sorted_by_severity(self, as_of):
        lead = _make_lead(
            current_property_value=600_000,
            property_value_last_updated=datetime(2025, 1, 1, tzinfo=timezone.utc),
            previous_loan_rejection=True,
            family_alignment_status=FamilyAlignmentStatus.FAMILY_OBJECTION,
            years_in_current_job=1,
        )
        flags = analyzer.analyze_deal_risks(lead, as_of=as_of)
        assert _ids(flags) == ["D001", "D003", "D004", "D007"]
        assert has_high_risk(flags) is True

    def test_idempotent(self, as_of):
        lead = _make_lead(previous_loan_rejection=True, years_in_current_job=1)
        assert analyzer.analyze_deal_risks(lead, as_of=as_of) == analyzer.analyze_deal_risks(
            lead, as_of=as_of
        )

    def test_has_high_risk_false(self, as_of):
        flags = analyzer.analyze_deal_risks(_make_lead(previous_loan_rejection=True), as_of=as_of)
        assert has_high_risk(flags) is False
        assert has_high_risk([]) is False
