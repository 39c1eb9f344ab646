"""scripts/evaluate_lead.py report building"""

import importlib.util
from pathlib import Path

import pytest

from decision_engine.errors import ConfigurationPreconditionError
from decision_engine.models.lead import LeadSnapshot

_SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "evaluate_lead.py"


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("evaluate_lead", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _make_lead(**overrides) -> LeadSnapshot:
    defaults = {
        "id": "lead-c",
        "name": "Mei Ling",
        "monthly_income_min": 8_000,
        "monthly_income_max": 8_000,
        "budget_min": 400_000,
        "budget_max": 500_000,
    }
    defaults.update(overrides)
    return LeadSnapshot(**defaults)


class TestBuildReport:
    """Sections present per given inputs"""

    def test_previous_without_rules(self, cli, as_of):
        previous = _make_lead()
        updated = previous.model_copy(update={"budget_min": 500_000, "budget_max": 600_000})
        report = cli.build_report(updated, previous, None, as_of)
        assert "qualification" not in report
        assert [t["type"] for t in report["triggers"]["triggers"]] == ["higher_tier_interest"]
        assert report["summary"]["has_high_risk"] is False

    def test_rules_and_previous(self, cli, as_of, pricing_rules):
        lead = _make_lead()
        report = cli.build_report(lead, lead, pricing_rules, as_of)
        assert 0 <= report["qualification"]["score"] <= 100
        assert report["triggers"]["triggers"] == []

    def test_empty_rules_not_configured(self, cli, as_of):
        with pytest.raises(ConfigurationPreconditionError):
            cli.build_report(_make_lead(), None, [], as_of)
