"""Lead evaluation CLI

Runs the decision engine over a lead snapshot stored as JSON and prints a
JSON report (readiness, deal risks, why-now, upgrade analysis, and
qualification / triggers when given).

Usage:
    PYTHONPATH=backend python scripts/evaluate_lead.py lead.json
    PYTHONPATH=backend python scripts/evaluate_lead.py lead.json --pricing-rules rules.json
    PYTHONPATH=backend python scripts/evaluate_lead.py lead.json --previous prev.json --as-of 2026-06-01
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

# PYTHONPATH auto setup
backend_dir = str(Path(__file__).resolve().parent.parent / "backend")
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)

from pydantic import TypeAdapter  # noqa: E402

from decision_engine.errors import ConfigurationPreconditionError  # noqa: E402
from decision_engine.logging_setup import setup_logging  # noqa: E402
from decision_engine.models.lead import LeadSnapshot, PricingRule  # noqa: E402
from decision_engine.services.rules.engine import DecisionEngine  # noqa: E402
from decision_engine.services.rules.qualification import QualificationEngine  # noqa: E402
from decision_engine.services.rules.upgrade_triggers import UpgradeTriggerDetector  # noqa: E402

logger = logging.getLogger(__name__)

EXIT_NOT_CONFIGURED = 2


def load_lead(path: str) -> LeadSnapshot:
    return LeadSnapshot.model_validate_json(Path(path).read_text(encoding="utf-8"))


def load_pricing_rules(path: str) -> list[PricingRule]:
    adapter = TypeAdapter(list[PricingRule])
    return adapter.validate_json(Path(path).read_text(encoding="utf-8"))


def parse_as_of(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_report(
    lead: LeadSnapshot,
    previous: LeadSnapshot | None,
    pricing_rules: list[PricingRule] | None,
    as_of: datetime | None,
) -> dict:
    """Qualification only with pricing rules, trigger detection only with a previous snapshot"""
    engine = DecisionEngine()
    report: dict = {"lead_id": lead.id}

    if pricing_rules is not None:
        qualification = QualificationEngine().qualify_lead(lead, pricing_rules, as_of=as_of)
        report["qualification"] = qualification.model_dump(mode="json")

    if previous is not None:
        detection = UpgradeTriggerDetector().detect_upgrade_triggers(
            lead, previous, as_of=as_of
        )
        report["triggers"] = detection.model_dump(mode="json")

    summary = engine.summarize(lead, as_of=as_of)
    report["summary"] = summary.model_dump(mode="json")
    return report


def main() -> None:
    parser = argparse.ArgumentParser(description="Upgrade decision engine: evaluate a lead")
    parser.add_argument("lead", help="lead snapshot JSON path")
    parser.add_argument("--previous", default="", help="previous snapshot JSON (trigger detection, no pricing rules needed)")
    parser.add_argument("--pricing-rules", default="", help="pricing rules JSON list (qualification)")
    parser.add_argument("--as-of", default="", help="reference time, ISO format (default: now)")
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    args = parser.parse_args()

    setup_logging(args.verbose)

    lead = load_lead(args.lead)
    previous = load_lead(args.previous) if args.previous else None
    rules = load_pricing_rules(args.pricing_rules) if args.pricing_rules else None
    as_of = parse_as_of(args.as_of) if args.as_of else None

    try:
        report = build_report(lead, previous, rules, as_of)
    except ConfigurationPreconditionError as e:
        logger.error("System not configured: %s (%s)", e.message, e.code)
        print(f"System not configured: {e.message}", file=sys.stderr)
        sys.exit(EXIT_NOT_CONFIGURED)

    print(json.dumps(report, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
