"""Deal risk analyzer

Evaluates the deal risk rule table against a lead snapshot.
Output order: severity (high → medium → low), then rule table order.
Stateless; flags are recomputed on every call and never persisted.
"""

from __future__ import annotations

import logging
from datetime import datetime

from decision_engine.models.enums import RiskSeverity
from decision_engine.models.lead import LeadSnapshot
from decision_engine.models.scores import DealRiskFlag
from decision_engine.services.clock import resolve_as_of
from decision_engine.services.deal_risk_rules import DEAL_RISK_RULES

logger = logging.getLogger(__name__)

SEVERITY_ORDER = {RiskSeverity.HIGH: 0, RiskSeverity.MEDIUM: 1, RiskSeverity.LOW: 2}


class DealRiskAnalyzer:
    """Deal risk flags for one lead"""

    def __init__(self, rules=None) -> None:
        self.rules = DEAL_RISK_RULES if rules is None else rules

    def analyze_deal_risks(
        self, lead: LeadSnapshot, *, as_of: datetime | None = None
    ) -> list[DealRiskFlag]:
        now = resolve_as_of(as_of)
        flags: list[DealRiskFlag] = []

        for rule_id, risk_type, severity, rule_fn in self.rules:
            match = rule_fn(lead, now)
            if match is None:
                continue
            reason, details = match
            flags.append(
                DealRiskFlag(
                    type=risk_type,
                    reason=reason,
                    details=details,
                    severity=severity,
                    rule_id=rule_id,
                )
            )

        # sorted() is stable: table order within a severity
        flags = sorted(flags, key=lambda f: SEVERITY_ORDER[f.severity])

        if flags:
            logger.debug("deal risks %s: %s", lead.id, [f.rule_id for f in flags])
        return flags


def has_high_risk(flags: list[DealRiskFlag]) -> bool:
    return any(f.severity == RiskSeverity.HIGH for f in flags)


_default = DealRiskAnalyzer()

analyze_deal_risks = _default.analyze_deal_risks
