"""Engine result models

Pydantic DTOs returned by each decision engine component.
Qualification: QualificationResult (4 components, 100 points)
Affordability: AffordabilityResult / EquityResult / UpgradeAnalysisResult
Readiness: UpgradeReadinessResult (5 components, 100 points)
Triggers: UpgradeTrigger / UpgradeAlert / TriggerDetectionResult
Deal risk: DealRiskFlag
Why now: JustificationPoint / WhyNowJustification
"""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from decision_engine.models.enums import (
    AreaFit,
    DealRiskType,
    FinancingReadiness,
    QualificationStatus,
    ReadinessState,
    RiskSeverity,
    TriggerType,
)


# ──────────────────────────────────────
# Qualification
# ──────────────────────────────────────


class BudgetRange(BaseModel):
    """Price band of an area"""

    min: int
    max: int


class SuggestedArea(BaseModel):
    """Area suggestion ranked by budget fit"""

    model_config = ConfigDict(frozen=True)

    area: str                 # display label (e.g. "Petaling Jaya")
    area_key: str             # catalogue key (e.g. "petaling_jaya")
    reason: str
    fit: AreaFit
    estimated_budget: BudgetRange


class QualificationBreakdown(BaseModel):
    """Qualification component scores (max 40 / 30 / 20 / 10)"""

    income_score: float = 0.0
    income_analysis: str = ""
    location_score: float = 0.0
    location_analysis: str = ""
    financing_score: float = 0.0
    financing_analysis: str = ""
    urgency_score: float = 0.0
    urgency_analysis: str = ""
    total_score: float = 0.0


class QualificationResult(BaseModel):
    """Lead qualification outcome"""

    score: float
    status: QualificationStatus
    financing_readiness: FinancingReadiness
    breakdown: QualificationBreakdown
    suggested_areas: list[SuggestedArea] = Field(default_factory=list)
    pricing_rule_matched: bool = True


# ──────────────────────────────────────
# Affordability / equity
# ──────────────────────────────────────


class AffordabilityResult(BaseModel):
    """Conservative purchase affordability (all RM values rounded)"""

    disposable_income: float = 0.0
    max_property_price: int = 0
    conservative_property_price: int = 0
    max_monthly_installment: float = 0.0
    conservative_monthly_installment: float = 0.0
    max_loan_amount: int = 0
    conservative_loan_amount: int = 0
    effective_tenure_years: int = 0
    interest_rate: float = 0.0
    downpayment_ratio: float = 0.0
    required_downpayment: int = 0
    stamp_duty: int = 0
    legal_fees: int = 0
    misc_fees: int = 0
    total_upfront_cost: int = 0
    assumptions: list[str] = Field(default_factory=list)
    disclaimer: str = ""


class EquityResult(BaseModel):
    """Equity that can be released from the current property"""

    gross_equity: int = 0
    gross_equity_percent: float = 0.0
    selling_costs: int = 0
    safety_buffer: int = 0
    usable_equity: int = 0
    usable_equity_percent: float = 0.0
    available_for_downpayment: int = 0
    affordable_upgrade_property: int = 0
    assumptions: list[str] = Field(default_factory=list)
    disclaimer: str = ""


class UpgradeAnalysisResult(BaseModel):
    """Sell-and-buy upgrade feasibility"""

    affordability: AffordabilityResult
    equity: EquityResult | None = None
    target_property_price: int = 0
    current_monthly_commitment: float = 0.0
    new_monthly_commitment: float = 0.0
    monthly_difference: float = 0.0
    is_feasible: bool = False
    reasons: list[str] = Field(default_factory=list)
    recommended_steps: list[str] = Field(default_factory=list)


# ──────────────────────────────────────
# Upgrade readiness
# ──────────────────────────────────────


class UpgradeReadinessBreakdown(BaseModel):
    """Readiness component scores (max 30 / 25 / 20 / 15 / 10)"""

    income_growth_score: int = 0
    income_growth_reason: str = ""
    equity_score: int = 0
    equity_reason: str = ""
    debt_score: int = 0
    debt_reason: str = ""
    employment_score: int = 0
    employment_reason: str = ""
    rejection_score: int = 0
    rejection_reason: str = ""
    total_score: int = 0


class UpgradeReadinessResult(BaseModel):
    """Upgrade readiness score and state"""

    score: int
    state: ReadinessState
    breakdown: UpgradeReadinessBreakdown
    explanation: str = ""
    next_steps: list[str] = Field(default_factory=list)


# ──────────────────────────────────────
# Triggers / alerts
# ──────────────────────────────────────


class UpgradeTrigger(BaseModel):
    """Timestamped trigger event (append-only, never edited)"""

    model_config = ConfigDict(frozen=True)

    type: TriggerType
    reason: str
    triggered_at: datetime


class UpgradeAlert(BaseModel):
    """Alert payload for the caller to persist"""

    lead_id: str | None = None
    alert_type: TriggerType
    title: str
    description: str
    suggested_action: str = ""


class TriggerDetectionResult(BaseModel):
    """Snapshot comparison outcome"""

    triggers: list[UpgradeTrigger] = Field(default_factory=list)
    alerts: list[UpgradeAlert] = Field(default_factory=list)
    is_upgrade_ready: bool = False
    should_alert: bool = False


# ──────────────────────────────────────
# Deal risk
# ──────────────────────────────────────


class DealRiskFlag(BaseModel):
    """Transient deal risk (recomputed on every call)"""

    type: DealRiskType
    reason: str
    details: str = ""
    severity: RiskSeverity
    rule_id: str = ""


# ──────────────────────────────────────
# Why now
# ──────────────────────────────────────


class JustificationPoint(BaseModel):
    """One factual talking point and where its data came from"""

    title: str
    factual_statement: str
    data_source: str
    recorded_at: date | datetime | None = None


class WhyNowJustification(BaseModel):
    """Zero to three data-backed points"""

    income_growth: JustificationPoint | None = None
    equity_position: JustificationPoint | None = None
    affordability_threshold: JustificationPoint | None = None
    summary: list[str] = Field(default_factory=list)

    @property
    def points(self) -> list[JustificationPoint]:
        return [
            p
            for p in (
                self.income_growth,
                self.equity_position,
                self.affordability_threshold,
            )
            if p is not None
        ]
