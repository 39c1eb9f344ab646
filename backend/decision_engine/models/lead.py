"""Lead snapshot and pricing rule input models

A LeadSnapshot is the persisted lead as the service layer hands it to the
engine. Snapshots are immutable per point in time; updates produce a new
snapshot via model_copy(update=...). Optional fields default to None, meaning
"not recorded", which the scorers treat differently from 0 / False.
"""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from decision_engine.models.enums import (
    AreaTier,
    City,
    EmploymentType,
    FamilyAlignmentStatus,
    Intent,
    LeadStatus,
    LifeMilestoneType,
    MoveInTimeline,
    ReadinessState,
    UpgradeStage,
)
from decision_engine.models.scores import SuggestedArea, UpgradeTrigger


class IncomeHistoryEntry(BaseModel):
    """Recorded monthly income at a point in time"""

    model_config = ConfigDict(frozen=True)

    amount: float
    recorded_on: date
    notes: str = ""


class LifeMilestone(BaseModel):
    """Recorded life event"""

    model_config = ConfigDict(frozen=True)

    type: LifeMilestoneType
    recorded_on: date
    notes: str = ""


class LeadSnapshot(BaseModel):
    """Lead financial / preference snapshot"""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str = ""

    # Preferences
    monthly_income_min: float = 0.0
    monthly_income_max: float = 0.0
    preferred_city: City = City.KLANG_VALLEY
    preferred_areas: tuple[str, ...] = ()
    intent: Intent = Intent.BUY
    budget_min: float = 0.0
    budget_max: float = 0.0
    move_in_timeline: MoveInTimeline = MoveInTimeline.FLEXIBLE
    lease_end_date: date | None = None

    # Financing profile
    employment_type: EmploymentType | None = None
    years_in_current_job: float | None = None
    existing_loan_commitment_percent: float | None = None  # % of monthly income
    previous_loan_rejection: bool | None = None
    is_first_time_buyer: bool | None = None
    age: int | None = None

    # Financial snapshot
    current_income: float | None = None
    income_last_updated: datetime | None = None
    income_history: tuple[IncomeHistoryEntry, ...] = ()
    current_property_value: float | None = None
    property_value_last_updated: datetime | None = None
    outstanding_loan_balance: float | None = None
    loan_balance_last_updated: datetime | None = None
    current_monthly_installment: float | None = None
    life_milestones: tuple[LifeMilestone, ...] = ()

    # Family alignment
    family_alignment_status: FamilyAlignmentStatus | None = None

    # Pipeline
    status: LeadStatus = LeadStatus.NEW
    upgrade_stage: UpgradeStage = UpgradeStage.MONITORING
    upgrade_stage_changed_at: datetime | None = None

    # Persisted engine output
    suggested_areas: tuple[SuggestedArea, ...] = ()
    is_upgrade_ready: bool = False
    upgrade_triggers: tuple[UpgradeTrigger, ...] = ()
    upgrade_readiness_score: int | None = None
    upgrade_readiness_state: ReadinessState | None = None

    # Free text (never affects scoring)
    notes: str = ""

    created_at: datetime | None = None

    @property
    def average_income(self) -> float:
        """Midpoint of the declared income range"""
        return (self.monthly_income_min + self.monthly_income_max) / 2

    @property
    def effective_income(self) -> float:
        """Tracked current income, falling back to the declared range"""
        if self.current_income is not None and self.current_income > 0:
            return self.current_income
        return self.average_income

    @property
    def average_budget(self) -> float:
        return (self.budget_min + self.budget_max) / 2


class AreaRule(BaseModel):
    """Price band for one area"""

    model_config = ConfigDict(frozen=True)

    min_budget: float
    max_budget: float
    tier: AreaTier = AreaTier.MID
    avg_rent: float | None = None
    avg_price: float | None = None


class PricingRule(BaseModel):
    """Per-city / per-intent pricing configuration (read-only at scoring time)"""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    city: City
    intent: Intent
    area_rules: dict[str, AreaRule] = Field(default_factory=dict)
    max_dti_ratio: float = 0.6
    price_to_installment_ratio: float = 200.0
    is_active: bool = True


class FinancialSnapshotUpdate(BaseModel):
    """Financial snapshot edit submitted by an agent"""

    current_income: float | None = None
    current_property_value: float | None = None
    outstanding_loan_balance: float | None = None
    life_milestone: LifeMilestone | None = None
