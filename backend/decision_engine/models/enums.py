"""Enumerations shared by lead snapshots and engine results"""

from __future__ import annotations

from enum import Enum


class City(str, Enum):
    """Supported cities"""

    KLANG_VALLEY = "klang_valley"
    PENANG = "penang"
    JOHOR_BAHRU = "johor_bahru"


class Intent(str, Enum):
    """Rent or buy"""

    RENT = "rent"
    BUY = "buy"


class MoveInTimeline(str, Enum):
    """How soon the client wants to move"""

    IMMEDIATE = "immediate"
    ONE_TO_THREE_MONTHS = "1_3_months"
    THREE_TO_SIX_MONTHS = "3_6_months"
    SIX_TO_TWELVE_MONTHS = "6_12_months"
    FLEXIBLE = "flexible"


class EmploymentType(str, Enum):
    """Employment type"""

    PERMANENT = "permanent"
    CONTRACT = "contract"
    SELF_EMPLOYED = "self_employed"
    BUSINESS_OWNER = "business_owner"
    FREELANCE = "freelance"


class LeadStatus(str, Enum):
    """Sales pipeline status"""

    NEW = "new"
    CONTACTED = "contacted"
    VIEWING_SCHEDULED = "viewing_scheduled"
    NEGOTIATING = "negotiating"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"
    NURTURING = "nurturing"


class QualificationStatus(str, Enum):
    """Lead qualification status"""

    PENDING = "pending"
    NOT_QUALIFIED = "not_qualified"
    STRETCH = "stretch"
    QUALIFIED = "qualified"


class FinancingReadiness(str, Enum):
    """Likelihood of bank approval"""

    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


class UpgradeStage(str, Enum):
    """Upgrade pipeline stage"""

    MONITORING = "monitoring"
    WINDOW_OPEN = "window_open"
    PLANNING = "planning"
    EXECUTED = "executed"
    LOST = "lost"


class ReadinessState(str, Enum):
    """Upgrade readiness state"""

    NOT_READY = "not_ready"    # < 40
    MONITORING = "monitoring"  # 40 ~ 69
    READY = "ready"            # >= 70


class LifeMilestoneType(str, Enum):
    """Recorded life events"""

    MARRIAGE = "marriage"
    CHILD = "child"
    PROMOTION = "promotion"
    JOB_CHANGE = "job_change"
    INHERITANCE = "inheritance"
    BONUS = "bonus"
    KIDS_SCHOOL = "kids_school"
    KIDS_LEAVING = "kids_leaving"
    RETIREMENT_PLANNING = "retirement_planning"
    OTHER = "other"


class FamilyAlignmentStatus(str, Enum):
    """Decision-maker alignment"""

    NOT_DISCUSSED = "not_discussed"
    SPOUSE_PENDING = "spouse_pending"
    SPOUSE_ALIGNED = "spouse_aligned"
    FAMILY_OBJECTION = "family_objection"
    ALL_ALIGNED = "all_aligned"


class RateProfile(str, Enum):
    """Interest rate assumption profile"""

    CONSERVATIVE = "conservative"
    STANDARD = "standard"
    OPTIMISTIC = "optimistic"


class AreaTier(str, Enum):
    """Area price tier"""

    BUDGET = "budget"
    MID = "mid"
    PREMIUM = "premium"


class AreaFit(str, Enum):
    """How a suggested area fits the budget"""

    PERFECT = "perfect"
    STRETCH = "stretch"
    ALTERNATIVE = "alternative"


class TriggerType(str, Enum):
    """Upgrade trigger / alert type"""

    INCOME_INCREASE = "income_increase"
    EQUITY_THRESHOLD_CROSSED = "equity_threshold_crossed"
    READINESS_STATE_CHANGED = "readiness_state_changed"
    HIGHER_TIER_INTEREST = "higher_tier_interest"
    LEASE_ENDING = "lease_ending"
    LIFE_MILESTONE = "life_milestone"


class DealRiskType(str, Enum):
    """Deal execution risk"""

    FAMILY_OBJECTION = "family_objection"
    TIGHT_MARGIN = "tight_margin"
    SHORT_TENURE = "short_tenure"
    PREVIOUS_REJECTION = "previous_rejection"
    RATE_SENSITIVE = "rate_sensitive"
    STALE_STAGE = "stale_stage"
    OPTIMISTIC_EQUITY = "optimistic_equity"
    LEASE_ENDING_UNMATCHED = "lease_ending_unmatched"


class RiskSeverity(str, Enum):
    """Deal risk severity"""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
