"""Lead snapshot helpers

Pure functions over LeadSnapshot: applying a financial snapshot edit
(append-only history) and deciding which scores an edit invalidates.
"""

from __future__ import annotations

from datetime import datetime

from decision_engine.models.lead import (
    FinancialSnapshotUpdate,
    IncomeHistoryEntry,
    LeadSnapshot,
)
from decision_engine.services.clock import resolve_as_of

# Edits to any of these require re-running qualification
QUALIFICATION_FIELDS: tuple[str, ...] = (
    "monthly_income_min",
    "monthly_income_max",
    "preferred_city",
    "preferred_areas",
    "intent",
    "budget_min",
    "budget_max",
    "employment_type",
    "years_in_current_job",
    "existing_loan_commitment_percent",
    "previous_loan_rejection",
    "is_first_time_buyer",
    "move_in_timeline",
    "lease_end_date",
)

# Edits to any of these require re-running upgrade readiness
READINESS_FIELDS: tuple[str, ...] = (
    "current_income",
    "income_history",
    "current_property_value",
    "outstanding_loan_balance",
)


def changed_fields(
    updated: LeadSnapshot, previous: LeadSnapshot, fields: tuple[str, ...]
) -> list[str]:
    return [f for f in fields if getattr(updated, f) != getattr(previous, f)]


def needs_requalification(updated: LeadSnapshot, previous: LeadSnapshot) -> bool:
    return bool(changed_fields(updated, previous, QUALIFICATION_FIELDS))


def needs_readiness_recalculation(updated: LeadSnapshot, previous: LeadSnapshot) -> bool:
    return bool(changed_fields(updated, previous, READINESS_FIELDS))


def apply_financial_snapshot(
    lead: LeadSnapshot,
    update: FinancialSnapshotUpdate,
    *,
    as_of: datetime | None = None,
) -> LeadSnapshot:
    """New snapshot with the financial edit applied

    Income edits append an income history entry, milestones are appended,
    and each edited value gets its *_last_updated stamp. Past entries are
    never modified. Returns the same snapshot when the update is empty.

    Args:
        lead: current snapshot
        update: submitted financial fields (None = unchanged)
        as_of: timestamp for the stamps and history entries

    Returns:
        LeadSnapshot
    """
    now = resolve_as_of(as_of)
    changes: dict = {}

    if update.current_income is not None:
        changes["current_income"] = update.current_income
        changes["income_last_updated"] = now
        changes["income_history"] = lead.income_history + (
            IncomeHistoryEntry(amount=update.current_income, recorded_on=now.date()),
        )

    if update.current_property_value is not None:
        changes["current_property_value"] = update.current_property_value
        changes["property_value_last_updated"] = now

    if update.outstanding_loan_balance is not None:
        changes["outstanding_loan_balance"] = update.outstanding_loan_balance
        changes["loan_balance_last_updated"] = now

    if update.life_milestone is not None:
        changes["life_milestones"] = lead.life_milestones + (update.life_milestone,)

    if not changes:
        return lead
    return lead.model_copy(update=changes)
