"""Shared test fixtures

Klang Valley pricing rules (buy / rent) and a fixed reference time so that
lease and staleness checks are reproducible.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from decision_engine.models.enums import AreaTier, City, Intent
from decision_engine.models.lead import AreaRule, PricingRule

AS_OF = datetime(2026, 6, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def as_of() -> datetime:
    return AS_OF


@pytest.fixture
def kv_buy_rule() -> PricingRule:
    return PricingRule(
        id="kv-buy",
        city=City.KLANG_VALLEY,
        intent=Intent.BUY,
        area_rules={
            "cheras": AreaRule(min_budget=300_000, max_budget=500_000, tier=AreaTier.BUDGET),
            "petaling_jaya": AreaRule(min_budget=500_000, max_budget=800_000, tier=AreaTier.MID),
            "mont_kiara": AreaRule(min_budget=800_000, max_budget=1_500_000, tier=AreaTier.PREMIUM),
            "subang_jaya": AreaRule(min_budget=450_000, max_budget=750_000, tier=AreaTier.MID),
        },
        max_dti_ratio=0.6,
        price_to_installment_ratio=200,
    )


@pytest.fixture
def kv_rent_rule() -> PricingRule:
    return PricingRule(
        id="kv-rent",
        city=City.KLANG_VALLEY,
        intent=Intent.RENT,
        area_rules={
            "cheras": AreaRule(min_budget=1_200, max_budget=2_000, tier=AreaTier.BUDGET),
            "petaling_jaya": AreaRule(min_budget=1_800, max_budget=3_000, tier=AreaTier.MID),
            "mont_kiara": AreaRule(min_budget=3_500, max_budget=6_000, tier=AreaTier.PREMIUM),
        },
    )


@pytest.fixture
def pricing_rules(kv_buy_rule, kv_rent_rule) -> list[PricingRule]:
    return [kv_buy_rule, kv_rent_rule]
