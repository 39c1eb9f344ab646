"""Ringgit formatting for reason strings"""

from __future__ import annotations


def format_rm(amount: float) -> str:
    """Compact RM label (RM 1.05M / RM 105K / RM 950)"""
    if amount >= 1_000_000:
        return f"RM {amount / 1_000_000:.2f}M"
    if amount >= 1_000:
        return f"RM {amount / 1_000:.0f}K"
    return f"RM {amount:,.0f}"


def format_rm_full(amount: float) -> str:
    """Full RM label with thousands separators (RM 105,000)"""
    return f"RM {amount:,.0f}"
