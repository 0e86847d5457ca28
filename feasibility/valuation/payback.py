from __future__ import annotations
import math

from feasibility.study.model import PAYBACK_SENTINEL
from feasibility.valuation.discount import NPV_YEARS


def payback_months(investment: float, net_profit: float) -> int:
    if net_profit > 0:
        return int(math.ceil(investment / net_profit * 12.0))
    return PAYBACK_SENTINEL


def roi_percentage(investment: float, net_profit: float) -> float:
    return (net_profit / investment) * 100.0 if investment > 0 else 0.0


def is_payback_sentinel(months: int) -> bool:
    return int(months) == PAYBACK_SENTINEL


def describe_payback(months: int, horizon_years: int = NPV_YEARS) -> str:
    """Human label for payback_months; the sentinel never renders as a duration."""
    if is_payback_sentinel(months):
        return f"> {horizon_years} years"
    return f"{int(months)} months ({int(months) / 12.0:.1f} years)"
