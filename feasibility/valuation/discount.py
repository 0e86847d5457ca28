from __future__ import annotations
from typing import Iterable, List

NPV_YEARS = 10


def discount_factors(rate: float, periods: int) -> List[float]:
    """Return [1/(1+r)^1, ..., 1/(1+r)^periods]."""
    return [1.0 / ((1.0 + rate) ** t) for t in range(1, periods + 1)]


def present_value(cashflows: Iterable[float], rate: float) -> float:
    flows = [float(cf) for cf in cashflows]
    return sum(cf * df for cf, df in zip(flows, discount_factors(rate, len(flows))))


def npv_flat_annuity(investment: float, net_profit: float, discount_rate_percent: float, years: int = NPV_YEARS) -> float:
    """-investment + PV of `years` equal net-profit payments, first one at year 1.

    Net profit is held flat: no growth or inflation is applied.
    """
    rate = discount_rate_percent / 100.0
    return -investment + present_value([net_profit] * years, rate)
