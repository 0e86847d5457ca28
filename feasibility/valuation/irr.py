from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

from feasibility.valuation.discount import NPV_YEARS

# Rates outside this window (percent) are reported as N/A
PLAUSIBLE_IRR_RANGE: Tuple[float, float] = (-100.0, 300.0)


@dataclass(frozen=True)
class IRRResult:
    rate_percent: float
    converged: bool
    iterations: int
    residual: float  # NPV at the returned rate
    net_profit: float

    @property
    def viable(self) -> bool:
        lo, hi = PLAUSIBLE_IRR_RANGE
        return self.net_profit > 0 and self.converged and lo < self.rate_percent <= hi


def _npv_and_slope(investment: float, net_profit: float, r: float, years: int) -> Tuple[float, float]:
    npv = -investment
    slope = 0.0
    for year in range(1, years + 1):
        npv += net_profit / (1.0 + r) ** year
        slope -= year * net_profit / (1.0 + r) ** (year + 1)
    return npv, slope


def solve_irr(
    investment: float,
    net_profit: float,
    years: int = NPV_YEARS,
    guess: float = 0.15,
    max_iter: int = 100,
    derivative_floor: float = 1e-4,
    tolerance: float = 100.0,
) -> IRRResult:
    """Newton-Raphson on NPV(r) = 0 for a flat `years`-long net-profit series.

    Stops when |dNPV/dr| < derivative_floor (no step taken) or when the NPV
    evaluated before a step is within `tolerance` currency units (the step is
    still applied). No bracketing: the caller decides whether the rate is
    usable via IRRResult.viable.
    """
    r = guess
    converged = False
    i = 0
    for i in range(1, max_iter + 1):
        if 1.0 + r <= 0.0:
            break
        try:
            npv, slope = _npv_and_slope(investment, net_profit, r, years)
        except (OverflowError, ZeroDivisionError):
            break
        if abs(slope) < derivative_floor:
            break
        r = r - npv / slope
        if abs(npv) < tolerance:
            converged = True
            break

    try:
        residual = _npv_and_slope(investment, net_profit, r, years)[0] if 1.0 + r > 0.0 else float("inf")
    except (OverflowError, ZeroDivisionError):
        residual = float("inf")
    return IRRResult(rate_percent=r * 100.0, converged=converged, iterations=i, residual=residual, net_profit=net_profit)


def irr_is_plausible(rate_percent: float, net_profit: Optional[float] = None) -> bool:
    lo, hi = PLAUSIBLE_IRR_RANGE
    if net_profit is not None and net_profit <= 0:
        return False
    return lo < rate_percent <= hi


def describe_irr(value, net_profit: Optional[float] = None) -> str:
    """'12.3%' or 'N/A'. Accepts an IRRResult or a stored irr_percentage."""
    if isinstance(value, IRRResult):
        return f"{value.rate_percent:.1f}%" if value.viable else "N/A"
    if value is None or not irr_is_plausible(float(value), net_profit):
        return "N/A"
    return f"{float(value):.1f}%"
