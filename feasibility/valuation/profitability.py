from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class Profitability:
    ebitda: float
    depreciation: float
    taxable_income: float
    taxes: float
    net_profit: float


def profitability(
    revenue: float,
    opex: float,
    investment: float,
    tax_rate: float,
    depreciation_years: float,
) -> Profitability:
    """Annual EBITDA down to net profit.

    Taxes are assessed on EBITDA less straight-line depreciation, then
    subtracted from EBITDA itself (depreciation is not deducted from net
    profit). Losses produce no tax credit.
    """
    ebitda = revenue - opex
    depreciation = investment / depreciation_years if depreciation_years > 0 else 0.0
    taxable = ebitda - depreciation
    taxes = max(0.0, taxable * (tax_rate / 100.0))
    return Profitability(
        ebitda=ebitda,
        depreciation=depreciation,
        taxable_income=taxable,
        taxes=taxes,
        net_profit=ebitda - taxes,
    )
