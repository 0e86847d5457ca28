from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from feasibility.study.model import EngineDefaults, FinancialResults, PlantConfiguration
from feasibility.production.revenue import StreamRevenue, annual_tonnage, stream_revenues
from feasibility.production.costs import annual_opex, capex_items, opex_items, total_investment
from feasibility.valuation.profitability import profitability
from feasibility.valuation.payback import payback_months, roi_percentage
from feasibility.valuation.discount import npv_flat_annuity
from feasibility.valuation.irr import IRRResult, solve_irr


@dataclass(frozen=True)
class Calculation:
    results: FinancialResults
    annual_tonnage: float
    streams: Tuple[StreamRevenue, ...]
    capex_items: Tuple[Tuple[str, float], ...]
    opex_items: Tuple[Tuple[str, float], ...]  # annual amounts
    annual_depreciation: float
    taxable_income: float
    taxes: float
    net_profit: float
    irr: IRRResult

    def breakdown(self) -> dict:
        """Intermediates as plain data for JSON responses and reports."""
        return {
            "annual_tonnage": self.annual_tonnage,
            "streams": [
                {
                    "name": s.name,
                    "tonnage": s.tonnage,
                    "price_per_ton": s.price_per_ton,
                    "yield_percent": s.yield_percent,
                    "revenue": s.revenue,
                    "share_percent": s.share_percent,
                }
                for s in self.streams
            ],
            "capex_items": dict(self.capex_items),
            "opex_items": dict(self.opex_items),
            "annual_depreciation": self.annual_depreciation,
            "taxable_income": self.taxable_income,
            "taxes": self.taxes,
            "net_profit": self.net_profit,
            "irr_viable": self.irr.viable,
            "irr_converged": self.irr.converged,
            "irr_iterations": self.irr.iterations,
        }


def calculate_detailed(config: PlantConfiguration) -> Calculation:
    """Run the whole pipeline once: tonnage and costs down to NPV and IRR.

    The configuration is only read. Every caller (preview, report, scenario
    slice) goes through here, so two results are always comparable.
    """
    tonnage = annual_tonnage(config)
    streams: List[StreamRevenue] = stream_revenues(tonnage, config.output_streams)
    revenue = float(sum(s.revenue for s in streams))
    investment = total_investment(config)
    opex = annual_opex(config)

    p = profitability(revenue, opex, investment, config.tax_rate, config.depreciation_years)
    irr = solve_irr(investment, p.net_profit)

    results = FinancialResults(
        total_investment=investment,
        annual_revenue=revenue,
        annual_opex=opex,
        annual_ebitda=p.ebitda,
        payback_months=payback_months(investment, p.net_profit),
        roi_percentage=roi_percentage(investment, p.net_profit),
        npv_10_years=npv_flat_annuity(investment, p.net_profit, config.discount_rate),
        irr_percentage=irr.rate_percent,
    )
    return Calculation(
        results=results,
        annual_tonnage=tonnage,
        streams=tuple(streams),
        capex_items=tuple(capex_items(config)),
        opex_items=tuple(opex_items(config, annual=True)),
        annual_depreciation=p.depreciation,
        taxable_income=p.taxable_income,
        taxes=p.taxes,
        net_profit=p.net_profit,
        irr=irr,
    )


def calculate(config: PlantConfiguration) -> FinancialResults:
    return calculate_detailed(config).results


def calculate_record(record: Mapping[str, Any], defaults: Optional[EngineDefaults] = None) -> Calculation:
    """Flat form/storage record in, detailed calculation out."""
    return calculate_detailed(PlantConfiguration.from_record(record, defaults))
