from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

from feasibility.forecasting.assumptions import ScenarioSettings, validate_scenario_settings
from feasibility.production.revenue import StreamRevenue, recovered_tonnage
from feasibility.study.calculator import calculate_detailed
from feasibility.study.model import FinancialResults, PlantConfiguration


@dataclass(frozen=True)
class YearProjection:
    year: int
    billing: float  # cumulative revenue
    profit: float  # cumulative operating income
    recycled_tons: float


@dataclass(frozen=True)
class ScenarioResult:
    name: str
    utilization_rate: float
    results: FinancialResults
    annual_tonnage: float
    recovered_tonnage: float
    streams: Tuple[StreamRevenue, ...]
    contribution_margin: float
    contribution_margin_percent: float
    fixed_costs: float
    operating_income: float
    operating_income_percent: float
    projections: Tuple[YearProjection, ...]

    def to_record(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "scenario": self.name,
            "utilization_rate": self.utilization_rate,
            "annual_tonnage": self.annual_tonnage,
            "recovered_tonnage": self.recovered_tonnage,
            "contribution_margin": self.contribution_margin,
            "contribution_margin_percent": self.contribution_margin_percent,
            "fixed_costs": self.fixed_costs,
            "operating_income": self.operating_income,
            "operating_income_percent": self.operating_income_percent,
        }
        out.update(self.results.to_record())
        out["streams"] = [{"name": s.name, "tonnage": s.tonnage, "revenue": s.revenue} for s in self.streams]
        out["projections"] = [
            {"year": p.year, "billing": p.billing, "profit": p.profit, "recycled_tons": p.recycled_tons}
            for p in self.projections
        ]
        return out


def run_scenario(config: PlantConfiguration, name: str, utilization: float, settings: ScenarioSettings) -> ScenarioResult:
    """One utilization override pushed through the shared pipeline."""
    calc = calculate_detailed(replace(config, utilization_rate=utilization))
    r = calc.results
    revenue = r.annual_revenue
    recovered = recovered_tonnage(calc.streams)

    margin = revenue * (1.0 - settings.variable_cost_ratio)
    financing = r.total_investment * settings.monthly_financing_rate * 12.0
    fixed = r.annual_opex + calc.annual_depreciation + financing
    operating = margin - fixed

    projections = tuple(
        YearProjection(year=y, billing=revenue * y, profit=operating * y, recycled_tons=recovered * y)
        for y in settings.projection_years
    )
    return ScenarioResult(
        name=name,
        utilization_rate=utilization,
        results=r,
        annual_tonnage=calc.annual_tonnage,
        recovered_tonnage=recovered,
        streams=calc.streams,
        contribution_margin=margin,
        contribution_margin_percent=(margin / revenue * 100.0) if revenue > 0 else 0.0,
        fixed_costs=fixed,
        operating_income=operating,
        operating_income_percent=(operating / revenue * 100.0) if revenue > 0 else 0.0,
        projections=projections,
    )


def run_scenarios(config: PlantConfiguration, settings: Optional[ScenarioSettings] = None) -> Dict[str, ScenarioResult]:
    """Pessimistic, probable and optimistic runs of the same configuration, in that order.

    Only the utilization rate differs between the three, so revenue is
    ordered the same way as the utilizations.
    """
    s = settings or ScenarioSettings()
    validate_scenario_settings(s)
    return {name: run_scenario(config, name, rate, s) for name, rate in s.utilizations()}


def scenario_rows(scenarios: Dict[str, ScenarioResult]) -> List[Dict[str, Any]]:
    """Flat rows (one per scenario and projection year) for CSV export."""
    rows: List[Dict[str, Any]] = []
    for sc in scenarios.values():
        base = {
            "scenario": sc.name,
            "utilization_rate": sc.utilization_rate,
            "annual_revenue": sc.results.annual_revenue,
            "contribution_margin": sc.contribution_margin,
            "fixed_costs": sc.fixed_costs,
            "operating_income": sc.operating_income,
        }
        rows.append({**base, "year": 1, "billing": sc.results.annual_revenue,
                     "profit": sc.operating_income, "recycled_tons": sc.recovered_tonnage})
        for p in sc.projections:
            rows.append({**base, "year": p.year, "billing": p.billing, "profit": p.profit, "recycled_tons": p.recycled_tons})
    return rows
