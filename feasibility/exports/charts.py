from __future__ import annotations
from typing import Any, Dict, List

from feasibility.production.costs import capex_items, opex_items
from feasibility.study.calculator import Calculation
from feasibility.study.model import PlantConfiguration
from feasibility.valuation.discount import NPV_YEARS

# t CO2e avoided per processed ton of tyres
CO2_FACTOR = 1.5

ITEM_LABELS = {
    "equipment_cost": "Equipment",
    "installation_cost": "Installation",
    "infrastructure_cost": "Infrastructure",
    "working_capital": "Working Capital",
    "other_capex": "Other",
    "raw_material_cost": "Raw Material",
    "labor_cost": "Labor",
    "energy_cost": "Energy",
    "maintenance_cost": "Maintenance",
    "logistics_cost": "Logistics",
    "administrative_cost": "Admin",
    "other_opex": "Other",
}


def cash_flow_projection(investment: float, net_profit: float, years: int = NPV_YEARS) -> List[Dict[str, Any]]:
    """Year 0 is the investment outflow; years 1..N add a flat net profit."""
    rows = [{"year": 0, "cash_flow": -investment, "cumulative_cash_flow": -investment, "net_profit": 0.0}]
    cumulative = -investment
    for year in range(1, years + 1):
        cumulative += net_profit
        rows.append({"year": year, "cash_flow": net_profit, "cumulative_cash_flow": cumulative, "net_profit": net_profit})
    return rows


def revenue_breakdown(calc: Calculation) -> List[Dict[str, Any]]:
    # zero-revenue streams stay in so the legend matches the configuration
    return [{"name": s.name, "value": s.revenue, "percent": s.share_percent} for s in calc.streams]


def opex_breakdown(config: PlantConfiguration) -> List[Dict[str, Any]]:
    return [{"name": ITEM_LABELS[k], "value": v} for k, v in opex_items(config, annual=True) if v > 0]


def capex_breakdown(config: PlantConfiguration) -> List[Dict[str, Any]]:
    items = [(k, v) for k, v in capex_items(config) if v > 0]
    total = sum(v for _, v in items)
    return [
        {"name": ITEM_LABELS[k], "value": v, "percent": (v / total * 100.0) if total > 0 else 0.0}
        for k, v in items
    ]


def co2_avoided(tonnage: float) -> float:
    return tonnage * CO2_FACTOR


def esg_scores(tonnage: float, roi_percentage: float) -> List[Dict[str, Any]]:
    """Radar axes scored 0..100. Social, compliance and innovation are fixed indices."""
    if roi_percentage > 20:
        governance = 85.0
    elif roi_percentage > 10:
        governance = 70.0
    else:
        governance = 55.0
    scores = [
        ("Environmental", min(100.0, co2_avoided(tonnage) / 50000.0 * 100.0)),
        ("Social", 75.0),
        ("Governance", governance),
        ("Circular Economy", min(100.0, tonnage / 30000.0 * 100.0)),
        ("Compliance", 80.0),
        ("Innovation", 75.0),
    ]
    return [{"subject": s, "score": v, "full_mark": 100} for s, v in scores]


def chart_datasets(config: PlantConfiguration, calc: Calculation) -> Dict[str, Any]:
    r = calc.results
    return {
        "cash_flow": cash_flow_projection(r.total_investment, calc.net_profit),
        "revenue": revenue_breakdown(calc),
        "opex": opex_breakdown(config),
        "capex": capex_breakdown(config),
        "co2_avoided_tons": co2_avoided(calc.annual_tonnage),
        "esg": esg_scores(calc.annual_tonnage, r.roi_percentage),
    }
