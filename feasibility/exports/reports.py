from __future__ import annotations
from typing import Dict, Any, List, Mapping, Optional

from feasibility.forecasting.scenarios import ScenarioResult
from feasibility.study.calculator import Calculation
from feasibility.study.model import FinancialResults, to_number
from feasibility.valuation.irr import describe_irr
from feasibility.valuation.payback import describe_payback


def _money(v: float) -> str:
    if abs(v) >= 1_000_000:
        return f"USD {v / 1_000_000:.2f}M"
    if abs(v) >= 1_000:
        return f"USD {v / 1_000:.0f}K"
    return f"USD {v:.0f}"


def assumptions_md(assumptions: Dict[str, Any], warnings: List[str] | None = None) -> str:
    lines = ["# Assumptions", ""]
    for k, v in assumptions.items():
        lines.append(f"- {k}: {v}")
    if warnings:
        lines.append("\n## Warnings")
        for w in warnings:
            lines.append(f"- {w}")
    return "\n".join(lines) + "\n"


def feasibility_report_md(
    record: Mapping[str, Any],
    calc: Calculation,
    scenarios: Optional[Dict[str, ScenarioResult]] = None,
) -> str:
    r = calc.results
    title = record.get("study_name") or "Feasibility Study"
    lines = [f"# {title}", ""]
    if record.get("location") or record.get("country"):
        where = ", ".join(str(x) for x in (record.get("location"), record.get("country")) if x)
        lines += [f"Location: {where}", ""]

    lines += [
        "## Plant Configuration",
        "",
        f"- Daily capacity: {record.get('daily_capacity_tons')} t/day",
        f"- Operating days: {record.get('operating_days_per_year')} per year",
        f"- Utilization: {record.get('utilization_rate')}%",
        f"- Annual tonnage: {calc.annual_tonnage:,.0f} t",
        "",
        "## Investment",
        "",
    ]
    for name, amount in calc.capex_items:
        lines.append(f"- {name}: {_money(amount)}")
    lines += [f"- Total: {_money(r.total_investment)}", "", "## Financial Results", ""]
    lines += [
        f"- Annual revenue: {_money(r.annual_revenue)}",
        f"- Annual OPEX: {_money(r.annual_opex)}",
        f"- Annual EBITDA: {_money(r.annual_ebitda)}",
        f"- Net profit: {_money(calc.net_profit)}",
        f"- Payback: {describe_payback(r.payback_months)}",
        f"- ROI: {r.roi_percentage:.1f}%",
        f"- NPV (10 years): {_money(r.npv_10_years)}",
        f"- IRR: {describe_irr(calc.irr)}",
    ]

    if scenarios:
        lines += ["", "## Scenarios", "", "| Scenario | Utilization | Revenue | Contribution margin | Operating income |",
                  "|---|---|---|---|---|"]
        for sc in scenarios.values():
            lines.append(
                f"| {sc.name} | {sc.utilization_rate:.0f}% | {_money(sc.results.annual_revenue)} "
                f"| {sc.contribution_margin_percent:.1f}% | {sc.operating_income_percent:.1f}% |"
            )

    if record.get("notes"):
        lines += ["", "## Notes", "", str(record["notes"])]
    lines += ["", "_This is an estimated feasibility study. Actual results may vary._"]
    return "\n".join(lines) + "\n"


def analysis_context(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Payload handed to the narrative-analysis collaborator.

    Built from stored results only; the payback sentinel and an unusable IRR
    are passed as labels so they are never read as real figures.
    """
    r = FinancialResults.from_record(record)
    ctx: Dict[str, Any] = {
        "study_name": record.get("study_name"),
        "country": record.get("country"),
        "daily_capacity_tons": to_number(record.get("daily_capacity_tons")),
        "utilization_rate": to_number(record.get("utilization_rate")),
    }
    ctx.update(r.to_record())
    ctx["payback_label"] = describe_payback(r.payback_months)
    net_profit = to_number(record.get("net_profit"))
    ctx["irr_label"] = describe_irr(r.irr_percentage, net_profit)
    return ctx
