from __future__ import annotations
from typing import List, Dict, Any, Iterable
import csv
import io

from feasibility.study.model import RESULT_FIELDS

SCHEMAS = {
    "study": [
        "study_name", "country", "daily_capacity_tons", "operating_days_per_year", "utilization_rate",
        "annual_tonnage", "tax_rate", "depreciation_years", "discount_rate", "net_profit", *RESULT_FIELDS,
    ],
    "scenarios": [
        "scenario", "utilization_rate", "year", "annual_revenue", "contribution_margin", "fixed_costs",
        "operating_income", "billing", "profit", "recycled_tons",
    ],
    "sensitivity": ["variation", "label", "price", "capacity", "opex"],
    "cash_flow": ["year", "cash_flow", "cumulative_cash_flow", "net_profit"],
}


def write_csv(rows: Iterable[Dict[str, Any]], columns: List[str]) -> str:
    buf = io.StringIO()
    w = csv.DictWriter(buf, fieldnames=columns, extrasaction="ignore")
    w.writeheader()
    for r in rows:
        w.writerow({k: r.get(k) for k in columns})
    return buf.getvalue()


def write_study(rows: Iterable[Dict[str, Any]]) -> str:
    return write_csv(rows, SCHEMAS["study"])


def write_scenarios(rows: Iterable[Dict[str, Any]]) -> str:
    return write_csv(rows, SCHEMAS["scenarios"])


def write_sensitivity(rows: Iterable[Dict[str, Any]]) -> str:
    return write_csv(rows, SCHEMAS["sensitivity"])


def write_cash_flow(rows: Iterable[Dict[str, Any]]) -> str:
    return write_csv(rows, SCHEMAS["cash_flow"])
