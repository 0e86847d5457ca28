from __future__ import annotations
from collections import Counter
from typing import Any, Dict, List, Mapping, Sequence

from feasibility.study.model import FinancialResults, to_number

MIN_STUDIES = 2
MAX_STUDIES = 5
# Payback beyond this many months scores zero on the radar
PAYBACK_HORIZON_MONTHS = 120

# metric -> higher is better
INDICATOR_METRICS = {
    "total_investment": False,
    "annual_revenue": True,
    "annual_ebitda": True,
    "roi_percentage": True,
    "irr_percentage": True,
    "npv_10_years": True,
    "payback_months": False,
}


def _label(record: Mapping[str, Any], idx: int) -> str:
    return str(record.get("study_name") or record.get("id") or f"Study {idx + 1}")


def _unique_labels(records: Sequence[Mapping[str, Any]]) -> List[str]:
    """Column labels, one per record; repeated names get the study id, then the position."""
    names = [_label(r, i) for i, r in enumerate(records)]
    counts = Counter(names)
    labels = [
        f"{n} ({r.get('id') or i + 1})" if counts[n] > 1 else n
        for i, (n, r) in enumerate(zip(names, records))
    ]
    counts = Counter(labels)
    return [f"{n} #{i + 1}" if counts[n] > 1 else n for i, n in enumerate(labels)]


def _indicator(values: List[float], idx: int, higher_is_better: bool) -> str:
    hi, lo = max(values), min(values)
    v = values[idx]
    best, worst = (hi, lo) if higher_is_better else (lo, hi)
    if v == best:
        return "best"
    if v == worst:
        return "worst"
    return "neutral"


def compare_studies(records: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    """Rank persisted studies side by side from their stored results.

    Nothing is recomputed: the stored results are what the user saved.
    """
    if not (MIN_STUDIES <= len(records) <= MAX_STUDIES):
        raise ValueError(f"comparison needs between {MIN_STUDIES} and {MAX_STUDIES} studies")

    names = _unique_labels(records)
    results = [FinancialResults.from_record(r) for r in records]
    capacities = [to_number(r.get("daily_capacity_tons")) or 0.0 for r in records]

    metrics = [
        {"metric": m, **{n: getattr(res, m) for n, res in zip(names, results)}}
        for m in ("total_investment", "annual_revenue", "annual_ebitda")
    ]

    def payback_score(months: int) -> float:
        return float(PAYBACK_HORIZON_MONTHS - min(months, PAYBACK_HORIZON_MONTHS))

    raw = {
        "roi": [r.roi_percentage for r in results],
        "irr": [r.irr_percentage for r in results],
        "capacity": capacities,
        "npv": [max(0.0, r.npv_10_years) for r in results],
        "payback": [payback_score(r.payback_months) for r in results],
    }
    radar = []
    for axis, values in raw.items():
        top = max(max(values), 1.0)
        radar.append({"metric": axis, "full_mark": 100, **{n: v / top * 100.0 for n, v in zip(names, values)}})

    indicators: Dict[str, Dict[str, str]] = {}
    for m, higher in INDICATOR_METRICS.items():
        values = [float(getattr(r, m)) for r in results]
        indicators[m] = {n: _indicator(values, i, higher) for i, n in enumerate(names)}

    best_idx = max(range(len(results)), key=lambda i: results[i].roi_percentage)
    return {
        "studies": names,
        "ids": [r.get("id") for r in records],
        "metrics": metrics,
        "radar": radar,
        "indicators": indicators,
        "best": {
            "study": names[best_idx],
            "roi_percentage": results[best_idx].roi_percentage,
            "payback_months": results[best_idx].payback_months,
        },
    }
