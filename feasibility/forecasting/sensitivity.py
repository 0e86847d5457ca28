from __future__ import annotations
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

from feasibility.forecasting.assumptions import SensitivitySettings, validate_sensitivity_settings
from feasibility.study.calculator import calculate
from feasibility.study.model import PlantConfiguration


@dataclass(frozen=True)
class SensitivityRow:
    variation: float
    label: str
    price: float
    capacity: float
    opex: float


def variation_label(v: float) -> str:
    return f"{'+' if v > 0 else ''}{v:g}%"


def sensitivity_table(base_roi: float, settings: Optional[SensitivitySettings] = None) -> List[SensitivityRow]:
    """Linear ROI projections, one driver at a time.

    Higher prices and capacity raise ROI; higher OPEX lowers it. At a 0%
    variation every driver returns base_roi exactly.
    """
    s = settings or SensitivitySettings()
    validate_sensitivity_settings(s)
    return [
        SensitivityRow(
            variation=v,
            label=variation_label(v),
            price=base_roi * (1.0 + v / 100.0 * s.price_elasticity),
            capacity=base_roi * (1.0 + v / 100.0 * s.capacity_elasticity),
            opex=base_roi * (1.0 - v / 100.0 * s.opex_elasticity),
        )
        for v in s.variations
    ]


def sensitivity_heatmap(base_roi: float, settings: Optional[SensitivitySettings] = None) -> List[Dict[str, Any]]:
    """Rows per capacity variation, one cell per price variation."""
    s = settings or SensitivitySettings()
    validate_sensitivity_settings(s)
    rows = []
    for cap in s.variations:
        cells = [
            {
                "price_variation": price,
                "roi": base_roi * (1.0 + (price * s.price_elasticity + cap * s.capacity_elasticity) / 100.0),
            }
            for price in s.variations
        ]
        rows.append({"capacity_variation": cap, "label": variation_label(cap), "cells": cells})
    return rows


def tornado(base_roi: float, settings: Optional[SensitivitySettings] = None) -> List[Dict[str, Any]]:
    """ROI swing per driver between the extreme variations, widest first."""
    table = sensitivity_table(base_roi, settings)
    lo_row, hi_row = table[0], table[-1]
    bars: List[Tuple[str, float, float]] = []
    for driver in ("price", "capacity", "opex"):
        a, b = getattr(lo_row, driver), getattr(hi_row, driver)
        bars.append((driver, min(a, b), max(a, b)))
    bars.sort(key=lambda t: t[2] - t[1], reverse=True)
    return [{"driver": d, "low": lo, "high": hi, "swing": hi - lo} for d, lo, hi in bars]


def analyze(config: PlantConfiguration, settings: Optional[SensitivitySettings] = None) -> Dict[str, Any]:
    base = calculate(config).roi_percentage
    return {
        "base_roi": base,
        "table": [asdict(row) for row in sensitivity_table(base, settings)],
        "heatmap": sensitivity_heatmap(base, settings),
        "tornado": tornado(base, settings),
    }
