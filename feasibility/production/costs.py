from __future__ import annotations
from typing import List, Tuple

from feasibility.study.model import CAPEX_FIELDS, OPEX_FIELDS, PlantConfiguration


def _amount(config: PlantConfiguration, name: str) -> float:
    # Partially filled forms may carry None; treat as zero
    v = getattr(config, name, 0.0)
    return float(v) if v else 0.0


def capex_items(config: PlantConfiguration) -> List[Tuple[str, float]]:
    return [(name, _amount(config, name)) for name in CAPEX_FIELDS]


def opex_items(config: PlantConfiguration, annual: bool = True) -> List[Tuple[str, float]]:
    """OPEX line items; monthly amounts are multiplied by 12 when annual=True."""
    factor = 12.0 if annual else 1.0
    return [(name, _amount(config, name) * factor) for name in OPEX_FIELDS]


def total_investment(config: PlantConfiguration) -> float:
    return float(sum(v for _, v in capex_items(config)))


def monthly_opex(config: PlantConfiguration) -> float:
    return float(sum(v for _, v in opex_items(config, annual=False)))


def annual_opex(config: PlantConfiguration) -> float:
    return monthly_opex(config) * 12.0
