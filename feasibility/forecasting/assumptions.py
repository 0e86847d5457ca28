from __future__ import annotations
from dataclasses import dataclass, fields
from typing import List, Tuple
import math

from feasibility.study.model import CAPEX_FIELDS, OPEX_FIELDS, RESULT_FIELDS, FinancialResults, PlantConfiguration

COLLECTION_MODELS = ("direct", "government", "mixed")


@dataclass(frozen=True)
class ScenarioSettings:
    # Utilization overrides, percent of rated capacity (not relative to the study's own rate)
    pessimistic: float = 50.0
    probable: float = 70.0
    optimistic: float = 100.0

    variable_cost_ratio: float = 0.02  # share of revenue, on top of the OPEX line items
    monthly_financing_rate: float = 0.008  # charged on total investment
    projection_years: Tuple[int, ...] = (2, 3, 4, 5)

    def utilizations(self) -> Tuple[Tuple[str, float], ...]:
        return (
            ("pessimistic", self.pessimistic),
            ("probable", self.probable),
            ("optimistic", self.optimistic),
        )


@dataclass(frozen=True)
class SensitivitySettings:
    variations: Tuple[float, ...] = (-20.0, -10.0, 0.0, 10.0, 20.0)  # percent swings
    # ROI elasticity per driver
    price_elasticity: float = 0.8
    capacity_elasticity: float = 1.2
    opex_elasticity: float = 0.5


def configuration_errors(c: PlantConfiguration) -> List[str]:
    """Every range violation in a configuration; empty when it is usable."""
    errors: List[str] = []
    for f in fields(c):
        v = getattr(c, f.name)
        if isinstance(v, float) and not math.isfinite(v):
            errors.append(f"{f.name} must be a finite number")
    for s in c.output_streams:
        if not (math.isfinite(s.price_per_ton) and math.isfinite(s.yield_percent)):
            errors.append(f"{s.name}: price_per_ton and yield_percent must be finite numbers")
    if not c.daily_capacity_tons > 0:
        errors.append("daily_capacity_tons must be greater than 0")
    if not (0.0 <= c.operating_days_per_year <= 366.0):
        errors.append("operating_days_per_year must be between 0 and 366")
    if not (0.0 <= c.utilization_rate <= 100.0):
        errors.append("utilization_rate must be between 0 and 100%")
    for name in CAPEX_FIELDS + OPEX_FIELDS:
        if getattr(c, name) < 0:
            errors.append(f"{name} must not be negative")
    for s in c.output_streams:
        if s.price_per_ton < 0:
            errors.append(f"{s.name}: price_per_ton must not be negative")
        if not (0.0 <= s.yield_percent <= 100.0):
            errors.append(f"{s.name}: yield_percent must be between 0 and 100%")
    if not (0.0 <= c.tax_rate <= 100.0):
        errors.append("tax_rate must be between 0 and 100%")
    if not c.depreciation_years > 0:
        errors.append("depreciation_years must be greater than 0")
    if not (0.0 <= c.discount_rate <= 100.0):
        errors.append("discount_rate must be between 0 and 100%")
    if not (0.0 <= c.government_royalties_percent <= 100.0):
        errors.append("government_royalties_percent must be between 0 and 100%")
    if c.environmental_bonus_per_ton < 0:
        errors.append("environmental_bonus_per_ton must not be negative")
    if c.collection_model not in COLLECTION_MODELS:
        errors.append(f"collection_model must be one of {', '.join(COLLECTION_MODELS)}")
    return errors


def validate_configuration(c: PlantConfiguration) -> None:
    errors = configuration_errors(c)
    if errors:
        raise ValueError("; ".join(errors))


def result_errors(r: FinancialResults) -> List[str]:
    """Result fields that overflowed; non-empty means the inputs are out of any usable range."""
    return [f"{name} is not a finite number" for name in RESULT_FIELDS if not math.isfinite(getattr(r, name))]


def validate_scenario_settings(s: ScenarioSettings) -> None:
    for name, rate in s.utilizations():
        if not (0.0 <= rate <= 100.0):
            raise ValueError(f"{name} utilization must be between 0 and 100%")
    if not (s.pessimistic <= s.probable <= s.optimistic):
        raise ValueError("scenario utilizations must be ordered pessimistic <= probable <= optimistic")
    if not (0.0 <= s.variable_cost_ratio < 1.0):
        raise ValueError("variable cost ratio must be between 0 and 1")
    if s.monthly_financing_rate < 0:
        raise ValueError("monthly financing rate must not be negative")
    if any(isinstance(y, bool) or not isinstance(y, int) for y in s.projection_years):
        raise ValueError("projection years must be whole years")
    if any(y < 1 for y in s.projection_years):
        raise ValueError("projection years must be 1 or later")


def validate_sensitivity_settings(s: SensitivitySettings) -> None:
    if not s.variations:
        raise ValueError("at least one variation step is required")
    if any(abs(v) > 100.0 for v in s.variations):
        raise ValueError("variations must be between -100% and +100%")
    for name in ("price_elasticity", "capacity_elasticity", "opex_elasticity"):
        if getattr(s, name) < 0:
            raise ValueError(f"{name} must not be negative")
