from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Mapping, Optional, Tuple
import math


@dataclass(frozen=True)
class OutputStream:
    name: str
    price_per_ton: float = 0.0
    yield_percent: float = 0.0  # share of processed tonnage recovered, 0..100
    key: Optional[str] = None   # flat-record prefix for the built-in streams


# Built-in streams: record prefix -> display name
STREAM_KEYS: Tuple[Tuple[str, str], ...] = (
    ("rubber_granules", "Rubber granules"),
    ("steel_wire", "Steel wire"),
    ("textile_fiber", "Textile fiber"),
    ("rcb", "Recovered carbon black"),
)


@dataclass(frozen=True)
class EngineDefaults:
    """Values used when a record leaves a field empty.

    CAPEX and OPEX items are never defaulted (missing means 0). Each view that
    wants different fallbacks passes its own instance.
    """
    daily_capacity_tons: float = 85.0
    operating_days_per_year: float = 300.0
    utilization_rate: float = 85.0
    tax_rate: float = 25.0
    depreciation_years: float = 10.0
    discount_rate: float = 12.0
    inflation_rate: float = 3.0
    streams: Tuple[OutputStream, ...] = (
        OutputStream("Rubber granules", 240.0, 55.0, key="rubber_granules"),
        OutputStream("Steel wire", 620.0, 25.0, key="steel_wire"),
        OutputStream("Textile fiber", 75.0, 8.0, key="textile_fiber"),
        OutputStream("Recovered carbon black", 1000.0, 12.0, key="rcb"),
    )

    def stream(self, key: str) -> Optional[OutputStream]:
        for s in self.streams:
            if s.key == key:
                return s
        return None


def to_number(value: Any) -> Optional[float]:
    """Coerce form/storage input to float; None for empty, unparsable or non-finite values."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(out):
        return None
    return out


@dataclass(frozen=True)
class PlantConfiguration:
    # Capacity
    daily_capacity_tons: float = 85.0
    operating_days_per_year: float = 300.0
    utilization_rate: float = 85.0  # percent of rated capacity

    # CAPEX (currency)
    equipment_cost: float = 0.0
    installation_cost: float = 0.0
    infrastructure_cost: float = 0.0
    working_capital: float = 0.0
    other_capex: float = 0.0

    # OPEX (currency per month)
    raw_material_cost: float = 0.0
    labor_cost: float = 0.0
    energy_cost: float = 0.0
    maintenance_cost: float = 0.0
    logistics_cost: float = 0.0
    administrative_cost: float = 0.0
    other_opex: float = 0.0

    output_streams: Tuple[OutputStream, ...] = ()

    # Financial parameters (percent unless noted)
    tax_rate: float = 25.0
    depreciation_years: float = 10.0  # years
    discount_rate: float = 12.0
    inflation_rate: float = 3.0  # stored only, NPV is computed without it

    # Government partnership terms
    government_royalties_percent: float = 0.0
    environmental_bonus_per_ton: float = 0.0
    collection_model: str = "direct"  # direct|government|mixed

    @classmethod
    def from_record(cls, record: Mapping[str, Any], defaults: Optional[EngineDefaults] = None) -> "PlantConfiguration":
        d = defaults or EngineDefaults()

        def pick(name: str, fallback: float) -> float:
            v = to_number(record.get(name))
            return fallback if v is None else v

        streams: List[OutputStream] = []
        for key, name in STREAM_KEYS:
            base = d.stream(key) or OutputStream(name, key=key)
            streams.append(OutputStream(
                name=name,
                price_per_ton=pick(f"{key}_price", base.price_per_ton),
                yield_percent=pick(f"{key}_yield", base.yield_percent),
                key=key,
            ))
        extras = record.get("output_streams")
        for extra in extras if isinstance(extras, (list, tuple)) else ():
            if not isinstance(extra, Mapping):
                continue
            streams.append(OutputStream(
                name=str(extra.get("name") or f"Stream {len(streams) + 1}"),
                price_per_ton=to_number(extra.get("price_per_ton")) or 0.0,
                yield_percent=to_number(extra.get("yield_percent")) or 0.0,
            ))

        money = {f: pick(f, 0.0) for f in CAPEX_FIELDS + OPEX_FIELDS}
        return cls(
            daily_capacity_tons=pick("daily_capacity_tons", d.daily_capacity_tons),
            operating_days_per_year=pick("operating_days_per_year", d.operating_days_per_year),
            utilization_rate=pick("utilization_rate", d.utilization_rate),
            output_streams=tuple(streams),
            tax_rate=pick("tax_rate", d.tax_rate),
            depreciation_years=pick("depreciation_years", d.depreciation_years),
            discount_rate=pick("discount_rate", d.discount_rate),
            inflation_rate=pick("inflation_rate", d.inflation_rate),
            government_royalties_percent=pick("government_royalties_percent", 0.0),
            environmental_bonus_per_ton=pick("environmental_bonus_per_ton", 0.0),
            collection_model=str(record.get("collection_model") or "direct"),
            **money,
        )

    def to_record(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            if f.name != "output_streams":
                out[f.name] = getattr(self, f.name)
        extras: List[Dict[str, Any]] = []
        for s in self.output_streams:
            if s.key:
                out[f"{s.key}_price"] = s.price_per_ton
                out[f"{s.key}_yield"] = s.yield_percent
            else:
                extras.append({"name": s.name, "price_per_ton": s.price_per_ton, "yield_percent": s.yield_percent})
        if extras:
            out["output_streams"] = extras
        return out


CAPEX_FIELDS: Tuple[str, ...] = (
    "equipment_cost", "installation_cost", "infrastructure_cost", "working_capital", "other_capex",
)
OPEX_FIELDS: Tuple[str, ...] = (
    "raw_material_cost", "labor_cost", "energy_cost", "maintenance_cost",
    "logistics_cost", "administrative_cost", "other_opex",
)

# "does not pay back" marker stored in payback_months
PAYBACK_SENTINEL = 999


@dataclass(frozen=True)
class FinancialResults:
    total_investment: float
    annual_revenue: float
    annual_opex: float
    annual_ebitda: float
    payback_months: int  # PAYBACK_SENTINEL when net profit <= 0
    roi_percentage: float
    npv_10_years: float
    irr_percentage: float  # raw solver output; see IRRResult.viable before showing it

    def to_record(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "FinancialResults":
        def num(name: str) -> float:
            return to_number(record.get(name)) or 0.0
        payback = to_number(record.get("payback_months"))
        return cls(
            total_investment=num("total_investment"),
            annual_revenue=num("annual_revenue"),
            annual_opex=num("annual_opex"),
            annual_ebitda=num("annual_ebitda"),
            payback_months=PAYBACK_SENTINEL if payback is None else int(payback),
            roi_percentage=num("roi_percentage"),
            npv_10_years=num("npv_10_years"),
            irr_percentage=num("irr_percentage"),
        )


RESULT_FIELDS: Tuple[str, ...] = tuple(f.name for f in fields(FinancialResults))
