from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

# Output yields shared by every regional preset (rubber / steel / textile)
TEMPLATE_YIELDS = {"rubber_granules_yield": 74.7, "steel_wire_yield": 15.7, "textile_fiber_yield": 9.7}
# Presets carry no rCB pricing; applying one resets it to the editor default
RCB_DEFAULTS = {"rcb_price": 1000.0, "rcb_yield": 12.0}


@dataclass(frozen=True)
class Template:
    id: str
    name: str
    region: str
    country: str
    values: Dict[str, float] = field(default_factory=dict)
    highlights: Tuple[str, ...] = ()

    def record(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"country": self.country}
        out.update(self.values)
        out.update(TEMPLATE_YIELDS)
        out.update(RCB_DEFAULTS)
        return out


def _values(capacity, capex, opex, prices, tax_rate) -> Dict[str, float]:
    equipment, installation, infrastructure, working_capital, other_capex = capex
    raw, labor, energy, maintenance, logistics, admin, other_opex = opex
    granules, steel, fiber = prices
    return {
        "daily_capacity_tons": capacity,
        "equipment_cost": equipment,
        "installation_cost": installation,
        "infrastructure_cost": infrastructure,
        "working_capital": working_capital,
        "other_capex": other_capex,
        "raw_material_cost": raw,
        "labor_cost": labor,
        "energy_cost": energy,
        "maintenance_cost": maintenance,
        "logistics_cost": logistics,
        "administrative_cost": admin,
        "other_opex": other_opex,
        "rubber_granules_price": granules,
        "steel_wire_price": steel,
        "textile_fiber_price": fiber,
        "tax_rate": tax_rate,
    }


TEMPLATES: Tuple[Template, ...] = (
    Template(
        "australia", "Australia - Mining OTR", "oceania", "Australia",
        _values(100, (3200000, 600000, 1500000, 800000, 400000),
                (0, 85000, 35000, 28000, 45000, 22000, 15000), (320, 280, 180), 30),
        ("free_raw_material", "high_prices", "strong_mining_demand"),
    ),
    Template(
        "brazil-north", "Brazil - North Region", "south_america", "Brasil",
        _values(85, (2400000, 400000, 900000, 500000, 300000),
                (5000, 28000, 18000, 15000, 35000, 12000, 8000), (220, 200, 100), 34),
        ("abundant_otr_supply", "low_labor_costs", "growing_demand"),
    ),
    Template(
        "europe-italy", "Italy - Industrial North", "europe", "Italy",
        _values(60, (2800000, 550000, 1200000, 600000, 350000),
                (15000, 55000, 40000, 22000, 25000, 18000, 12000), (350, 300, 200), 24),
        ("premium_prices", "strong_eu_regulations", "gate_fee_potential"),
    ),
    Template(
        "europe-germany", "Germany - Ruhr Valley", "europe", "Germany",
        _values(70, (3500000, 700000, 1800000, 700000, 500000),
                (10000, 75000, 45000, 25000, 20000, 20000, 15000), (380, 320, 220), 30),
        ("highest_quality", "automotive_demand", "excellent_logistics"),
    ),
    Template(
        "chile-mining", "Chile - Atacama Mining", "south_america", "Chile",
        _values(90, (2600000, 480000, 1000000, 550000, 350000),
                (0, 38000, 22000, 18000, 40000, 14000, 10000), (260, 230, 140), 27),
        ("largest_copper_mines", "stable_economy", "free_trade_agreements"),
    ),
    Template(
        "south-africa", "South Africa - Mining Belt", "africa", "South Africa",
        _values(75, (2300000, 380000, 850000, 450000, 280000),
                (0, 22000, 15000, 14000, 30000, 10000, 8000), (200, 180, 90), 28),
        ("low_operating_costs", "growing_african_demand", "mining_hub"),
    ),
    Template(
        "mexico-mining", "Mexico - Government Partnership", "north_america", "Mexico",
        _values(80, (2500000, 420000, 950000, 520000, 320000),
                (0, 25000, 20000, 16000, 32000, 11000, 8000), (240, 210, 110), 30),
        ("gov_partnership", "royalties_program", "environmental_bonus", "mining_partnerships"),
    ),
)


def list_templates() -> List[Template]:
    return list(TEMPLATES)


def get_template(template_id: str) -> Template:
    for t in TEMPLATES:
        if t.id == template_id:
            return t
    raise KeyError(template_id)


def apply_template(template_id: str, record: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """New record with the preset's values laid over `record`.

    Study name defaults to the preset name when the record has none.
    """
    t = get_template(template_id)
    out: Dict[str, Any] = dict(record or {})
    out.update(t.record())
    if not out.get("study_name"):
        out["study_name"] = t.name
    return out
