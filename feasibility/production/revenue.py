from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List

from feasibility.study.model import OutputStream, PlantConfiguration


@dataclass(frozen=True)
class StreamRevenue:
    name: str
    tonnage: float  # tons of this material recovered per year
    price_per_ton: float
    yield_percent: float
    revenue: float
    share_percent: float = 0.0  # of total revenue


def annual_tonnage(config: PlantConfiguration) -> float:
    """Processed tons per year. Every revenue figure scales off this value."""
    return config.daily_capacity_tons * config.operating_days_per_year * (config.utilization_rate / 100.0)


def stream_revenues(tonnage: float, streams: Iterable[OutputStream]) -> List[StreamRevenue]:
    """Itemised revenue per stream, zero contributors included, in input order."""
    items = []
    for s in streams:
        recovered = tonnage * (s.yield_percent / 100.0)
        items.append((s, recovered, recovered * s.price_per_ton))
    total = sum(rev for _, _, rev in items)
    return [
        StreamRevenue(
            name=s.name,
            tonnage=recovered,
            price_per_ton=s.price_per_ton,
            yield_percent=s.yield_percent,
            revenue=rev,
            share_percent=(rev / total * 100.0) if total > 0 else 0.0,
        )
        for s, recovered, rev in items
    ]


def total_revenue(tonnage: float, streams: Iterable[OutputStream]) -> float:
    return float(sum(r.revenue for r in stream_revenues(tonnage, streams)))


def recovered_tonnage(revenues: Iterable[StreamRevenue]) -> float:
    return float(sum(r.tonnage for r in revenues))
