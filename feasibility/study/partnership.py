from __future__ import annotations
from dataclasses import dataclass

from feasibility.production.revenue import annual_tonnage
from feasibility.study.model import FinancialResults, PlantConfiguration


@dataclass(frozen=True)
class PartnershipTerms:
    collection_model: str
    annual_royalties: float
    annual_environmental_bonus: float
    revenue_after_royalties: float
    adjusted_roi_percentage: float


def partnership_terms(config: PlantConfiguration, results: FinancialResults) -> PartnershipTerms:
    """Government partnership figures shown next to a study.

    Informational only: the study's own results are left as calculated.
    """
    share = config.government_royalties_percent / 100.0
    royalties = results.annual_revenue * share
    investment = results.total_investment or 1.0
    return PartnershipTerms(
        collection_model=config.collection_model,
        annual_royalties=royalties,
        annual_environmental_bonus=annual_tonnage(config) * config.environmental_bonus_per_ton,
        revenue_after_royalties=results.annual_revenue - royalties,
        adjusted_roi_percentage=results.annual_ebitda * (1.0 - share) / investment * 100.0,
    )
