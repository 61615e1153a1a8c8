from typing import Dict, List, Optional, Sequence

from .base import AggregateResult, AggregationPolicy, parsed_settlements
from ..core.config import settings
from ..core.utils import format_currency, has_label, round_half_up
from ..data.base import QueryCase, ScoredCase
from ..engine.weights import CaseWeights

TBI_LEVEL_LABELS = ("none", "mild", "moderate", "severe")
SOURCE_CASES = 3

def _lookup(table: Dict[str, float], label: str | None) -> Optional[float]:
    """Exact label first, then a case-insensitive match."""
    if not has_label(label):
        return None
    key = label.strip()
    if key in table:
        return table[key]
    lowered = key.lower()
    for name, value in table.items():
        if name.lower() == lowered:
            return value
    return None

def tbi_label(query: QueryCase) -> str | None:
    if has_label(query.tbi_severity):
        return query.tbi_severity.strip().lower()
    if query.tbi_level is not None and 0 < query.tbi_level < len(TBI_LEVEL_LABELS):
        return TBI_LEVEL_LABELS[query.tbi_level]
    return None

def _join_prose(items: List[str]) -> str:
    if len(items) <= 2:
        return " and ".join(items)
    return ", ".join(items[:-1]) + ", and " + items[-1]

class WeightedModel(AggregationPolicy):
    """
    Weighted mean + multiplicative factors. Requires learned weights.

    base  = mean settlement of the top comparables
    base *= surgery type, injection type and TBI multipliers, each when present and known
    base += medical specials * slope + Howell specials * slope
    then rounded to the nearest increment.
    """
    name = "weighted"
    uses_weights = True

    def __init__(self, limit: int | None = None, increment: int | None = None):
        self.limit = limit or settings.COMPARABLE_LIMIT
        self.increment = increment or settings.ROUNDING_INCREMENT

    def aggregate(
        self,
        query: QueryCase,
        comparables: Sequence[ScoredCase],
        weights: Optional[CaseWeights] = None,
    ) -> AggregateResult:
        top = comparables[: self.limit]
        settled = parsed_settlements(top)
        if not settled:
            return AggregateResult(
                amount=0,
                rationale="No comparable cases with a usable settlement amount were found.",
                source_case_ids=[],
                comparables_used=len(top),
                degenerate=True,
            )
        if weights is None:
            raise ValueError("WeightedModel requires category weights")

        value = sum(a for a, _ in settled) / len(settled)
        factors: List[str] = []

        surgery = query.surgery_type
        multiplier = _lookup(weights.surgery_weights, surgery)
        if multiplier is not None:
            value *= multiplier
            factors.append(f"{surgery.strip()} surgery")

        injection = query.injection_type
        multiplier = _lookup(weights.injection_weights, injection)
        if multiplier is not None:
            value *= multiplier
            factors.append(f"{injection.strip()} injections")

        tbi = tbi_label(query)
        multiplier = _lookup(weights.tbi_severity_weights, tbi)
        if multiplier is not None:
            value *= multiplier
            factors.append(f"{tbi} TBI")

        if query.medical_specials:
            value += query.medical_specials * weights.medical_specials_slope
            factors.append(f"{format_currency(query.medical_specials)} in medical specials")
        if query.howell_specials:
            value += query.howell_specials * weights.howell_specials_slope
            factors.append(f"{format_currency(query.howell_specials)} in Howell specials")

        amount = round_half_up(value, self.increment)
        considering = _join_prose(factors) if factors else "medical treatment patterns"
        return AggregateResult(
            amount=amount,
            rationale=f"Based on analysis of {len(top)} comparable cases, considering {considering}.",
            source_case_ids=[s.case_id for s in top[:SOURCE_CASES]],
            comparables_used=len(settled),
            factors=factors,
        )
