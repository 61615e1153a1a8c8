from statistics import median
from typing import List, Optional, Sequence, Tuple

from .base import AggregateResult, AggregationPolicy, parsed_settlements
from ..core.config import settings
from ..core.utils import format_currency, has_label, parse_currency, round_half_up
from ..data.base import QueryCase, ScoredCase
from ..engine.weights import CaseWeights

POLICY_LIMIT_ESCALATION = 1.15
NO_SURGERY_DISCOUNT = 0.80
MIN_SURGICAL_COMPARABLES = 3

class MedianModel(AggregationPolicy):
    """
    Range + median-closest aggregation. Uses no learned weights.

    The proposal is always a real settlement from the comparable set: the one
    closest to the (possibly adjusted) median of the top comparables. The two
    adjustment rules look at every supplied comparable, while the median and
    range come from the top slice only.
    """
    name = "median"
    uses_weights = False

    def __init__(self, limit: int | None = None):
        self.limit = limit or settings.COMPARABLE_LIMIT

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

        amounts = [a for a, _ in settled]
        low, high = min(amounts), max(amounts)
        target = median(amounts)
        factors: List[str] = []

        # Both rules read the full comparable set, not the top slice
        max_policy_limit = max((parse_currency(s.case.policy_limit) for s in comparables), default=0.0)
        if parse_currency(query.policy_limit) > max_policy_limit:
            target *= POLICY_LIMIT_ESCALATION
            factors.append("policy limits above every comparable case")

        surgical = sum(1 for s in comparables if has_label(s.case.surgery))
        if not has_label(query.surgery) and surgical >= MIN_SURGICAL_COMPARABLES:
            target *= NO_SURGERY_DISCOUNT
            factors.append("no surgery where comparable cases had surgery")

        amount, case_id = closest_settlement(settled, target)
        return AggregateResult(
            amount=round_half_up(amount),
            rationale=self._rationale(query, len(settled), factors),
            source_case_ids=[case_id],
            range_low=round_half_up(low),
            range_high=round_half_up(high),
            comparables_used=len(settled),
            factors=factors,
        )

    @staticmethod
    def _rationale(query: QueryCase, n: int, factors: List[str]) -> str:
        surgery_text = f"with {query.surgery}" if has_label(query.surgery) else "without surgery"
        venue_text = f" in {query.venue}" if query.venue else ""
        limit = parse_currency(query.policy_limit)
        limit_text = f", considering policy limits of {format_currency(limit)}" if limit > 0 else ""
        text = f"Based on analysis of {n} comparable cases{venue_text} {surgery_text}{limit_text}."
        if factors:
            text += " Median adjusted for " + " and ".join(factors) + "."
        return text

def closest_settlement(settled: Sequence[Tuple[float, int]], target: float) -> Tuple[float, int]:
    """Settlement nearest to `target`; equal distances go to the smaller amount."""
    best_amount, best_id = settled[0]
    best_distance = abs(best_amount - target)
    for amount, case_id in settled[1:]:
        distance = abs(amount - target)
        if distance < best_distance or (distance == best_distance and amount < best_amount):
            best_amount, best_id, best_distance = amount, case_id, distance
    return best_amount, best_id
