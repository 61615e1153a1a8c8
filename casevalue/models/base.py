from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

from ..core.utils import parse_currency
from ..data.base import QueryCase, ScoredCase
from ..engine.weights import CaseWeights

@dataclass(frozen=True)
class AggregateResult:
    """
    Base settlement figure produced by an aggregation policy.
    A degenerate result (no parseable settlement among the comparables)
    has amount 0 and says why in the rationale.
    """
    amount: int
    rationale: str
    source_case_ids: List[int]
    range_low: Optional[int] = None
    range_high: Optional[int] = None
    comparables_used: int = 0
    factors: List[str] = field(default_factory=list)
    degenerate: bool = False

class AggregationPolicy(Protocol):
    name: str
    uses_weights: bool
    limit: int  # size of the top slice the policy aggregates

    def aggregate(
        self,
        query: QueryCase,
        comparables: Sequence[ScoredCase],
        weights: Optional[CaseWeights] = None,
    ) -> AggregateResult:
        """
        `comparables` is the full ranked corpus, best first. Policies take
        their own top-N slice from it.
        """
        ...

def parsed_settlements(cases: Sequence[ScoredCase]) -> List[Tuple[float, int]]:
    """(amount, case_id) for each case with a positive, parseable settlement."""
    out = []
    for s in cases:
        amount = parse_currency(s.case.settlement)
        if amount > 0:
            out.append((amount, s.case_id))
    return out
