import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional, Tuple

from ..core.config import settings
from ..core.errors import NoDataAvailable
from ..core.metrics import CORPUS_SIZE, VALUATIONS
from ..core.utils import parse_currency
from ..data.base import CaseRepository, HistoricalCase, QueryCase, ScoredCase
from ..data.case_repository import case_repository
from ..engine.mediator import MediatorProposal, propose
from ..engine.risk import policy_exceedance_risk
from ..engine.similarity import rank, select
from ..engine.weights import CaseWeights, WeightLearner, distinct_labels, weight_learner
from ..models.base import AggregateResult, parsed_settlements
from ..models.registry import get_policy

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class ValuationResult:
    policy: str
    proposal: int                       # evaluator amount from the aggregation policy
    rationale: str
    source_case_ids: List[int]
    expires_on: date
    settlement_range: Optional[Tuple[int, int]] = None
    confidence: Optional[int] = None
    policy_exceedance_risk: Optional[int] = None
    policy_limit: Optional[int] = None
    mediator: Optional[MediatorProposal] = None
    nearest: List[ScoredCase] = field(default_factory=list)
    degenerate: bool = False

def confidence_score(agg: AggregateResult, ranked: List[ScoredCase]) -> int:
    """More usable comparables and a closer best match give a higher score, capped at 95."""
    if agg.degenerate or not ranked:
        return 0
    top_score = ranked[0].score
    return int(min(95, 50 + min(25, agg.comparables_used) + min(20, top_score / 10)))

class ValuationService:
    """
    Orchestrates:
      query case → corpus (one bulk read) → ranked comparables
      → aggregation policy (+ weights) → mediator proposal + exceedance risk
    All math after the corpus read is synchronous and in-memory.
    """
    def __init__(
        self,
        repository: CaseRepository | None = None,
        learner: WeightLearner | None = None,
        nearest_limit: int | None = None,
    ):
        self.repository = repository or case_repository()
        self.learner = learner or weight_learner
        self.nearest_limit = nearest_limit or settings.NEAREST_LIMIT

    async def load_corpus(self) -> List[HistoricalCase]:
        corpus = await self.repository.fetch_all()
        if not corpus:
            raise NoDataAvailable("No historical cases available")
        CORPUS_SIZE.set(len(corpus))
        logger.info("Loaded %d historical cases", len(corpus), extra={"corpus_size": len(corpus)})
        return corpus

    async def comparables(self, query: QueryCase, k: int | None = None) -> List[ScoredCase]:
        corpus = await self.load_corpus()
        return select(query, corpus, k or self.nearest_limit)

    async def weights(self) -> CaseWeights:
        # A live cache answers without touching the repository
        cached = self.learner.cached()
        if cached is not None:
            return cached
        corpus = await self.load_corpus()
        return self.learner.get_weights(corpus)

    async def labels(self) -> Tuple[List[str], List[str]]:
        return distinct_labels(await self.load_corpus())

    async def value(
        self,
        query: QueryCase,
        policy_name: str | None = None,
        today: date | None = None,
        defense_authority: float | None = None,
    ) -> ValuationResult:
        policy = get_policy(policy_name or settings.DEFAULT_POLICY)
        today = today or date.today()

        corpus = await self.load_corpus()
        ranked = rank(query, corpus)
        weights = None
        # Without a usable settlement in the top slice the result is degenerate; no weights needed
        if policy.uses_weights and parsed_settlements(ranked[: policy.limit]):
            weights = self.learner.get_weights(corpus)
        agg = policy.aggregate(query, ranked, weights)

        limit = parse_currency(query.policy_limit)
        policy_limit = int(limit) if limit > 0 else None
        nearest = ranked[: self.nearest_limit]

        if agg.degenerate:
            VALUATIONS.labels(policy=policy.name, outcome="degenerate").inc()
            logger.warning("No usable settlements among comparables", extra={"policy": policy.name})
            return ValuationResult(
                policy=policy.name,
                proposal=0,
                rationale=agg.rationale,
                source_case_ids=[],
                expires_on=today + timedelta(days=settings.PROPOSAL_VALID_DAYS),
                confidence=0,
                policy_exceedance_risk=0,
                policy_limit=policy_limit,
                nearest=nearest,
                degenerate=True,
            )

        mediator = propose(agg.amount, limit, today=today, defense_authority=defense_authority)
        if agg.range_low is not None and agg.range_high is not None:
            settlement_range = (agg.range_low, agg.range_high)
        else:
            settlement_range = (mediator.range_low, mediator.range_high)

        VALUATIONS.labels(policy=policy.name, outcome="ok").inc()
        logger.info("Valuation produced", extra={"policy": policy.name, "amount": agg.amount})
        return ValuationResult(
            policy=policy.name,
            proposal=agg.amount,
            rationale=agg.rationale,
            source_case_ids=agg.source_case_ids,
            expires_on=mediator.expires_on,
            settlement_range=settlement_range,
            confidence=confidence_score(agg, ranked),
            policy_exceedance_risk=policy_exceedance_risk(agg.amount, limit),
            policy_limit=policy_limit,
            mediator=mediator,
            nearest=nearest,
        )
