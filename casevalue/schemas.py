from datetime import datetime
from pydantic import BaseModel, Field

from .core.utils import format_currency, format_long_date, parse_currency
from .data.base import QueryCase, ScoredCase
from .engine.mediator import MediatorProposal
from .engine.weights import CaseWeights
from .services.valuation_service import ValuationResult

def _text(value) -> str | None:
    return None if value is None else str(value)

class ValuationRequest(BaseModel):
    venue: str | None = None
    surgery: str | None = None
    injuries: str | None = None
    liability_pct: str | float | None = None
    accident_type: str | None = None
    policy_limit: str | float | None = None
    category: str | None = None
    injection: str | None = None
    medical_specials: float | None = Field(default=None, ge=0)
    howell_specials: float | None = Field(default=None, ge=0)
    age: int | None = Field(default=None, ge=0, le=130)
    tbi_level: int | None = Field(default=None, ge=0, le=3)
    tbi_severity: str | None = None
    surgeries: int | None = Field(default=None, ge=0)
    surgery_type: str | None = None
    injections: int | None = Field(default=None, ge=0)
    injection_type: str | None = None
    defense_authority: float | None = Field(default=None, gt=0)

    def to_query(self) -> QueryCase:
        data = self.model_dump(exclude={"defense_authority"})
        data["liability_pct"] = _text(data["liability_pct"])
        data["policy_limit"] = _text(data["policy_limit"])
        return QueryCase(**data)

class Range(BaseModel):
    low: str
    high: str

class ComparableCase(BaseModel):
    case_id: int
    score: float
    venue: str | None = None
    surgery: str | None = None
    injuries: str | None = None
    accident_type: str | None = None
    settlement: str | None = None

    @classmethod
    def from_scored(cls, s: ScoredCase) -> "ComparableCase":
        amount = parse_currency(s.case.settlement)
        return cls(
            case_id=s.case_id,
            score=round(s.score, 2),
            venue=s.case.venue,
            surgery=s.case.surgery,
            injuries=s.case.injuries,
            accident_type=s.case.accident_type,
            settlement=format_currency(amount) if amount > 0 else None,
        )

class MediatorResponse(BaseModel):
    mediator_proposal: str
    expires_on: str
    range: Range
    timing_recommendation: str | None = None

    @classmethod
    def from_proposal(cls, m: MediatorProposal) -> "MediatorResponse":
        return cls(
            mediator_proposal=format_currency(m.proposal),
            expires_on=format_long_date(m.expires_on),
            range=Range(low=format_currency(m.range_low), high=format_currency(m.range_high)),
            timing_recommendation=m.timing_recommendation,
        )

class ValuationResponse(BaseModel):
    policy: str
    currency: str = "USD"
    proposal: str
    rationale: str
    source_case_ids: list[int]
    expires_on: str
    settlement_range: Range | None = None
    confidence: int | None = Field(default=None, ge=0, le=100)
    policy_exceedance_risk: int | None = Field(default=None, ge=0, le=100)
    policy_limit: str | None = None
    mediator: MediatorResponse | None = None
    nearest_cases: list[ComparableCase] = []
    degenerate: bool = False

    @classmethod
    def from_result(cls, r: ValuationResult, currency: str = "USD") -> "ValuationResponse":
        return cls(
            policy=r.policy,
            currency=currency,
            proposal=format_currency(r.proposal),
            rationale=r.rationale,
            source_case_ids=r.source_case_ids,
            expires_on=format_long_date(r.expires_on),
            settlement_range=(
                Range(low=format_currency(r.settlement_range[0]), high=format_currency(r.settlement_range[1]))
                if r.settlement_range else None
            ),
            confidence=r.confidence,
            policy_exceedance_risk=r.policy_exceedance_risk,
            policy_limit=format_currency(r.policy_limit) if r.policy_limit else None,
            mediator=MediatorResponse.from_proposal(r.mediator) if r.mediator else None,
            nearest_cases=[ComparableCase.from_scored(s) for s in r.nearest],
            degenerate=r.degenerate,
        )

class ComparablesResponse(BaseModel):
    k: int
    comparables: list[ComparableCase]

class WeightsResponse(BaseModel):
    surgery_weights: dict[str, float]
    injection_weights: dict[str, float]
    tbi_severity_weights: dict[str, float]
    medical_specials_slope: float
    howell_specials_slope: float
    last_updated: datetime
    sample_size: int
    etag: str | None = None

    @classmethod
    def from_weights(cls, w: CaseWeights) -> "WeightsResponse":
        return cls(
            surgery_weights=w.surgery_weights,
            injection_weights=w.injection_weights,
            tbi_severity_weights=w.tbi_severity_weights,
            medical_specials_slope=w.medical_specials_slope,
            howell_specials_slope=w.howell_specials_slope,
            last_updated=w.last_updated_at,
            sample_size=w.sample_size,
        )

class LabelsResponse(BaseModel):
    surgeries: list[str]
    injections: list[str]

class MediatorRequest(BaseModel):
    evaluator_amount: str | float
    policy_limit: str | float | None = None
    defense_authority: float | None = Field(default=None, gt=0)

class RiskRequest(BaseModel):
    settlement_amount: str | float
    policy_limit: str | float | None = None

class RiskResponse(BaseModel):
    policy_exceedance_risk: int = Field(ge=0, le=100)
    ratio: float | None = None
