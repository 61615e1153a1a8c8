import json

from fastapi import APIRouter, Depends, Header, HTTPException, Response, Query
from ..schemas import (
    ComparableCase, ComparablesResponse, LabelsResponse, MediatorRequest, MediatorResponse,
    RiskRequest, RiskResponse, ValuationRequest, ValuationResponse, WeightsResponse,
)
from ..services.valuation_service import ValuationService
from ..core.config import settings
from ..core.utils import parse_currency, weak_etag
from ..engine.mediator import propose
from ..engine.risk import policy_exceedance_risk
from ..models.registry import POLICIES

router = APIRouter()

def service_dep() -> ValuationService:
    # Cheap factory; the weights cache and repository factory are shared module state.
    return ValuationService()

@router.post("/valuation", response_model=ValuationResponse)
async def post_valuation(
    body: ValuationRequest,
    policy: str | None = Query(default=None, description="median | weighted"),
    svc: ValuationService = Depends(service_dep),
):
    if policy and policy.lower() not in POLICIES:
        raise HTTPException(status_code=400, detail=f"Unknown policy {policy!r}; expected one of {sorted(POLICIES)}")
    result = await svc.value(body.to_query(), policy_name=policy, defense_authority=body.defense_authority)
    return ValuationResponse.from_result(result, currency=settings.DEFAULT_CURRENCY)

@router.post("/comparables", response_model=ComparablesResponse)
async def post_comparables(
    body: ValuationRequest,
    k: int | None = Query(default=None, ge=1, le=500),
    svc: ValuationService = Depends(service_dep),
):
    k = k or settings.NEAREST_LIMIT
    scored = await svc.comparables(body.to_query(), k)
    return {"k": k, "comparables": [ComparableCase.from_scored(s) for s in scored]}

@router.get("/weights", response_model=WeightsResponse)
async def get_weights(
    response: Response,
    if_none_match: str | None = Header(default=None),
    svc: ValuationService = Depends(service_dep),
):
    weights = await svc.weights()
    payload = WeightsResponse.from_weights(weights).model_dump(mode="json")
    etag = weak_etag(json.dumps(payload, separators=(',',':'), sort_keys=True).encode("utf-8"))
    if if_none_match and if_none_match == etag:
        return Response(status_code=304, headers={"ETag": etag})
    payload["etag"] = etag
    response.headers["ETag"] = etag
    return payload

@router.get("/labels", response_model=LabelsResponse)
async def get_labels(svc: ValuationService = Depends(service_dep)):
    surgeries, injections = await svc.labels()
    return {"surgeries": surgeries, "injections": injections}

@router.post("/mediator-proposal", response_model=MediatorResponse)
def post_mediator_proposal(body: MediatorRequest):
    limit = parse_currency(body.policy_limit)
    proposal = propose(
        parse_currency(body.evaluator_amount),
        limit if limit > 0 else None,
        defense_authority=body.defense_authority,
    )
    return MediatorResponse.from_proposal(proposal)

@router.post("/policy-risk", response_model=RiskResponse)
def post_policy_risk(body: RiskRequest):
    amount = parse_currency(body.settlement_amount)
    limit = parse_currency(body.policy_limit)
    return {
        "policy_exceedance_risk": policy_exceedance_risk(amount, limit),
        "ratio": round(amount / limit, 4) if limit > 0 else None,
    }
