"""
Mediator's proposal: a discounted, policy-limit-aware figure offered in negotiation.

Pure function of the evaluator amount, the policy limit (optional), the
generation date and, optionally, the defense's settlement authority.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from ..core.config import settings
from ..core.utils import round_half_up

POLICY_CAP_RATIO = 0.90
DISCOUNT_RATIO = 0.95
RANGE_LOW_RATIO = 0.95
RANGE_HIGH_RATIO = 1.05


@dataclass(frozen=True)
class MediatorProposal:
    proposal: int
    expires_on: date
    range_low: int
    range_high: int
    timing_recommendation: Optional[str] = None


def _timing_recommendation(authority: float, evaluator_amount: float, proposal: float) -> str:
    if authority >= evaluator_amount:
        return "Authority matches evaluation – settle promptly."
    if authority >= proposal:
        return "Authority slightly low – consider phased offers."
    return "Authority well below estimate – delay until higher authority obtained."


def propose(
    evaluator_amount: float,
    policy_limit: float | None = None,
    today: date | None = None,
    defense_authority: float | None = None,
    increment: int | None = None,
    valid_days: int | None = None,
) -> MediatorProposal:
    """
    With a positive policy limit the proposal is 90% of the limit when the
    evaluator amount reaches it, else 95% of the evaluator amount. Without a
    limit it is always 95%. The result is rounded to the nearest increment
    ($500) and then clamped to the limit (and the authority, when given).

    The range is proposal ±5%, each end rounded the same way; the high end
    never exceeds the limit or the authority.
    """
    increment = increment or settings.ROUNDING_INCREMENT
    valid_days = settings.PROPOSAL_VALID_DAYS if valid_days is None else valid_days
    today = today or date.today()
    limit = policy_limit if policy_limit and policy_limit > 0 else None
    authority = defense_authority if defense_authority and defense_authority > 0 else None

    if limit is not None:
        cap90 = limit * POLICY_CAP_RATIO
        raw = cap90 if evaluator_amount >= cap90 else evaluator_amount * DISCOUNT_RATIO
    else:
        raw = evaluator_amount * DISCOUNT_RATIO

    proposal = round_half_up(raw, increment)
    if limit is not None and proposal > limit:
        proposal = limit
    if authority is not None and proposal > authority:
        proposal = authority

    range_low = round_half_up(proposal * RANGE_LOW_RATIO, increment)
    range_high = round_half_up(proposal * RANGE_HIGH_RATIO, increment)
    if limit is not None and range_high > limit:
        range_high = limit
    if authority is not None and range_high > authority:
        range_high = authority
    # A clamped, off-increment proposal can round its low end above itself
    range_low = min(range_low, proposal)
    range_high = max(range_high, proposal)

    return MediatorProposal(
        proposal=round_half_up(proposal),
        expires_on=today + timedelta(days=valid_days),
        range_low=round_half_up(range_low),
        range_high=round_half_up(range_high),
        timing_recommendation=(
            _timing_recommendation(authority, evaluator_amount, proposal)
            if authority is not None else None
        ),
    )
