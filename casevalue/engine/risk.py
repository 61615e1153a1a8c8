"""Policy exceedance risk: how close a settlement figure sits to the policy limit."""

# (upper bound of settlement/limit ratio, risk %); first match wins
RISK_BANDS = (
    (0.5, 5),    # very low
    (0.7, 15),   # low
    (0.85, 35),  # moderate
    (0.95, 60),  # high
    (1.0, 85),   # very high
)
EXCEEDS_RISK = 95


def policy_exceedance_risk(settlement_amount: float, policy_limit: float | None) -> int:
    """Step function of settlement / limit; 0 when the limit is unknown."""
    if not policy_limit or policy_limit <= 0:
        return 0
    ratio = settlement_amount / policy_limit
    for upper, risk in RISK_BANDS:
        if ratio < upper:
            return risk
    return EXCEEDS_RISK
