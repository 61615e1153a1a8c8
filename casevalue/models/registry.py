from .base import AggregationPolicy
from .median_model import MedianModel
from .weighted_model import WeightedModel

POLICIES = {
    MedianModel.name: MedianModel,
    WeightedModel.name: WeightedModel,
}

def get_policy(name: str) -> AggregationPolicy:
    """Explicit policy selection by name; unknown names raise KeyError."""
    try:
        return POLICIES[name.lower()]()
    except KeyError:
        raise KeyError(f"Unknown aggregation policy {name!r}; expected one of {sorted(POLICIES)}") from None
