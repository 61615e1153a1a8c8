"""
Category weight learner.

Surgery and injection multipliers are learned from the corpus as the ratio of
a label's mean settlement to the overall mean settlement. TBI multipliers and
the two specials slopes are fixed constants, kept auditable rather than fitted.

The learned weights are cached for a fixed validity window. Within the window
the cached value is returned even if the corpus has changed; after it, the
next call recomputes synchronously and replaces the cache.
"""
import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Sequence, Tuple

from ..core.cache import TTLStore
from ..core.config import settings
from ..core.errors import NoDataAvailable
from ..core.metrics import WEIGHTS_RECOMPUTED
from ..core.utils import has_label, parse_currency
from ..data.base import HistoricalCase

logger = logging.getLogger(__name__)

_CACHE_KEY = "weights"


@dataclass(frozen=True)
class CaseWeights:
    surgery_weights: Dict[str, float]
    injection_weights: Dict[str, float]
    tbi_severity_weights: Dict[str, float]
    medical_specials_slope: float
    howell_specials_slope: float
    last_updated: float  # timer() value at computation, epoch seconds by default
    overall_mean: float = 0.0
    sample_size: int = 0

    @property
    def last_updated_at(self) -> datetime:
        return datetime.fromtimestamp(self.last_updated, tz=timezone.utc)


def default_tbi_weights() -> Dict[str, float]:
    return {
        "mild": settings.TBI_MILD_WEIGHT,
        "moderate": settings.TBI_MODERATE_WEIGHT,
        "severe": settings.TBI_SEVERE_WEIGHT,
    }


def _group_ratios(groups: Dict[str, List[float]], overall_mean: float) -> Dict[str, float]:
    return {label: (sum(v) / len(v)) / overall_mean for label, v in groups.items()}


def compute_weights(
    corpus: Sequence[HistoricalCase],
    now: float,
    tbi_weights: Dict[str, float] | None = None,
    medical_specials_slope: float | None = None,
    howell_specials_slope: float | None = None,
) -> CaseWeights:
    """
    Derive label multipliers from the corpus.

    Cases whose settlement is missing, malformed or non-positive are ignored
    everywhere. Single-member groups still produce a multiplier; there is no
    smoothing and no minimum sample size.

    Raises NoDataAvailable when the corpus is empty or holds no usable settlement.
    """
    if not corpus:
        raise NoDataAvailable("No cases available for weights calculation")

    surgery_groups: Dict[str, List[float]] = {}
    injection_groups: Dict[str, List[float]] = {}
    settlements: List[float] = []

    for case in corpus:
        amount = parse_currency(case.settlement)
        if amount <= 0:
            continue
        settlements.append(amount)
        if has_label(case.surgery):
            surgery_groups.setdefault(case.surgery.strip(), []).append(amount)
        if has_label(case.injection):
            injection_groups.setdefault(case.injection.strip(), []).append(amount)

    if not settlements:
        raise NoDataAvailable("No parseable settlements available for weights calculation")

    overall_mean = sum(settlements) / len(settlements)
    return CaseWeights(
        surgery_weights=_group_ratios(surgery_groups, overall_mean),
        injection_weights=_group_ratios(injection_groups, overall_mean),
        tbi_severity_weights=dict(tbi_weights if tbi_weights is not None else default_tbi_weights()),
        medical_specials_slope=(
            settings.MEDICAL_SPECIALS_SLOPE if medical_specials_slope is None else medical_specials_slope
        ),
        howell_specials_slope=(
            settings.HOWELL_SPECIALS_SLOPE if howell_specials_slope is None else howell_specials_slope
        ),
        last_updated=now,
        overall_mean=overall_mean,
        sample_size=len(settlements),
    )


def distinct_labels(corpus: Sequence[HistoricalCase]) -> Tuple[List[str], List[str]]:
    """Sorted distinct surgery and injection labels, for operator dropdowns."""
    surgeries = sorted({c.surgery.strip() for c in corpus if has_label(c.surgery)})
    injections = sorted({c.injection.strip() for c in corpus if has_label(c.injection)})
    return surgeries, injections


class WeightLearner:
    """
    Holds the one shared weights cache for the process.

    Recomputation is guarded so concurrent callers that all see an expired
    cache scan the corpus once.
    """
    def __init__(
        self,
        ttl_seconds: float | None = None,
        timer: Callable[[], float] = time.time,
        tbi_weights: Dict[str, float] | None = None,
        medical_specials_slope: float | None = None,
        howell_specials_slope: float | None = None,
    ):
        ttl = settings.WEIGHTS_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self.timer = timer
        self.store = TTLStore(ttl_seconds=ttl, timer=timer, maxsize=1)
        self.tbi_weights = tbi_weights
        self.medical_specials_slope = medical_specials_slope
        self.howell_specials_slope = howell_specials_slope
        self._lock = threading.Lock()

    def cached(self) -> CaseWeights | None:
        return self.store.get(_CACHE_KEY)

    def get_weights(self, corpus: Sequence[HistoricalCase]) -> CaseWeights:
        weights = self.cached()
        if weights is not None:
            return weights
        with self._lock:
            weights = self.cached()
            if weights is not None:
                return weights
            weights = compute_weights(
                corpus,
                now=self.timer(),
                tbi_weights=self.tbi_weights,
                medical_specials_slope=self.medical_specials_slope,
                howell_specials_slope=self.howell_specials_slope,
            )
            self.store.set(_CACHE_KEY, weights)
        WEIGHTS_RECOMPUTED.inc()
        logger.info(
            "Calculated weights from %d cases", len(corpus),
            extra={"corpus_size": len(corpus),
                   "surgeries": len(weights.surgery_weights),
                   "injections": len(weights.injection_weights)},
        )
        return weights

    def invalidate(self) -> None:
        self.store.clear()


# Single shared instance per process
weight_learner = WeightLearner()
