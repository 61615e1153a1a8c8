from typing import List

import pytest

from casevalue.core.errors import NoDataAvailable
from casevalue.data.base import HistoricalCase, QueryCase, ScoredCase
from casevalue.engine.weights import WeightLearner


class FakeClock:
    """Manually advanced timer for TTL tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryRepository:
    def __init__(self, cases: List[HistoricalCase]):
        self.cases = list(cases)
        self.calls = 0

    async def fetch_all(self) -> List[HistoricalCase]:
        self.calls += 1
        return list(self.cases)


class FailingRepository:
    async def fetch_all(self) -> List[HistoricalCase]:
        raise NoDataAvailable("Case repository unavailable")


def make_case(case_id: int, settlement: str | None = "$100,000", **kwargs) -> HistoricalCase:
    return HistoricalCase(case_id=case_id, settlement=settlement, **kwargs)


def scored(cases: List[HistoricalCase]) -> List[ScoredCase]:
    """Wrap cases as an already-ranked list (first = best)."""
    n = len(cases)
    return [ScoredCase(case=c, score=float(n - i)) for i, c in enumerate(cases)]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def corpus() -> List[HistoricalCase]:
    return [
        HistoricalCase(
            case_id=1, category="motor-vehicle-accident", venue="Los Angeles",
            surgery="Lumbar Fusion", injuries="herniated disc lower back pain",
            liability_pct="100%", policy_limit="$250,000/$500,000", settlement="$300,000",
            accident_type="Rear-end", injection="Epidural Steroid",
        ),
        HistoricalCase(
            case_id=2, category="motor-vehicle-accident", venue="Los Angeles",
            surgery="None", injuries="neck strain lower back pain",
            liability_pct="90%", policy_limit="$100,000/$300,000", settlement="$60,000",
            accident_type="Rear-end", injection="None",
        ),
        HistoricalCase(
            case_id=3, category="motor-vehicle-accident", venue="Orange",
            surgery="Lumbar Fusion", injuries="lumbar disc herniation",
            liability_pct="80%", policy_limit="$100,000", settlement="$180,000",
            accident_type="T-bone", injection="Epidural Steroid",
        ),
        HistoricalCase(
            case_id=4, category="premises-liability", venue="Kern",
            surgery="Knee Arthroscopy", injuries="torn meniscus",
            liability_pct="60%", policy_limit="$50,000", settlement="$45,000",
            accident_type="Slip and fall", injection="None",
        ),
        HistoricalCase(
            case_id=5, category="motor-vehicle-accident", venue="San Diego",
            surgery=None, injuries="whiplash", liability_pct="n/a",
            policy_limit=None, settlement="pending", accident_type="Sideswipe",
        ),
    ]


@pytest.fixture
def query() -> QueryCase:
    return QueryCase(
        venue="Los Angeles",
        surgery="Lumbar Fusion",
        injuries="herniated disc with back pain",
        liability_pct="100%",
        accident_type="Rear-end",
        policy_limit="$250,000",
    )


@pytest.fixture
def learner(clock) -> WeightLearner:
    return WeightLearner(ttl_seconds=24 * 60 * 60, timer=clock)
