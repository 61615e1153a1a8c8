import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import httpx

from .base import CaseRepository, HistoricalCase
from ..core.config import settings
from ..core.errors import NoDataAvailable
from ..core.utils import fnv1a_32, seeded_rand

logger = logging.getLogger(__name__)

# Store column -> field. Both the legacy column names and the field names are accepted.
_COLUMN_ALIASES = {
    "id": "case_id",
    "case_type": "category",
    "liab_pct": "liability_pct",
    "pol_lim": "policy_limit",
    "settle": "settlement",
    "acc_type": "accident_type",
    "inject": "injection",
}
_TEXT_FIELDS = (
    "category", "venue", "surgery", "injuries", "liability_pct",
    "policy_limit", "settlement", "accident_type", "injection",
)

def case_from_record(row: Dict[str, Any]) -> HistoricalCase:
    """Map one repository row onto a HistoricalCase. Numbers are kept as text."""
    data = {_COLUMN_ALIASES.get(k, k): v for k, v in row.items()}
    fields = {
        name: (None if data.get(name) is None else str(data[name]))
        for name in _TEXT_FIELDS
    }
    return HistoricalCase(case_id=int(data["case_id"]), **fields)

class MockCaseRepository(CaseRepository):
    """
    Synthetic corpus for local development. Attributes are plausible but fake,
    and identical on every call for the same size.
    """
    VENUES = ["Los Angeles", "Orange", "San Diego", "Alameda", "Kern", "Riverside", "Sacramento"]
    SURGERIES = ["None", "None", "None", "Lumbar Fusion", "Cervical Fusion", "Knee Arthroscopy", "Shoulder Repair"]
    INJECTIONS = ["None", "None", "Epidural Steroid", "Facet Joint", "Trigger Point"]
    INJURIES = [
        "neck strain lower back pain",
        "herniated disc lumbar radiculopathy",
        "cervical disc herniation headaches",
        "concussion post traumatic headaches",
        "torn meniscus knee sprain",
        "rotator cuff tear shoulder pain",
        "whiplash soft tissue strain",
    ]
    ACCIDENTS = ["Rear-end", "T-bone", "Sideswipe", "Pedestrian", "Slip and fall"]
    LIMITS = ["$15,000/$30,000", "$50,000/$100,000", "$100,000/$300,000", "$250,000/$500,000", "$1,000,000"]

    def __init__(self, size: int = 60):
        self.size = size

    async def fetch_all(self) -> List[HistoricalCase]:
        out: List[HistoricalCase] = []
        for i in range(self.size):
            seed = fnv1a_32(f"case-{i}")
            r = seeded_rand(seed, 8)
            surgery = self.SURGERIES[int(r[1] * len(self.SURGERIES))]
            # Surgery cases settle higher
            base = 20_000 + int(r[6] * 180_000) + (150_000 if surgery != "None" else 0)
            out.append(HistoricalCase(
                case_id=i + 1,
                category="motor-vehicle-accident" if r[0] < 0.8 else "premises-liability",
                venue=self.VENUES[int(r[0] * len(self.VENUES))],
                surgery=surgery,
                injuries=self.INJURIES[int(r[2] * len(self.INJURIES))],
                liability_pct=f"{50 + int(r[3] * 11) * 5}%",
                policy_limit=self.LIMITS[int(r[4] * len(self.LIMITS))],
                settlement=f"${base:,}",
                accident_type=self.ACCIDENTS[int(r[5] * len(self.ACCIDENTS))],
                injection=self.INJECTIONS[int(r[7] * len(self.INJECTIONS))],
            ))
        return out

class FileCaseRepository(CaseRepository):
    """Reads a JSON array of case records from disk on every call."""
    def __init__(self, path: str):
        self.path = Path(path)

    async def fetch_all(self) -> List[HistoricalCase]:
        try:
            rows = json.loads(self.path.read_text(encoding="utf-8"))
            return [case_from_record(row) for row in rows]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.error("Case file unreadable: %s", self.path)
            raise NoDataAvailable(f"Could not read cases from {self.path}") from exc

class HttpCaseRepository(CaseRepository):
    """
    Client for the case store's bulk-read endpoint. One GET, whole corpus.
    """
    def __init__(self, base_url: str, timeout: float = 15, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def fetch_all(self) -> List[HistoricalCase]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                r = await client.get(f"{self.base_url}/cases")
                r.raise_for_status()
                items = r.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Case repository fetch failed: %s", exc)
            raise NoDataAvailable("Case repository unavailable") from exc
        try:
            return [case_from_record(i) for i in items]
        except (KeyError, TypeError, ValueError) as exc:
            raise NoDataAvailable("Case repository returned malformed records") from exc

def case_repository() -> CaseRepository:
    """
    Factory picks mock, file or http based on env flags.
    """
    if settings.REPOSITORY_PROVIDER == "http" and settings.REPOSITORY_BASE_URL:
        return HttpCaseRepository(settings.REPOSITORY_BASE_URL, timeout=settings.REPOSITORY_TIMEOUT_SECONDS)
    if settings.REPOSITORY_PROVIDER == "file" and settings.REPOSITORY_PATH:
        return FileCaseRepository(settings.REPOSITORY_PATH)
    if settings.REPOSITORY_PROVIDER != "mock":
        logger.warning("Repository provider %r not configured, using mock corpus",
                       settings.REPOSITORY_PROVIDER, extra={"provider": settings.REPOSITORY_PROVIDER})
    return MockCaseRepository(size=settings.MOCK_CORPUS_SIZE)
