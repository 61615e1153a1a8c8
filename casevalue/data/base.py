from typing import Protocol, List, Optional
from dataclasses import dataclass

# ----- Data shapes (thin & explicit) -----
# Amounts and percentages stay as the free text the corpus stores;
# they are parsed defensively at the point of use.

@dataclass(frozen=True)
class HistoricalCase:
    case_id: int
    category: Optional[str] = None        # e.g., "motor-vehicle-accident"
    venue: Optional[str] = None           # e.g., "Los Angeles"
    surgery: Optional[str] = None         # e.g., "Lumbar Fusion", "None"
    injuries: Optional[str] = None        # free text
    liability_pct: Optional[str] = None   # e.g., "100%", "75"
    policy_limit: Optional[str] = None    # e.g., "$100,000/$300,000"
    settlement: Optional[str] = None      # e.g., "$185,000"
    accident_type: Optional[str] = None   # e.g., "Rear-end"
    injection: Optional[str] = None       # e.g., "Epidural Steroid"

@dataclass(frozen=True)
class QueryCase:
    """The case under evaluation; immutable for one valuation."""
    venue: Optional[str] = None
    surgery: Optional[str] = None
    injuries: Optional[str] = None
    liability_pct: Optional[str] = None
    accident_type: Optional[str] = None
    policy_limit: Optional[str] = None
    category: Optional[str] = None
    injection: Optional[str] = None
    # Optional numeric attributes
    medical_specials: Optional[float] = None
    howell_specials: Optional[float] = None   # Howell/Hanif-adjusted specials
    age: Optional[int] = None
    tbi_level: Optional[int] = None           # 0 none .. 3 severe
    tbi_severity: Optional[str] = None        # "mild" | "moderate" | "severe"
    surgeries: Optional[int] = None
    surgery_type: Optional[str] = None
    injections: Optional[int] = None
    injection_type: Optional[str] = None

@dataclass(frozen=True)
class ScoredCase:
    case: HistoricalCase
    score: float

    @property
    def case_id(self) -> int:
        return self.case.case_id

# ----- Protocols (interfaces) -----

class CaseRepository(Protocol):
    async def fetch_all(self) -> List[HistoricalCase]: ...
