import hashlib
import math
import re
from datetime import date

from .errors import UnparseableValue

# Leading numeric prefix, e.g. "150000 per person" -> 150000
_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

def _leading_number(text: str) -> float | None:
    m = _NUMBER_PREFIX.match(text.strip())
    if not m:
        return None
    value = float(m.group(0))
    return value if math.isfinite(value) else None

def parse_currency_strict(value) -> float:
    """
    Read a free-text currency value such as "$1,250,000" or "$100,000/$300,000".
    Dollar signs and thousands separators are dropped and the leading number is
    used. Raises UnparseableValue when nothing numeric is left.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            raise UnparseableValue(value)
        return float(value)
    if not value:
        raise UnparseableValue(value)
    number = _leading_number(str(value).replace("$", "").replace(",", ""))
    if number is None:
        raise UnparseableValue(value)
    return number

def parse_currency(value) -> float:
    """Tolerant variant: absent or malformed amounts read as 0."""
    try:
        return parse_currency_strict(value)
    except UnparseableValue:
        return 0.0

def parse_percentage(value) -> float | None:
    """ "75%" -> 75.0; None when absent or malformed. """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) else None
    if not value:
        return None
    return _leading_number(str(value).replace("%", ""))

def round_half_up(value: float, increment: int = 1) -> int:
    """Round to the nearest multiple of `increment`; halves go up."""
    return int(math.floor(value / increment + 0.5) * increment)

def format_currency(value: float) -> str:
    """$ + thousands-grouped whole dollars, e.g. 297000 -> "$297,000"."""
    return f"${round_half_up(value):,}"

def format_long_date(d: date) -> str:
    """date(2026, 10, 26) -> "October 26, 2026" """
    return f"{d:%B} {d.day}, {d.year}"

def has_label(value: str | None) -> bool:
    """True for a real category label; empty and "none" mean absent."""
    return bool(value and value.strip() and value.strip().lower() != "none")

def same_text(a: str | None, b: str | None) -> bool:
    """Case-insensitive equality; empty on either side never matches."""
    return bool(a and b and a.lower() == b.lower())

def fnv1a_32(s: str) -> int:
    """Deterministic, fast hash for seed generation."""
    h = 0x811c9dc5
    for c in s.encode("utf-8"):
        h ^= c
        h = (h * 0x01000193) & 0xFFFFFFFF
    return h

def seeded_rand(seed: int, n: int = 1) -> list[float]:
    """
    Stateless pseudo-random generator (Mulberry32-like) so
    same seed → same outputs without storing PRNG state.
    """
    out = []
    t = (seed + 0x6D2B79F5) & 0xFFFFFFFF
    for _ in range(n):
        t = (t ^ (t >> 15)) * (t | 1) & 0xFFFFFFFF
        t ^= t + ((t ^ (t >> 7)) * (t | 61) & 0xFFFFFFFF)
        r = ((t ^ (t >> 14)) & 0xFFFFFFFF) / 4294967296.0
        out.append(r)
    return out

def weak_etag(payload_bytes: bytes) -> str:
    """Weak ETag for client-side conditional requests."""
    h = hashlib.sha256(payload_bytes).hexdigest()[:24]
    return f'W/"{h}"'
