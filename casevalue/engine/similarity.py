"""
Similarity scoring and comparable selection.

Scores are additive points, not normalized: they rank candidates for one
query and mean nothing across queries.
"""
from typing import Iterable, List

from ..data.base import HistoricalCase, QueryCase, ScoredCase
from ..core.utils import parse_percentage, same_text

VENUE_POINTS = 100.0
SURGERY_POINTS = 50.0
INJURY_POINTS = 25.0
LIABILITY_POINTS = 15.0
LIABILITY_BAND = 25.0
ACCIDENT_POINTS = 10.0


def _injury_tokens(text: str) -> List[str]:
    return [w for w in text.lower().split() if len(w) > 2]


def injury_overlap(query_injuries: str | None, candidate_injuries: str | None) -> float:
    """Fraction of query tokens that substring-match some candidate token, either way."""
    if not query_injuries or not candidate_injuries:
        return 0.0
    query_words = _injury_tokens(query_injuries)
    candidate_words = _injury_tokens(candidate_injuries)
    overlapping = [
        w for w in query_words
        if any(c in w or w in c for c in candidate_words)
    ]
    return len(overlapping) / max(len(query_words), 1)


def liability_points(query_pct: str | None, candidate_pct: str | None) -> float:
    a = parse_percentage(query_pct)
    b = parse_percentage(candidate_pct)
    if a is None or b is None:
        return 0.0
    difference = abs(a - b)
    if difference > LIABILITY_BAND:
        return 0.0
    return max(0.0, LIABILITY_POINTS - (difference / LIABILITY_BAND) * LIABILITY_POINTS)


def score(query: QueryCase, candidate: HistoricalCase) -> float:
    """Similarity of one historical case to the query. Always >= 0."""
    total = 0.0
    if same_text(query.venue, candidate.venue):
        total += VENUE_POINTS
    if same_text(query.surgery, candidate.surgery):
        total += SURGERY_POINTS
    total += injury_overlap(query.injuries, candidate.injuries) * INJURY_POINTS
    total += liability_points(query.liability_pct, candidate.liability_pct)
    if same_text(query.accident_type, candidate.accident_type):
        total += ACCIDENT_POINTS
    return total


def rank(query: QueryCase, corpus: Iterable[HistoricalCase]) -> List[ScoredCase]:
    """Full scan, best first. Ties keep corpus order (sorted() is stable)."""
    scored = [ScoredCase(case=c, score=score(query, c)) for c in corpus]
    return sorted(scored, key=lambda s: s.score, reverse=True)


def select(query: QueryCase, corpus: Iterable[HistoricalCase], k: int) -> List[ScoredCase]:
    """Top-k comparables, sorted by score descending. Empty corpus gives []."""
    if k <= 0:
        return []
    return rank(query, corpus)[:k]
