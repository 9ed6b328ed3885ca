"""
Deal Scoring
Value heuristic used to pick the best offers out of the agent candidates.

    value_score = savings_percentage + hotel_rating * 20 + confirmation_minutes * -5
    savings_percentage = (original_price - price) / original_price * 100

Candidates are ranked by descending value score; equal scores keep their
input order (Python's sort is stable, including with reverse=True).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging
import re

logger = logging.getLogger(__name__)

RATING_WEIGHT = 20
MINUTE_PENALTY = -5
DEFAULT_TOP_N = 3

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass
class DealCandidate:
    """An agent offer before it is ranked and persisted."""

    agent: str
    destination: str
    price: float
    original_price: float
    hotel_rating: int
    confirmation_time: str
    inclusions: List[str] = field(default_factory=list)
    image_url: str = ""
    description: str = ""
    flight_details: Optional[Dict[str, Any]] = None
    accommodation_details: Optional[Dict[str, Any]] = None
    inclusions_breakdown: Optional[Dict[str, str]] = None
    location_info: Optional[Dict[str, Any]] = None
    booking_terms: Optional[Dict[str, str]] = None
    # Persona metadata, carried into the chat transcript
    specialty: str = ""
    personality: str = ""


def savings_percentage(price: float, original_price: float) -> float:
    """Discount off the list price, in percent."""
    original = float(original_price)
    if original <= 0:
        raise ValueError(f"original_price must be positive, got {original_price!r}")
    return (original - float(price)) / original * 100


def parse_confirmation_minutes(confirmation_time: str) -> int:
    """Leading integer of a confirmation time string: "2 min" -> 2, "2.3 min" -> 2."""
    match = _LEADING_INT.match(str(confirmation_time or ""))
    if not match:
        raise ValueError(f"confirmation time has no leading number: {confirmation_time!r}")
    return int(match.group(1))


def value_score(candidate: DealCandidate) -> float:
    return (
        savings_percentage(candidate.price, candidate.original_price)
        + candidate.hotel_rating * RATING_WEIGHT
        + parse_confirmation_minutes(candidate.confirmation_time) * MINUTE_PENALTY
    )


def score_deals(candidates: Sequence[DealCandidate]) -> List[Tuple[DealCandidate, float]]:
    """Pair every candidate with its value score, in input order."""
    return [(c, value_score(c)) for c in candidates]


def rank_scored(
    candidates: Sequence[DealCandidate], top_n: int = DEFAULT_TOP_N
) -> List[Tuple[DealCandidate, float]]:
    """Top-N (candidate, score) pairs, best first, ties in input order."""
    if top_n < 0:
        raise ValueError(f"top_n must be >= 0, got {top_n}")
    scored = score_deals(candidates)
    scored.sort(key=lambda x: x[1], reverse=True)
    return scored[:top_n]


def rank_deals(candidates: Sequence[DealCandidate], top_n: int = DEFAULT_TOP_N) -> List[DealCandidate]:
    """Select the top-N candidates by value score."""
    ranked = rank_scored(candidates, top_n)
    if ranked:
        logger.debug(f"Ranked {len(candidates)} candidates, best: {ranked[0][0].agent} ({ranked[0][1]:.1f})")
    return [c for c, _ in ranked]
