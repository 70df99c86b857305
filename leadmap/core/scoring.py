"""Lead scoring for enriched place details.

Rules are additive and evaluated in a fixed order so the breakdown reads the
same for identical inputs:

1. no website
2. phone available
3. rating at or above ``min_rating``
4. review count at or above ``min_reviews``
5. sector in the high-yield set
"""

from dataclasses import dataclass
from typing import AbstractSet, List, Optional

from leadmap.core.config import HIGH_YIELD_SECTORS
from leadmap.models import PlaceDetails, ScoreResult

PRIORITY_HIGH = "high"
PRIORITY_MEDIUM = "medium"
PRIORITY_LOW = "low"


@dataclass(frozen=True)
class ScoringRules:
    no_website_bonus: int = 40
    phone_bonus: int = 20
    rating_bonus: int = 15
    reviews_bonus: int = 15
    sector_bonus: int = 10
    min_rating: float = 4.0
    min_reviews: int = 50
    high_threshold: int = 70
    medium_threshold: int = 40


DEFAULT_RULES = ScoringRules()


def priority_for(score: int, rules: ScoringRules = DEFAULT_RULES) -> str:
    if score >= rules.high_threshold:
        return PRIORITY_HIGH
    if score >= rules.medium_threshold:
        return PRIORITY_MEDIUM
    return PRIORITY_LOW


def score_business(
    details: PlaceDetails,
    sector: Optional[str],
    high_yield_sectors: AbstractSet[str] = HIGH_YIELD_SECTORS,
    rules: ScoringRules = DEFAULT_RULES,
) -> ScoreResult:
    """Score a place by how promising it is as a lead."""
    score = 0
    breakdown: List[str] = []

    # An empty website string counts as no website.
    has_website = bool(details.website)
    if not has_website:
        score += rules.no_website_bonus
        breakdown.append(f"No Website (+{rules.no_website_bonus})")

    if details.phone and details.phone.strip():
        score += rules.phone_bonus
        breakdown.append(f"Has Phone (+{rules.phone_bonus})")

    if details.rating is not None and details.rating >= rules.min_rating:
        score += rules.rating_bonus
        breakdown.append(f"High Rating (+{rules.rating_bonus})")

    if details.review_count is not None and details.review_count >= rules.min_reviews:
        score += rules.reviews_bonus
        breakdown.append(f"High Review Count (+{rules.reviews_bonus})")

    if sector is not None and sector in high_yield_sectors:
        score += rules.sector_bonus
        breakdown.append(f"High Yield Sector (+{rules.sector_bonus})")

    return ScoreResult(
        score=score,
        priority=priority_for(score, rules),
        has_website=has_website,
        breakdown=breakdown,
    )
