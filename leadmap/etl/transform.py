"""Utilities for transforming Google Places responses into pipeline models."""

import logging
import re
import unicodedata
from typing import Any, Dict, List, Optional

from leadmap.models import Candidate, PlaceDetails, ScoredBusiness, ScoreResult, SearchPage

logger = logging.getLogger(__name__)


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _safe_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _location(result: Dict[str, Any]) -> Dict[str, Any]:
    return (result.get("geometry") or {}).get("location") or {}


def to_candidates(results: List[Dict[str, Any]]) -> List[Candidate]:
    candidates: List[Candidate] = []
    for result in results or []:
        place_id = result.get("place_id")
        if not place_id:
            logger.debug("Skipping result without place_id: %s", result)
            continue
        location = _location(result)
        candidates.append(
            Candidate(
                place_id=place_id,
                lat=_safe_float(location.get("lat")),
                lng=_safe_float(location.get("lng")),
            )
        )
    return candidates


def to_search_page(payload: Dict[str, Any]) -> SearchPage:
    return SearchPage(
        status=payload.get("status") or "UNKNOWN",
        candidates=to_candidates(payload.get("results", [])),
        next_page_token=payload.get("next_page_token") or None,
        error_message=payload.get("error_message"),
    )


def to_place_details(result: Dict[str, Any]) -> PlaceDetails:
    location = _location(result)
    opening_hours = (result.get("opening_hours") or {}).get("weekday_text")
    return PlaceDetails(
        name=result.get("name"),
        address=result.get("formatted_address"),
        phone=_strip_or_none(result.get("formatted_phone_number")),
        website=_strip_or_none(result.get("website")),
        rating=_safe_float(result.get("rating")),
        review_count=_safe_int(result.get("user_ratings_total")),
        opening_hours=list(opening_hours) if opening_hours is not None else None,
        url=result.get("url"),
        business_status=_strip_or_none(result.get("business_status")),
        lat=_safe_float(location.get("lat")),
        lng=_safe_float(location.get("lng")),
    )


def to_scored_business(
    candidate: Candidate,
    details: PlaceDetails,
    result: ScoreResult,
    *,
    category: Optional[str],
    query: Optional[str],
) -> ScoredBusiness:
    lat, lng = details.lat, details.lng
    if lat is None or lng is None:
        lat, lng = candidate.lat, candidate.lng

    return ScoredBusiness(
        place_id=candidate.place_id,
        name=details.name,
        category=category,
        address=details.address,
        lat=lat,
        lng=lng,
        phone=_strip_or_none(details.phone),
        website=details.website or None,
        has_website=result.has_website,
        rating=details.rating,
        reviews=details.review_count,
        google_maps_url=details.url,
        business_status=details.business_status,
        score=result.score,
        priority=result.priority,
        opening_hours=details.opening_hours,
        query=query,
        breakdown=list(result.breakdown),
    )


def slugify(value: str) -> str:
    """Lowercase, collapse whitespace to underscores and drop accents."""
    value = re.sub(r"\s+", "_", (value or "").strip()).lower()
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))
