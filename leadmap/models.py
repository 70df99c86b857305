"""Core data models shared by the Places collection pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol


@dataclass(frozen=True, slots=True)
class Query:
    """A free-form search string plus the sector it is collected for."""

    text: str
    sector: Optional[str] = None
    region: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Candidate:
    """Minimal search hit: a stable place identifier and its coordinates."""

    place_id: str
    lat: Optional[float] = None
    lng: Optional[float] = None


@dataclass(slots=True)
class SearchPage:
    status: str
    candidates: List[Candidate] = field(default_factory=list)
    next_page_token: Optional[str] = None
    error_message: Optional[str] = None


@dataclass(slots=True)
class PlaceDetails:
    """Normalized snapshot of a Places details response."""

    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    opening_hours: Optional[List[str]] = None
    url: Optional[str] = None
    business_status: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


@dataclass(frozen=True, slots=True)
class ScoreResult:
    score: int
    priority: str
    has_website: bool
    breakdown: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DelayPolicy:
    """Pauses (in seconds) between provider calls."""

    inter_page: float = 2.0
    inter_item: float = 0.2
    inter_query: float = 1.0


@dataclass(slots=True)
class ScoredBusiness:
    place_id: str
    name: Optional[str]
    category: Optional[str]
    address: Optional[str]
    lat: Optional[float]
    lng: Optional[float]
    phone: Optional[str]
    website: Optional[str]
    has_website: bool
    rating: Optional[float]
    reviews: Optional[int]
    google_maps_url: Optional[str]
    business_status: Optional[str]
    score: int
    priority: str
    opening_hours: Optional[List[str]]
    query: Optional[str] = None
    breakdown: List[str] = field(default_factory=list, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Render the record in the shape the map viewer reads."""
        return {
            "place_id": self.place_id,
            "name": self.name,
            "category": self.category,
            "address": self.address,
            "location": {"lat": self.lat, "lng": self.lng},
            "phone": self.phone or None,
            "website": self.website or None,
            "has_website": self.has_website,
            "rating": self.rating or 0,
            "reviews": self.reviews or 0,
            "google_maps_url": self.google_maps_url,
            "business_status": self.business_status or "OPERATIONAL",
            "score": self.score,
            "priority": self.priority,
            "opening_hours": self.opening_hours if self.opening_hours is not None else "N/A",
        }


@dataclass(slots=True)
class RunStats:
    total: int = 0
    with_website: int = 0
    without_website: int = 0
    with_phone: int = 0
    high_rating: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "with_website": self.with_website,
            "without_website": self.without_website,
            "with_phone": self.with_phone,
            "high_rating": self.high_rating,
        }


@dataclass(slots=True)
class RunMeta:
    city: str
    country: str
    sector: Optional[str]
    search_query: str
    collected_at: str
    total_results: int
    source: str = "Google Maps Places API"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "city": self.city,
            "country": self.country,
            "sector": self.sector,
            "search_query": self.search_query,
            "source": self.source,
            "collected_at": self.collected_at,
            "total_results": self.total_results,
        }


@dataclass(slots=True)
class RunReport:
    """Aggregated output of one collection run, in discovery order."""

    meta: RunMeta
    stats: RunStats
    businesses: List[ScoredBusiness] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meta": self.meta.to_dict(),
            "stats": self.stats.to_dict(),
            "businesses": [business.to_dict() for business in self.businesses],
        }


class PlacesProvider(Protocol):
    """Contract for the places search/details collaborator."""

    def search(self, query: Query, page_token: Optional[str] = None) -> SearchPage:
        """Return one page of search candidates."""

    def details(self, place_id: str) -> Optional[PlaceDetails]:
        """Return enriched details, or None when they cannot be fetched."""
