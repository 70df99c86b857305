"""Client utilities for the Google Places API."""

import logging
from typing import Any, Dict, Optional

import requests

from leadmap.etl.transform import to_place_details, to_search_page
from leadmap.models import PlaceDetails, Query, SearchPage

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api/place"

SUCCESS_STATUSES = {"OK", "ZERO_RESULTS"}
DETAIL_FIELDS = (
    "place_id",
    "name",
    "formatted_address",
    "formatted_phone_number",
    "opening_hours",
    "rating",
    "user_ratings_total",
    "geometry",
    "url",
    "website",
    "business_status",
)


class GooglePlacesError(RuntimeError):
    """Raised when the Places API returns a non-successful response."""


class PlacesSearchError(GooglePlacesError):
    """A text search page came back with an error status."""

    def __init__(self, status: str, message: Optional[str] = None):
        super().__init__(message or status)
        self.status = status


class PlacesDetailsError(GooglePlacesError):
    """Details for a single place could not be fetched."""


def text_search(
    query: str,
    api_key: str,
    pagetoken: Optional[str] = None,
    region: Optional[str] = None,
) -> Dict[str, Any]:
    """Return the raw text search payload; the caller interprets ``status``."""
    if pagetoken:
        # The API ignores everything but the token once one is supplied.
        params = {"pagetoken": pagetoken, "key": api_key}
    else:
        params = {"query": query, "key": api_key}
        if region:
            params["region"] = region
    response = _SESSION.get(f"{_BASE_URL}/textsearch/json", params=params, timeout=10)
    response.raise_for_status()
    payload = response.json()
    status = payload.get("status")
    if status not in SUCCESS_STATUSES:
        logger.error("text_search failed: status=%s, error_message=%s", status, payload.get("error_message"))
    return payload


def place_details(place_id: str, api_key: str, language: Optional[str] = None) -> Dict[str, Any]:
    params = {"place_id": place_id, "key": api_key, "fields": ",".join(DETAIL_FIELDS)}
    if language:
        params["language"] = language
    response = _SESSION.get(f"{_BASE_URL}/details/json", params=params, timeout=10)
    response.raise_for_status()
    payload = response.json()
    status = payload.get("status")
    if status not in SUCCESS_STATUSES:
        logger.error("place_details failed: status=%s, error_message=%s", status, payload.get("error_message"))
        raise PlacesDetailsError(payload.get("error_message") or status)
    return payload.get("result") or {}


class GooglePlacesProvider:
    """Adapts the raw Places calls to the pipeline's search/details contract."""

    def __init__(self, api_key: str, region: Optional[str] = None, language: Optional[str] = None) -> None:
        if not api_key:
            raise ValueError("api_key is required for Google Places requests")
        self.api_key = api_key
        self.region = region
        self.language = language

    def search(self, query: Query, page_token: Optional[str] = None) -> SearchPage:
        payload = text_search(
            query=query.text,
            api_key=self.api_key,
            pagetoken=page_token,
            region=query.region or self.region,
        )
        return to_search_page(payload)

    def details(self, place_id: str) -> Optional[PlaceDetails]:
        try:
            result = place_details(place_id=place_id, api_key=self.api_key, language=self.language)
        except (GooglePlacesError, requests.RequestException, ValueError) as exc:
            logger.warning("Failed to fetch details for %s: %s", place_id, exc)
            return None
        if not result:
            logger.warning("Empty details payload for %s", place_id)
            return None
        return to_place_details(result)
