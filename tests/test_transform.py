from leadmap.etl import transform
from leadmap.models import Candidate, ScoreResult


def _details_payload(**overrides):
    payload = {
        "name": "Pollería El Dorado",
        "formatted_address": "Jr. Real 123, Huancayo 12001, Perú",
        "formatted_phone_number": "064 123456",
        "rating": 4.6,
        "user_ratings_total": 120,
        "geometry": {"location": {"lat": -12.06, "lng": -75.2}},
        "url": "https://maps.google.com/?cid=1",
        "opening_hours": {"weekday_text": ["lunes: 12:00–22:00"]},
        "business_status": "OPERATIONAL",
    }
    payload.update(overrides)
    return payload


def test_to_search_page_skips_results_without_place_id():
    page = transform.to_search_page(
        {
            "status": "OK",
            "results": [
                {"place_id": "a", "geometry": {"location": {"lat": 1, "lng": 2}}},
                {"name": "no id"},
            ],
            "next_page_token": "tok",
        }
    )

    assert page.status == "OK"
    assert page.candidates == [Candidate(place_id="a", lat=1.0, lng=2.0)]
    assert page.next_page_token == "tok"


def test_to_search_page_last_page_has_no_token():
    page = transform.to_search_page({"status": "ZERO_RESULTS", "results": []})
    assert page.candidates == []
    assert page.next_page_token is None


def test_to_place_details_maps_fields():
    details = transform.to_place_details(_details_payload())

    assert details.name == "Pollería El Dorado"
    assert details.phone == "064 123456"
    assert details.website is None
    assert details.rating == 4.6
    assert details.review_count == 120
    assert details.opening_hours == ["lunes: 12:00–22:00"]
    assert (details.lat, details.lng) == (-12.06, -75.2)


def test_to_place_details_without_hours():
    details = transform.to_place_details(_details_payload(opening_hours=None, rating=None))
    assert details.opening_hours is None
    assert details.rating is None


def test_to_scored_business_falls_back_to_candidate_location():
    details = transform.to_place_details(_details_payload(geometry={}, website=""))
    candidate = Candidate(place_id="a", lat=-12.0, lng=-75.0)
    result = ScoreResult(score=60, priority="medium", has_website=False)

    business = transform.to_scored_business(candidate, details, result, category="pollerías", query="q")
    record = business.to_dict()

    assert record["location"] == {"lat": -12.0, "lng": -75.0}
    assert record["website"] is None
    assert record["category"] == "pollerías"
    assert business.query == "q"


def test_slugify_strips_accents_and_spaces():
    assert transform.slugify("Colegios  Privados") == "colegios_privados"
    assert transform.slugify("Clínicas") == "clinicas"
