"""Unit tests for request/response schemas and their camelCase wire format."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from pitpulse.schemas import (
    ApiResponse, CheckinCreate, FeedFilter, Paginated, ReviewCreate,
    UserUpdate, VenueResponse, VenueUpdate,
)


class TestReviewCreate:
    def test_accepts_camel_case(self):
        review = ReviewCreate.model_validate({"venueId": 3, "rating": 4, "eventDate": "2024-06-01"})
        assert review.venue_id == 3
        assert review.band_id is None
        assert review.event_date.isoformat() == "2024-06-01"

    @pytest.mark.parametrize("rating", [4.5, "4", True])
    def test_rating_must_be_an_integer(self, rating):
        with pytest.raises(PydanticValidationError):
            ReviewCreate.model_validate({"bandId": 1, "rating": rating})

    def test_rating_is_required(self):
        with pytest.raises(PydanticValidationError):
            ReviewCreate.model_validate({"bandId": 1})


class TestUpdates:
    def test_unknown_fields_are_dropped(self):
        update = UserUpdate.model_validate({"bio": "hi", "isVerified": True})
        assert update.model_dump(by_alias=True, exclude_unset=True) == {"bio": "hi"}

    def test_venue_update_dumps_camel_case(self):
        update = VenueUpdate.model_validate({"postalCode": "90069"})
        assert update.model_dump(by_alias=True, exclude_unset=True) == {"postalCode": "90069"}


def test_checkin_requires_show_identity():
    with pytest.raises(PydanticValidationError):
        CheckinCreate.model_validate({"venueId": 1, "bandId": 2})


def test_feed_filter_values():
    assert FeedFilter("global") is FeedFilter.global_
    with pytest.raises(ValueError):
        FeedFilter("sideways")


def test_envelope_serializes_with_aliases():
    venue = VenueResponse(id=1, name="The Roxy", average_rating=4.5, total_reviews=2)
    page = Paginated[VenueResponse](items=[venue], total=1, page=1, total_pages=1)
    body = ApiResponse[Paginated[VenueResponse]](data=page).model_dump(by_alias=True)
    assert body["success"] is True
    assert body["data"]["totalPages"] == 1
    assert body["data"]["items"][0]["averageRating"] == 4.5
