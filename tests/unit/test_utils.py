import pytest

from pitpulse.exceptions import ValidationError
from pitpulse.utils import (
    bounding_box, clamp_page, haversine_distance, longitude_ranges,
    map_update_fields, total_pages,
    validate_coordinates, validate_email, validate_password, validate_rating,
    validate_username,
)
from pitpulse.services.venue_service import VENUE_UPDATE_FIELDS


class TestValidators:
    def test_email(self):
        assert validate_email("fan@pitpulse.app")
        assert not validate_email("fan@pitpulse")
        assert not validate_email("")
        assert not validate_email("two words@pitpulse.app")

    def test_username(self):
        assert validate_username("moshpit_mike") == []
        assert validate_username("ab") == ["Username must be at least 3 characters long"]
        assert any("start or end" in e for e in validate_username("_mike"))
        assert any("only contain" in e for e in validate_username("mike!"))
        assert any("no more than 30" in e for e in validate_username("m" * 31))

    def test_password(self):
        assert validate_password("Sup3r$ecret") == []
        errors = validate_password("short")
        assert "Password must be at least 8 characters long" in errors
        assert "Password must contain at least one uppercase letter" in errors
        assert "Password must contain at least one number" in errors
        assert any("special character" in e for e in errors)

    def test_password_byte_limit(self):
        long_password = "Aa1$" + "x" * 80
        assert "Password must be no more than 72 bytes long" in validate_password(long_password)


class TestRating:
    @pytest.mark.parametrize("value", [1, 3, 5])
    def test_accepts_whole_numbers(self, value):
        assert validate_rating(value) == value

    @pytest.mark.parametrize("value", [0, 6, -1, 2.5, "3", True, None])
    def test_rejects_everything_else(self, value):
        with pytest.raises(ValidationError):
            validate_rating(value)

    def test_label_in_message(self):
        with pytest.raises(ValidationError, match="Band rating"):
            validate_rating(9, "Band rating")


class TestFieldMapping:
    def test_maps_camel_case_keys(self):
        values = map_update_fields(
            {"postalCode": "90069", "venueType": "club", "bogus": 1}, VENUE_UPDATE_FIELDS)
        assert values == {"postal_code": "90069", "venue_type": "club"}

    def test_snake_case_keys_are_not_accepted(self):
        with pytest.raises(ValidationError, match="No valid fields to update"):
            map_update_fields({"postal_code": "90069"}, VENUE_UPDATE_FIELDS)

    def test_empty_payload(self):
        with pytest.raises(ValidationError):
            map_update_fields({}, VENUE_UPDATE_FIELDS)


class TestPaging:
    def test_total_pages(self):
        assert total_pages(0, 20) == 0
        assert total_pages(20, 20) == 1
        assert total_pages(21, 20) == 2

    def test_clamp_page(self):
        assert clamp_page(None, None, 20, 100) == (1, 20)
        assert clamp_page(0, 500, 20, 100) == (1, 100)
        assert clamp_page(3, 10, 20, 100) == (3, 10)


class TestGeo:
    def test_haversine_known_distance(self):
        # Los Angeles to San Francisco is roughly 559 km
        distance = haversine_distance(34.0522, -118.2437, 37.7749, -122.4194)
        assert distance == pytest.approx(559, rel=0.01)

    def test_same_point(self):
        assert haversine_distance(10, 10, 10, 10) == 0

    @pytest.mark.parametrize("lat,lng", [(90.1, 0), (0, -180.5)])
    def test_rejects_out_of_range(self, lat, lng):
        with pytest.raises(ValidationError):
            validate_coordinates(lat, lng)

    def test_longitude_ranges_inside_bounds(self):
        assert longitude_ranges(-119.0, -118.0) == [(-119.0, -118.0)]

    def test_longitude_ranges_wrap_west(self):
        _, _, min_lng, max_lng = bounding_box(-16.5, -179.95, 50)
        ranges = longitude_ranges(min_lng, max_lng)
        assert len(ranges) == 2
        assert ranges[1] == (-180.0, max_lng)
        low, high = ranges[0]
        assert high == 180.0
        assert low <= 179.95 <= high

    def test_longitude_ranges_wrap_east(self):
        assert longitude_ranges(179.5, 180.5) == [(179.5, 180.0), (-180.0, -179.5)]

    def test_longitude_ranges_whole_circle(self):
        assert longitude_ranges(-250.0, 150.0) == [(-180.0, 180.0)]
