import re
from math import asin, ceil, cos, radians, sin, sqrt
from typing import Any, Dict, Mapping, Optional

from .exceptions import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USERNAME_RE = re.compile(r"^[a-zA-Z0-9_.-]+$")
PASSWORD_SPECIALS = "@$!%*?&"


def validate_email(email: str) -> bool:
    return bool(email) and EMAIL_RE.match(email) is not None


def validate_username(username: str) -> list[str]:
    """Return the list of rule violations for a username (empty when valid)."""
    errors = []
    if len(username) < 3:
        errors.append("Username must be at least 3 characters long")
    if len(username) > 30:
        errors.append("Username must be no more than 30 characters long")
    if not USERNAME_RE.match(username):
        errors.append(
            "Username can only contain letters, numbers, dots, hyphens, and underscores")
    if username[:1] in "._-" or username[-1:] in "._-":
        errors.append(
            "Username cannot start or end with dots, hyphens, or underscores")
    return errors


def validate_password(password: str) -> list[str]:
    """Return the list of strength violations for a password (empty when valid)."""
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not any(c.islower() for c in password):
        errors.append("Password must contain at least one lowercase letter")
    if not any(c.isupper() for c in password):
        errors.append("Password must contain at least one uppercase letter")
    if not any(c.isdigit() for c in password):
        errors.append("Password must contain at least one number")
    if not any(c in PASSWORD_SPECIALS for c in password):
        errors.append(
            f"Password must contain at least one special character ({PASSWORD_SPECIALS})")
    if len(password.encode("utf-8")) > 72:
        errors.append("Password must be no more than 72 bytes long")
    return errors


def validate_rating(value: Any, label: str = "Rating") -> int:
    """Accept only integers 1-5 (bools and floats are rejected)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{label} must be a whole number between 1 and 5")
    if value < 1 or value > 5:
        raise ValidationError(f"{label} must be between 1 and 5")
    return value


def map_update_fields(changes: Mapping[str, Any], field_map: Mapping[str, str]) -> Dict[str, Any]:
    """
    Translate a camelCase update payload into model attribute names.

    Only keys present in ``field_map`` survive; anything else is dropped.
    Raises ValidationError when nothing is left to write.
    """
    values = {
        field_map[key]: value
        for key, value in changes.items()
        if key in field_map
    }
    if not values:
        raise ValidationError("No valid fields to update")
    return values


def total_pages(total: int, limit: int) -> int:
    return ceil(total / limit) if limit else 0


def clamp_page(page: Optional[int], limit: Optional[int], default_limit: int, max_limit: int) -> tuple[int, int]:
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else default_limit
    return page, min(limit, max_limit)


def validate_coordinates(latitude: float, longitude: float) -> None:
    if latitude < -90 or latitude > 90:
        raise ValidationError("Latitude must be between -90 and 90")
    if longitude < -180 or longitude > 180:
        raise ValidationError("Longitude must be between -180 and 180")


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute great-circle distance between two points in kilometers using the Haversine formula."""
    lat1_r, lon1_r, lat2_r, lon2_r = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2_r - lat1_r
    dlon = lon2_r - lon1_r
    a = sin(dlat / 2) ** 2 + cos(lat1_r) * cos(lat2_r) * sin(dlon / 2) ** 2
    c = 2 * asin(sqrt(a))
    earth_radius_km = 6371.0
    return earth_radius_km * c


def bounding_box(latitude: float, longitude: float, radius_km: float) -> tuple[float, float, float, float]:
    """Rough lat/lng box around a point, used to pre-filter before haversine."""
    lat_delta = radius_km / 111.0
    cos_lat = cos(radians(latitude))
    lng_delta = 180.0 if abs(cos_lat) < 1e-6 else radius_km / (111.0 * abs(cos_lat))
    return (
        latitude - lat_delta,
        latitude + lat_delta,
        longitude - lng_delta,
        longitude + lng_delta,
    )


def longitude_ranges(min_lng: float, max_lng: float) -> list[tuple[float, float]]:
    """
    Split a longitude span into ranges that stay inside [-180, 180].

    A box that crosses the antimeridian becomes two ranges, one on each side.
    """
    if max_lng - min_lng >= 360:
        return [(-180.0, 180.0)]
    if min_lng < -180:
        return [(min_lng + 360, 180.0), (-180.0, max_lng)]
    if max_lng > 180:
        return [(min_lng, 180.0), (-180.0, max_lng - 360)]
    return [(min_lng, max_lng)]
