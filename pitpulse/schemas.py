from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List, Generic, TypeVar
from enum import Enum
from datetime import datetime, date

T = TypeVar("T")


class CamelModel(BaseModel):
    """Wire models use camelCase keys; Python code uses snake_case attributes"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class Paginated(CamelModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    total_pages: int


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


# Users

class RegisterRequest(CamelModel):
    email: str = Field(..., examples=["fan@pitpulse.app"])
    password: str = Field(..., examples=["Sup3r$ecret"])
    username: str = Field(..., examples=["moshpit_mike"])
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class LoginRequest(CamelModel):
    email: str
    password: str


class UserUpdate(CamelModel):
    model_config = ConfigDict(extra="ignore")

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    location: Optional[str] = None
    date_of_birth: Optional[date] = None


class UserResponse(CamelModel):
    id: int
    email: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    location: Optional[str] = None
    date_of_birth: Optional[date] = None
    is_verified: bool
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PublicUserResponse(CamelModel):
    id: int
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    location: Optional[str] = None
    is_verified: bool = False
    created_at: Optional[datetime] = None


class UserSummary(CamelModel):
    id: int
    username: str
    profile_image_url: Optional[str] = None


class UserStats(CamelModel):
    review_count: int = 0
    checkin_count: int = 0
    badge_count: int = 0
    follower_count: int = 0
    following_count: int = 0


class ProfileResponse(UserResponse):
    stats: UserStats


class AuthResponse(CamelModel):
    user: UserResponse
    token: str


class PublicProfileResponse(PublicUserResponse):
    stats: UserStats


class AvailabilityResponse(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    available: bool


class FollowStatusResponse(CamelModel):
    following: bool


class FollowUserResponse(UserSummary):
    followed_at: Optional[datetime] = None


# Venues

class VenueBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["The Roxy"])
    description: Optional[str] = None
    address: Optional[str] = Field(None, examples=["9009 Sunset Blvd"])
    city: Optional[str] = Field(None, examples=["West Hollywood"])
    state: Optional[str] = Field(None, examples=["CA"])
    country: Optional[str] = Field(None, examples=["USA"])
    postal_code: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90, examples=[34.0907])
    longitude: Optional[float] = Field(None, ge=-180, le=180, examples=[-118.3897])
    website_url: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=0, examples=[500])
    venue_type: Optional[str] = Field(None, examples=["club"])
    image_url: Optional[str] = None


class VenueCreate(VenueBase):
    foursquare_place_id: Optional[str] = None
    setlistfm_venue_id: Optional[str] = None
    source: Optional[str] = None


class VenueUpdate(VenueBase):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(None, min_length=1, max_length=255)


class VenueResponse(VenueBase):
    id: int
    average_rating: float = 0.0
    total_reviews: int = 0
    is_active: bool = True
    foursquare_place_id: Optional[str] = None
    setlistfm_venue_id: Optional[str] = None
    source: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NearbyVenueResponse(VenueResponse):
    distance_km: float


class VenueSummary(CamelModel):
    id: int
    name: str
    city: Optional[str] = None
    state: Optional[str] = None
    image_url: Optional[str] = None


# Bands

class BandBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["Turnstile"])
    description: Optional[str] = None
    genre: Optional[str] = Field(None, examples=["Hardcore"])
    formed_year: Optional[int] = Field(None, ge=1900, le=2100, examples=[2010])
    website_url: Optional[str] = None
    spotify_url: Optional[str] = None
    instagram_url: Optional[str] = None
    facebook_url: Optional[str] = None
    image_url: Optional[str] = None
    hometown: Optional[str] = Field(None, examples=["Baltimore, MD"])


class BandCreate(BandBase):
    musicbrainz_id: Optional[str] = None
    source: Optional[str] = None


class BandUpdate(BandBase):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(None, min_length=1, max_length=255)


class BandResponse(BandBase):
    id: int
    average_rating: float = 0.0
    total_reviews: int = 0
    is_active: bool = True
    musicbrainz_id: Optional[str] = None
    source: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BandSummary(CamelModel):
    id: int
    name: str
    genre: Optional[str] = None
    image_url: Optional[str] = None


# Reviews

class ReviewCreate(CamelModel):
    venue_id: Optional[int] = None
    band_id: Optional[int] = None
    rating: int = Field(..., strict=True, examples=[4])
    title: Optional[str] = Field(None, max_length=255)
    content: Optional[str] = None
    event_date: Optional[date] = None
    image_urls: Optional[List[str]] = None


class ReviewUpdate(CamelModel):
    model_config = ConfigDict(extra="ignore")

    rating: Optional[int] = Field(None, strict=True)
    title: Optional[str] = Field(None, max_length=255)
    content: Optional[str] = None
    event_date: Optional[date] = None
    image_urls: Optional[List[str]] = None


class HelpfulRequest(CamelModel):
    is_helpful: bool = True


class ReviewResponse(CamelModel):
    id: int
    user_id: int
    venue_id: Optional[int] = None
    band_id: Optional[int] = None
    rating: int
    title: Optional[str] = None
    content: Optional[str] = None
    event_date: Optional[date] = None
    image_urls: Optional[List[str]] = None
    is_verified: bool = False
    helpful_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[UserSummary] = None
    venue: Optional[VenueSummary] = None
    band: Optional[BandSummary] = None


# Events

class EventCreate(CamelModel):
    venue_id: int
    band_id: int
    event_date: date = Field(..., examples=["2024-06-01"])
    event_name: Optional[str] = Field(None, max_length=255)


class EventResponse(CamelModel):
    id: int
    venue_id: int
    band_id: int
    event_date: date
    event_name: Optional[str] = None
    created_by_user_id: Optional[int] = None
    is_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    venue: Optional[VenueSummary] = None
    band: Optional[BandSummary] = None
    checkin_count: int = 0


class EventSummary(CamelModel):
    id: int
    event_date: date
    event_name: Optional[str] = None
    venue: VenueSummary
    band: BandSummary


# Check-ins

class FeedFilter(str, Enum):
    friends = "friends"
    nearby = "nearby"
    global_ = "global"


class CheckinCreate(CamelModel):
    venue_id: int
    band_id: int
    event_date: date
    venue_rating: Optional[int] = Field(None, strict=True)
    band_rating: Optional[int] = Field(None, strict=True)
    review_text: Optional[str] = None
    image_urls: Optional[List[str]] = None


class CheckinResponse(CamelModel):
    id: int
    user_id: int
    event_id: int
    venue_rating: Optional[int] = None
    band_rating: Optional[int] = None
    review_text: Optional[str] = None
    image_urls: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[UserSummary] = None
    event: Optional[EventSummary] = None
    toast_count: int = 0
    comment_count: int = 0
    has_user_toasted: bool = False


class CommentCreate(CamelModel):
    comment_text: str = Field(..., examples=["Best pit of the year"])


class CommentResponse(CamelModel):
    id: int
    checkin_id: int
    user_id: int
    comment_text: str
    created_at: Optional[datetime] = None
    user: Optional[UserSummary] = None


# Badges

class BadgeResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    icon_url: Optional[str] = None
    badge_type: str
    requirement_value: int
    color: Optional[str] = None
    created_at: Optional[datetime] = None


class UserBadgeResponse(CamelModel):
    id: int
    user_id: int
    badge_id: int
    earned_at: Optional[datetime] = None
    badge: BadgeResponse


class BadgeProgressResponse(CamelModel):
    badge: BadgeResponse
    current_value: int
    progress: int


class BadgeAwardResult(CamelModel):
    new_badges: List[BadgeResponse]
    count: int


class LeaderboardEntry(CamelModel):
    user: UserSummary
    badge_count: int
    recent_badges: List[BadgeResponse]
