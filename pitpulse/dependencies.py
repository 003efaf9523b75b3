from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .database import get_db
from .services.background import rating_updates
from .services.badge_service import BadgeService
from .services.band_service import BandService
from .services.checkin_service import CheckinService
from .services.event_service import EventService
from .services.review_service import ReviewService
from .services.user_service import UserService
from .services.venue_service import VenueService
from .utils import clamp_page


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


def get_venue_service(db: AsyncSession = Depends(get_db)) -> VenueService:
    return VenueService(db)


def get_band_service(db: AsyncSession = Depends(get_db)) -> BandService:
    return BandService(db)


def get_review_service(db: AsyncSession = Depends(get_db)) -> ReviewService:
    return ReviewService(db, rating_updates)


def get_event_service(db: AsyncSession = Depends(get_db)) -> EventService:
    return EventService(db)


def get_checkin_service(db: AsyncSession = Depends(get_db)) -> CheckinService:
    return CheckinService(db, rating_updates)


def get_badge_service(db: AsyncSession = Depends(get_db)) -> BadgeService:
    return BadgeService(db)


class Pagination:
    """page/limit query parameters, clamped to the configured page size bounds."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: Optional[int] = Query(None, ge=1),
    ):
        self.page, self.limit = clamp_page(
            page, limit, settings.default_page_size, settings.max_page_size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
