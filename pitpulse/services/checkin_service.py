import logging
from typing import Any, Mapping, Optional

from sqlalchemy import select, func, desc, asc, exists, literal, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..config import settings
from ..exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..models import Checkin, CheckinToast, CheckinComment, Event, UserFollower, Venue
from ..utils import (
    bounding_box, haversine_distance, longitude_ranges, validate_coordinates,
    validate_rating,
)
from .background import RatingUpdateQueue, rating_updates
from .event_service import EventService

logger = logging.getLogger(__name__)

FEED_FILTERS = ("friends", "nearby", "global")


class CheckinService:
    def __init__(self, db: AsyncSession, background: Optional[RatingUpdateQueue] = None):
        self.db = db
        self.background = background or rating_updates
        self.events = EventService(db)

    def _enriched(self, current_user_id: Optional[int]):
        toast_count = (
            select(func.count(CheckinToast.id))
            .where(CheckinToast.checkin_id == Checkin.id)
            .correlate(Checkin)
            .scalar_subquery()
        )
        comment_count = (
            select(func.count(CheckinComment.id))
            .where(CheckinComment.checkin_id == Checkin.id)
            .correlate(Checkin)
            .scalar_subquery()
        )
        if current_user_id is None:
            toasted = literal(False)
        else:
            toasted = exists().where(
                CheckinToast.checkin_id == Checkin.id,
                CheckinToast.user_id == current_user_id,
            )
        return select(
            Checkin,
            toast_count.label("toast_count"),
            comment_count.label("comment_count"),
            toasted.label("has_user_toasted"),
        ).options(
            selectinload(Checkin.user),
            selectinload(Checkin.event).selectinload(Event.venue),
            selectinload(Checkin.event).selectinload(Event.band),
        )

    @staticmethod
    def _attach_counts(rows) -> list[Checkin]:
        checkins = []
        for checkin, toasts, comments, toasted in rows:
            checkin.toast_count = toasts or 0
            checkin.comment_count = comments or 0
            checkin.has_user_toasted = bool(toasted)
            checkins.append(checkin)
        return checkins

    async def _require(self, checkin_id: int) -> Checkin:
        checkin = await self.db.get(Checkin, checkin_id)
        if checkin is None:
            raise NotFoundError("Check-in not found")
        return checkin

    async def create(self, user_id: int, data: Mapping[str, Any]) -> Checkin:
        venue_id = data.get("venue_id")
        band_id = data.get("band_id")
        event_date = data.get("event_date")
        if venue_id is None or band_id is None or event_date is None:
            raise ValidationError("venueId, bandId and eventDate are required")
        venue_rating = data.get("venue_rating")
        band_rating = data.get("band_rating")
        if venue_rating is not None:
            validate_rating(venue_rating, "Venue rating")
        if band_rating is not None:
            validate_rating(band_rating, "Band rating")

        event = await self.events.resolve_or_create(
            venue_id, band_id, event_date, created_by_user_id=user_id)

        already = await self.db.scalar(
            select(Checkin.id).where(Checkin.user_id == user_id, Checkin.event_id == event.id))
        if already is not None:
            raise ConflictError("User already checked into this event")

        checkin = Checkin(
            user_id=user_id,
            event_id=event.id,
            venue_rating=venue_rating,
            band_rating=band_rating,
            review_text=data.get("review_text"),
            image_urls=data.get("image_urls") or [],
        )
        self.db.add(checkin)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("User already checked into this event")
        logger.info(f"User {user_id} checked into event {event.id}")

        if venue_rating is not None:
            self.background.enqueue("venue", venue_id)
        if band_rating is not None:
            self.background.enqueue("band", band_id)
        return await self.get_by_id(checkin.id, user_id)

    async def get_by_id(self, checkin_id: int, current_user_id: Optional[int] = None) -> Checkin:
        res = await self.db.execute(
            self._enriched(current_user_id)
            .where(Checkin.id == checkin_id)
            .execution_options(populate_existing=True)
        )
        row = res.first()
        if row is None:
            raise NotFoundError("Check-in not found")
        return self._attach_counts([row])[0]

    async def _venues_near(self, latitude: float, longitude: float) -> list[int]:
        validate_coordinates(latitude, longitude)
        radius = settings.nearby_radius_km
        min_lat, max_lat, min_lng, max_lng = bounding_box(latitude, longitude, radius)
        res = await self.db.execute(
            select(Venue.id, Venue.latitude, Venue.longitude).where(
                Venue.is_active.is_(True),
                Venue.latitude.between(min_lat, max_lat),
                or_(*[
                    Venue.longitude.between(low, high)
                    for low, high in longitude_ranges(min_lng, max_lng)
                ]),
            )
        )
        return [
            venue_id for venue_id, lat, lng in res.all()
            if haversine_distance(latitude, longitude, lat, lng) <= radius
        ]

    async def get_activity_feed(
        self,
        user_id: int,
        filter: str = "friends",
        limit: int = 50,
        offset: int = 0,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> list[Checkin]:
        if filter not in FEED_FILTERS:
            raise ValidationError(f"Invalid feed filter '{filter}'")

        stmt = self._enriched(user_id)
        if filter == "friends":
            following = select(UserFollower.following_id).where(
                UserFollower.follower_id == user_id)
            stmt = stmt.where(Checkin.user_id.in_(following))
        elif filter == "nearby" and latitude is not None and longitude is not None:
            venue_ids = await self._venues_near(latitude, longitude)
            if not venue_ids:
                return []
            stmt = stmt.join(Event, Event.id == Checkin.event_id).where(
                Event.venue_id.in_(venue_ids))

        res = await self.db.execute(
            stmt.order_by(desc(Checkin.created_at), desc(Checkin.id))
            .offset(offset)
            .limit(limit)
        )
        return self._attach_counts(res.all())

    async def toast(self, user_id: int, checkin_id: int) -> None:
        await self._require(checkin_id)
        existing = await self.db.scalar(
            select(CheckinToast.id).where(
                CheckinToast.checkin_id == checkin_id, CheckinToast.user_id == user_id))
        if existing is not None:
            raise ConflictError("Already toasted this check-in")
        self.db.add(CheckinToast(checkin_id=checkin_id, user_id=user_id))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Already toasted this check-in")

    async def untoast(self, user_id: int, checkin_id: int) -> None:
        res = await self.db.execute(
            select(CheckinToast).where(
                CheckinToast.checkin_id == checkin_id, CheckinToast.user_id == user_id))
        toast = res.scalar_one_or_none()
        if toast is None:
            return
        await self.db.delete(toast)
        await self.db.commit()

    async def add_comment(self, user_id: int, checkin_id: int, text: Optional[str]) -> CheckinComment:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment text is required")
        await self._require(checkin_id)

        comment = CheckinComment(checkin_id=checkin_id, user_id=user_id, comment_text=text)
        self.db.add(comment)
        await self.db.commit()

        res = await self.db.execute(
            select(CheckinComment)
            .options(selectinload(CheckinComment.user))
            .where(CheckinComment.id == comment.id)
        )
        return res.scalar_one()

    async def get_comments(self, checkin_id: int, limit: int = 100, offset: int = 0) -> list[CheckinComment]:
        await self._require(checkin_id)
        res = await self.db.execute(
            select(CheckinComment)
            .options(selectinload(CheckinComment.user))
            .where(CheckinComment.checkin_id == checkin_id)
            .order_by(asc(CheckinComment.created_at), asc(CheckinComment.id))
            .offset(offset)
            .limit(limit)
        )
        return list(res.scalars().all())

    async def delete(self, user_id: int, checkin_id: int) -> None:
        checkin = await self._require(checkin_id)
        if checkin.user_id != user_id:
            raise ForbiddenError("Unauthorized to delete this check-in")
        event = await self.db.get(Event, checkin.event_id)
        rated_venue = checkin.venue_rating is not None
        rated_band = checkin.band_rating is not None

        # Toasts and comments go with it through the ORM cascade
        await self.db.delete(checkin)
        await self.db.commit()
        logger.info(f"User {user_id} deleted check-in {checkin_id}")

        if event is not None:
            if rated_venue:
                self.background.enqueue("venue", event.venue_id)
            if rated_band:
                self.background.enqueue("band", event.band_id)
