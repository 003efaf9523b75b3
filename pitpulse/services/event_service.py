import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import select, func, asc, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..config import settings
from ..exceptions import ConflictError, NotFoundError
from ..models import Event, Checkin, Venue, Band

logger = logging.getLogger(__name__)


def _checkin_count():
    return (
        select(func.count(Checkin.id))
        .where(Checkin.event_id == Event.id)
        .correlate(Event)
        .scalar_subquery()
    )


class EventService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _enriched(self):
        """Events with venue/band loaded and a live check-in count column."""
        return select(Event, _checkin_count().label("checkin_count")).options(
            selectinload(Event.venue),
            selectinload(Event.band),
        )

    @staticmethod
    def _attach_counts(rows) -> list[Event]:
        events = []
        for event, count in rows:
            event.checkin_count = count or 0
            events.append(event)
        return events

    async def find(self, venue_id: int, band_id: int, event_date: date) -> Optional[Event]:
        res = await self.db.execute(
            select(Event).where(
                Event.venue_id == venue_id,
                Event.band_id == band_id,
                Event.event_date == event_date,
            )
        )
        return res.scalar_one_or_none()

    async def resolve_or_create(
        self,
        venue_id: int,
        band_id: int,
        event_date: date,
        event_name: Optional[str] = None,
        created_by_user_id: Optional[int] = None,
    ) -> Event:
        """Return the show for (venue, band, date), creating it on first sight."""
        venue = await self.db.scalar(
            select(Venue.id).where(Venue.id == venue_id, Venue.is_active.is_(True)))
        if venue is None:
            raise NotFoundError("Venue not found")
        band = await self.db.scalar(
            select(Band.id).where(Band.id == band_id, Band.is_active.is_(True)))
        if band is None:
            raise NotFoundError("Band not found")

        event = await self.find(venue_id, band_id, event_date)
        if event is None:
            event = Event(
                venue_id=venue_id,
                band_id=band_id,
                event_date=event_date,
                event_name=event_name,
                created_by_user_id=created_by_user_id,
                is_verified=False,
            )
            self.db.add(event)
            try:
                await self.db.commit()
                logger.info(f"Created event {event.id} (venue={venue_id}, band={band_id}, {event_date})")
            except IntegrityError:
                # Someone created the same show in between; use theirs
                await self.db.rollback()
                event = await self.find(venue_id, band_id, event_date)
                if event is None:
                    raise
        return await self.get_by_id(event.id)

    async def get_by_id(self, event_id: int) -> Event:
        res = await self.db.execute(
            self._enriched()
            .where(Event.id == event_id)
            .execution_options(populate_existing=True)
        )
        row = res.first()
        if row is None:
            raise NotFoundError("Event not found")
        return self._attach_counts([row])[0]

    async def _list(self, condition, upcoming: bool, limit: int) -> list[Event]:
        today = date.today()
        if upcoming:
            stmt = self._enriched().where(condition, Event.event_date >= today).order_by(
                asc(Event.event_date), asc(Event.id))
        else:
            stmt = self._enriched().where(condition, Event.event_date < today).order_by(
                desc(Event.event_date), desc(Event.id))
        res = await self.db.execute(stmt.limit(limit))
        return self._attach_counts(res.all())

    async def get_by_venue(self, venue_id: int, upcoming: bool = True, limit: int = 50) -> list[Event]:
        return await self._list(Event.venue_id == venue_id, upcoming, limit)

    async def get_by_band(self, band_id: int, upcoming: bool = True, limit: int = 50) -> list[Event]:
        return await self._list(Event.band_id == band_id, upcoming, limit)

    async def get_upcoming(self, limit: int = 50) -> list[Event]:
        res = await self.db.execute(
            self._enriched()
            .where(Event.event_date >= date.today())
            .order_by(asc(Event.event_date), desc(Event.created_at), desc(Event.id))
            .limit(limit)
        )
        return self._attach_counts(res.all())

    async def get_trending(self, limit: int = 20) -> list[Event]:
        since = date.today() - timedelta(days=settings.trending_window_days)
        count = _checkin_count()
        res = await self.db.execute(
            select(Event, count.label("checkin_count"))
            .options(selectinload(Event.venue), selectinload(Event.band))
            .where(Event.event_date >= since, count > 0)
            .order_by(desc(count), desc(Event.event_date), desc(Event.id))
            .limit(limit)
        )
        return self._attach_counts(res.all())

    async def delete(self, event_id: int) -> None:
        event = await self.db.get(Event, event_id)
        if event is None:
            raise NotFoundError("Event not found")
        checkins = await self.db.scalar(
            select(func.count(Checkin.id)).where(Checkin.event_id == event_id))
        if checkins:
            raise ConflictError("Cannot delete event with existing check-ins")
        await self.db.delete(event)
        await self.db.commit()
        logger.info(f"Deleted event {event_id}")
