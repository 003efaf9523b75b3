"""
Aggregate rating maintenance for venues and bands.

The aggregate is a pure function of the current rows: every review rating
for the target plus every check-in rating supplied for it.
"""

import logging

from sqlalchemy import select, func, update, union_all
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Venue, Band, Review, Checkin, Event

logger = logging.getLogger(__name__)


async def _aggregate(db: AsyncSession, review_q, checkin_q) -> tuple[float, int]:
    ratings = union_all(review_q, checkin_q).subquery()
    row = (await db.execute(
        select(func.avg(ratings.c.rating), func.count()).select_from(ratings)
    )).one()
    average, count = row
    return float(average or 0.0), int(count or 0)


async def compute_venue_rating(db: AsyncSession, venue_id: int) -> tuple[float, int]:
    review_q = select(Review.rating.label("rating")).where(
        Review.venue_id == venue_id)
    checkin_q = (
        select(Checkin.venue_rating.label("rating"))
        .join(Event, Event.id == Checkin.event_id)
        .where(Event.venue_id == venue_id, Checkin.venue_rating.is_not(None))
    )
    return await _aggregate(db, review_q, checkin_q)


async def compute_band_rating(db: AsyncSession, band_id: int) -> tuple[float, int]:
    review_q = select(Review.rating.label("rating")).where(
        Review.band_id == band_id)
    checkin_q = (
        select(Checkin.band_rating.label("rating"))
        .join(Event, Event.id == Checkin.event_id)
        .where(Event.band_id == band_id, Checkin.band_rating.is_not(None))
    )
    return await _aggregate(db, review_q, checkin_q)


async def update_venue_rating(db: AsyncSession, venue_id: int) -> None:
    average, count = await compute_venue_rating(db, venue_id)
    await db.execute(
        update(Venue)
        .where(Venue.id == venue_id)
        .values(average_rating=average, total_reviews=count)
    )
    await db.commit()
    logger.debug(f"Venue {venue_id} rating -> {average:.2f} over {count}")


async def update_band_rating(db: AsyncSession, band_id: int) -> None:
    average, count = await compute_band_rating(db, band_id)
    await db.execute(
        update(Band)
        .where(Band.id == band_id)
        .values(average_rating=average, total_reviews=count)
    )
    await db.commit()
    logger.debug(f"Band {band_id} rating -> {average:.2f} over {count}")
