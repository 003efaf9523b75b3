import logging
from typing import Any, Mapping, Optional

from sqlalchemy import select, func, or_, asc, desc, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..models import Venue
from ..utils import (
    bounding_box, haversine_distance, longitude_ranges, map_update_fields,
    total_pages, validate_coordinates,
)

logger = logging.getLogger(__name__)

VENUE_UPDATE_FIELDS = {
    "name": "name",
    "description": "description",
    "address": "address",
    "city": "city",
    "state": "state",
    "country": "country",
    "postalCode": "postal_code",
    "latitude": "latitude",
    "longitude": "longitude",
    "websiteUrl": "website_url",
    "phone": "phone",
    "email": "email",
    "capacity": "capacity",
    "venueType": "venue_type",
    "imageUrl": "image_url",
}

VENUE_SORT_COLUMNS = {
    "name": Venue.name,
    "city": Venue.city,
    "average_rating": Venue.average_rating,
    "total_reviews": Venue.total_reviews,
    "capacity": Venue.capacity,
    "created_at": Venue.created_at,
}

VENUE_SOURCES = {"user_created", "foursquare", "setlistfm"}


class VenueService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: Mapping[str, Any]) -> Venue:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Venue name is required")
        source = data.get("source") or "user_created"
        if source not in VENUE_SOURCES:
            raise ValidationError(f"Unknown venue source '{source}'")

        venue = Venue(
            name=name,
            description=data.get("description"),
            address=data.get("address"),
            city=data.get("city"),
            state=data.get("state"),
            country=data.get("country"),
            postal_code=data.get("postal_code"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            website_url=data.get("website_url"),
            phone=data.get("phone"),
            email=data.get("email"),
            capacity=data.get("capacity"),
            venue_type=data.get("venue_type"),
            image_url=data.get("image_url"),
            foursquare_place_id=data.get("foursquare_place_id"),
            setlistfm_venue_id=data.get("setlistfm_venue_id"),
            source=source,
            average_rating=0.0,
            total_reviews=0,
            is_active=True,
        )
        self.db.add(venue)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Venue with this external id already exists")
        await self.db.refresh(venue)
        return venue

    async def get_by_id(self, venue_id: int) -> Optional[Venue]:
        res = await self.db.execute(
            select(Venue).where(Venue.id == venue_id, Venue.is_active.is_(True)))
        return res.scalar_one_or_none()

    async def require(self, venue_id: int) -> Venue:
        venue = await self.get_by_id(venue_id)
        if venue is None:
            raise NotFoundError("Venue not found")
        return venue

    async def search(
        self,
        q: str = "",
        city: Optional[str] = None,
        venue_type: Optional[str] = None,
        rating: Optional[float] = None,
        page: int = 1,
        limit: int = 20,
        sort: str = "name",
        order: str = "asc",
    ) -> dict:
        conditions = [Venue.is_active.is_(True)]
        term = (q or "").strip()
        if term:
            pattern = f"%{term}%"
            conditions.append(or_(
                Venue.name.ilike(pattern),
                Venue.description.ilike(pattern),
                Venue.city.ilike(pattern),
            ))
        if city:
            conditions.append(Venue.city.ilike(f"%{city}%"))
        if venue_type:
            conditions.append(Venue.venue_type == venue_type)
        if rating:
            conditions.append(Venue.average_rating >= rating)

        sort_column = VENUE_SORT_COLUMNS.get(sort, Venue.name)
        direction = desc if order == "desc" else asc

        total = await self.db.scalar(
            select(func.count(Venue.id)).where(*conditions))
        res = await self.db.execute(
            select(Venue)
            .where(*conditions)
            .order_by(direction(sort_column), asc(Venue.id))
            .offset((page - 1) * limit)
            .limit(limit)
        )
        total = total or 0
        return {
            "items": list(res.scalars().all()),
            "total": total,
            "page": page,
            "total_pages": total_pages(total, limit),
        }

    async def update(self, venue_id: int, changes: Mapping[str, Any]) -> Venue:
        values = map_update_fields(changes, VENUE_UPDATE_FIELDS)
        if "name" in values and not (values["name"] or "").strip():
            raise ValidationError("Venue name cannot be empty")
        venue = await self.get_by_id(venue_id)
        if venue is None:
            raise NotFoundError("Venue not found or inactive")
        for attr, value in values.items():
            setattr(venue, attr, value)
        await self.db.commit()
        await self.db.refresh(venue)
        return venue

    async def delete(self, venue_id: int) -> None:
        """Soft delete; reviews and events referencing the venue stay in place."""
        venue = await self.get_by_id(venue_id)
        if venue is None:
            raise NotFoundError("Venue not found")
        venue.is_active = False
        await self.db.commit()
        logger.info(f"Deactivated venue {venue_id}")

    async def get_popular(self, limit: int = 10) -> list[Venue]:
        volume = case(
            (Venue.total_reviews >= 100, 1.0),
            else_=Venue.total_reviews / 100.0,
        )
        score = Venue.average_rating * 0.7 + volume * 0.3
        res = await self.db.execute(
            select(Venue)
            .where(Venue.is_active.is_(True), Venue.total_reviews >= 5)
            .order_by(desc(score), asc(Venue.id))
            .limit(limit)
        )
        return list(res.scalars().all())

    async def get_near(
        self,
        latitude: float,
        longitude: float,
        radius_km: float = 50,
        limit: int = 20,
    ) -> list[tuple[Venue, float]]:
        """Active venues within ``radius_km``, nearest first, as (venue, km) pairs."""
        validate_coordinates(latitude, longitude)
        if radius_km <= 0:
            raise ValidationError("Radius must be positive")

        min_lat, max_lat, min_lng, max_lng = bounding_box(
            latitude, longitude, radius_km)
        res = await self.db.execute(
            select(Venue).where(
                Venue.is_active.is_(True),
                Venue.latitude.is_not(None),
                Venue.longitude.is_not(None),
                Venue.latitude.between(min_lat, max_lat),
                or_(*[
                    Venue.longitude.between(low, high)
                    for low, high in longitude_ranges(min_lng, max_lng)
                ]),
            )
        )
        nearby = []
        for venue in res.scalars().all():
            distance = haversine_distance(
                latitude, longitude, venue.latitude, venue.longitude)
            if distance <= radius_km:
                nearby.append((venue, distance))
        nearby.sort(key=lambda pair: pair[1])
        return nearby[:limit]
