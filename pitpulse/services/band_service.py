import logging
from typing import Any, Mapping, Optional

from sqlalchemy import select, func, or_, asc, desc, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..models import Band
from ..utils import map_update_fields, total_pages

logger = logging.getLogger(__name__)

BAND_UPDATE_FIELDS = {
    "name": "name",
    "description": "description",
    "genre": "genre",
    "formedYear": "formed_year",
    "websiteUrl": "website_url",
    "spotifyUrl": "spotify_url",
    "instagramUrl": "instagram_url",
    "facebookUrl": "facebook_url",
    "imageUrl": "image_url",
    "hometown": "hometown",
}

BAND_SORT_COLUMNS = {
    "name": Band.name,
    "genre": Band.genre,
    "formed_year": Band.formed_year,
    "hometown": Band.hometown,
    "average_rating": Band.average_rating,
    "total_reviews": Band.total_reviews,
    "created_at": Band.created_at,
}

BAND_SOURCES = {"user_created", "musicbrainz"}


class BandService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: Mapping[str, Any]) -> Band:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Band name is required")
        source = data.get("source") or "user_created"
        if source not in BAND_SOURCES:
            raise ValidationError(f"Unknown band source '{source}'")

        band = Band(
            name=name,
            description=data.get("description"),
            genre=data.get("genre"),
            formed_year=data.get("formed_year"),
            website_url=data.get("website_url"),
            spotify_url=data.get("spotify_url"),
            instagram_url=data.get("instagram_url"),
            facebook_url=data.get("facebook_url"),
            image_url=data.get("image_url"),
            hometown=data.get("hometown"),
            musicbrainz_id=data.get("musicbrainz_id"),
            source=source,
            average_rating=0.0,
            total_reviews=0,
            is_active=True,
        )
        self.db.add(band)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Band with this MusicBrainz id already exists")
        await self.db.refresh(band)
        return band

    async def get_by_id(self, band_id: int) -> Optional[Band]:
        res = await self.db.execute(
            select(Band).where(Band.id == band_id, Band.is_active.is_(True)))
        return res.scalar_one_or_none()

    async def require(self, band_id: int) -> Band:
        band = await self.get_by_id(band_id)
        if band is None:
            raise NotFoundError("Band not found")
        return band

    async def search(
        self,
        q: str = "",
        genre: Optional[str] = None,
        rating: Optional[float] = None,
        page: int = 1,
        limit: int = 20,
        sort: str = "name",
        order: str = "asc",
    ) -> dict:
        conditions = [Band.is_active.is_(True)]
        term = (q or "").strip()
        if term:
            pattern = f"%{term}%"
            conditions.append(or_(
                Band.name.ilike(pattern),
                Band.description.ilike(pattern),
                Band.genre.ilike(pattern),
                Band.hometown.ilike(pattern),
            ))
        if genre:
            conditions.append(Band.genre.ilike(f"%{genre}%"))
        if rating:
            conditions.append(Band.average_rating >= rating)

        sort_column = BAND_SORT_COLUMNS.get(sort, Band.name)
        direction = desc if order == "desc" else asc

        total = await self.db.scalar(
            select(func.count(Band.id)).where(*conditions)) or 0
        res = await self.db.execute(
            select(Band)
            .where(*conditions)
            .order_by(direction(sort_column), asc(Band.id))
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return {
            "items": list(res.scalars().all()),
            "total": total,
            "page": page,
            "total_pages": total_pages(total, limit),
        }

    async def update(self, band_id: int, changes: Mapping[str, Any]) -> Band:
        values = map_update_fields(changes, BAND_UPDATE_FIELDS)
        if "name" in values and not (values["name"] or "").strip():
            raise ValidationError("Band name cannot be empty")
        band = await self.get_by_id(band_id)
        if band is None:
            raise NotFoundError("Band not found or inactive")
        for attr, value in values.items():
            setattr(band, attr, value)
        await self.db.commit()
        await self.db.refresh(band)
        return band

    async def delete(self, band_id: int) -> None:
        band = await self.get_by_id(band_id)
        if band is None:
            raise NotFoundError("Band not found")
        band.is_active = False
        await self.db.commit()
        logger.info(f"Deactivated band {band_id}")

    async def get_popular(self, limit: int = 10) -> list[Band]:
        volume = case(
            (Band.total_reviews >= 50, 1.0),
            else_=Band.total_reviews / 50.0,
        )
        score = Band.average_rating * 0.7 + volume * 0.3
        res = await self.db.execute(
            select(Band)
            .where(Band.is_active.is_(True), Band.total_reviews >= 5)
            .order_by(desc(score), asc(Band.id))
            .limit(limit)
        )
        return list(res.scalars().all())

    async def get_trending(self, limit: int = 10) -> list[Band]:
        # Newest additions first, best rated among those
        res = await self.db.execute(
            select(Band)
            .where(Band.is_active.is_(True))
            .order_by(desc(Band.created_at), desc(Band.average_rating), desc(Band.id))
            .limit(limit)
        )
        return list(res.scalars().all())

    async def get_by_genre(self, genre: str, limit: int = 20) -> list[Band]:
        res = await self.db.execute(
            select(Band)
            .where(Band.is_active.is_(True), Band.genre.ilike(f"%{genre}%"))
            .order_by(desc(Band.average_rating), desc(Band.total_reviews), asc(Band.id))
            .limit(limit)
        )
        return list(res.scalars().all())

    async def get_genres(self) -> list[str]:
        res = await self.db.execute(
            select(Band.genre)
            .where(Band.is_active.is_(True), Band.genre.is_not(None), Band.genre != "")
            .distinct()
            .order_by(Band.genre)
        )
        return [genre for genre in res.scalars().all()]
