import logging
from typing import Any, Mapping, Optional

from sqlalchemy import select, func, or_, asc, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..models import Review, ReviewHelpfulness, Venue, Band
from ..utils import map_update_fields, total_pages, validate_rating
from .background import RatingUpdateQueue, rating_updates
from .rating_service import update_band_rating, update_venue_rating

logger = logging.getLogger(__name__)

REVIEW_UPDATE_FIELDS = {
    "rating": "rating",
    "title": "title",
    "content": "content",
    "eventDate": "event_date",
    "imageUrls": "image_urls",
}

REVIEW_SORT_COLUMNS = {
    "created_at": Review.created_at,
    "rating": Review.rating,
    "helpful_count": Review.helpful_count,
}


class ReviewService:
    def __init__(self, db: AsyncSession, background: Optional[RatingUpdateQueue] = None):
        self.db = db
        self.background = background or rating_updates

    def _with_relations(self):
        return select(Review).options(
            selectinload(Review.user),
            selectinload(Review.venue),
            selectinload(Review.band),
        )

    async def _require_target(self, venue_id: Optional[int], band_id: Optional[int]) -> None:
        if venue_id is not None:
            found = await self.db.scalar(
                select(Venue.id).where(Venue.id == venue_id, Venue.is_active.is_(True)))
            if found is None:
                raise NotFoundError("Venue not found")
        else:
            found = await self.db.scalar(
                select(Band.id).where(Band.id == band_id, Band.is_active.is_(True)))
            if found is None:
                raise NotFoundError("Band not found")

    async def _recompute(self, venue_id: Optional[int], band_id: Optional[int]) -> None:
        # A failed recompute must not undo the review write that triggered it
        try:
            if venue_id is not None:
                await update_venue_rating(self.db, venue_id)
            if band_id is not None:
                await update_band_rating(self.db, band_id)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Rating recompute failed for venue={venue_id} band={band_id}: {e}")

    async def create(self, user_id: int, data: Mapping[str, Any]) -> Review:
        venue_id = data.get("venue_id")
        band_id = data.get("band_id")
        if venue_id is not None and band_id is not None:
            raise ValidationError("Review must be for either a venue or a band, not both")
        if venue_id is None and band_id is None:
            raise ValidationError("Review must be for either a venue or a band")
        rating = validate_rating(data.get("rating"))

        await self._require_target(venue_id, band_id)
        target = "venue" if venue_id is not None else "band"
        duplicate = f"You have already reviewed this {target}"

        if await self.get_user_review(user_id, venue_id=venue_id, band_id=band_id):
            raise ConflictError(duplicate)

        review = Review(
            user_id=user_id,
            venue_id=venue_id,
            band_id=band_id,
            rating=rating,
            title=data.get("title"),
            content=data.get("content"),
            event_date=data.get("event_date"),
            image_urls=data.get("image_urls") or [],
            is_verified=False,
            helpful_count=0,
        )
        self.db.add(review)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(duplicate)
        review_id = review.id

        await self._recompute(venue_id, band_id)
        self.background.enqueue("badges", user_id)
        logger.info(f"User {user_id} reviewed {target} {venue_id or band_id}")
        return await self.get_by_id(review_id)

    async def get_by_id(self, review_id: int) -> Review:
        res = await self.db.execute(
            self._with_relations()
            .where(Review.id == review_id)
            .execution_options(populate_existing=True)
        )
        review = res.scalar_one_or_none()
        if review is None:
            raise NotFoundError("Review not found")
        return review

    async def search(
        self,
        q: str = "",
        user_id: Optional[int] = None,
        venue_id: Optional[int] = None,
        band_id: Optional[int] = None,
        min_rating: Optional[int] = None,
        max_rating: Optional[int] = None,
        page: int = 1,
        limit: int = 20,
        sort: str = "created_at",
        order: str = "desc",
    ) -> dict:
        conditions = []
        term = (q or "").strip()
        if term:
            pattern = f"%{term}%"
            conditions.append(or_(Review.title.ilike(pattern), Review.content.ilike(pattern)))
        if user_id is not None:
            conditions.append(Review.user_id == user_id)
        if venue_id is not None:
            conditions.append(Review.venue_id == venue_id)
        if band_id is not None:
            conditions.append(Review.band_id == band_id)
        if min_rating is not None:
            conditions.append(Review.rating >= min_rating)
        if max_rating is not None:
            conditions.append(Review.rating <= max_rating)

        sort_column = REVIEW_SORT_COLUMNS.get(sort, Review.created_at)
        direction = asc if order == "asc" else desc

        total = await self.db.scalar(
            select(func.count(Review.id)).where(*conditions)) or 0
        res = await self.db.execute(
            self._with_relations()
            .where(*conditions)
            .order_by(direction(sort_column), direction(Review.id))
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return {
            "items": list(res.scalars().all()),
            "total": total,
            "page": page,
            "total_pages": total_pages(total, limit),
        }

    async def _require_owned(self, review_id: int, user_id: int, action: str) -> Review:
        review = await self.db.get(Review, review_id)
        if review is None:
            raise NotFoundError("Review not found")
        if review.user_id != user_id:
            raise ForbiddenError(f"You can only {action} your own reviews")
        return review

    async def update(self, review_id: int, user_id: int, changes: Mapping[str, Any]) -> Review:
        values = map_update_fields(changes, REVIEW_UPDATE_FIELDS)
        if "rating" in values:
            values["rating"] = validate_rating(values["rating"])
        review = await self._require_owned(review_id, user_id, "update")

        rating_changed = "rating" in values and values["rating"] != review.rating
        for attr, value in values.items():
            setattr(review, attr, value)
        await self.db.commit()

        if rating_changed:
            await self._recompute(review.venue_id, review.band_id)
        return await self.get_by_id(review_id)

    async def delete(self, review_id: int, user_id: int) -> None:
        review = await self._require_owned(review_id, user_id, "delete")
        venue_id, band_id = review.venue_id, review.band_id

        votes = await self.db.execute(
            select(ReviewHelpfulness).where(ReviewHelpfulness.review_id == review_id))
        for vote in votes.scalars().all():
            await self.db.delete(vote)
        await self.db.delete(review)
        await self.db.commit()

        await self._recompute(venue_id, band_id)

    async def mark_helpful(self, review_id: int, user_id: int, is_helpful: bool = True) -> Review:
        review = await self.db.get(Review, review_id)
        if review is None:
            raise NotFoundError("Review not found")
        if review.user_id == user_id:
            raise ValidationError("You cannot mark your own review as helpful")

        res = await self.db.execute(
            select(ReviewHelpfulness).where(
                ReviewHelpfulness.review_id == review_id,
                ReviewHelpfulness.user_id == user_id,
            )
        )
        vote = res.scalar_one_or_none()
        if vote is None:
            self.db.add(ReviewHelpfulness(
                review_id=review_id, user_id=user_id, is_helpful=is_helpful))
        else:
            vote.is_helpful = is_helpful
        try:
            await self.db.commit()
        except IntegrityError:
            # Concurrent first vote from the same user
            await self.db.rollback()
            raise ConflictError("Vote already recorded")

        helpful = await self.db.scalar(
            select(func.count(ReviewHelpfulness.id)).where(
                ReviewHelpfulness.review_id == review_id,
                ReviewHelpfulness.is_helpful.is_(True),
            )
        )
        review.helpful_count = helpful or 0
        await self.db.commit()
        return await self.get_by_id(review_id)

    async def get_user_review(
        self,
        user_id: int,
        venue_id: Optional[int] = None,
        band_id: Optional[int] = None,
    ) -> Optional[Review]:
        if (venue_id is None) == (band_id is None):
            raise ValidationError("Either venueId or bandId is required")
        condition = (
            Review.venue_id == venue_id if venue_id is not None else Review.band_id == band_id
        )
        res = await self.db.execute(
            self._with_relations().where(Review.user_id == user_id, condition))
        return res.scalar_one_or_none()
