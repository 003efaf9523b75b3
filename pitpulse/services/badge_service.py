"""
Badge catalog and threshold evaluation.

Each badge is a (badge_type, requirement_value) rule. A user earns it once
the activity metric for its type reaches the threshold; awards are never
revoked or re-evaluated.
"""

import logging

from sqlalchemy import select, func, desc, asc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..exceptions import NotFoundError
from ..models import Badge, UserBadge, User, Review, Checkin

logger = logging.getLogger(__name__)

BADGE_TYPES = (
    "review_count",
    "venue_explorer",
    "music_lover",
    "event_attendance",
    "helpful_count",
)

BADGE_CATALOG = [
    {"name": "First Review", "badge_type": "review_count", "requirement_value": 1,
     "description": "Posted your first review", "color": "#4CAF50"},
    {"name": "Regular Reviewer", "badge_type": "review_count", "requirement_value": 10,
     "description": "Posted 10 reviews", "color": "#2196F3"},
    {"name": "Review Machine", "badge_type": "review_count", "requirement_value": 50,
     "description": "Posted 50 reviews", "color": "#9C27B0"},
    {"name": "Venue Hopper", "badge_type": "venue_explorer", "requirement_value": 5,
     "description": "Reviewed 5 different venues", "color": "#FF9800"},
    {"name": "Venue Explorer", "badge_type": "venue_explorer", "requirement_value": 25,
     "description": "Reviewed 25 different venues", "color": "#F57C00"},
    {"name": "Music Lover", "badge_type": "music_lover", "requirement_value": 5,
     "description": "Reviewed 5 different bands", "color": "#E91E63"},
    {"name": "Superfan", "badge_type": "music_lover", "requirement_value": 25,
     "description": "Reviewed 25 different bands", "color": "#C2185B"},
    {"name": "Showgoer", "badge_type": "event_attendance", "requirement_value": 5,
     "description": "Attended 5 shows", "color": "#00BCD4"},
    {"name": "Road Warrior", "badge_type": "event_attendance", "requirement_value": 25,
     "description": "Attended 25 shows", "color": "#0097A7"},
    {"name": "Helpful Voice", "badge_type": "helpful_count", "requirement_value": 10,
     "description": "Your reviews were marked helpful 10 times", "color": "#FFC107"},
    {"name": "Trusted Critic", "badge_type": "helpful_count", "requirement_value": 50,
     "description": "Your reviews were marked helpful 50 times", "color": "#FFA000"},
]


def progress_percent(current_value: int, requirement_value: int) -> int:
    """Integer percentage toward a threshold, capped at 100."""
    if requirement_value <= 0:
        return 100
    return round(min(100.0, current_value / requirement_value * 100))


class BadgeService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def ensure_catalog(self) -> int:
        """Insert catalog badges missing from the table. Returns how many were added."""
        res = await self.db.execute(select(Badge.name))
        existing = set(res.scalars().all())
        added = 0
        for definition in BADGE_CATALOG:
            if definition["name"] in existing:
                continue
            self.db.add(Badge(**definition))
            added += 1
        if added:
            try:
                await self.db.commit()
            except IntegrityError:
                # Another process seeded concurrently
                await self.db.rollback()
                return 0
            logger.info(f"Seeded {added} badge definitions")
        return added

    async def get_all_badges(self) -> list[Badge]:
        res = await self.db.execute(
            select(Badge).order_by(asc(Badge.badge_type), asc(Badge.requirement_value)))
        return list(res.scalars().all())

    async def get_badge(self, badge_id: int) -> Badge:
        badge = await self.db.get(Badge, badge_id)
        if badge is None:
            raise NotFoundError("Badge not found")
        return badge

    async def get_user_badges(self, user_id: int) -> list[UserBadge]:
        res = await self.db.execute(
            select(UserBadge)
            .options(selectinload(UserBadge.badge))
            .where(UserBadge.user_id == user_id)
            .order_by(desc(UserBadge.earned_at), desc(UserBadge.id))
        )
        return list(res.scalars().all())

    async def get_user_metrics(self, user_id: int) -> dict[str, int]:
        review_count = await self.db.scalar(
            select(func.count(Review.id)).where(Review.user_id == user_id))
        venues = await self.db.scalar(
            select(func.count(func.distinct(Review.venue_id)))
            .where(Review.user_id == user_id, Review.venue_id.is_not(None)))
        bands = await self.db.scalar(
            select(func.count(func.distinct(Review.band_id)))
            .where(Review.user_id == user_id, Review.band_id.is_not(None)))
        checkins = await self.db.scalar(
            select(func.count(Checkin.id)).where(Checkin.user_id == user_id))
        dated_reviews = await self.db.scalar(
            select(func.count(Review.id))
            .where(Review.user_id == user_id, Review.event_date.is_not(None)))
        helpful = await self.db.scalar(
            select(func.coalesce(func.sum(Review.helpful_count), 0))
            .where(Review.user_id == user_id))
        return {
            "review_count": review_count or 0,
            "venue_explorer": venues or 0,
            "music_lover": bands or 0,
            "event_attendance": (checkins or 0) + (dated_reviews or 0),
            "helpful_count": int(helpful or 0),
        }

    async def _unheld_badges(self, user_id: int) -> list[Badge]:
        held = select(UserBadge.badge_id).where(UserBadge.user_id == user_id)
        res = await self.db.execute(
            select(Badge)
            .where(Badge.id.not_in(held))
            .order_by(asc(Badge.badge_type), asc(Badge.requirement_value))
        )
        return list(res.scalars().all())

    async def check_and_award(self, user_id: int) -> list[Badge]:
        """Award every unheld badge whose threshold the user now meets."""
        candidates = await self._unheld_badges(user_id)
        if not candidates:
            return []
        metrics = await self.get_user_metrics(user_id)

        awarded = []
        for badge in candidates:
            if metrics.get(badge.badge_type, 0) < badge.requirement_value:
                continue
            self.db.add(UserBadge(user_id=user_id, badge_id=badge.id))
            try:
                await self.db.commit()
            except IntegrityError:
                # Awarded concurrently; not new for this pass
                await self.db.rollback()
                continue
            awarded.append(badge)

        if awarded:
            logger.info(
                f"User {user_id} earned badges: {', '.join(b.name for b in awarded)}")
        return awarded

    async def get_user_badge_progress(self, user_id: int) -> list[dict]:
        candidates = await self._unheld_badges(user_id)
        if not candidates:
            return []
        metrics = await self.get_user_metrics(user_id)
        progress = []
        for badge in candidates:
            current = metrics.get(badge.badge_type, 0)
            progress.append({
                "badge": badge,
                "current_value": current,
                "progress": progress_percent(current, badge.requirement_value),
            })
        return progress

    async def get_leaderboard(self, limit: int = 10) -> list[dict]:
        badge_count = func.count(UserBadge.id).label("badge_count")
        res = await self.db.execute(
            select(User, badge_count)
            .join(UserBadge, UserBadge.user_id == User.id)
            .where(User.is_active.is_(True))
            .group_by(User.id)
            .order_by(desc(badge_count), asc(User.username))
            .limit(limit)
        )
        rows = res.all()

        leaderboard = []
        for user, count in rows:
            recent = await self.db.execute(
                select(Badge)
                .join(UserBadge, UserBadge.badge_id == Badge.id)
                .where(UserBadge.user_id == user.id)
                .order_by(desc(UserBadge.earned_at), desc(UserBadge.id))
                .limit(3)
            )
            leaderboard.append({
                "user": user,
                "badge_count": count,
                "recent_badges": list(recent.scalars().all()),
            })
        return leaderboard

