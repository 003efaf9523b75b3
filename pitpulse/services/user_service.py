import logging
from typing import Any, Mapping, Optional

from sqlalchemy import select, func, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import (
    AuthenticationError, ConflictError, NotFoundError, ValidationError,
)
from ..models import User, Review, Checkin, UserBadge, UserFollower
from ..utils import (
    map_update_fields, validate_email, validate_password, validate_username,
)
from .jwt_service import JWTService
from .password_service import PasswordService

logger = logging.getLogger(__name__)

# camelCase payload key -> User attribute
USER_UPDATE_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "bio": "bio",
    "profileImageUrl": "profile_image_url",
    "location": "location",
    "dateOfBirth": "date_of_birth",
}


class UserService:
    def __init__(self, db: AsyncSession, passwords: Optional[PasswordService] = None):
        self.db = db
        self.passwords = passwords or PasswordService()

    async def create_user(
        self,
        email: str,
        password: str,
        username: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> User:
        email = (email or "").strip().lower()
        username = (username or "").strip()

        if not validate_email(email):
            raise ValidationError("Invalid email format")
        username_errors = validate_username(username)
        if username_errors:
            raise ValidationError(", ".join(username_errors))
        password_errors = validate_password(password or "")
        if password_errors:
            raise ValidationError(", ".join(password_errors))

        if not await self.is_email_available(email):
            raise ConflictError("Email already registered")
        if not await self.is_username_available(username):
            raise ConflictError("Username already taken")

        user = User(
            email=email,
            username=username,
            password_hash=self.passwords.hash(password),
            first_name=first_name,
            last_name=last_name,
            is_verified=False,
            is_active=True,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration
            await self.db.rollback()
            raise ConflictError("Email or username already registered")
        await self.db.refresh(user)
        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    async def authenticate(self, email: str, password: str) -> tuple[User, str]:
        email = (email or "").strip().lower()
        res = await self.db.execute(select(User).where(User.email == email))
        user = res.scalar_one_or_none()
        if user is None:
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        if not self.passwords.verify(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        return user, JWTService.create_token(user)

    async def get_by_id(self, user_id: int) -> Optional[User]:
        res = await self.db.execute(
            select(User).where(User.id == user_id, User.is_active.is_(True)))
        return res.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        res = await self.db.execute(
            select(User).where(User.username == username, User.is_active.is_(True)))
        return res.scalar_one_or_none()

    async def require_user(self, user_id: int) -> User:
        user = await self.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def is_username_available(self, username: str) -> bool:
        # Deactivated accounts keep their username
        res = await self.db.execute(
            select(User.id).where(User.username == username).limit(1))
        return res.scalar_one_or_none() is None

    async def is_email_available(self, email: str) -> bool:
        res = await self.db.execute(
            select(User.id).where(User.email == email.strip().lower()).limit(1))
        return res.scalar_one_or_none() is None

    async def update_profile(self, user_id: int, changes: Mapping[str, Any]) -> User:
        values = map_update_fields(changes, USER_UPDATE_FIELDS)
        user = await self.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found or inactive")
        for attr, value in values.items():
            setattr(user, attr, value)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def deactivate(self, user_id: int) -> None:
        user = await self.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found or inactive")
        user.is_active = False
        await self.db.commit()
        logger.info(f"Deactivated user {user_id}")

    async def get_stats(self, user_id: int) -> dict:
        review_count = await self.db.scalar(
            select(func.count(Review.id)).where(Review.user_id == user_id))
        checkin_count = await self.db.scalar(
            select(func.count(Checkin.id)).where(Checkin.user_id == user_id))
        badge_count = await self.db.scalar(
            select(func.count(UserBadge.id)).where(UserBadge.user_id == user_id))
        follower_count = await self.db.scalar(
            select(func.count(UserFollower.id)).where(UserFollower.following_id == user_id))
        following_count = await self.db.scalar(
            select(func.count(UserFollower.id)).where(UserFollower.follower_id == user_id))
        return {
            "review_count": review_count or 0,
            "checkin_count": checkin_count or 0,
            "badge_count": badge_count or 0,
            "follower_count": follower_count or 0,
            "following_count": following_count or 0,
        }

    # Follow graph

    async def follow(self, follower_id: int, following_id: int) -> None:
        if follower_id == following_id:
            raise ValidationError("Cannot follow yourself")
        await self.require_user(following_id)

        existing = await self.db.execute(
            select(UserFollower.id).where(
                UserFollower.follower_id == follower_id,
                UserFollower.following_id == following_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            return

        self.db.add(UserFollower(follower_id=follower_id, following_id=following_id))
        try:
            await self.db.commit()
        except IntegrityError:
            # Already following; the unique constraint won the race
            await self.db.rollback()

    async def unfollow(self, follower_id: int, following_id: int) -> None:
        res = await self.db.execute(
            select(UserFollower).where(
                UserFollower.follower_id == follower_id,
                UserFollower.following_id == following_id,
            )
        )
        row = res.scalar_one_or_none()
        if row is None:
            return
        await self.db.delete(row)
        await self.db.commit()

    async def list_followers(self, user_id: int, limit: int = 20, offset: int = 0) -> tuple[list, int]:
        """Users following ``user_id`` as (user, followed_at) pairs, newest first."""
        total = await self.db.scalar(
            select(func.count(UserFollower.id)).where(UserFollower.following_id == user_id))
        res = await self.db.execute(
            select(User, UserFollower.created_at)
            .join(UserFollower, UserFollower.follower_id == User.id)
            .where(UserFollower.following_id == user_id, User.is_active.is_(True))
            .order_by(desc(UserFollower.created_at), desc(UserFollower.id))
            .offset(offset)
            .limit(limit)
        )
        return list(res.all()), total or 0

    async def list_following(self, user_id: int, limit: int = 20, offset: int = 0) -> tuple[list, int]:
        total = await self.db.scalar(
            select(func.count(UserFollower.id)).where(UserFollower.follower_id == user_id))
        res = await self.db.execute(
            select(User, UserFollower.created_at)
            .join(UserFollower, UserFollower.following_id == User.id)
            .where(UserFollower.follower_id == user_id, User.is_active.is_(True))
            .order_by(desc(UserFollower.created_at), desc(UserFollower.id))
            .offset(offset)
            .limit(limit)
        )
        return list(res.all()), total or 0
