import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from ..config import settings
from ..database import get_db
from ..exceptions import AuthenticationError
from ..models import User

logger = logging.getLogger(__name__)

# JWT token scheme; missing headers are reported by get_current_user itself
security = HTTPBearer(auto_error=False)


class JWTService:
    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token"""
        to_encode = data.copy()

        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + \
                timedelta(minutes=settings.jwt_expiry_minutes)

        to_encode.update({
            "exp": expire,
            "iss": settings.jwt_issuer,
            "aud": settings.jwt_audience,
        })
        encoded_jwt = jwt.encode(
            to_encode,
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm
        )
        return encoded_jwt

    @staticmethod
    def create_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT token for user authentication"""
        data = {
            "sub": str(user.id),
            "email": user.email,
            "username": user.username,
        }
        return JWTService.create_access_token(data, expires_delta)

    @staticmethod
    def verify_token(token: str) -> Optional[dict]:
        """Decode a JWT token, returning None when it is invalid or expired"""
        try:
            return jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
                audience=settings.jwt_audience,
                issuer=settings.jwt_issuer,
            )
        except JWTError as e:
            logger.debug(f"JWT verification failed: {e}")
            return None

    @staticmethod
    async def _load_active_user(db: AsyncSession, payload: dict) -> Optional[User]:
        try:
            user_id = int(payload.get("sub"))
        except (ValueError, TypeError):
            return None

        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None or not user.is_active:
            return None
        return user

    @staticmethod
    async def get_current_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        db: AsyncSession = Depends(get_db)
    ) -> User:
        """Get the current authenticated user from JWT token"""
        if credentials is None or not credentials.credentials:
            raise AuthenticationError("Access token required")

        payload = JWTService.verify_token(credentials.credentials)
        if payload is None:
            raise AuthenticationError("Invalid or expired token")

        user = await JWTService._load_active_user(db, payload)
        if user is None:
            raise AuthenticationError("User not found or inactive")

        return user

    @staticmethod
    async def get_optional_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        db: AsyncSession = Depends(get_db)
    ) -> Optional[User]:
        """Like get_current_user, but anonymous callers get None instead of a 401"""
        if credentials is None or not credentials.credentials:
            return None
        payload = JWTService.verify_token(credentials.credentials)
        if payload is None:
            return None
        return await JWTService._load_active_user(db, payload)
