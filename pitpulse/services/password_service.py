"""
Password hashing and verification using bcrypt.
"""

import logging

import bcrypt

from ..config import settings

logger = logging.getLogger(__name__)


class PasswordService:
    """Hash and verify passwords with a configurable bcrypt cost."""

    def __init__(self, rounds: int = None):
        self.rounds = rounds or settings.bcrypt_rounds

    def hash(self, password: str) -> str:
        if not password:
            raise ValueError("Password cannot be empty")
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        if not password or not hashed:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError as e:
            # Malformed hash stored for the account
            logger.warning(f"Password verification failed: {e}")
            return False
