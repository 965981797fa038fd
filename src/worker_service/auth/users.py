import hashlib
import hmac
import os
from typing import Dict, Optional

from pydantic import BaseModel

PBKDF2_ITERATIONS = 100000
SALT_SIZE = 16


class User(BaseModel):
    username: str
    salt: bytes
    password_hash: bytes


def hash_password(password: str, salt: Optional[bytes] = None) -> tuple[bytes, bytes]:
    """Hash a password with PBKDF2-SHA256.

    Returns:
        Tuple of (salt, hash)
    """
    if salt is None:
        salt = os.urandom(SALT_SIZE)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return salt, digest


def verify_password(user: User, password: str) -> bool:
    _, digest = hash_password(password, user.salt)
    return hmac.compare_digest(digest, user.password_hash)


def create_user(username: str, password: str) -> User:
    salt, digest = hash_password(password)
    return User(username=username, salt=salt, password_hash=digest)


class UserNotFound(ValueError):
    pass


class MemoryUserRepository:
    """Keeps users in memory, keyed by username."""

    def __init__(self, users: Optional[Dict[str, User]] = None):
        self.users: Dict[str, User] = users or {}

    @classmethod
    def from_credentials(cls, credentials: Dict[str, str]) -> "MemoryUserRepository":
        return cls({name: create_user(name, password) for name, password in credentials.items()})

    def find_by_username(self, username: str) -> User:
        user = self.users.get(username)
        if user is None:
            raise UserNotFound(f"Cannot find user {username}")
        return user
