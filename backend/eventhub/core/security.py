"""
Password hashing, JWT issuance and the request actor dependencies.

The rest of the application only sees an ``Actor`` (user id + role) or
``None`` for anonymous callers; how the token is verified stays here.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from eventhub.core.config import get_settings
from eventhub.core.exceptions import ForbiddenError, UnauthenticatedError
from eventhub.core.logging import bind_actor
from eventhub.models.user import UserRole

settings = get_settings()

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_organizer(self) -> bool:
        return self.role == UserRole.ORGANIZER


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Encode ``data`` (expects ``sub`` and ``role``) into a signed token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Actor:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id = int(payload["sub"])
        role = UserRole(payload.get("role", UserRole.PARTICIPANT.value))
    except (JWTError, KeyError, ValueError, TypeError):
        raise UnauthenticatedError("Invalid or expired token")
    return Actor(user_id=user_id, role=role)


async def get_optional_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Actor]:
    """Anonymous callers get ``None``; a present but invalid token is still a 401."""
    if credentials is None:
        return None
    actor = decode_access_token(credentials.credentials)
    bind_actor(actor.user_id, actor.role.value)
    return actor


async def get_current_actor(actor: Optional[Actor] = Depends(get_optional_actor)) -> Actor:
    if actor is None:
        raise UnauthenticatedError("Missing bearer token")
    return actor


def require_roles(*roles: UserRole):
    """Dependency factory: the caller must hold one of ``roles``."""
    allowed = set(roles)

    async def checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in allowed:
            names = ", ".join(sorted(r.value for r in allowed))
            raise ForbiddenError(f"Access denied. Required role(s): {names}")
        return actor

    return checker
