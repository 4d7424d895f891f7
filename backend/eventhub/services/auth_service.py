"""
Authentication service handling user registration and login.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.exceptions import DuplicateName, ForbiddenError, UnauthenticatedError
from eventhub.core.logging import get_logger
from eventhub.core.security import create_access_token, hash_password, verify_password
from eventhub.db.store import ConstraintViolation, EntityStore
from eventhub.models.user import User, UserRole
from eventhub.schemas.user import Token, UserCreate, UserLogin

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new organizer or participant with a hashed password.
    Raises DuplicateName if a live account already uses the email.
    """
    email = normalize_email(user_data.email)
    store = EntityStore(db, User)

    if await store.find_one(User.email == email):
        logger.warning("registration_failed", reason="email_exists", email=email)
        raise DuplicateName("User", email)

    try:
        user = await store.create(
            first_name=user_data.first_name.strip(),
            last_name=user_data.last_name.strip(),
            email=email,
            hashed_password=hash_password(user_data.password),
            role=UserRole(user_data.role),
        )
    except ConstraintViolation:
        # Lost a race against a concurrent signup with the same email
        raise DuplicateName("User", email)

    logger.info("user_registered", user_id=user.id, email=user.email, role=user.role.value)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> Token:
    """
    Authenticate user and return a bearer token carrying id and role.
    Raises 401 if credentials are invalid.
    """
    email = normalize_email(login_data.email)
    user = await EntityStore(db, User).find_one(User.email == email)

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=email)
        raise UnauthenticatedError("Invalid email or password")

    if not user.is_active:
        raise ForbiddenError("Account is deactivated")

    token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    logger.info("user_logged_in", user_id=user.id)
    return Token(access_token=token, role=user.role)
