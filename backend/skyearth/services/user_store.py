"""Credential store: persistence of user records."""
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from skyearth.errors import ConflictError
from skyearth.models.user import User

EMAIL_TAKEN_MESSAGE = "User with this email already exists"


async def find_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    """Get a user by email."""
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    """Get a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    email: str,
    first_name: Optional[str],
    last_name: Optional[str],
    password_hash: str,
) -> User:
    """Insert a new user. Raises ConflictError if the email is taken."""
    if await find_user_by_email(db, email) is not None:
        raise ConflictError(EMAIL_TAKEN_MESSAGE)

    user = User(
        email=email,
        first_name=first_name,
        last_name=last_name,
        password_hash=password_hash,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration
        await db.rollback()
        raise ConflictError(EMAIL_TAKEN_MESSAGE)
    await db.refresh(user)
    return user
