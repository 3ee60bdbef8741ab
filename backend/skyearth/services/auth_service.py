"""Authentication service."""
import asyncio
import logging
import secrets
from typing import Optional, Tuple
import bcrypt
from sqlalchemy.ext.asyncio import AsyncSession
from skyearth.errors import NotFoundError, UnauthorizedError
from skyearth.models.user import User
from skyearth.schemas.auth import LoginRequest, RegisterRequest, TokenPayload
from skyearth.services import user_store
from skyearth.services.token_service import TokenService
from skyearth.services.validation import validate_login, validate_registration

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except (ValueError, TypeError):
        return False


class AuthService:
    """Registration, login and current-user lookup.

    bcrypt is CPU-bound, so hashing and checking run in a worker thread.
    """

    def __init__(self, tokens: TokenService, bcrypt_rounds: int = 12):
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds
        self._dummy_hash: Optional[str] = None

    async def _hash(self, password: str) -> str:
        return await asyncio.to_thread(hash_password, password, self.bcrypt_rounds)

    async def _check(self, password: str, user: Optional[User]) -> bool:
        if user is None:
            # Unknown emails pay the same bcrypt cost as wrong passwords
            if self._dummy_hash is None:
                self._dummy_hash = await self._hash(secrets.token_hex(16))
            await asyncio.to_thread(verify_password, password, self._dummy_hash)
            return False
        return await asyncio.to_thread(verify_password, password, user.password_hash)

    async def register(self, db: AsyncSession, data: RegisterRequest) -> Tuple[User, str]:
        """Create a user and issue their first token."""
        data = validate_registration(data)
        password_hash = await self._hash(data.password)
        user = await user_store.create_user(
            db,
            email=data.email,
            first_name=data.first_name,
            last_name=data.last_name,
            password_hash=password_hash,
        )
        logger.info("Registered user %s (id=%s)", user.email, user.id)
        return user, self.tokens.issue_for_user(user)

    async def login(self, db: AsyncSession, data: LoginRequest) -> Tuple[User, str]:
        """Authenticate a user by email and password."""
        data = validate_login(data)
        user = await user_store.find_user_by_email(db, data.email)

        # Same error for unknown email and wrong password
        if not await self._check(data.password, user):
            logger.info("Failed login attempt for %s", data.email)
            raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

        logger.info("Login: %s (id=%s)", user.email, user.id)
        return user, self.tokens.issue_for_user(user)

    async def get_current_user(self, db: AsyncSession, claims: TokenPayload) -> User:
        """Resolve verified token claims to the stored user."""
        user = await user_store.get_user_by_id(db, claims.id)
        if user is None:
            raise NotFoundError("User not found")
        return user
