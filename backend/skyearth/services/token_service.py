"""JWT issuing and verification."""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict
import jwt
from pydantic import ValidationError as PydanticValidationError
from skyearth.errors import TokenVerificationError
from skyearth.schemas.auth import TokenPayload

logger = logging.getLogger(__name__)


class TokenService:
    """Signs and verifies stateless bearer tokens with a process-wide secret."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_hours: int = 24):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.expire_hours = expire_hours

    @classmethod
    def from_settings(cls, settings) -> "TokenService":
        return cls(
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expire_hours=settings.jwt_expire_hours,
        )

    @property
    def expires(self) -> bool:
        return self.expire_hours > 0

    def issue(self, claims: Dict[str, Any]) -> str:
        """Create a signed token carrying ``claims``."""
        now = datetime.utcnow()
        payload = dict(claims)
        payload["iat"] = now
        if self.expires:
            payload["exp"] = now + timedelta(hours=self.expire_hours)
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def issue_for_user(self, user) -> str:
        return self.issue({"id": user.id, "email": user.email})

    def verify(self, token: str) -> TokenPayload:
        """
        Decode and validate a token.

        Raises TokenVerificationError with ``reason`` set to expired,
        invalid_signature or malformed.
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.debug("Rejected token: expired")
            raise TokenVerificationError(TokenVerificationError.EXPIRED)
        except jwt.InvalidSignatureError:
            logger.debug("Rejected token: bad signature")
            raise TokenVerificationError(TokenVerificationError.INVALID_SIGNATURE)
        except jwt.PyJWTError as exc:
            logger.debug("Rejected token: %s", exc)
            raise TokenVerificationError(TokenVerificationError.MALFORMED)

        try:
            return TokenPayload(**payload)
        except PydanticValidationError:
            logger.debug("Rejected token: missing identity claims")
            raise TokenVerificationError(TokenVerificationError.MALFORMED)
