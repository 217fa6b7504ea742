"""
Registration, login and bearer-token validation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from taskboard.db import DbClient, UserRecord
from taskboard.errors import (
    AuthenticationError,
    ConflictError,
    InvalidTokenError,
    MissingCredentialError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# bcrypt only reads the first 72 bytes; newer releases reject longer input.
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


@dataclass(frozen=True)
class TokenIdentity:
    """Claims carried by a session token."""

    user_id: int
    email: str


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: UserRecord


class AuthService:
    """
    Credential checks and stateless session tokens.

    Tokens are HS256 JWTs embedding ``userId`` and ``email`` with a fixed
    lifetime; validity depends only on signature and expiry.
    """

    def __init__(
        self,
        db: DbClient,
        *,
        secret: str,
        algorithm: str = "HS256",
        token_ttl: timedelta = timedelta(hours=1),
        bcrypt_rounds: int = 10,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not secret:
            raise ValueError("A token signing secret is required")
        self._db = db
        self._secret = secret
        self._algorithm = algorithm
        self._token_ttl = token_ttl
        self._bcrypt_rounds = bcrypt_rounds
        self._clock = clock

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._bcrypt_rounds)
        return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")

    @staticmethod
    def check_password(password: str, password_hash: str) -> bool:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))

    def register(
        self, email: str, password: str, firstname: str, lastname: str
    ) -> UserRecord:
        if not email or not password or not firstname or not lastname:
            raise ValidationError(
                "Email, password, firstname, and lastname are required"
            )
        # The store's unique constraint still guards concurrent registrations.
        if self._db.get_user_by_email(email):
            raise ConflictError("Email already registered")
        user = self._db.create_user(
            email, self.hash_password(password), firstname, lastname
        )
        logger.info("Registered user id=%s", user.id)
        return user

    def login(self, email: str, password: str) -> LoginResult:
        if not email or not password:
            raise ValidationError("Email and password are required")
        user = self._db.get_user_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        if not self.check_password(password, user.password_hash):
            logger.info("Rejected login for user id=%s", user.id)
            raise AuthenticationError("Incorrect password")
        return LoginResult(token=self.issue_token(user), user=user)

    def issue_token(self, user: UserRecord) -> str:
        issued_at = self._clock()
        claims = {
            "userId": user.id,
            "email": user.email,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._token_ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def validate_token(self, token: Optional[str]) -> TokenIdentity:
        if not token:
            raise MissingCredentialError("Access denied: No token provided")
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            logger.debug("Expired token presented")
            raise InvalidTokenError("Invalid or expired token") from exc
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            raise InvalidTokenError("Invalid or expired token") from exc
        user_id = claims.get("userId")
        email = claims.get("email")
        if not isinstance(user_id, int) or not isinstance(email, str):
            raise InvalidTokenError("Invalid or expired token")
        return TokenIdentity(user_id=user_id, email=email)

    def get_profile(self, user_id: int) -> dict:
        user = self._db.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return {"firstname": user.firstname, "email": user.email}
