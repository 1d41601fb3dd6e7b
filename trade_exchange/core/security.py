"""
Security utilities: password hashing and signed bearer token creation/verification.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import logging

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError
from passlib.context import CryptContext

from trade_exchange.core.config import settings
from trade_exchange.core.exceptions import (
    BadSignatureError,
    ExpiredTokenError,
    InvalidTokenError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """Return the bcrypt hash of *plain_password*."""
    logger.trace("Hashing user password")
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if *plain_password* matches *hashed_password*."""
    logger.trace("Verifying password hash")
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Stored password hash is not recognised")
        return False


# ---------------------------------------------------------------------------
# Bearer tokens
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by a verified bearer token."""

    subject_id: str
    email: str
    role: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """Issues and verifies HS256-signed, expiring bearer tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        lifetime: timedelta = timedelta(days=7),
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._lifetime = lifetime

    def issue(
        self,
        subject_id: str,
        email: str,
        role: str,
        now: Optional[datetime] = None,
    ) -> str:
        """Build a signed token for the subject valid for the configured lifetime."""
        issued_at = now or datetime.now(tz=timezone.utc)
        payload: dict[str, Any] = {
            "sub": str(subject_id),
            "email": email,
            "role": role,
            "iat": issued_at,
            "exp": issued_at + self._lifetime,
        }
        token = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        logger.info("Issued token for subject=%s role=%s", subject_id, role)
        return token

    def verify(self, token: str) -> TokenClaims:
        """
        Verify *token* and return its claims.

        Raises:
            InvalidTokenError: the token is not three dot-separated parts or
                its header/claims cannot be parsed.
            BadSignatureError: the signature does not match.
            ExpiredTokenError: the token is past its expiry.
        """
        if not token or len(token.split(".")) != 3:
            logger.warning("Rejected token with malformed structure")
            raise InvalidTokenError()
        try:
            jwt.get_unverified_header(token)
        except JWTError as exc:
            logger.warning("Rejected token with unreadable header")
            raise InvalidTokenError() from exc

        try:
            payload = jwt.decode(
                token, self._secret_key, algorithms=[self._algorithm]
            )
        except ExpiredSignatureError as exc:
            logger.info("Rejected expired token")
            raise ExpiredTokenError() from exc
        except JWTClaimsError as exc:
            logger.warning("Rejected token with invalid claims")
            raise InvalidTokenError() from exc
        except JWTError as exc:
            logger.warning("Rejected token with bad signature")
            raise BadSignatureError() from exc

        subject = payload.get("sub")
        if not subject or "exp" not in payload:
            logger.warning("Rejected token missing subject or expiry")
            raise InvalidTokenError()

        return TokenClaims(
            subject_id=str(subject),
            email=payload.get("email") or "",
            role=str(payload.get("role") or "USER").upper(),
            issued_at=datetime.fromtimestamp(payload.get("iat", 0), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


token_service = TokenService(
    secret_key=settings.SECRET_KEY,
    algorithm=settings.ALGORITHM,
    lifetime=timedelta(days=settings.TOKEN_EXPIRE_DAYS),
)
