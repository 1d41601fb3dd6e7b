"""
FastAPI dependency injection helpers for storage, authentication and authorisation.
"""
from typing import Optional
import logging

from fastapi import Depends, Request

from trade_exchange.core.config import settings
from trade_exchange.core.exceptions import ForbiddenError, UnauthorizedError
from trade_exchange.core.security import token_service
from trade_exchange.db.store import RowStore
from trade_exchange.models.user import User, UserRole
from trade_exchange.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Store dependency
# ---------------------------------------------------------------------------

def store_dependency(request: Request) -> RowStore:
    """Return the row store chosen at startup."""
    return request.app.state.store


# ---------------------------------------------------------------------------
# Auth dependencies
# ---------------------------------------------------------------------------

def extract_token(request: Request) -> Optional[str]:
    """
    Find the bearer token for a request. Precedence: Authorization header,
    then the session cookie, then ``?token=`` when ALLOW_QUERY_TOKEN is on.
    """
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()

    cookie = request.cookies.get(settings.TOKEN_COOKIE_NAME)
    if cookie:
        return cookie

    if settings.ALLOW_QUERY_TOKEN:
        return request.query_params.get("token") or None
    return None


def get_current_user(
    request: Request,
    store: RowStore = Depends(store_dependency),
) -> User:
    """
    Verify the request's token and re-resolve the user from the store.
    Raises 401 if the token is missing or invalid, or the user no longer exists.
    """
    token = extract_token(request)
    if not token:
        logger.info("Request without credentials path=%s", request.url.path)
        raise UnauthorizedError()

    claims = token_service.verify(token)
    store.take_failure()
    user = UserRepository(store).get_by_id(claims.subject_id)
    if user is None:
        failure = store.take_failure()
        if store.degraded and failure is not None:
            # The lookup itself failed; trust the signed claims
            logger.warning("Falling back to token claims for user id=%s", claims.subject_id)
            return User(
                id=claims.subject_id,
                name="",
                email=claims.email,
                password_hash="",
                role=UserRole(claims.role) if claims.role in UserRole.__members__ else UserRole.USER,
                created_at=claims.issued_at.isoformat(),
            )
        logger.warning("Token subject id=%s no longer exists", claims.subject_id)
        raise UnauthorizedError("User no longer exists")
    logger.trace("Authenticated user id=%s", user.id)
    return user


# ---------------------------------------------------------------------------
# Role-based access control
# ---------------------------------------------------------------------------

def require_roles(*roles: UserRole):
    """
    Factory that returns a dependency which enforces that the current user
    has one of the specified roles.

    Usage::
        @router.get("/admin-only")
        def admin_only(user: User = Depends(require_roles(UserRole.ADMIN))):
            ...
    """
    def _check(current_user: User = Depends(get_current_user)) -> User:
        """Validate the current user has one of the required roles."""
        if current_user.role not in roles:
            logger.warning(
                "User id=%s lacks required roles: %s",
                current_user.id,
                ", ".join(role.value for role in roles),
            )
            raise ForbiddenError("You do not have permission to perform this action")
        return current_user
    return _check


# Convenience shortcuts
require_admin = require_roles(UserRole.ADMIN)
require_trader = require_roles(UserRole.TRADER, UserRole.ADMIN)


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

def gateway_dependency(request: Request):
    """Return the payment gateway chosen at startup."""
    return request.app.state.payment_gateway
