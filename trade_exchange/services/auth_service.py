"""
Authentication service: signup, signin and provider onboarding.

Business rules:
  - Emails are unique, stored lower-cased and compared case-insensitively.
  - Self-service signup may pick USER or TRADER; ADMIN is never self-assigned.
  - A TRADER always has exactly one linked provider profile.
  - Tokens are stateless; every successful call returns a fresh one.
"""
import logging

from trade_exchange.core.exceptions import ConflictError, InvalidInputError, UnauthorizedError
from trade_exchange.core.security import TokenService, hash_password, token_service, verify_password
from trade_exchange.db.store import RowStore
from trade_exchange.models.user import User, UserRole
from trade_exchange.repositories.provider_repository import ProviderRepository
from trade_exchange.repositories.user_repository import UserRepository
from trade_exchange.schemas.user import AuthResponse, SignupRequest, UserResponse

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, store: RowStore, tokens: TokenService = token_service) -> None:
        logger.trace("Initializing AuthService")
        self._store = store
        self._tokens = tokens
        self._user_repo = UserRepository(store)
        self._provider_repo = ProviderRepository(store)

    # ------------------------------------------------------------------
    # Signup / signin
    # ------------------------------------------------------------------

    def signup(self, data: SignupRequest) -> AuthResponse:
        """Create an account and sign it in."""
        email = data.email.strip().lower()
        logger.info("Signup requested role=%s", data.role.value)
        if data.role == UserRole.ADMIN:
            logger.warning("Rejected self-assigned ADMIN role")
            raise InvalidInputError("Role must be USER or TRADER")
        if self._user_repo.get_by_email(email):
            logger.warning("Signup rejected: email already registered")
            raise ConflictError("Email already registered")

        name = data.name.strip() or email.split("@")[0]
        try:
            with self._store.transaction():
                provider_id = None
                if data.role == UserRole.TRADER:
                    provider_id = self._provider_repo.create(name).id
                user = self._user_repo.create(
                    name=name,
                    email=email,
                    password_hash=hash_password(data.password),
                    role=data.role,
                    provider_id=provider_id,
                )
        except ConflictError as exc:
            logger.warning("Signup rejected: email registered concurrently")
            raise ConflictError("Email already registered") from exc
        logger.info("Signup complete user id=%s", user.id)
        return self._session(user)

    def signin(self, email: str, password: str) -> AuthResponse:
        logger.info("Signin requested")
        user = self._user_repo.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning("Invalid signin attempt")
            raise UnauthorizedError("Invalid email or password")
        logger.info("Signin successful user id=%s", user.id)
        return self._session(user)

    # ------------------------------------------------------------------
    # Provider onboarding
    # ------------------------------------------------------------------

    def become_provider(self, user: User) -> AuthResponse:
        """
        Link a provider profile to *user* and elevate them to TRADER.
        Idempotent: an existing profile is reused. Admins keep their role.
        """
        logger.info("Become-provider requested user id=%s", user.id)
        with self._store.transaction():
            provider = (
                self._provider_repo.get_by_id(user.provider_id) if user.provider_id else None
            )
            if provider is None:
                provider = self._provider_repo.create(user.name or user.email)
            role = user.role if user.role == UserRole.ADMIN else UserRole.TRADER
            updated = self._user_repo.update(user.id, role=role, provider_id=provider.id)
        if updated is None:
            raise UnauthorizedError("User no longer exists")
        logger.info("User id=%s linked to provider id=%s", user.id, provider.id)
        return self._session(updated)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _session(self, user: User) -> AuthResponse:
        token = self._tokens.issue(user.id, user.email, user.role.value)
        return AuthResponse(token=token, user=UserResponse.model_validate(user))
