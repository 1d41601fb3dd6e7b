"""
Authentication endpoints:
  POST /signup              – Create an account (USER or TRADER) and sign in
  POST /signin              – Exchange email + password for a token
  POST /signout             – Clear the session cookie
  GET  /me                  – Return the currently authenticated user
  POST /become-provider     – Link a provider profile and elevate to TRADER

Every call that returns a token also sets it as an HTTP-only cookie.
"""
from fastapi import APIRouter, Depends, Response, status
import logging

from trade_exchange.core.config import settings
from trade_exchange.core.dependencies import get_current_user, store_dependency
from trade_exchange.models.user import User
from trade_exchange.schemas.user import AuthResponse, SigninRequest, SignupRequest, UserResponse
from trade_exchange.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.TOKEN_COOKIE_NAME,
        value=token,
        max_age=settings.TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
def signup(data: SignupRequest, response: Response, store=Depends(store_dependency)):
    """
    Register a new account. **role** may be USER (default) or TRADER;
    traders get an empty provider profile.
    """
    logger.info("Signup endpoint called")
    result = AuthService(store).signup(data)
    _set_session_cookie(response, result.token)
    return result


@router.post("/signin", response_model=AuthResponse, summary="Sign in with email and password")
def signin(data: SigninRequest, response: Response, store=Depends(store_dependency)):
    logger.info("Signin endpoint called")
    result = AuthService(store).signin(data.email, data.password)
    _set_session_cookie(response, result.token)
    return result


@router.post("/signout", summary="Clear the session cookie")
def signout(response: Response):
    """Tokens are stateless: signing out only removes the cookie."""
    response.delete_cookie(settings.TOKEN_COOKIE_NAME, samesite="lax")
    return {"ok": True}


@router.get("/me", response_model=UserResponse, summary="Get the current user")
def get_me(current_user: User = Depends(get_current_user)):
    logger.info("Returning profile for user id=%s", current_user.id)
    return current_user


@router.post(
    "/become-provider",
    response_model=AuthResponse,
    summary="Create a provider profile for the current user",
)
def become_provider(
    response: Response,
    store=Depends(store_dependency),
    current_user: User = Depends(get_current_user),
):
    """Returns a fresh token carrying the TRADER role."""
    result = AuthService(store).become_provider(current_user)
    _set_session_cookie(response, result.token)
    return result
