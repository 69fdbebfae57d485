"""Account router - sign in, sign out and the current account"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from ...auth import get_current_email, get_session_id
from ...config import ENVIRONMENT, SESSION_COOKIE_NAME
from ...database import get_db
from ...rate_limiter import create_rate_limiter
from ...schemas import MessageResponse
from ...sessions import SESSION_TTL_SECONDS, sessions
from .schemas import AuthResponse, EmailLoginRequest, GoogleAuthRequest, MeResponse, SignupRequest
from .service import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

rate_limit_signup = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="auth_signup")
rate_limit_login = create_rate_limiter(limit=10, window_seconds=60, key_prefix="auth_login")


def get_account_service(db: Session = Depends(get_db)) -> AccountService:
    return AccountService(db)


def set_session_cookie(response: Response, session_id: str):
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_id,
        max_age=SESSION_TTL_SECONDS,
        httponly=True,
        secure=ENVIRONMENT == "production",
        samesite="lax",
    )


@router.post("/auth/google", response_model=AuthResponse)
async def google_auth(
    data: GoogleAuthRequest,
    response: Response,
    _: None = Depends(rate_limit_login),
    service: AccountService = Depends(get_account_service),
):
    email, session_id = await service.google_login(data.accessToken)
    set_session_cookie(response, session_id)
    return AuthResponse(email=email, sessionId=session_id)


@router.post("/auth/signup", response_model=AuthResponse)
async def signup(
    data: SignupRequest,
    response: Response,
    _: None = Depends(rate_limit_signup),
    service: AccountService = Depends(get_account_service),
):
    session_id = service.signup(data.email, data.password)
    set_session_cookie(response, session_id)
    return AuthResponse(email=data.email.strip(), sessionId=session_id)


@router.post("/auth/email", response_model=AuthResponse)
async def email_login(
    data: EmailLoginRequest,
    response: Response,
    _: None = Depends(rate_limit_login),
    service: AccountService = Depends(get_account_service),
):
    session_id = service.login(data.email, data.password)
    set_session_cookie(response, session_id)
    return AuthResponse(email=data.email.strip(), sessionId=session_id)


@router.get("/me", response_model=MeResponse)
async def get_me(email: str = Depends(get_current_email)):
    return MeResponse(email=email)


@router.post("/logout", response_model=MessageResponse)
async def logout(request: Request, response: Response):
    """Drop the server-side session and clear the cookie; always succeeds"""
    if sessions.delete(get_session_id(request)):
        logger.info("👋 Session ended")
    response.delete_cookie(SESSION_COOKIE_NAME)
    return MessageResponse()
