# PURPOSE: /auth/signup, /auth/login, /auth/me, /auth/oauth/{provider},
#          /auth/forgot-password, /auth/reset-password

import logging
import secrets

from fastapi import APIRouter, Depends, Header, Path, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ..api.errors import NotFound, Unauthorized
from ..api.responses import Envelope, envelope
from ..auth import create_access_token, get_current_user
from ..config import settings
from ..db_models import UserDB
from ..mailer import get_mailer, password_reset_message
from ..models import (
    ForgotPasswordRequest,
    MessageOut,
    OAuthProfile,
    OAuthSession,
    ResetPasswordRequest,
    SignupRequest,
    TokenResponse,
    UserData,
)
from ..rate_limit import limiter
from ..store import get_db
from ..store import tokens as token_store
from ..store import users as user_store

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("taskflow.auth")

RESET_REQUESTED = "If an account with that email exists, we have sent a password reset link"
RESET_DONE = "Password has been reset successfully"


@router.post("/signup", response_model=Envelope[UserData], status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_SIGNUP)
def signup(
    request: Request, response: Response, payload: SignupRequest, db: Session = Depends(get_db)
):
    user = user_store.signup(db, email=payload.email, password=payload.password, name=payload.name)
    logger.info("user_signed_up user_id=%s", user.id)
    return envelope({"user": user})


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
def login(
    request: Request,
    response: Response,
    form: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    # OAuth2 token endpoint: `username` carries the email; body stays un-enveloped
    user = user_store.authenticate(db, form.username, form.password)
    if user is None:
        raise Unauthorized("Invalid credentials")
    return TokenResponse(access_token=create_access_token(user.id))


@router.get("/me", response_model=Envelope[UserData])
def me(user: UserDB = Depends(get_current_user)):
    return envelope({"user": user})


@router.post("/oauth/{provider}", response_model=Envelope[OAuthSession])
def oauth_sign_in(
    payload: OAuthProfile,
    provider: str = Path(pattern=r"^[a-z0-9_-]{1,32}$"),
    bridge_secret: str | None = Header(None, alias="X-OAuth-Bridge-Secret"),
    db: Session = Depends(get_db),
):
    """Exchange a provider-verified profile for an access token.

    Only the trusted OAuth integration knows the bridge secret; while no
    secret is configured the route does not exist.
    """
    if not settings.OAUTH_BRIDGE_SECRET:
        raise NotFound()
    if not bridge_secret or not secrets.compare_digest(bridge_secret, settings.OAUTH_BRIDGE_SECRET):
        raise Unauthorized("Invalid bridge credentials")
    user, created = user_store.oauth_sign_in(db, provider, payload)
    logger.info("oauth_sign_in provider=%s user_id=%s created=%s", provider, user.id, created)
    return envelope(
        {"user": user, "access_token": create_access_token(user.id), "is_new_user": created}
    )


@router.post("/forgot-password", response_model=Envelope[MessageOut])
@limiter.limit(settings.RATE_LIMIT_PASSWORD_RESET)
def forgot_password(
    request: Request,
    response: Response,
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    mailer=Depends(get_mailer),
):
    token = token_store.create_reset_token(db, payload.email)
    if token is not None:
        try:
            mailer.send(password_reset_message(payload.email, token))
        except Exception:
            # same answer either way; a delivery failure must not reveal the account
            logger.exception("password_reset_mail_failed")
    return envelope({"message": RESET_REQUESTED})


@router.post("/reset-password", response_model=Envelope[MessageOut])
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    token_store.reset_password(db, payload.token, payload.password)
    logger.info("password_reset_completed")
    return envelope({"message": RESET_DONE})
