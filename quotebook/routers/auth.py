from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, RedirectResponse
from jwt import InvalidTokenError
from sqlalchemy.orm import Session

from quotebook.auth.deps import get_current_user
from quotebook.auth.google import google_client
from quotebook.auth.jwt import create_access_token, create_state_token, decode_state_token
from quotebook.core.errors import AuthError
from quotebook.core.settings import settings
from quotebook.db import get_db
from quotebook.models.profile import Profile
from quotebook.schemas.common import Message
from quotebook.schemas.profile import ProfileOut
from quotebook.services import profile_service

router = APIRouter(prefix="/auth", tags=["auth"])

DEFAULT_NEXT = "/dashboard"


def _safe_next(next_url: str | None) -> str:
    # open-redirect bescherming (alleen relative paths toestaan)
    if not next_url or not next_url.startswith("/") or next_url.startswith("//"):
        return DEFAULT_NEXT
    return next_url


@router.get("/google/login")
def google_login(next: str = DEFAULT_NEXT):
    if not google_client.configured:
        raise AuthError("Google sign-in is not configured")
    state = create_state_token(_safe_next(next))
    return RedirectResponse(url=google_client.authorization_url(state), status_code=302)


@router.get("/google/callback")
def google_callback(code: str, state: str, db: Session = Depends(get_db)):
    try:
        state_payload = decode_state_token(state)
    except InvalidTokenError:
        raise AuthError("Invalid OAuth state")

    tokens = google_client.exchange_code(code)
    access_token = tokens.get("access_token")
    if not access_token:
        raise AuthError("Google did not return an access token")
    userinfo = google_client.fetch_userinfo(access_token)

    profile = profile_service.upsert_google_profile(db, userinfo)
    token = create_access_token(user_id=profile.id, email=profile.email, role=profile.role)

    next_url = _safe_next(state_payload.get("next"))
    if next_url.startswith("/") and settings.FRONTEND_URL:
        next_url = settings.FRONTEND_URL.rstrip("/") + next_url

    resp = RedirectResponse(url=next_url, status_code=302)
    resp.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.JWT_EXP_HOURS * 3600,
        path="/",
    )
    return resp


@router.post("/logout", response_model=Message)
def logout():
    resp = JSONResponse({"message": "logged out"})
    resp.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return resp


@router.get("/me", response_model=ProfileOut)
def me(user: Profile = Depends(get_current_user)):
    return user
