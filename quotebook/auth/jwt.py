from datetime import datetime, timedelta, timezone

import jwt

from quotebook.core.settings import settings

STATE_TTL_MINUTES = 10


def create_access_token(*, user_id: str, email: str, role: str) -> str:
    now = datetime.now(timezone.utc)
    exp_hours = int(getattr(settings, "JWT_EXP_HOURS", 24))

    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=exp_hours)).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])


def create_state_token(next_url: str) -> str:
    # korte levensduur: alleen voor de OAuth round-trip
    now = datetime.now(timezone.utc)
    payload = {
        "purpose": "oauth_state",
        "next": next_url,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=STATE_TTL_MINUTES)).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_state_token(token: str) -> dict:
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
    if payload.get("purpose") != "oauth_state":
        raise jwt.InvalidTokenError("not a state token")
    return payload
