from typing import Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import InvalidTokenError
from sqlalchemy.orm import Session

from quotebook.auth.jwt import decode_token
from quotebook.core.errors import AuthError, PermissionDeniedError
from quotebook.core.settings import settings
from quotebook.db import get_db
from quotebook.models.profile import Profile

security = HTTPBearer(auto_error=False)  # <- niet auto-error, cookie gaat voor

ROLE_RANK = {"member": 0, "admin": 1, "super_admin": 2}


def _extract_token(
    request: Request, creds: HTTPAuthorizationCredentials | None
) -> str | None:
    # 1) cookie
    cookie_token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if cookie_token:
        return cookie_token

    # 2) Authorization header
    if creds and creds.credentials:
        return creds.credentials

    return None


def get_current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> Profile:
    token = _extract_token(request, creds)
    if not token:
        raise AuthError("Not authenticated")

    try:
        payload = decode_token(token)
    except InvalidTokenError:
        raise AuthError("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthError("Invalid token payload")

    user = db.get(Profile, user_id)
    if not user or not user.is_active:
        raise AuthError("User not found or inactive")

    request.state.user_id = user.id
    return user


def has_role(user: Profile, min_role: str) -> bool:
    return ROLE_RANK.get(user.role, -1) >= ROLE_RANK[min_role]


def require_role(min_role: str) -> Callable[..., Profile]:
    if min_role not in ROLE_RANK:
        raise ValueError(f"Unknown role: {min_role}")

    def _dep(user: Profile = Depends(get_current_user)) -> Profile:
        if not has_role(user, min_role):
            raise PermissionDeniedError(f"{min_role} role required")
        return user

    return _dep


require_admin = require_role("admin")
require_super_admin = require_role("super_admin")
