# quotebook/auth/google.py
from typing import Any, Dict
from urllib.parse import urlencode

import requests

from quotebook.core.errors import AuthError
from quotebook.core.logging_config import logger
from quotebook.core.settings import settings

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class GoogleOAuthClient:
    """Google OAuth client: authorize-URL, code exchange en userinfo."""

    def __init__(self):
        self.client_id = settings.GOOGLE_CLIENT_ID
        self.client_secret = settings.GOOGLE_CLIENT_SECRET
        self.redirect_uri = settings.GOOGLE_REDIRECT_URI
        self.timeout = 15

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id or "",
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "hd": settings.ALLOWED_EMAIL_DOMAIN,
            "state": state,
            "prompt": "select_account",
        }
        return f"{AUTH_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> Dict[str, Any]:
        response = requests.post(
            TOKEN_URL,
            data={
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            },
            timeout=self.timeout,
        )
        if response.status_code != 200:
            logger.warning(
                "google_token_exchange_failed",
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise AuthError("Google token exchange failed")
        return response.json()

    def fetch_userinfo(self, access_token: str) -> Dict[str, Any]:
        response = requests.get(
            USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=self.timeout,
        )
        if response.status_code != 200:
            logger.warning("google_userinfo_failed", status_code=response.status_code)
            raise AuthError("Google userinfo request failed")
        return response.json()


def is_allowed_email(email: str) -> bool:
    domain = settings.ALLOWED_EMAIL_DOMAIN.lower().lstrip("@")
    return email.strip().lower().endswith("@" + domain)


google_client = GoogleOAuthClient()
