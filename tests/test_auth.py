from urllib.parse import parse_qs, urlparse

import pytest

from quotebook.auth.google import google_client
from quotebook.auth.jwt import create_state_token, decode_token
from quotebook.core.settings import settings
from quotebook.models.notification import Notification
from quotebook.models.profile import Profile


@pytest.fixture
def google(monkeypatch):
    """Vervangt de Google endpoints; userinfo is per test aan te passen."""
    userinfo = {
        "email": "new.pd@motionsense.co.kr",
        "email_verified": True,
        "name": "New PD",
    }
    monkeypatch.setattr(google_client, "client_id", "client-id")
    monkeypatch.setattr(google_client, "client_secret", "client-secret")
    monkeypatch.setattr(google_client, "exchange_code", lambda code: {"access_token": "at"})
    monkeypatch.setattr(google_client, "fetch_userinfo", lambda token: userinfo)
    return userinfo


def callback(client, next_url="/quotes"):
    return client.get(
        "/auth/google/callback",
        params={"code": "abc", "state": create_state_token(next_url)},
        follow_redirects=False,
    )


def test_login_redirects_to_google_with_domain_hint(client, google):
    resp = client.get("/auth/google/login", params={"next": "/quotes"}, follow_redirects=False)
    assert resp.status_code == 302
    url = urlparse(resp.headers["location"])
    qs = parse_qs(url.query)
    assert url.netloc == "accounts.google.com"
    assert qs["hd"] == ["motionsense.co.kr"]
    assert qs["scope"] == ["openid email profile"]
    assert "state" in qs


def test_first_login_becomes_super_admin(client, db, google):
    resp = callback(client)
    assert resp.status_code == 302
    assert resp.headers["location"].endswith("/quotes")

    token = resp.cookies.get(settings.SESSION_COOKIE_NAME)
    payload = decode_token(token)
    profile = db.get(Profile, payload["sub"])
    assert profile.email == "new.pd@motionsense.co.kr"
    assert profile.role == "super_admin"
    assert profile.last_login_at is not None


def test_later_logins_are_members_and_notify_admins(client, db, admin, google):
    resp = callback(client)
    assert resp.status_code == 302
    profile = db.query(Profile).filter(Profile.email == google["email"]).one()
    assert profile.role == "member"

    n = db.query(Notification).filter(Notification.user_id == admin.id).one()
    assert n.type == "system_user_joined"


def test_super_admin_email_list(client, db, admin, google, monkeypatch):
    monkeypatch.setattr(settings, "SUPER_ADMIN_EMAILS", ["New.PD@motionsense.co.kr"])
    callback(client)
    profile = db.query(Profile).filter(Profile.email == google["email"]).one()
    assert profile.role == "super_admin"


def test_foreign_domain_is_rejected(client, db, google):
    google["email"] = "someone@gmail.com"
    resp = callback(client)
    assert resp.status_code == 403
    assert db.query(Profile).count() == 0


def test_unverified_email_is_rejected(client, google):
    google["email_verified"] = False
    assert callback(client).status_code == 403


def test_inactive_profile_is_rejected(client, make_profile, google):
    make_profile(email=google["email"], is_active=False)
    assert callback(client).status_code == 403


def test_bad_state_is_rejected(client, google):
    resp = client.get(
        "/auth/google/callback", params={"code": "abc", "state": "garbage"}, follow_redirects=False
    )
    assert resp.status_code == 401


def test_open_redirect_is_blocked(client, google):
    resp = callback(client, next_url="//evil.example.com")
    assert resp.headers["location"].endswith("/dashboard")


def test_me_with_cookie_and_bearer(client, member, member_headers):
    resp = client.get("/auth/me", headers=member_headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == member.email

    token = member_headers["Authorization"].split()[1]
    client.cookies.set(settings.SESSION_COOKIE_NAME, token)
    resp = client.get("/auth/me")
    assert resp.status_code == 200
    client.cookies.clear()


def test_invalid_token_and_inactive_user(client, db, member, member_headers):
    resp = client.get("/auth/me", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401

    member.is_active = False
    db.commit()
    assert client.get("/auth/me", headers=member_headers).status_code == 401


def test_logout_clears_cookie(client):
    resp = client.post("/auth/logout")
    assert resp.status_code == 200
    assert settings.SESSION_COOKIE_NAME in resp.headers.get("set-cookie", "")
