import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("APP_ENV", "local")

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from quotebook import models  # noqa: F401  (registreert tabellen)
from quotebook.auth.jwt import create_access_token
from quotebook.core.rate_limit import limiter
from quotebook.db import Base, get_db
from quotebook.main import app
from quotebook.models.profile import Profile

# rate limiting uit tijdens tests
limiter.enabled = False


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def client(db):
    # API en test delen één sessie, zodat de test direct kan nakijken wat de API schreef
    def _get_db():
        try:
            yield db
        finally:
            db.rollback()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_profile(db):
    def _make(role: str = "member", email: str | None = None, **kwargs) -> Profile:
        profile = Profile(
            id=str(uuid4()),
            email=email or f"{uuid4().hex[:8]}@motionsense.co.kr",
            full_name=kwargs.pop("full_name", "테스트"),
            role=role,
            **kwargs,
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    return _make


def headers_for(profile: Profile) -> dict:
    token = create_access_token(user_id=profile.id, email=profile.email, role=profile.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(make_profile):
    return make_profile(role="super_admin", email="boss@motionsense.co.kr")


@pytest.fixture
def member(make_profile):
    return make_profile(role="member", email="pd@motionsense.co.kr")


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture
def member_headers(member):
    return headers_for(member)


@pytest.fixture
def quote_payload():
    """
    Groep 'Production' telt mee voor de fee, groep 'Media' niet.
    subtotal 800.000, fee-basis 600.000.
    """

    def _payload(**overrides) -> dict:
        payload = {
            "project_title": "Brand film",
            "customer_name_snapshot": "ACME Korea",
            "vat_type": "exclusive",
            "agency_fee_rate": "10",
            "discount_amount": "10000",
            "groups": [
                {
                    "name": "Production",
                    "include_in_fee": True,
                    "items": [
                        {
                            "name": "Shooting",
                            "details": [
                                {
                                    "name": "Camera crew",
                                    "quantity": "2",
                                    "days": "3",
                                    "unit": "명",
                                    "unit_price": "100000",
                                    "cost_price": "60000",
                                    "supplier_name_snapshot": "Crew Co",
                                }
                            ],
                        }
                    ],
                },
                {
                    "name": "Media",
                    "include_in_fee": False,
                    "items": [
                        {
                            "name": "Editing",
                            "details": [
                                {
                                    "name": "Edit",
                                    "unit_price": "200000",
                                    "is_service": True,
                                }
                            ],
                        }
                    ],
                },
            ],
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.fixture
def create_quote(client, quote_payload):
    def _create(headers: dict, **overrides) -> dict:
        resp = client.post("/quotes", json=quote_payload(**overrides), headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


@pytest.fixture
def set_status(client):
    def _set(quote_id: str, status: str, headers: dict, **extra):
        return client.patch(
            f"/quotes/{quote_id}/status", json={"status": status, **extra}, headers=headers
        )

    return _set


@pytest.fixture
def auth_headers():
    return headers_for
