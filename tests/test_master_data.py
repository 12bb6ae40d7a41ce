from decimal import Decimal

import pytest


def make_client(client, headers, **overrides):
    payload = {"name": "ACME Korea", "business_registration_number": "123-45-67890"}
    payload.update(overrides)
    resp = client.post("/clients", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_master_data_requires_login(client):
    assert client.get("/clients").status_code == 401
    assert client.get("/suppliers").status_code == 401
    assert client.get("/master-items").status_code == 401


@pytest.mark.parametrize(
    "field,value",
    [
        ("business_registration_number", "1234567890"),
        ("phone", "call me maybe"),
        ("phone", "0" * 21),
        ("email", "not-an-email"),
    ],
)
def test_client_validation(client, member_headers, field, value):
    resp = client.post("/clients", json={"name": "X", field: value}, headers=member_headers)
    assert resp.status_code == 422


def test_blank_email_is_stored_as_null(client, member_headers):
    body = make_client(client, member_headers, email="  ", phone="02-123-4567")
    assert body["email"] is None
    assert body["phone"] == "02-123-4567"


def test_client_search_pagination_and_soft_delete(client, member_headers):
    for name in ("Alpha Films", "Beta Studio", "Gamma Films"):
        make_client(client, member_headers, name=name, business_registration_number=None)

    page = client.get("/clients", params={"search": "films"}, headers=member_headers).json()
    assert page["total"] == 2
    assert [c["name"] for c in page["items"]] == ["Alpha Films", "Gamma Films"]

    page = client.get(
        "/clients", params={"per_page": 2, "page": 2}, headers=member_headers
    ).json()
    assert page["total"] == 3
    assert page["total_pages"] == 2
    assert [c["name"] for c in page["items"]] == ["Gamma Films"]

    beta = client.get("/clients", params={"search": "beta"}, headers=member_headers).json()
    beta_id = beta["items"][0]["id"]
    resp = client.delete(f"/clients/{beta_id}", headers=member_headers)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    active = client.get("/clients", params={"is_active": True}, headers=member_headers).json()
    assert active["total"] == 2
    # soft delete: nog steeds op te vragen
    assert client.get(f"/clients/{beta_id}", headers=member_headers).status_code == 200


def test_client_bad_sort_and_unknown_id(client, member_headers):
    assert client.get("/clients", params={"sort_by": "email"}, headers=member_headers).status_code == 422
    assert client.get("/clients/nope", headers=member_headers).status_code == 404


def test_client_update(client, member_headers):
    acme = make_client(client, member_headers)
    resp = client.patch(
        f"/clients/{acme['id']}", json={"contact_person": "Kim"}, headers=member_headers
    )
    assert resp.status_code == 200
    assert resp.json()["contact_person"] == "Kim"
    assert resp.json()["name"] == "ACME Korea"


def test_client_summary(client, member_headers, admin_headers, create_quote, set_status):
    acme = make_client(client, member_headers)
    q = create_quote(member_headers, client_id=acme["id"], customer_name_snapshot=None)
    create_quote(member_headers, client_id=acme["id"], customer_name_snapshot=None)
    set_status(q["id"], "sent", member_headers)
    set_status(q["id"], "accepted", member_headers)
    client.post(f"/quotes/{q['id']}/convert-to-project", json={}, headers=member_headers)

    resp = client.get(f"/clients/{acme['id']}/summary", headers=member_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["quote_count"] == 2
    assert Decimal(str(body["accepted_quote_total"])) == Decimal("935000")
    assert body["project_count"] == 1
    assert Decimal(str(body["completed_income"])) == 0
    assert Decimal(str(body["outstanding_receivables"])) == Decimal("935000")


def test_supplier_crud(client, member_headers):
    resp = client.post(
        "/suppliers",
        json={"name": "Crew Co", "bank_name": "국민은행", "bank_account": "123-456"},
        headers=member_headers,
    )
    assert resp.status_code == 201
    supplier = resp.json()

    resp = client.patch(
        f"/suppliers/{supplier['id']}", json={"payment_terms": "월말"}, headers=member_headers
    )
    assert resp.json()["payment_terms"] == "월말"

    assert client.delete(f"/suppliers/{supplier['id']}", headers=member_headers).json()["is_active"] is False


def test_master_item_price_history(client, member_headers):
    supplier = client.post("/suppliers", json={"name": "Crew Co"}, headers=member_headers).json()
    resp = client.post(
        "/master-items",
        json={
            "name": "Drone",
            "category": "equipment",
            "default_unit_price": "500000",
            "cost_price": "300000",
            "supplier_id": supplier["id"],
        },
        headers=member_headers,
    )
    assert resp.status_code == 201
    item = resp.json()
    assert item["unit"] == "개"

    client.patch(f"/master-items/{item['id']}", json={"description": "4K"}, headers=member_headers)
    client.patch(
        f"/master-items/{item['id']}", json={"default_unit_price": "550000"}, headers=member_headers
    )

    history = client.get(f"/master-items/{item['id']}/price-history", headers=member_headers).json()
    assert [Decimal(str(h["unit_price"])) for h in history] == [Decimal("500000"), Decimal("550000")]
    assert all(Decimal(str(h["cost_price"])) == Decimal("300000") for h in history)

    listed = client.get(
        "/master-items", params={"category": "equipment"}, headers=member_headers
    ).json()
    assert listed["total"] == 1


def test_master_item_unknown_supplier(client, member_headers):
    resp = client.post(
        "/master-items",
        json={"name": "Drone", "supplier_id": "missing"},
        headers=member_headers,
    )
    assert resp.status_code == 422


def test_patch_rejects_null_for_required_fields(client, member_headers):
    acme = make_client(client, member_headers)
    assert client.patch(f"/clients/{acme['id']}", json={"name": None}, headers=member_headers).status_code == 422

    supplier = client.post("/suppliers", json={"name": "Crew Co"}, headers=member_headers).json()
    resp = client.patch(f"/suppliers/{supplier['id']}", json={"is_active": None}, headers=member_headers)
    assert resp.status_code == 422

    item = client.post(
        "/master-items", json={"name": "Drone", "default_unit_price": "500000"}, headers=member_headers
    ).json()
    for field in ("name", "unit", "default_unit_price", "cost_price"):
        resp = client.patch(f"/master-items/{item['id']}", json={field: None}, headers=member_headers)
        assert resp.status_code == 422, field

    history = client.get(f"/master-items/{item['id']}/price-history", headers=member_headers).json()
    assert len(history) == 1
