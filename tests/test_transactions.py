from decimal import Decimal


def make_project(client, create_quote, set_status, headers) -> str:
    quote = create_quote(headers)
    set_status(quote["id"], "sent", headers)
    set_status(quote["id"], "accepted", headers)
    resp = client.post(f"/quotes/{quote['id']}/convert-to-project", json={}, headers=headers)
    return resp.json()["project"]["id"]


def test_create_and_filter_transactions(client, create_quote, set_status, member_headers):
    project_id = make_project(client, create_quote, set_status, member_headers)
    resp = client.post(
        "/transactions",
        json={
            "project_id": project_id,
            "type": "expense",
            "partner_name": "Studio Rent",
            "item_name": "Studio day",
            "amount": "150000",
            "due_date": "2031-03-15",
        },
        headers=member_headers,
    )
    assert resp.status_code == 201
    tx = resp.json()
    assert tx["status"] == "pending"
    assert tx["tax_invoice_status"] == "not_issued"

    resp = client.get(
        "/transactions",
        params={"project_id": project_id, "type": "expense"},
        headers=member_headers,
    )
    assert resp.json()["total"] == 2

    resp = client.get(
        "/transactions",
        params={"due_from": "2031-03-01", "due_to": "2031-03-31"},
        headers=member_headers,
    )
    assert [t["id"] for t in resp.json()["items"]] == [tx["id"]]


def test_transaction_validation(client, create_quote, set_status, member_headers):
    project_id = make_project(client, create_quote, set_status, member_headers)
    base = {
        "project_id": project_id,
        "type": "income",
        "partner_name": "ACME",
        "item_name": "Bonus",
        "amount": "0",
    }
    assert client.post("/transactions", json=base, headers=member_headers).status_code == 422
    resp = client.post(
        "/transactions", json={**base, "amount": "10", "type": "refund"}, headers=member_headers
    )
    assert resp.status_code == 422
    resp = client.post(
        "/transactions",
        json={**base, "amount": "10", "project_id": "nope"},
        headers=member_headers,
    )
    assert resp.status_code == 404


def test_created_completed_income_is_recognised(client, create_quote, set_status, member_headers):
    project_id = make_project(client, create_quote, set_status, member_headers)
    client.post(
        "/transactions",
        json={
            "project_id": project_id,
            "type": "income",
            "partner_name": "ACME",
            "item_name": "Extra cut",
            "amount": "50000",
            "status": "completed",
        },
        headers=member_headers,
    )
    project = client.get(f"/projects/{project_id}", headers=member_headers).json()
    assert Decimal(str(project["total_revenue"])) == Decimal("50000")


def test_tax_invoice_status_update_and_delete(client, create_quote, set_status, member_headers):
    project_id = make_project(client, create_quote, set_status, member_headers)
    txs = client.get("/transactions", params={"project_id": project_id}, headers=member_headers).json()
    tx_id = txs["items"][0]["id"]

    resp = client.patch(
        f"/transactions/{tx_id}", json={"tax_invoice_status": "issued"}, headers=member_headers
    )
    assert resp.json()["tax_invoice_status"] == "issued"

    assert client.delete(f"/transactions/{tx_id}", headers=member_headers).status_code == 204
    assert client.get(f"/transactions/{tx_id}", headers=member_headers).status_code == 404


def test_patch_rejects_null_for_required_fields(client, create_quote, set_status, member_headers):
    project_id = make_project(client, create_quote, set_status, member_headers)
    txs = client.get("/transactions", params={"project_id": project_id}, headers=member_headers).json()
    tx_id = txs["items"][0]["id"]

    for field in ("partner_name", "item_name", "amount", "status", "tax_invoice_status"):
        resp = client.patch(f"/transactions/{tx_id}", json={field: None}, headers=member_headers)
        assert resp.status_code == 422, field

    resp = client.patch(
        f"/transactions/{tx_id}", json={"notes": None, "due_date": None}, headers=member_headers
    )
    assert resp.status_code == 200
    assert resp.json()["due_date"] is None
