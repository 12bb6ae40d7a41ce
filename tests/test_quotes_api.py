from datetime import date, timedelta
from decimal import Decimal

from quotebook.models.notification import Notification
from quotebook.models.quote import QuoteStatusHistory


def money(value) -> Decimal:
    return Decimal(str(value))


def test_requires_authentication(client):
    resp = client.get("/quotes")
    assert resp.status_code == 401
    assert resp.json()["code"] == "not_authenticated"


def test_calculate_endpoint(client, member_headers, quote_payload):
    resp = client.post("/quotes/calculate", json=quote_payload(), headers=member_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert money(body["final_total"]) == Decimal("935000")
    assert money(body["agency_fee"]) == Decimal("60000")
    assert len(body["groups"]) == 2


def test_calculate_ignores_header_fields_but_not_unknown_line_fields(client, member_headers, quote_payload):
    payload = quote_payload(issue_date="2031-01-05", client_id=None)
    assert client.post("/quotes/calculate", json=payload, headers=member_headers).status_code == 200

    payload["groups"][0]["items"][0]["details"][0]["colour"] = "red"
    assert client.post("/quotes/calculate", json=payload, headers=member_headers).status_code == 422


def test_oversized_discount_is_stored_capped(client, create_quote, member_headers):
    quote = create_quote(member_headers, discount_amount="5000000")
    assert money(quote["discount_amount"]) == Decimal("860000")
    assert money(quote["total_amount"]) == Decimal("0")

    fetched = client.get(f"/quotes/{quote['id']}", headers=member_headers).json()
    assert money(fetched["discount_amount"]) == Decimal("860000")


def test_create_quote_stores_totals_and_defaults(client, create_quote, member, member_headers, admin):
    quote = create_quote(member_headers)

    today = date.today()
    assert quote["status"] == "draft"
    assert quote["version"] == 1
    assert quote["quote_number"] == f"Q{today:%Y%m%d}001"
    assert quote["valid_until"] == (today + timedelta(days=30)).isoformat()
    assert money(quote["total_amount"]) == Decimal("935000")
    assert money(quote["supply_amount"]) == Decimal("850000")
    assert money(quote["total_cost"]) == Decimal("360000")
    assert quote["created_by"] == member.id
    assert quote["allowed_transitions"] == ["canceled", "sent"]
    assert quote["groups"][0]["items"][0]["details"][0]["supplier_name_snapshot"] == "Crew Co"


def test_create_quote_notifies_admins(client, create_quote, db, admin, member_headers):
    quote = create_quote(member_headers)
    n = db.query(Notification).filter(Notification.user_id == admin.id).one()
    assert n.type == "quote_created"
    assert n.entity_id == quote["id"]


def test_quote_numbers_increment(client, create_quote, member_headers):
    first = create_quote(member_headers)
    second = create_quote(member_headers)
    assert int(second["quote_number"][-3:]) == int(first["quote_number"][-3:]) + 1


def test_create_quote_validation(client, member_headers, quote_payload):
    resp = client.post(
        "/quotes",
        json=quote_payload(customer_name_snapshot=None),
        headers=member_headers,
    )
    assert resp.status_code == 422

    resp = client.post("/quotes", json=quote_payload(groups=[]), headers=member_headers)
    assert resp.status_code == 422

    resp = client.post("/quotes", json=quote_payload(agency_fee_rate="150"), headers=member_headers)
    assert resp.status_code == 422


def test_create_quote_snapshots_client(client, member_headers, quote_payload):
    c = client.post(
        "/clients",
        json={"name": "Hanbit Corp", "business_registration_number": "123-45-67890"},
        headers=member_headers,
    ).json()
    resp = client.post(
        "/quotes",
        json=quote_payload(client_id=c["id"], customer_name_snapshot=None),
        headers=member_headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["customer_name_snapshot"] == "Hanbit Corp"
    assert body["business_registration_number"] == "123-45-67890"


def test_list_quotes_filters(client, create_quote, member_headers, set_status):
    a = create_quote(member_headers, project_title="Alpha campaign")
    create_quote(member_headers, project_title="Beta launch")
    set_status(a["id"], "sent", member_headers)

    resp = client.get("/quotes", params={"status": "sent"}, headers=member_headers)
    assert resp.status_code == 200
    assert [q["id"] for q in resp.json()["items"]] == [a["id"]]

    resp = client.get("/quotes", params={"search": "beta"}, headers=member_headers)
    assert [q["project_title"] for q in resp.json()["items"]] == ["Beta launch"]

    resp = client.get("/quotes", params={"status": "draft,sent"}, headers=member_headers)
    assert resp.json()["total"] == 2

    resp = client.get("/quotes", params={"status": "bogus"}, headers=member_headers)
    assert resp.status_code == 422

    resp = client.get("/quotes", params={"per_page": 101}, headers=member_headers)
    assert resp.status_code == 422


def test_status_workflow_stamps_and_history(client, create_quote, db, member, member_headers, set_status):
    quote = create_quote(member_headers)

    resp = set_status(quote["id"], "sent", member_headers)
    assert resp.status_code == 200
    assert resp.json()["sent_at"] is not None

    resp = set_status(quote["id"], "accepted", member_headers, notes="signed")
    body = resp.json()
    assert body["status"] == "accepted"
    assert body["accepted_by"] == member.id
    assert [h["to_status"] for h in body["status_history"]] == ["sent", "accepted"]

    rows = db.query(QuoteStatusHistory).filter(QuoteStatusHistory.quote_id == quote["id"]).all()
    assert [(r.from_status, r.to_status) for r in rows] == [("draft", "sent"), ("sent", "accepted")]


def test_invalid_transitions(client, create_quote, member_headers, set_status):
    quote = create_quote(member_headers)

    resp = set_status(quote["id"], "accepted", member_headers)
    assert resp.status_code == 409
    assert resp.json()["code"] == "invalid_transition"

    resp = set_status(quote["id"], "draft", member_headers)
    assert resp.status_code == 409

    resp = set_status(quote["id"], "approved", member_headers)
    assert resp.status_code == 422


def test_cancel_records_reason_and_is_terminal(client, create_quote, admin, admin_headers, set_status):
    quote = create_quote(admin_headers)
    resp = set_status(quote["id"], "canceled", admin_headers, reason="budget cut")
    body = resp.json()
    assert body["cancel_reason"] == "budget cut"
    assert body["canceled_by"] == admin.id

    assert set_status(quote["id"], "sent", admin_headers).status_code == 409


def test_complete_requires_project(client, create_quote, member_headers, set_status):
    quote = create_quote(member_headers)
    set_status(quote["id"], "sent", member_headers)
    set_status(quote["id"], "accepted", member_headers)

    resp = set_status(quote["id"], "completed", member_headers)
    assert resp.status_code == 409

    client.post(f"/quotes/{quote['id']}/convert-to-project", json={}, headers=member_headers)
    resp = set_status(quote["id"], "completed", member_headers)
    assert resp.status_code == 200
    assert resp.json()["completed_at"] is not None


def test_members_cannot_touch_other_quotes(
    client, create_quote, make_profile, admin_headers, auth_headers, set_status
):
    other = auth_headers(make_profile(role="member"))
    quote = create_quote(admin_headers)

    assert set_status(quote["id"], "sent", other).status_code == 403
    assert client.delete(f"/quotes/{quote['id']}", headers=other).status_code == 403


def test_status_change_notifies_creator(client, create_quote, db, member, member_headers, admin_headers, set_status):
    quote = create_quote(member_headers)
    set_status(quote["id"], "sent", member_headers)
    set_status(quote["id"], "accepted", admin_headers)

    n = (
        db.query(Notification)
        .filter(Notification.user_id == member.id, Notification.type == "quote_approved")
        .one()
    )
    assert n.priority == "high"


def test_update_increments_version_and_only_in_editable_states(
    client, create_quote, member_headers, quote_payload, set_status
):
    quote = create_quote(member_headers)
    resp = client.put(
        f"/quotes/{quote['id']}",
        json=quote_payload(project_title="Brand film v2", discount_amount="0"),
        headers=member_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["version"] == 2
    assert body["project_title"] == "Brand film v2"
    assert money(body["total_amount"]) == Decimal("946000")

    set_status(quote["id"], "sent", member_headers)
    resp = client.put(f"/quotes/{quote['id']}", json=quote_payload(), headers=member_headers)
    assert resp.status_code == 409

    set_status(quote["id"], "revised", member_headers)
    resp = client.put(f"/quotes/{quote['id']}", json=quote_payload(), headers=member_headers)
    assert resp.status_code == 200
    assert resp.json()["version"] == 3


def test_delete_rules(client, create_quote, member_headers, set_status):
    draft = create_quote(member_headers)
    assert client.delete(f"/quotes/{draft['id']}", headers=member_headers).status_code == 204
    assert client.get(f"/quotes/{draft['id']}", headers=member_headers).status_code == 404

    accepted = create_quote(member_headers)
    set_status(accepted["id"], "sent", member_headers)
    set_status(accepted["id"], "accepted", member_headers)
    resp = client.delete(f"/quotes/{accepted['id']}", headers=member_headers)
    assert resp.status_code == 409


def test_copy_quote(client, create_quote, member_headers):
    source = create_quote(member_headers)
    resp = client.post(
        f"/quotes/{source['id']}/copy",
        json={"project_title": "Brand film (copy)"},
        headers=member_headers,
    )
    assert resp.status_code == 201
    copy = resp.json()
    assert copy["parent_quote_id"] == source["id"]
    assert copy["status"] == "draft"
    assert copy["version"] == 1
    assert copy["quote_number"] != source["quote_number"]
    assert money(copy["total_amount"]) == money(source["total_amount"])


def test_copy_structure_only_resets_numbers(client, create_quote, member_headers):
    source = create_quote(member_headers)
    resp = client.post(
        f"/quotes/{source['id']}/copy",
        json={"project_title": "Template run", "copy_structure_only": True},
        headers=member_headers,
    )
    copy = resp.json()
    detail = copy["groups"][0]["items"][0]["details"][0]
    assert detail["name"] == "Camera crew"
    assert detail["unit"] == "명"
    assert money(detail["quantity"]) == Decimal("1")
    assert money(detail["days"]) == Decimal("1")
    assert money(detail["unit_price"]) == Decimal("0")
    assert money(copy["total_amount"]) == Decimal("0")


def test_templates_roundtrip(client, create_quote, member_headers):
    quote = create_quote(member_headers)
    resp = client.post(
        f"/quotes/{quote['id']}/save-as-template",
        json={"name": "Brand film base"},
        headers=member_headers,
    )
    assert resp.status_code == 201
    template = resp.json()
    assert template["template_data"]["vat_type"] == "exclusive"
    assert len(template["template_data"]["groups"]) == 2

    listed = client.get("/quote-templates", headers=member_headers).json()
    assert [t["id"] for t in listed] == [template["id"]]

    assert client.delete(f"/quote-templates/{template['id']}", headers=member_headers).status_code == 204
    assert client.get(f"/quote-templates/{template['id']}", headers=member_headers).status_code == 404


def test_export_xlsx(client, create_quote, member_headers):
    quote = create_quote(member_headers)
    resp = client.get(f"/quotes/{quote['id']}/export.xlsx", headers=member_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert resp.content[:2] == b"PK"
