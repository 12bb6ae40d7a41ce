from decimal import Decimal

from quotebook.models.notification import Notification
from quotebook.models.quote import Quote
from quotebook.models.transaction import RevenueRecognitionLog


def money(value) -> Decimal:
    return Decimal(str(value))


def accepted_quote(create_quote, set_status, headers) -> dict:
    quote = create_quote(headers)
    set_status(quote["id"], "sent", headers)
    set_status(quote["id"], "accepted", headers)
    return quote


def convert(client, quote_id, headers, **body):
    return client.post(f"/quotes/{quote_id}/convert-to-project", json=body, headers=headers)


def test_convert_creates_project_and_transactions(client, create_quote, set_status, member_headers, db, member):
    quote = accepted_quote(create_quote, set_status, member_headers)
    resp = convert(client, quote["id"], member_headers, end_date="2026-12-31")
    assert resp.status_code == 201, resp.text
    body = resp.json()

    project = body["project"]
    assert project["quote_id"] == quote["id"]
    assert project["status"] == "active"
    assert money(project["contract_amount"]) == Decimal("850000")
    assert money(project["total_revenue"]) == Decimal("0")

    income = [t for t in body["transactions"] if t["type"] == "income"]
    expense = [t for t in body["transactions"] if t["type"] == "expense"]
    assert len(income) == 1
    assert money(income[0]["amount"]) == Decimal("935000")
    assert income[0]["item_name"] == "Brand film - settlement"
    assert income[0]["partner_name"] == "ACME Korea"
    assert income[0]["due_date"] == "2026-12-31"

    # service detail (Edit) krijgt geen expense
    assert len(expense) == 1
    assert expense[0]["partner_name"] == "Crew Co"
    assert money(expense[0]["amount"]) == Decimal("360000")

    n = db.query(Notification).filter(Notification.user_id == member.id).one()
    assert n.type == "project_created"


def test_convert_with_installments(client, create_quote, set_status, member_headers):
    quote = accepted_quote(create_quote, set_status, member_headers)
    body = convert(client, quote["id"], member_headers, settlement_periods=3).json()
    income = [t for t in body["transactions"] if t["type"] == "income"]
    amounts = [money(t["amount"]) for t in income]
    assert amounts == [Decimal("311667"), Decimal("311667"), Decimal("311666")]
    assert income[1]["item_name"] == "Brand film - 2/3 settlement"
    assert income[0]["due_date"] < income[1]["due_date"] < income[2]["due_date"]


def test_convert_with_explicit_schedule(client, create_quote, set_status, member_headers):
    quote = accepted_quote(create_quote, set_status, member_headers)
    schedule = [
        {"amount": "500000", "due_date": "2026-11-30", "description": "계약금"},
        {"amount": "435000", "due_date": "2026-12-31"},
    ]
    body = convert(client, quote["id"], member_headers, settlement_schedule=schedule).json()
    income = [t for t in body["transactions"] if t["type"] == "income"]
    assert [t["item_name"] for t in income] == ["계약금", "Brand film - 2/2 settlement"]


def test_convert_requires_accepted_and_only_once(client, create_quote, set_status, member_headers):
    draft = create_quote(member_headers)
    resp = convert(client, draft["id"], member_headers)
    assert resp.status_code == 409

    assert convert(client, "missing", member_headers).status_code == 404

    quote = accepted_quote(create_quote, set_status, member_headers)
    assert convert(client, quote["id"], member_headers).status_code == 201
    resp = convert(client, quote["id"], member_headers)
    assert resp.status_code == 409
    assert resp.json()["code"] == "conflict"


def test_revenue_recognition_and_completed_is_frozen(client, create_quote, set_status, member_headers, db):
    quote = accepted_quote(create_quote, set_status, member_headers)
    body = convert(client, quote["id"], member_headers).json()
    project_id = body["project"]["id"]
    income = next(t for t in body["transactions"] if t["type"] == "income")

    resp = client.patch(
        f"/transactions/{income['id']}", json={"status": "completed"}, headers=member_headers
    )
    assert resp.status_code == 200
    assert resp.json()["completed_at"] is not None

    project = client.get(f"/projects/{project_id}", headers=member_headers).json()
    assert money(project["total_revenue"]) == Decimal("935000")
    assert money(project["financials"]["receivables"]) == Decimal("0")

    logs = db.query(RevenueRecognitionLog).filter(RevenueRecognitionLog.project_id == project_id).all()
    assert [Decimal(str(log.amount)) for log in logs] == [Decimal("935000")]

    resp = client.patch(f"/transactions/{income['id']}", json={"amount": "1"}, headers=member_headers)
    assert resp.status_code == 409
    resp = client.patch(
        f"/transactions/{income['id']}", json={"status": "pending"}, headers=member_headers
    )
    assert resp.status_code == 409
    assert client.delete(f"/transactions/{income['id']}", headers=member_headers).status_code == 409

    # notities mogen nog wel
    resp = client.patch(
        f"/transactions/{income['id']}", json={"notes": "입금 확인"}, headers=member_headers
    )
    assert resp.status_code == 200


def test_expense_completion_does_not_recognise_revenue(client, create_quote, set_status, member_headers):
    quote = accepted_quote(create_quote, set_status, member_headers)
    body = convert(client, quote["id"], member_headers).json()
    expense = next(t for t in body["transactions"] if t["type"] == "expense")
    client.patch(f"/transactions/{expense['id']}", json={"status": "completed"}, headers=member_headers)

    project = client.get(f"/projects/{body['project']['id']}", headers=member_headers).json()
    assert money(project["total_revenue"]) == Decimal("0")
    assert money(project["financials"]["completed_expenses"]) == Decimal("360000")


def test_complete_project_completes_quote(client, create_quote, set_status, member_headers, db):
    quote = accepted_quote(create_quote, set_status, member_headers)
    body = convert(client, quote["id"], member_headers).json()
    project_id = body["project"]["id"]
    income = next(t for t in body["transactions"] if t["type"] == "income")
    client.patch(f"/transactions/{income['id']}", json={"status": "completed"}, headers=member_headers)

    resp = client.patch(f"/projects/{project_id}", json={"status": "completed"}, headers=member_headers)
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["project"]["status"] == "completed"
    settlement = payload["settlement"]
    assert money(settlement["actual_income"]) == Decimal("935000")
    assert money(settlement["actual_expense"]) == Decimal("0")
    assert settlement["pending_transactions"] == 1

    assert db.get(Quote, quote["id"]).status == "completed"

    resp = client.patch(f"/projects/{project_id}", json={"status": "active"}, headers=member_headers)
    assert resp.status_code == 409


def test_project_list_and_filters(client, create_quote, set_status, member_headers):
    quote = accepted_quote(create_quote, set_status, member_headers)
    convert(client, quote["id"], member_headers)

    resp = client.get("/projects", params={"status": "active"}, headers=member_headers)
    assert resp.json()["total"] == 1
    resp = client.get("/projects", params={"status": "on_hold"}, headers=member_headers)
    assert resp.json()["total"] == 0
    resp = client.get("/projects", params={"search": "brand"}, headers=member_headers)
    assert resp.json()["total"] == 1


def test_project_patch_rejects_null_for_required_fields(client, create_quote, set_status, member_headers):
    quote = accepted_quote(create_quote, set_status, member_headers)
    project_id = convert(client, quote["id"], member_headers).json()["project"]["id"]

    for body in ({"name": None}, {"status": None}):
        resp = client.patch(f"/projects/{project_id}", json=body, headers=member_headers)
        assert resp.status_code == 422

    resp = client.patch(
        f"/projects/{project_id}", json={"description": None}, headers=member_headers
    )
    assert resp.status_code == 200
