from datetime import date
from decimal import Decimal

from quotebook.services.dashboard_service import dashboard_stats


def test_empty_dashboard(client, member_headers):
    resp = client.get("/dashboard", headers=member_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_quotes"] == 0
    assert set(body["quote_counts"]) == {
        "draft", "sent", "accepted", "revised", "completed", "canceled"
    }
    assert body["recent_quotes"] == []


def test_dashboard_figures(client, db, create_quote, set_status, member_headers):
    create_quote(member_headers)
    won = create_quote(member_headers)
    set_status(won["id"], "sent", member_headers)
    set_status(won["id"], "accepted", member_headers)
    converted = client.post(
        f"/quotes/{won['id']}/convert-to-project",
        json={"settlement_periods": 2},
        headers=member_headers,
    ).json()
    first = next(t for t in converted["transactions"] if t["type"] == "income")
    client.patch(f"/transactions/{first['id']}", json={"status": "completed"}, headers=member_headers)

    stats = dashboard_stats(db, date.today())
    assert stats["quote_counts"]["draft"] == 1
    assert stats["quote_counts"]["accepted"] == 1
    assert stats["total_quotes"] == 2
    assert stats["won_quote_value"] == Decimal("935000")
    assert stats["active_projects"] == 1
    assert stats["revenue_this_month"] == Decimal(str(first["amount"]))
    assert stats["outstanding_receivables"] == Decimal("935000") - Decimal(str(first["amount"]))
    assert stats["overdue_transactions"] == 0
    assert len(stats["recent_quotes"]) == 2


def test_health_metrics_and_headers(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Request-ID" in resp.headers

    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "quotes_created_total" in resp.text
