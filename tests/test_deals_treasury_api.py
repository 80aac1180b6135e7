"""Tests for deals, the admin Treasury and the monitoring room."""

from salesdesk.services.deals import default_salesman

from conftest import ADMIN, OTHER_SALESMAN, SALESMAN, deal_payload, lead_payload


def test_default_salesman_from_email():
    assert default_salesman("anna.k@example.com") == {
        "salesman_name": "anna.k",
        "salesman_email": "anna.k@example.com",
    }
    assert default_salesman(None) == {"salesman_name": "", "salesman_email": ""}


class TestDealsApi:
    def test_create_defaults_salesman_to_actor(self, client):
        resp = client.post("/api/deals", headers=SALESMAN, json=deal_payload())
        assert resp.status_code == 201
        body = resp.json()
        assert body["salesman_name"] == "anna"
        assert body["salesman_email"] == "anna@example.com"
        assert body["payment_type"] == "one_time"
        assert body["status"] == "active"

    def test_explicit_salesman_is_kept(self, client):
        body = client.post(
            "/api/deals",
            headers=SALESMAN,
            json=deal_payload(salesman_name="Ben", salesman_email="ben@example.com"),
        ).json()
        assert body["salesman_email"] == "ben@example.com"

    def test_owner_only_edits(self, client):
        deal = client.post("/api/deals", headers=SALESMAN, json=deal_payload()).json()
        resp = client.put(
            f"/api/deals/{deal['id']}", headers=OTHER_SALESMAN, json=deal_payload(deal_value=1)
        )
        assert resp.status_code == 403

        resp = client.put(
            f"/api/deals/{deal['id']}", headers=SALESMAN, json=deal_payload(deal_value=1500)
        )
        assert resp.status_code == 200
        assert resp.json()["deal_value"] == 1500
        # blank salesman on update keeps the stored one
        assert resp.json()["salesman_email"] == "anna@example.com"

    def test_list_and_summary_are_actor_scoped(self, client):
        client.post("/api/deals", headers=SALESMAN, json=deal_payload())
        client.post(
            "/api/deals",
            headers=SALESMAN,
            json=deal_payload(title="Support", payment_type="monthly", monthly_amount=99,
                              installation_fee=0),
        )
        client.post("/api/deals", headers=OTHER_SALESMAN, json=deal_payload(deal_value=9999))

        assert len(client.get("/api/deals", headers=SALESMAN).json()) == 2
        monthly = client.get("/api/deals", headers=SALESMAN, params={"payment_type": "monthly"})
        assert [d["title"] for d in monthly.json()] == ["Support"]

        summary = client.get("/api/deals/summary", headers=SALESMAN).json()
        assert summary["total_deals"] == 2
        assert summary["monthly_recurring"] == 99
        assert summary["one_time_total"] == 1000

    def test_negative_value_rejected(self, client):
        resp = client.post("/api/deals", headers=SALESMAN, json=deal_payload(deal_value=-5))
        assert resp.status_code == 422


class TestTreasuryApi:
    def test_admin_only(self, client):
        assert client.get("/api/treasury", headers=SALESMAN).status_code == 403
        assert client.get("/admin/treasury", headers=SALESMAN).status_code == 403

    def test_rollup(self, client):
        client.post("/api/deals", headers=SALESMAN, json=deal_payload())
        client.post(
            "/api/deals",
            headers=OTHER_SALESMAN,
            json=deal_payload(deal_value=4000, closed_date="2023-02-01", installation_fee=0),
        )

        report = client.get("/api/treasury", headers=ADMIN).json()
        assert report["window"] == "all"
        assert report["company"]["total_value"] == 5000
        assert report["company"]["active_salesmen"] == 2
        assert report["company"]["one_time_payments"] == 5200
        assert [s["email"] for s in report["salesmen"]] == ["ben@example.com", "anna@example.com"]

        assert client.get("/api/treasury", headers=ADMIN, params={"window": "week"}).status_code == 422

    def test_admin_edit_and_delete_any_deal(self, client):
        deal = client.post("/api/deals", headers=SALESMAN, json=deal_payload()).json()

        resp = client.put(
            f"/api/treasury/deals/{deal['id']}",
            headers=ADMIN,
            json=deal_payload(status="completed"),
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"
        assert resp.json()["user_id"] == "user-anna"

        resp = client.delete(f"/api/treasury/deals/{deal['id']}", headers=ADMIN)
        assert resp.json() == {"deleted": 1}
        assert client.get("/api/deals", headers=SALESMAN).json() == []

    def test_html_page(self, client):
        client.post("/api/deals", headers=SALESMAN, json=deal_payload())
        resp = client.get("/admin/treasury", headers=ADMIN, params={"window": "all"})
        assert resp.status_code == 200
        assert "Treasury" in resp.text
        assert "anna@example.com" in resp.text


class TestMonitoring:
    def test_system_stats(self, client):
        client.post("/api/leads", headers=SALESMAN, json=lead_payload())
        client.post("/api/leads", headers=OTHER_SALESMAN, json=lead_payload(company="Beta"))
        client.post("/api/deals", headers=SALESMAN, json=deal_payload())
        client.post("/api/deals", headers=OTHER_SALESMAN, json=deal_payload())

        assert client.get("/api/monitoring", headers=SALESMAN).status_code == 403

        body = client.get("/api/monitoring", headers=ADMIN).json()
        stats = body["stats"]
        assert stats["total_leads"] == 2
        assert stats["total_deals"] == 2
        assert stats["active_salesmen"] == 2
        assert stats["overdue_leads"] == 0
        assert stats["today_activities"] >= 4
        assert body["interval_seconds"] == 5

    def test_html_pages(self, client):
        assert client.get("/admin/monitoring", headers=ADMIN).status_code == 200
        assert client.get("/admin/lead-timers", headers=ADMIN).status_code == 200
        page = client.get("/admin/import", headers=ADMIN)
        assert page.status_code == 200
        assert "GO/SKIP" in page.text
