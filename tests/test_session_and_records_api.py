"""Tests for the session endpoints, projects, demos and status updates."""

from datetime import date, timedelta

from salesdesk.services.demos import is_demo_overdue, next_status
from salesdesk.services.roles import role_cache

from conftest import ADMIN, OTHER_SALESMAN, SALESMAN


class TestSession:
    def test_roles_from_allowlist(self, client):
        me = client.get("/api/session", headers=SALESMAN).json()
        assert me["role"] == "salesman"
        assert me["display_name"] == "anna"
        assert me["is_admin"] is False

        boss = client.get("/api/session", headers=ADMIN).json()
        assert boss["is_admin"] is True
        assert boss["role_persisted"] is True

    def test_sign_out_clears_cached_role(self, client):
        client.get("/api/session", headers=SALESMAN)
        assert role_cache.get("user-anna") is not None
        resp = client.post("/api/session/sign-out", headers=SALESMAN)
        assert resp.json() == {"signed_out": True}
        assert role_cache.get("user-anna") is None

    def test_healthz(self, client):
        assert client.get("/healthz").json()["status"] == "ok"


class TestProjects:
    def test_crud_shared_across_actors(self, client):
        resp = client.post(
            "/api/projects",
            headers=SALESMAN,
            json={"title": "Portal", "company": "Acme Oy", "deadline": "2024-09-30"},
        )
        assert resp.status_code == 201
        project = resp.json()

        listed = client.get("/api/projects", headers=OTHER_SALESMAN).json()
        assert [p["title"] for p in listed] == ["Portal"]

        resp = client.put(
            f"/api/projects/{project['id']}",
            headers=OTHER_SALESMAN,
            json={"title": "Portal v2", "company": "Acme Oy"},
        )
        assert resp.json()["title"] == "Portal v2"

        assert client.delete(f"/api/projects/{project['id']}", headers=SALESMAN).status_code == 200
        assert client.get(f"/api/projects/{project['id']}", headers=SALESMAN).status_code == 404


class TestDemos:
    def test_next_status(self):
        assert next_status("pending") == "in-progress"
        assert next_status("in-progress") == "completed"
        assert next_status("completed") is None

    def test_overdue_flag(self):
        today = date(2024, 5, 15)
        assert is_demo_overdue(date(2024, 5, 14), "pending", today)
        assert not is_demo_overdue(date(2024, 5, 14), "completed", today)
        assert not is_demo_overdue(date(2024, 5, 15), "in-progress", today)
        assert not is_demo_overdue(None, "pending", today)

    def test_advance_and_filters(self, client):
        past = (date.today() - timedelta(days=2)).isoformat()
        demo = client.post(
            "/api/demos",
            headers=SALESMAN,
            json={"title": "Acme walkthrough", "priority": "high", "due_date": past},
        ).json()
        assert demo["status"] == "pending"
        assert demo["is_overdue"] is True

        url = f"/api/demos/{demo['id']}/advance"
        assert client.post(url, headers=SALESMAN).json()["status"] == "in-progress"
        done = client.post(url, headers=SALESMAN).json()
        assert done["status"] == "completed"
        assert done["is_overdue"] is False
        assert client.post(url, headers=SALESMAN).json()["status"] == "completed"

        client.post("/api/demos", headers=SALESMAN, json={"title": "Beta intro"})
        pending = client.get("/api/demos", headers=SALESMAN, params={"status": "pending"}).json()
        assert [d["title"] for d in pending] == ["Beta intro"]
        found = client.get("/api/demos", headers=SALESMAN, params={"search": "ACME"}).json()
        assert [d["title"] for d in found] == ["Acme walkthrough"]

    def test_set_status(self, client):
        demo = client.post("/api/demos", headers=SALESMAN, json={"title": "X"}).json()
        resp = client.patch(f"/api/demos/{demo['id']}", headers=SALESMAN, json={"status": "completed"})
        assert resp.json()["status"] == "completed"
        bad = client.patch(f"/api/demos/{demo['id']}", headers=SALESMAN, json={"status": "done"})
        assert bad.status_code == 422


class TestStatusUpdates:
    def test_list_newest_first_and_delete_own_only(self, client):
        demo = client.post("/api/demos", headers=SALESMAN, json={"title": "X"}).json()
        for comment in ("first", "second"):
            resp = client.post(
                "/api/status-updates",
                headers=SALESMAN,
                json={"target_type": "demo", "target_id": demo["id"], "comment": comment},
            )
            assert resp.status_code == 201
        theirs = client.post(
            "/api/status-updates",
            headers=OTHER_SALESMAN,
            json={"target_type": "demo", "target_id": demo["id"], "comment": "third"},
        ).json()

        listed = client.get(f"/api/status-updates/demo/{demo['id']}", headers=SALESMAN).json()
        assert [u["comment"] for u in listed] == ["third", "second", "first"]

        assert client.delete(f"/api/status-updates/{theirs['id']}", headers=SALESMAN).status_code == 403
        assert client.delete(f"/api/status-updates/{theirs['id']}", headers=OTHER_SALESMAN).json() == {
            "deleted": 1
        }

    def test_unknown_target_is_404(self, client):
        resp = client.post(
            "/api/status-updates",
            headers=SALESMAN,
            json={"target_type": "project", "target_id": 999, "comment": "hello"},
        )
        assert resp.status_code == 404
