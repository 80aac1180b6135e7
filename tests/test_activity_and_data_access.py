"""Tests for the activity logger and the data access boundary."""

from datetime import date
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from salesdesk.models import ActivityLog, Deal, Demo, Lead, Project
from salesdesk.models.enums import ActionType, TargetType
from salesdesk.routers import dashboard as dashboard_router
from salesdesk.services.activity_logger import log_activity
from salesdesk.services.data_access import QueryResult, load_actor_data

from conftest import SALESMAN


class TestLogActivity:
    def test_writes_row(self, db):
        ok = log_activity(
            db,
            user_id="user-anna",
            user_email="anna@example.com",
            action_type=ActionType.CALL,
            action_details="Called Acme",
            target_type=TargetType.LEAD,
            target_id=7,
            target_name="Acme Oy",
            metadata={"call_status": "answered"},
        )
        assert ok is True
        entry = db.query(ActivityLog).one()
        assert entry.action_type == "call"
        assert entry.target_type == "lead"
        assert entry.target_id == "7"
        assert entry.details == {"call_status": "answered"}

    def test_failure_is_swallowed_and_rolled_back(self):
        broken = MagicMock()
        broken.commit.side_effect = OperationalError("INSERT", {}, Exception("down"))
        ok = log_activity(
            broken,
            user_id="user-anna",
            user_email="anna@example.com",
            action_type="view",
            action_details="Opened leads",
            target_type="page",
        )
        assert ok is False
        broken.rollback.assert_called_once()

    def test_activity_endpoint(self, client, db):
        resp = client.post(
            "/api/activity",
            headers=SALESMAN,
            json={
                "action_type": "navigate",
                "action_details": "Opened deals tab",
                "target_type": "page",
                "metadata": {"tab": "deals"},
            },
        )
        assert resp.status_code == 202
        assert resp.json() == {"logged": True}
        assert db.query(ActivityLog).filter(ActivityLog.action_type == "navigate").count() == 1

    def test_activity_endpoint_validates_enums(self, client):
        resp = client.post(
            "/api/activity",
            headers=SALESMAN,
            json={"action_type": "dance", "action_details": "x", "target_type": "page"},
        )
        assert resp.status_code == 422


class TestLoadActorData:
    def test_actor_scoped_and_shared_entities(self, db):
        db.add_all([
            Lead(user_id="user-anna", name="A", company="Anna Co", status="prospect"),
            Lead(user_id="user-ben", name="B", company="Ben Co", status="prospect"),
            Project(user_id="user-ben", title="Portal", company="Ben Co"),
            Demo(user_id="user-ben", title="Walkthrough"),
            Deal(user_id="user-ben", title="Big", company="Ben Co",
                 closed_date=date(2024, 5, 1)),
        ])
        db.commit()

        result = load_actor_data(db, "user-anna")
        assert result.ok
        assert [l.company for l in result.data.leads] == ["Anna Co"]
        assert len(result.data.projects) == 1
        assert len(result.data.demos) == 1
        assert result.data.deals == []

    def test_query_error_becomes_failure_value(self):
        broken = MagicMock()
        broken.query.side_effect = OperationalError("SELECT", {}, Exception("down"))
        result = load_actor_data(broken, "user-anna")
        assert not result.ok
        assert result.data is None
        assert "down" in result.error

    def test_dashboard_maps_failure_to_503(self, client, monkeypatch):
        monkeypatch.setattr(
            dashboard_router,
            "load_actor_data",
            lambda db, user_id: QueryResult.failure("connection refused"),
        )
        resp = client.get("/api/dashboard", headers=SALESMAN)
        assert resp.status_code == 503

    def test_dashboard_summary(self, client):
        client.post("/api/leads", headers=SALESMAN, json={"name": "M", "company": "Acme"})
        client.post(
            "/api/deals",
            headers=SALESMAN,
            json={"title": "T", "company": "Acme", "deal_value": 500, "closed_date": "2024-05-01"},
        )
        body = client.get("/api/dashboard", headers=SALESMAN).json()
        assert body["leads"]["total"] == 1
        assert body["leads"]["by_status"]["prospect"] == 1
        assert body["deals"]["total_revenue"] == 500
        assert body["deals"]["display"]["total_revenue"] == "€500.00"
