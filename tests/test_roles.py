"""Tests for role resolution and the per-actor role cache."""

from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from salesdesk.auth import Actor
from salesdesk.models import UserRole
from salesdesk.services import roles
from salesdesk.services.roles import RoleCache, allowlist_role, resolve_role

ADMINS = ["boss@example.com"]
ANNA = Actor(id="user-anna", email="anna@example.com")
BOSS = Actor(id="user-boss", email="Boss@Example.com")


class TestAllowlist:
    def test_case_insensitive(self):
        assert allowlist_role("BOSS@example.com", ADMINS) == "admin"
        assert allowlist_role("anna@example.com", ADMINS) == "salesman"
        assert allowlist_role(None, ADMINS) == "salesman"


class TestResolveRole:
    def test_creates_row_on_first_access(self, db):
        role = resolve_role(db, BOSS, ADMINS)
        assert role.is_admin
        assert role.persisted
        row = db.query(UserRole).filter(UserRole.user_id == BOSS.id).one()
        assert row.role == "admin"

    def test_repeat_resolution_reuses_the_row(self, db):
        first = resolve_role(db, ANNA, ADMINS)
        second = resolve_role(db, ANNA, ADMINS)
        assert first.is_salesman and second.is_salesman
        assert first.id is not None
        assert second.id == first.id
        assert db.query(UserRole).count() == 1

    def test_existing_row_wins_over_allowlist(self, db):
        db.add(UserRole(user_id=ANNA.id, email=ANNA.email, role="admin"))
        db.commit()
        role = resolve_role(db, ANNA, admin_emails=[])
        assert role.is_admin
        assert db.query(UserRole).count() == 1

    def test_lost_insert_race_reads_winner(self, db, monkeypatch):
        db.add(UserRole(user_id=ANNA.id, email=ANNA.email, role="salesman"))
        db.commit()

        real_find = roles._find_role_row
        calls = []

        def find_after_race(session, user_id):
            calls.append(user_id)
            if len(calls) == 1:
                return None  # the other request hadn't committed yet
            return real_find(session, user_id)

        monkeypatch.setattr(roles, "_find_role_row", find_after_race)
        role = resolve_role(db, ANNA, ADMINS)
        assert role.is_salesman
        assert role.persisted
        assert len(calls) == 2

    def test_no_database_falls_back_to_allowlist(self):
        role = resolve_role(None, BOSS, ADMINS)
        assert role.is_admin
        assert not role.persisted

    def test_database_failure_falls_back(self):
        broken = MagicMock()
        broken.query.side_effect = OperationalError("SELECT", {}, Exception("down"))
        role = resolve_role(broken, ANNA, ADMINS)
        assert role.is_salesman
        assert not role.persisted
        broken.rollback.assert_called_once()


class TestRoleCache:
    def test_caches_persisted_roles(self, db, monkeypatch):
        cache = RoleCache()
        first = cache.get_or_resolve(db, ANNA)
        assert cache.get(ANNA.id) == first

        monkeypatch.setattr(roles, "resolve_role", lambda *_a, **_k: 1 / 0)
        assert cache.get_or_resolve(db, ANNA) is first

    def test_fallback_roles_are_not_cached(self):
        cache = RoleCache()
        cache.get_or_resolve(None, ANNA)
        assert cache.get(ANNA.id) is None

    def test_invalidate(self, db):
        cache = RoleCache()
        cache.get_or_resolve(db, ANNA)
        assert cache.invalidate(ANNA.id) is True
        assert cache.invalidate(ANNA.id) is False
        assert cache.get(ANNA.id) is None
