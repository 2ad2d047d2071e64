"""Profile provisioning and updates."""

import pytest

from tripvoucher.core.errors import Forbidden
from tripvoucher.db.dal import Database
from tripvoucher.models.user import ProfileUpdate
from tripvoucher.services.identity import Identity
from tripvoucher.services.profiles import ensure_profile, update_profile


def test_first_sight_creates_profile(db):
    caller, created = ensure_profile(db, Identity("sub-1", "dev@example.com", "Dev"), "Operations")

    assert created is True
    assert caller.department == "Operations"
    assert caller.first_name == "Dev"

    again, created = ensure_profile(db, Identity("sub-1", "dev@example.com"), "Finance")
    assert created is False
    assert again.department == "Operations"


def test_known_profile_is_read_without_write_lock(db, monkeypatch):
    ensure_profile(db, Identity("sub-1", "dev@example.com"), "Operations")
    modes = []
    original = Database.transaction

    def _recording(self, write=True):
        modes.append(write)
        return original(self, write=write)

    monkeypatch.setattr(Database, "transaction", _recording)
    ensure_profile(db, Identity("sub-1", "dev@example.com"), "Operations")

    assert modes == [False]


def test_email_owned_by_another_subject_is_forbidden(db):
    ensure_profile(db, Identity("sub-1", "same@example.com"), "Operations")

    with pytest.raises(Forbidden):
        ensure_profile(db, Identity("sub-2", "same@example.com"), "Operations")

    with db.transaction(write=False) as cur:
        assert db.get_user(cur, "sub-2") is None
        assert db.get_user(cur, "sub-1")["email"] == "same@example.com"


@pytest.mark.parametrize("department", ["Sales", "Other"])
def test_update_department(db, alice, department):
    updated = update_profile(db, alice, ProfileUpdate(department=department))

    assert updated.department == department


def test_null_department_is_ignored(db, alice):
    updated = update_profile(db, alice, ProfileUpdate(department=None, last_name="Rao"))

    assert updated.department == "Engineering"
    assert updated.last_name == "Rao"


def test_shared_email_over_http(client, auth_headers):
    first = client.get("/user/profile", headers=auth_headers("sub-1", "same@example.com"))
    second = client.get("/user/profile", headers=auth_headers("sub-2", "same@example.com"))

    assert first.status_code == 200
    assert second.status_code == 403
    assert second.json()["error"] == "forbidden"
    assert client.get("/vouchers", headers=auth_headers("sub-2", "same@example.com")).status_code == 403


def test_other_department_over_http(client, auth_headers):
    resp = client.patch("/user/profile", json={"department": "Other"}, headers=auth_headers())

    assert resp.status_code == 200
    assert resp.json()["department"] == "Other"
