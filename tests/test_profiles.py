"""Tests for profile endpoints and role changes."""

import uuid

import pytest
from conftest import auth, make_principal
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from npo_calendar.errors import Forbidden, Unauthenticated
from npo_calendar.models.profile import Role
from npo_calendar.services.access import Principal
from npo_calendar.services.profiles import ProfileService


def test_first_profile_becomes_admin(client: TestClient):
    """Test that the first registered profile is the admin."""
    response = client.post(
        "/api/v1/profiles/", json={"email": "founder@example.org", "display_name": "Founder"}
    )
    assert response.status_code == 201
    assert response.json()["role"] == "admin"

    response = client.post(
        "/api/v1/profiles/", json={"email": "helper@example.org", "display_name": "Helper"}
    )
    assert response.status_code == 201
    assert response.json()["role"] == "member"


def test_register_duplicate_email(client: TestClient, member):
    """Test registering an email twice."""
    response = client.post(
        "/api/v1/profiles/", json={"email": "nico@example.org", "display_name": "Nico again"}
    )
    assert response.status_code == 409


def test_register_invalid_email(client: TestClient):
    """Test registering a malformed email."""
    response = client.post(
        "/api/v1/profiles/", json={"email": "not-an-email", "display_name": "Nobody"}
    )
    assert response.status_code == 422


def test_get_my_profile(client: TestClient, manager):
    """Test reading the caller's own profile."""
    response = client.get("/api/v1/profiles/me", headers=auth(manager))
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == str(manager.id)
    assert data["role"] == "manager"


def test_get_my_profile_anonymous(client: TestClient):
    """Test that anonymous callers have no profile."""
    response = client.get("/api/v1/profiles/me")
    assert response.status_code == 401


def test_unknown_principal_rejected(client: TestClient):
    """Test that an unknown principal id is not treated as anonymous."""
    response = client.get(
        "/api/v1/events/",
        params={"start": "2025-01-01T00:00:00"},
        headers={"X-Principal-Id": str(uuid.uuid4())},
    )
    assert response.status_code == 401


def test_update_my_profile(client: TestClient, member):
    """Test changing the caller's display name."""
    response = client.patch(
        "/api/v1/profiles/me", json={"display_name": "Nicolette"}, headers=auth(member)
    )
    assert response.status_code == 200
    assert response.json()["display_name"] == "Nicolette"
    assert response.json()["role"] == "member"


def test_list_profiles(client: TestClient, admin, member):
    """Test listing profiles."""
    response = client.get("/api/v1/profiles/", headers=auth(member))
    assert response.status_code == 200
    assert [p["display_name"] for p in response.json()] == ["Ada", "Nico"]


def test_admin_promotes_member(client: TestClient, admin, member):
    """Test promoting a member to manager."""
    response = client.put(
        f"/api/v1/profiles/{member.id}/role", json={"role": "manager"}, headers=auth(admin)
    )
    assert response.status_code == 200
    assert response.json()["role"] == "manager"


def test_promotion_takes_effect_on_next_request(client: TestClient, admin, member):
    """Test that a new role applies without signing in again."""
    event = {
        "title": "Bake sale",
        "start_time": "2025-03-01T09:00:00",
        "end_time": "2025-03-01T12:00:00",
    }
    assert client.post("/api/v1/events/", json=event, headers=auth(member)).status_code == 403

    client.put(
        f"/api/v1/profiles/{member.id}/role", json={"role": "manager"}, headers=auth(admin)
    )
    assert client.post("/api/v1/events/", json=event, headers=auth(member)).status_code == 201


def test_manager_cannot_change_roles(client: TestClient, manager, member):
    """Test that only admins change roles."""
    response = client.put(
        f"/api/v1/profiles/{member.id}/role", json={"role": "manager"}, headers=auth(manager)
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Only admins can change roles"


def test_admin_cannot_change_own_role(client: TestClient, admin):
    """Test that admins cannot demote themselves."""
    response = client.put(
        f"/api/v1/profiles/{admin.id}/role", json={"role": "member"}, headers=auth(admin)
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Admins cannot change their own role"


def test_change_role_unknown_profile(client: TestClient, admin):
    """Test changing the role of a profile that does not exist."""
    response = client.put(
        f"/api/v1/profiles/{uuid.uuid4()}/role", json={"role": "manager"}, headers=auth(admin)
    )
    assert response.status_code == 404


class TestProfileService:
    """Tests for the profile service directly."""

    def test_resolve_anonymous(self, db_session: Session):
        assert ProfileService(db_session).resolve_principal(None).is_anonymous

    def test_resolve_unknown(self, db_session: Session):
        with pytest.raises(Unauthenticated):
            ProfileService(db_session).resolve_principal(uuid.uuid4())

    def test_resolve_reads_current_role(self, db_session: Session, admin, manager):
        service = ProfileService(db_session)
        service.change_role(admin, manager.id, Role.MEMBER)

        assert service.resolve_principal(manager.id).role is Role.MEMBER

    def test_admin_demotes_other_admin(self, db_session: Session, admin):
        second = make_principal(db_session, Role.ADMIN, "bea")

        profile = ProfileService(db_session).change_role(admin, second.id, Role.MANAGER)
        assert profile.role == Role.MANAGER.value

    def test_last_admin_cannot_be_demoted(self, db_session: Session, admin, manager):
        # A stale admin claim cannot strip the only current admin
        stale = Principal(id=manager.id, role=Role.ADMIN)
        with pytest.raises(Forbidden, match="last remaining admin"):
            ProfileService(db_session).change_role(stale, admin.id, Role.MEMBER)
