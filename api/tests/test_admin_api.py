from __future__ import annotations

from fastapi.testclient import TestClient

from conftest import ADMIN_ID, SECOND_ADMIN_ID, USER_ID, VERIFIED_ID, FakeRepository, bearer


def test_approve_requires_admin(client: TestClient, repository: FakeRepository) -> None:
    event = repository.add_event(user_id=USER_ID, status="pending")
    path = f"/admin/events/{event['id']}/approve"

    assert client.post(path).status_code == 401
    assert client.post(path, headers=bearer("user-token")).status_code == 403
    assert client.post(path, headers=bearer("verified-token")).status_code == 403
    assert repository.events[event["id"]]["status"] == "pending"

    response = client.post(path, headers=bearer("admin-token"))
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "approved"
    assert body["reviewed_by"] == ADMIN_ID
    assert body["reviewed_at"] is not None


def test_reject_with_and_without_reason(client: TestClient, repository: FakeRepository) -> None:
    event = repository.add_event(user_id=USER_ID, status="approved")
    path = f"/admin/events/{event['id']}/reject"

    with_reason = client.post(path, json={"reason": "Date incorrecte"}, headers=bearer("admin-token"))
    assert with_reason.status_code == 200
    assert with_reason.json()["rejection_reason"] == "Date incorrecte"

    without_body = client.post(path, headers=bearer("admin-token"))
    assert without_body.status_code == 200
    assert without_body.json()["status"] == "rejected"
    assert without_body.json()["rejection_reason"] is None


def test_approve_unknown_event_is_404(client: TestClient) -> None:
    response = client.post("/admin/events/not-a-uuid/approve", headers=bearer("admin-token"))
    assert response.status_code == 404


def test_admin_event_listing(client: TestClient, repository: FakeRepository) -> None:
    for status in ("pending", "approved", "pending"):
        repository.add_event(user_id=USER_ID, status=status)

    assert client.get("/admin/events", headers=bearer("user-token")).status_code == 403
    response = client.get("/admin/events", params={"status": "pending"}, headers=bearer("admin-token"))

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert body["page_size"] == 20
    assert {row["status"] for row in body["data"]} == {"pending"}


def test_admin_stats_and_users(client: TestClient, repository: FakeRepository) -> None:
    repository.add_event(user_id=USER_ID, status="pending")

    stats = client.get("/admin/stats", headers=bearer("admin-token"))
    assert stats.status_code == 200
    assert stats.json() == {"total_events": 1, "pending_events": 1, "total_users": 5, "verified_users": 2}

    users = client.get("/admin/users", params={"is_admin": "true"}, headers=bearer("admin-token"))
    assert users.status_code == 200
    assert {row["id"] for row in users.json()["data"]} == {ADMIN_ID, SECOND_ADMIN_ID}
    assert client.get("/admin/users", headers=bearer("verified-token")).status_code == 403


def test_admin_self_demotion_is_409(client: TestClient, repository: FakeRepository) -> None:
    response = client.patch(f"/admin/users/{ADMIN_ID}/admin", json={"is_admin": False}, headers=bearer("admin-token"))

    assert response.status_code == 409
    assert repository.users[ADMIN_ID]["is_admin"] is True


def test_admin_can_demote_another_admin(client: TestClient, repository: FakeRepository) -> None:
    response = client.patch(
        f"/admin/users/{SECOND_ADMIN_ID}/admin",
        json={"is_admin": False},
        headers=bearer("admin-token"),
    )

    assert response.status_code == 200
    assert response.json()["is_admin"] is False
    assert client.get("/admin/stats", headers=bearer("second-admin-token")).status_code == 403


def test_non_admin_cannot_toggle_flags(client: TestClient, repository: FakeRepository) -> None:
    assert (
        client.patch(f"/admin/users/{USER_ID}/admin", json={"is_admin": True}, headers=bearer("user-token")).status_code
        == 403
    )
    assert (
        client.patch(
            f"/admin/users/{USER_ID}/verified",
            json={"is_verified": True},
            headers=bearer("verified-token"),
        ).status_code
        == 403
    )
    assert repository.writes == []


def test_verified_toggle(client: TestClient, repository: FakeRepository) -> None:
    response = client.patch(
        f"/admin/users/{VERIFIED_ID}/verified",
        json={"is_verified": False},
        headers=bearer("admin-token"),
    )

    assert response.status_code == 200
    assert response.json()["is_verified"] is False
    assert repository.users[VERIFIED_ID]["is_verified"] is False


def test_admin_me(client: TestClient) -> None:
    assert client.get("/admin/me").json() == {"is_admin": False}
    assert client.get("/admin/me", headers=bearer("user-token")).json() == {"is_admin": False}
    assert client.get("/admin/me", headers=bearer("admin-token")).json() == {"is_admin": True}
