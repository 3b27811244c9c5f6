"""
Tests for user notifications
"""

from fastapi.testclient import TestClient

from terravest.core.notifications.models import NotificationType
from terravest.services.notification_service import notify


def _seed(db_session, user, count=2):
    for i in range(count):
        notify(
            db_session,
            user_id=user.id,
            type=NotificationType.SYSTEM_UPDATE,
            title=f"Update {i}",
            message="Scheduled maintenance",
        )
    db_session.commit()


def test_list_and_mark_read(client: TestClient, db_session, test_user, auth_headers):
    _seed(db_session, test_user)
    headers = auth_headers(test_user)

    notifications = client.get("/api/notifications", headers=headers).json()
    assert len(notifications) == 2
    assert all(item["read"] is False for item in notifications)

    response = client.post(f"/api/notifications/{notifications[0]['id']}/read", headers=headers)
    assert response.status_code == 200
    assert response.json()["read"] is True

    unread = client.get("/api/notifications?unread_only=true", headers=headers).json()
    assert [item["id"] for item in unread] == [notifications[1]["id"]]


def test_mark_all_read(client: TestClient, db_session, test_user, auth_headers):
    _seed(db_session, test_user, count=3)
    headers = auth_headers(test_user)

    response = client.post("/api/notifications/read-all", headers=headers)
    assert response.status_code == 200
    assert response.json()["updated"] == 3
    assert client.get("/api/notifications?unread_only=true", headers=headers).json() == []


def test_cannot_read_other_users_notification(client: TestClient, db_session, test_user, make_user, auth_headers):
    _seed(db_session, test_user, count=1)
    notification_id = client.get("/api/notifications", headers=auth_headers(test_user)).json()[0]["id"]

    other = make_user()
    response = client.post(f"/api/notifications/{notification_id}/read", headers=auth_headers(other))
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_investment_creates_notification(client: TestClient, test_user, market_plan, auth_headers):
    headers = auth_headers(test_user)
    client.post("/api/markets/investments", headers=headers, json={"plan_id": str(market_plan.id), "amount": "1000"})
    types = [item["type"] for item in client.get("/api/notifications", headers=headers).json()]
    assert types == ["INVESTMENT_CREATED"]
