"""
Tests for registration, login, bearer authentication and role checks
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import jwt as pyjwt
from fastapi.testclient import TestClient
from sqlalchemy import select

from terravest.core.audit.models import AuditLog
from terravest.core.notifications.models import Notification
from terravest.core.referrals.models import Referral, ReferralStatus
from terravest.core.users.models import KycStatus, UserStatus
from terravest.core.wallets.models import Wallet


def test_register_creates_user_and_wallet(client: TestClient, db_session):
    response = client.post(
        "/api/auth/register",
        json={"email": "New.User@Example.com", "password": "Sup3rSecret!", "first_name": "Ana"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "new.user@example.com"
    assert len(data["referral_code"]) == 8

    wallet = db_session.execute(select(Wallet)).scalar_one()
    assert str(wallet.user_id) == data["user_id"]
    assert Decimal(str(wallet.balance)) == Decimal("0")
    assert wallet.currency == "USDT"


def test_register_duplicate_email(client: TestClient, test_user):
    response = client.post(
        "/api/auth/register",
        json={"email": test_user.email, "password": "Sup3rSecret!"},
    )
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert "already exists" in error["message"]
    assert error["trace_id"]


def test_register_short_password_rejected(client: TestClient):
    response = client.post("/api/auth/register", json={"email": "a@example.com", "password": "short"})
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_register_with_referral_code_links_referrer(client: TestClient, db_session, test_user):
    response = client.post(
        "/api/auth/register",
        json={
            "email": "friend@example.com",
            "password": "Sup3rSecret!",
            "referral_code": test_user.referral_code.lower(),
        },
    )
    assert response.status_code == 201

    referral = db_session.execute(select(Referral)).scalar_one()
    assert referral.referrer_id == test_user.id
    assert str(referral.referred_id) == response.json()["user_id"]
    assert referral.status == ReferralStatus.PENDING


def test_register_with_unknown_referral_code_writes_nothing(client: TestClient, db_session):
    response = client.post(
        "/api/auth/register",
        json={"email": "friend@example.com", "password": "Sup3rSecret!", "referral_code": "NOPE1234"},
    )
    assert response.status_code == 400
    assert db_session.execute(select(Wallet)).first() is None


def test_login_and_me(client: TestClient, make_user):
    make_user("login@example.com", password="Sup3rSecret!")

    response = client.post("/api/auth/login", json={"email": "login@example.com", "password": "Sup3rSecret!"})
    assert response.status_code == 200
    token = response.json()["access_token"]
    assert response.json()["token_type"] == "bearer"
    assert response.json()["expires_in"] == 24 * 3600
    assert response.json()["role"] == "USER"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "login@example.com"
    assert me.json()["role"] == "USER"
    assert me.json()["kyc_status"] == "APPROVED"


def test_login_wrong_password(client: TestClient, make_user):
    make_user("login@example.com", password="Sup3rSecret!")
    response = client.post("/api/auth/login", json={"email": "login@example.com", "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_login_suspended_user(client: TestClient, db_session, make_user):
    user = make_user("login@example.com", password="Sup3rSecret!")
    user.status = UserStatus.SUSPENDED
    db_session.commit()

    response = client.post("/api/auth/login", json={"email": "login@example.com", "password": "Sup3rSecret!"})
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


def test_missing_authorization(client: TestClient):
    response = client.get("/api/wallet")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHORIZATION_MISSING"
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_invalid_token(client: TestClient):
    response = client.get("/api/wallet", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_TOKEN"


def test_expired_token(client: TestClient, test_user):
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    token = pyjwt.encode(
        {"sub": str(test_user.id), "roles": ["USER"], "iat": past, "exp": past + timedelta(hours=1)},
        "test-jwt-secret-min-32-chars-for-testing-only",
        algorithm="HS256",
    )
    response = client.get("/api/wallet", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "TOKEN_EXPIRED"


def test_user_cannot_reach_admin_routes(client: TestClient, test_user, auth_headers):
    response = client.get("/api/admin/users", headers=auth_headers(test_user))
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


def test_admin_lists_users(client: TestClient, test_user, test_admin, auth_headers):
    response = client.get("/api/admin/users", headers=auth_headers(test_admin))
    assert response.status_code == 200
    emails = {user["email"] for user in response.json()}
    assert emails == {test_user.email, test_admin.email}


def test_admin_updates_kyc(client: TestClient, db_session, make_user, test_admin, auth_headers):
    user = make_user(kyc_status=KycStatus.PENDING)
    response = client.post(
        f"/api/admin/users/{user.id}/kyc",
        headers=auth_headers(test_admin),
        json={"status": "APPROVED"},
    )
    assert response.status_code == 200
    assert response.json()["kyc_status"] == "APPROVED"


def test_admin_suspends_and_reactivates_user(client: TestClient, db_session, make_user, test_admin, auth_headers):
    user = make_user("suspend@example.com", password="Sup3rSecret!")
    headers = auth_headers(user)
    url = f"/api/admin/users/{user.id}/status"

    response = client.post(url, headers=auth_headers(test_admin), json={"status": "SUSPENDED", "reason": "Chargeback"})
    assert response.status_code == 200
    assert response.json()["status"] == "SUSPENDED"

    # tokens issued before the suspension stop working
    response = client.get("/api/auth/me", headers=headers)
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"

    notification = db_session.execute(select(Notification).where(Notification.user_id == user.id)).scalar_one()
    assert notification.title == "Account suspended"
    audit = db_session.execute(select(AuditLog).where(AuditLog.action == "USER_STATUS_UPDATED")).scalar_one()
    assert audit.actor_user_id == test_admin.id
    assert audit.before == {"status": "ACTIVE"}
    assert audit.after == {"status": "SUSPENDED"}
    assert audit.reason == "Chargeback"

    response = client.post(url, headers=auth_headers(test_admin), json={"status": "ACTIVE"})
    assert response.status_code == 200
    response = client.post("/api/auth/login", json={"email": "suspend@example.com", "password": "Sup3rSecret!"})
    assert response.status_code == 200


def test_admin_cannot_suspend_self(client: TestClient, db_session, test_admin, auth_headers):
    response = client.post(
        f"/api/admin/users/{test_admin.id}/status",
        headers=auth_headers(test_admin),
        json={"status": "SUSPENDED"},
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    db_session.refresh(test_admin)
    assert test_admin.status == UserStatus.ACTIVE


def test_suspending_twice_is_a_conflict(client: TestClient, make_user, test_admin, auth_headers):
    user = make_user()
    url = f"/api/admin/users/{user.id}/status"
    assert client.post(url, headers=auth_headers(test_admin), json={"status": "SUSPENDED"}).status_code == 200
    response = client.post(url, headers=auth_headers(test_admin), json={"status": "SUSPENDED"})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVALID_STATE"


def test_user_cannot_change_account_status(client: TestClient, test_user, make_user, auth_headers):
    other = make_user()
    response = client.post(
        f"/api/admin/users/{other.id}/status",
        headers=auth_headers(test_user),
        json={"status": "SUSPENDED"},
    )
    assert response.status_code == 403
