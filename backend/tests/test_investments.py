"""
Tests for plan investments and the shared investment lifecycle
"""

from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy import select

from conftest import wallet_balance
from terravest.core.investments.models import InvestmentStatus
from terravest.core.markets.models import MarketInvestment
from terravest.core.users.models import KycStatus
from terravest.core.wallets.models import WalletTransaction, WalletTransactionType


def _invest(client, headers, plan, amount="10000", path="/api/markets/investments"):
    return client.post(path, headers=headers, json={"plan_id": str(plan.id), "amount": amount})


def test_market_investment_debits_wallet(client: TestClient, db_session, test_user, market_plan, auth_headers):
    response = _invest(client, auth_headers(test_user), market_plan)
    assert response.status_code == 201
    investment = response.json()
    assert investment["status"] == "ACTIVE"
    assert Decimal(investment["amount"]) == Decimal("10000")
    assert Decimal(investment["expected_return"]) == Decimal("800")
    assert investment["duration_months"] == 3
    assert investment["plan"]["name"] == "Blue Chip Basket"
    assert wallet_balance(db_session, test_user) == Decimal("4990000.00")

    debit = db_session.execute(
        select(WalletTransaction).where(WalletTransaction.type == WalletTransactionType.INVESTMENT)
    ).scalar_one()
    assert debit.description == "Investment in Blue Chip Basket"
    assert str(debit.reference_id) == investment["id"]


def test_green_energy_investment(client: TestClient, db_session, test_user, green_energy_plan, auth_headers):
    response = _invest(client, auth_headers(test_user), green_energy_plan, "2000", "/api/green-energy/investments")
    assert response.status_code == 201
    assert Decimal(response.json()["expected_return"]) == Decimal("240")

    listed = client.get("/api/green-energy/investments", headers=auth_headers(test_user)).json()
    assert [item["id"] for item in listed] == [response.json()["id"]]


def test_amount_outside_plan_bounds(client: TestClient, db_session, test_user, market_plan, auth_headers):
    response = _invest(client, auth_headers(test_user), market_plan, "100")
    assert response.status_code == 400
    assert "between" in response.json()["error"]["message"]
    assert wallet_balance(db_session, test_user) == Decimal("5000000.00")


def test_inactive_plan_rejected(client: TestClient, db_session, test_user, market_plan, auth_headers):
    market_plan.is_active = False
    db_session.commit()
    response = _invest(client, auth_headers(test_user), market_plan)
    assert response.status_code == 409


def test_kyc_required_to_invest(client: TestClient, db_session, make_user, market_plan, auth_headers):
    user = make_user(kyc_status=KycStatus.PENDING, balance=Decimal("50000"))
    response = _invest(client, auth_headers(user), market_plan)
    assert response.status_code == 403
    error = response.json()["error"]
    assert error["code"] == "KYC_REQUIRED"
    assert error["requires_kyc"] is True
    assert wallet_balance(db_session, user) == Decimal("50000.00")


def test_investment_with_insufficient_funds(client: TestClient, db_session, make_user, market_plan, auth_headers):
    user = make_user(balance=Decimal("1000"))
    response = _invest(client, auth_headers(user), market_plan, "5000")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INSUFFICIENT_FUNDS"
    assert db_session.execute(select(MarketInvestment)).first() is None


def test_admin_matures_investment_once(client: TestClient, db_session, test_user, test_admin, market_plan, auth_headers):
    investment = _invest(client, auth_headers(test_user), market_plan).json()
    url = f"/api/admin/markets/investments/{investment['id']}/mature"

    response = client.post(url, headers=auth_headers(test_admin))
    assert response.status_code == 200
    assert response.json()["status"] == "MATURED"
    assert Decimal(response.json()["actual_return"]) == Decimal("800")
    assert wallet_balance(db_session, test_user) == Decimal("5000800.00")

    response = client.post(url, headers=auth_headers(test_admin))
    assert response.status_code == 409
    assert wallet_balance(db_session, test_user) == Decimal("5000800.00")


def test_admin_matures_with_actual_return(client: TestClient, db_session, test_user, test_admin, market_plan, auth_headers):
    investment = _invest(client, auth_headers(test_user), market_plan).json()
    response = client.post(
        f"/api/admin/markets/investments/{investment['id']}/mature",
        headers=auth_headers(test_admin),
        json={"actual_return": "500"},
    )
    assert response.status_code == 200
    assert Decimal(response.json()["actual_return"]) == Decimal("500")
    assert wallet_balance(db_session, test_user) == Decimal("5000500.00")


def test_cancel_refunds_principal_only(client: TestClient, db_session, test_user, test_admin, green_energy_plan, auth_headers):
    investment = _invest(client, auth_headers(test_user), green_energy_plan, "2000", "/api/green-energy/investments").json()
    url = f"/api/admin/green-energy/investments/{investment['id']}/cancel"

    response = client.post(url, headers=auth_headers(test_admin), json={"reason": "Project halted"})
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"
    assert response.json()["cancelled_at"] is not None
    assert wallet_balance(db_session, test_user) == Decimal("5000000.00")

    assert client.post(url, headers=auth_headers(test_admin)).status_code == 409
    mature = client.post(
        f"/api/admin/green-energy/investments/{investment['id']}/mature",
        headers=auth_headers(test_admin),
    )
    assert mature.status_code == 409


def test_reinvest_rolls_payout_into_new_investment(client: TestClient, db_session, test_user, test_admin, market_plan, auth_headers):
    investment = _invest(client, auth_headers(test_user), market_plan).json()

    response = client.patch(
        f"/api/markets/investments/{investment['id']}",
        headers=auth_headers(test_user),
        json={"reinvest": True},
    )
    assert response.status_code == 200
    assert response.json()["reinvest"] is True

    response = client.post(
        f"/api/admin/markets/investments/{investment['id']}/mature",
        headers=auth_headers(test_admin),
    )
    assert response.status_code == 200
    assert wallet_balance(db_session, test_user) == Decimal("4990000.00")

    rollover = db_session.execute(
        select(MarketInvestment).where(MarketInvestment.status == InvestmentStatus.ACTIVE)
    ).scalar_one()
    assert str(rollover.reinvested_from_id) == investment["id"]
    assert Decimal(str(rollover.amount)) == Decimal("10800.00")
    assert Decimal(str(rollover.expected_return)) == Decimal("864.00")
    assert rollover.plan_id == market_plan.id


def test_only_owner_can_toggle_reinvest(client: TestClient, test_user, make_user, market_plan, auth_headers):
    investment = _invest(client, auth_headers(test_user), market_plan).json()
    other = make_user()
    response = client.patch(
        f"/api/markets/investments/{investment['id']}",
        headers=auth_headers(other),
        json={"reinvest": True},
    )
    assert response.status_code == 404


def test_admin_creates_and_lists_plans(client: TestClient, test_user, test_admin, auth_headers):
    response = client.post(
        "/api/admin/markets/plans",
        headers=auth_headers(test_admin),
        json={
            "name": "Index Tracker",
            "type": "etf",
            "min_amount": "100",
            "max_amount": "5000",
            "return_rate": "6",
            "duration_months": 12,
        },
    )
    assert response.status_code == 201
    assert response.json()["type"] == "ETF"

    plans = client.get("/api/markets/plans", headers=auth_headers(test_user)).json()
    assert [plan["name"] for plan in plans] == ["Index Tracker"]


def test_plan_bounds_validated(client: TestClient, test_admin, auth_headers):
    response = client.post(
        "/api/admin/green-energy/plans",
        headers=auth_headers(test_admin),
        json={
            "name": "Broken",
            "type": "WIND",
            "min_amount": "5000",
            "max_amount": "100",
            "return_rate": "6",
            "duration_months": 12,
        },
    )
    assert response.status_code == 400
