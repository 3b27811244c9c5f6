"""
Tests for referral links, commission accrual and commission payout
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from conftest import delivery_address, wallet_balance
from terravest.core.referrals.models import CommissionStatus, Referral, ReferralCommission
from terravest.core.wallets.models import WalletTransaction, WalletTransactionType
from terravest.services.exceptions import InvalidStateError
from terravest.services.referral_service import (
    bulk_approve_commissions,
    get_current_rates,
    get_current_settings,
    update_settings,
)


@pytest.fixture
def referral_pair(db_session, make_user):
    """Referrer plus a funded, KYC-approved referred user"""
    referrer = make_user("referrer@example.com")
    referred = make_user("referred@example.com", referral_code=referrer.referral_code, balance=Decimal("500000"))
    return referrer, referred


def _complete_referral(client, db_session, admin_headers, referred):
    referral = db_session.execute(select(Referral).where(Referral.referred_id == referred.id)).scalar_one()
    response = client.post(f"/api/admin/referrals/{referral.id}/complete", headers=admin_headers)
    assert response.status_code == 200
    return referral


def _set_rates(client, admin_headers, **rates):
    response = client.put("/api/admin/referral-settings", headers=admin_headers, json=rates)
    assert response.status_code == 200
    return response.json()


def _invest(client, headers, plan, amount="10000"):
    response = client.post(
        "/api/markets/investments",
        headers=headers,
        json={"plan_id": str(plan.id), "amount": amount},
    )
    assert response.status_code == 201
    return response.json()


def test_no_commission_before_referral_completed(client: TestClient, db_session, referral_pair, test_admin, market_plan, auth_headers):
    _, referred = referral_pair
    _set_rates(client, auth_headers(test_admin), market_commission_rate="10")
    _invest(client, auth_headers(referred), market_plan)
    assert db_session.execute(select(ReferralCommission)).first() is None


def test_commission_accrues_on_investment(client: TestClient, db_session, referral_pair, test_admin, market_plan, auth_headers):
    referrer, referred = referral_pair
    admin = auth_headers(test_admin)
    _complete_referral(client, db_session, admin, referred)
    _set_rates(client, admin, market_commission_rate="10")

    investment = _invest(client, auth_headers(referred), market_plan)

    commission = db_session.execute(select(ReferralCommission)).scalar_one()
    assert commission.user_id == referrer.id
    assert commission.referred_user_id == referred.id
    assert commission.status == CommissionStatus.PENDING
    assert Decimal(str(commission.amount)) == Decimal("1000.00")
    assert Decimal(str(commission.rate)) == Decimal("10")
    assert str(commission.reference_id) == investment["id"]
    # accrual alone does not pay
    assert wallet_balance(db_session, referrer) == Decimal("0.00")

    summary = client.get("/api/referrals", headers=auth_headers(referrer)).json()
    assert summary["referral_code"] == referrer.referral_code
    assert len(summary["referrals"]) == 1
    assert Decimal(summary["totals"]["PENDING"]) == Decimal("1000")


def test_zero_rate_creates_no_commission(client: TestClient, db_session, referral_pair, test_admin, market_plan, auth_headers):
    _, referred = referral_pair
    _complete_referral(client, db_session, auth_headers(test_admin), referred)
    _invest(client, auth_headers(referred), market_plan)
    assert db_session.execute(select(ReferralCommission)).first() is None


def test_equipment_purchase_uses_equipment_rate(client: TestClient, db_session, referral_pair, test_admin, test_equipment, auth_headers):
    _, referred = referral_pair
    admin = auth_headers(test_admin)
    _complete_referral(client, db_session, admin, referred)
    _set_rates(client, admin, equipment_commission_rate="5", market_commission_rate="10")

    response = client.post(
        f"/api/green-energy/equipment/{test_equipment.id}/purchase",
        headers=auth_headers(referred),
        json={"quantity": 4, "delivery_address": delivery_address},
    )
    assert response.status_code == 201
    commission = db_session.execute(select(ReferralCommission)).scalar_one()
    assert Decimal(str(commission.amount)) == Decimal("50.00")
    assert commission.transaction_type.value == "EQUIPMENT_PURCHASE"


def test_approve_commission_credits_referrer(client: TestClient, db_session, referral_pair, test_admin, market_plan, auth_headers):
    referrer, referred = referral_pair
    admin = auth_headers(test_admin)
    referral = _complete_referral(client, db_session, admin, referred)
    _set_rates(client, admin, market_commission_rate="10")
    _invest(client, auth_headers(referred), market_plan)
    commission = db_session.execute(select(ReferralCommission)).scalar_one()

    response = client.post(f"/api/admin/referral-commissions/{commission.id}/approve", headers=admin)
    assert response.status_code == 200
    assert response.json()["status"] == "PAID"
    assert wallet_balance(db_session, referrer) == Decimal("1000.00")

    credit = db_session.execute(
        select(WalletTransaction).where(WalletTransaction.user_id == referrer.id)
    ).scalar_one()
    assert credit.type == WalletTransactionType.COMMISSION

    db_session.refresh(referral)
    assert referral.commission_paid is True

    again = client.post(f"/api/admin/referral-commissions/{commission.id}/approve", headers=admin)
    assert again.status_code == 409
    assert wallet_balance(db_session, referrer) == Decimal("1000.00")


def test_reject_commission(client: TestClient, db_session, referral_pair, test_admin, market_plan, auth_headers):
    referrer, referred = referral_pair
    admin = auth_headers(test_admin)
    _complete_referral(client, db_session, admin, referred)
    _set_rates(client, admin, market_commission_rate="10")
    _invest(client, auth_headers(referred), market_plan)
    commission = db_session.execute(select(ReferralCommission)).scalar_one()

    response = client.post(
        f"/api/admin/referral-commissions/{commission.id}/reject",
        headers=admin,
        json={"reason": "Self-referral suspected"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "REJECTED"
    assert wallet_balance(db_session, referrer) == Decimal("0.00")


def test_bulk_approve(client: TestClient, db_session, referral_pair, test_admin, market_plan, auth_headers):
    referrer, referred = referral_pair
    admin = auth_headers(test_admin)
    _complete_referral(client, db_session, admin, referred)
    _set_rates(client, admin, market_commission_rate="10")
    _invest(client, auth_headers(referred), market_plan, "10000")
    _invest(client, auth_headers(referred), market_plan, "20000")
    ids = [str(c.id) for c in db_session.execute(select(ReferralCommission)).scalars().all()]

    response = client.post("/api/admin/referral-commissions/bulk-approve", headers=admin, json={"ids": ids})
    assert response.status_code == 200
    assert {item["status"] for item in response.json()} == {"PAID"}
    assert wallet_balance(db_session, referrer) == Decimal("3000.00")


def test_bulk_approve_is_all_or_nothing(db_session, referral_pair, test_admin, market_plan, client, auth_headers):
    referrer, referred = referral_pair
    admin = auth_headers(test_admin)
    _complete_referral(client, db_session, admin, referred)
    _set_rates(client, admin, market_commission_rate="10")
    _invest(client, auth_headers(referred), market_plan, "10000")
    _invest(client, auth_headers(referred), market_plan, "20000")
    first, second = db_session.execute(select(ReferralCommission)).scalars().all()

    client.post(f"/api/admin/referral-commissions/{second.id}/reject", headers=admin, json={"reason": "Duplicate"})

    with pytest.raises(InvalidStateError):
        bulk_approve_commissions(db_session, commission_ids=[first.id, second.id], actor_id=test_admin.id)

    db_session.expire_all()
    assert db_session.get(ReferralCommission, first.id).status == CommissionStatus.PENDING
    assert wallet_balance(db_session, referrer) == Decimal("0.00")


def test_settings_are_appended_snapshots(db_session, test_admin):
    assert get_current_rates(db_session)["market_commission_rate"] == Decimal("0")

    update_settings(db_session, rates={"market_commission_rate": Decimal("7.5")}, actor_id=test_admin.id)
    update_settings(db_session, rates={"property_commission_rate": Decimal("2")}, actor_id=test_admin.id)

    rates = get_current_rates(db_session)
    assert rates["market_commission_rate"] == Decimal("7.5")
    assert rates["property_commission_rate"] == Decimal("2")
    assert rates["equipment_commission_rate"] == Decimal("0")


def test_latest_revision_wins_when_timestamps_tie(db_session, test_admin):
    first = update_settings(db_session, rates={"market_commission_rate": Decimal("3")}, actor_id=test_admin.id)
    second = update_settings(db_session, rates={"market_commission_rate": Decimal("4")}, actor_id=test_admin.id)
    assert (first.revision, second.revision) == (1, 2)

    second.created_at = first.created_at
    db_session.commit()

    assert get_current_settings(db_session).id == second.id
    assert get_current_rates(db_session)["market_commission_rate"] == Decimal("4")


def test_rate_above_100_rejected(client: TestClient, test_admin, auth_headers):
    response = client.put(
        "/api/admin/referral-settings",
        headers=auth_headers(test_admin),
        json={"market_commission_rate": "150"},
    )
    assert response.status_code == 422


def test_complete_referral_twice(client: TestClient, db_session, referral_pair, test_admin, auth_headers):
    _, referred = referral_pair
    referral = _complete_referral(client, db_session, auth_headers(test_admin), referred)
    response = client.post(f"/api/admin/referrals/{referral.id}/complete", headers=auth_headers(test_admin))
    assert response.status_code == 409
