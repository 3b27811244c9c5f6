"""
Tests for property purchases, installment plans and fixed-plan real estate investments
"""

from datetime import timedelta
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy import select

from conftest import wallet_balance
from terravest.core.real_estate.models import (
    Property,
    PropertyStatus,
    PropertyTransaction,
    PropertyTransactionStatus,
    RealEstateInvestment,
)
from terravest.core.users.models import KycStatus
from terravest.utils.money import utcnow


def _purchase(client, headers, prop, **body):
    payload = {"type": "FULL", "amount": str(prop.price)}
    payload.update(body)
    return client.post(f"/api/real-estate/properties/{prop.id}/purchase", headers=headers, json=payload)


# ---- Property purchases ----

def test_full_purchase_marks_property_sold(client: TestClient, db_session, test_user, test_property, auth_headers):
    response = _purchase(client, auth_headers(test_user), test_property)
    assert response.status_code == 201
    purchase = response.json()
    assert purchase["status"] == "COMPLETED"
    assert purchase["payment_type"] == "FULL"
    assert purchase["property"]["name"] == "Palm Villa"
    assert wallet_balance(db_session, test_user) == Decimal("3800000.00")

    db_session.refresh(test_property)
    assert test_property.status == PropertyStatus.SOLD

    properties = client.get("/api/real-estate/properties?status=AVAILABLE", headers=auth_headers(test_user)).json()
    assert properties == []


def test_purchase_amount_must_match_price(client: TestClient, db_session, test_user, test_property, auth_headers):
    response = _purchase(client, auth_headers(test_user), test_property, amount="1000000")
    assert response.status_code == 400
    assert "property price" in response.json()["error"]["message"]
    assert wallet_balance(db_session, test_user) == Decimal("5000000.00")


def test_sold_property_cannot_be_bought_again(client: TestClient, test_user, make_user, test_property, auth_headers):
    assert _purchase(client, auth_headers(test_user), test_property).status_code == 201
    buyer = make_user(balance=Decimal("2000000"))
    response = _purchase(client, auth_headers(buyer), test_property)
    assert response.status_code == 409


def test_insufficient_funds_leaves_property_available(client: TestClient, db_session, make_user, test_property, auth_headers):
    buyer = make_user(balance=Decimal("1000"))
    response = _purchase(client, auth_headers(buyer), test_property)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INSUFFICIENT_FUNDS"

    db_session.refresh(test_property)
    assert test_property.status == PropertyStatus.AVAILABLE
    assert db_session.execute(select(PropertyTransaction)).first() is None


def test_installment_plan(client: TestClient, db_session, test_user, test_property, auth_headers):
    headers = auth_headers(test_user)
    response = _purchase(client, headers, test_property, type="INSTALLMENT", installments=3)
    assert response.status_code == 201
    purchase = response.json()
    assert purchase["status"] == "PENDING"
    assert Decimal(purchase["installment_amount"]) == Decimal("400000")
    assert purchase["paid_installments"] == 1
    assert purchase["next_payment_due"] is not None
    assert wallet_balance(db_session, test_user) == Decimal("4600000.00")

    db_session.refresh(test_property)
    assert test_property.status == PropertyStatus.PENDING

    url = f"/api/real-estate/transactions/{purchase['id']}/installments"
    second = client.post(url, headers=headers)
    assert second.status_code == 200
    assert second.json()["paid_installments"] == 2
    assert second.json()["status"] == "PENDING"

    third = client.post(url, headers=headers)
    assert third.status_code == 200
    assert third.json()["status"] == "COMPLETED"
    assert Decimal(third.json()["amount_paid"]) == Decimal("1200000")
    assert wallet_balance(db_session, test_user) == Decimal("3800000.00")

    db_session.refresh(test_property)
    assert test_property.status == PropertyStatus.SOLD

    assert client.post(url, headers=headers).status_code == 409


def test_last_installment_absorbs_rounding(client: TestClient, db_session, test_user, auth_headers):
    prop = Property(name="Studio", location="Porto", price=Decimal("1000"))
    db_session.add(prop)
    db_session.commit()

    headers = auth_headers(test_user)
    purchase = _purchase(client, headers, prop, amount="1000", type="INSTALLMENT", installments=3).json()
    assert Decimal(purchase["installment_amount"]) == Decimal("333.33")

    url = f"/api/real-estate/transactions/{purchase['id']}/installments"
    client.post(url, headers=headers)
    final = client.post(url, headers=headers).json()
    assert final["status"] == "COMPLETED"
    assert Decimal(final["amount_paid"]) == Decimal("1000")
    assert wallet_balance(db_session, test_user) == Decimal("4999000.00")


def test_installments_never_exceed_the_price(client: TestClient, db_session, test_user, auth_headers):
    prop = Property(name="Parking Spot", location="Porto", price=Decimal("0.20"))
    db_session.add(prop)
    db_session.commit()

    headers = auth_headers(test_user)
    purchase = _purchase(client, headers, prop, amount="0.20", type="INSTALLMENT", installments=12).json()
    assert Decimal(purchase["installment_amount"]) == Decimal("0.01")

    url = f"/api/real-estate/transactions/{purchase['id']}/installments"
    for _ in range(10):
        assert client.post(url, headers=headers).status_code == 200
    final = client.post(url, headers=headers).json()
    assert final["status"] == "COMPLETED"
    assert final["paid_installments"] == 12
    assert Decimal(final["amount_paid"]) == Decimal("0.20")
    assert wallet_balance(db_session, test_user) == Decimal("4999999.80")


def test_price_too_small_for_installments(client: TestClient, db_session, test_user, auth_headers):
    prop = Property(name="Storage Locker", location="Porto", price=Decimal("0.10"))
    db_session.add(prop)
    db_session.commit()

    response = _purchase(client, auth_headers(test_user), prop, amount="0.10", type="INSTALLMENT", installments=12)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    db_session.refresh(prop)
    assert prop.status == PropertyStatus.AVAILABLE


def test_installment_count_bounds(client: TestClient, test_user, test_property, auth_headers):
    response = _purchase(client, auth_headers(test_user), test_property, type="INSTALLMENT", installments=1)
    assert response.status_code == 400
    response = _purchase(client, auth_headers(test_user), test_property, type="INSTALLMENT", installments=13)
    assert response.status_code == 400


def test_installments_only_payable_by_buyer(client: TestClient, test_user, make_user, test_property, auth_headers):
    purchase = _purchase(client, auth_headers(test_user), test_property, type="INSTALLMENT", installments=2).json()
    other = make_user(balance=Decimal("2000000"))
    response = client.post(f"/api/real-estate/transactions/{purchase['id']}/installments", headers=auth_headers(other))
    assert response.status_code == 404


def test_admin_cancels_installment_purchase_with_refund(client: TestClient, db_session, test_user, test_admin, test_property, auth_headers):
    purchase = _purchase(client, auth_headers(test_user), test_property, type="INSTALLMENT", installments=4).json()
    assert wallet_balance(db_session, test_user) == Decimal("4700000.00")

    response = client.post(
        f"/api/admin/property-transactions/{purchase['id']}/status",
        headers=auth_headers(test_admin),
        json={"status": "CANCELLED", "reason": "Buyer request"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"
    assert wallet_balance(db_session, test_user) == Decimal("5000000.00")

    db_session.refresh(test_property)
    assert test_property.status == PropertyStatus.AVAILABLE

    again = client.post(
        f"/api/admin/property-transactions/{purchase['id']}/status",
        headers=auth_headers(test_admin),
        json={"status": "COMPLETED"},
    )
    assert again.status_code == 409


def test_admin_property_management(client: TestClient, db_session, test_user, test_admin, auth_headers):
    headers = auth_headers(test_admin)
    response = client.post(
        "/api/admin/properties",
        headers=headers,
        json={"name": "Harbour Loft", "location": "Faro", "price": "450000", "bedrooms": 2},
    )
    assert response.status_code == 201
    property_id = response.json()["id"]
    assert response.json()["status"] == "AVAILABLE"

    response = client.put(f"/api/admin/properties/{property_id}", headers=headers, json={"price": "460000"})
    assert response.status_code == 200
    assert Decimal(response.json()["price"]) == Decimal("460000")

    assert client.delete(f"/api/admin/properties/{property_id}", headers=headers).status_code == 204
    assert client.get(f"/api/real-estate/properties/{property_id}", headers=auth_headers(test_user)).status_code == 404


def test_purchased_property_cannot_be_deleted(client: TestClient, test_user, test_admin, test_property, auth_headers):
    _purchase(client, auth_headers(test_user), test_property)
    response = client.delete(f"/api/admin/properties/{test_property.id}", headers=auth_headers(test_admin))
    assert response.status_code == 409


# ---- Fixed-plan investments ----

def test_list_real_estate_plans(client: TestClient, test_user, auth_headers):
    plans = client.get("/api/real-estate/plans", headers=auth_headers(test_user)).json()
    by_type = {plan["plan_type"]: plan for plan in plans}
    assert by_type["SEMI_ANNUAL"]["duration_months"] == 6
    assert Decimal(by_type["SEMI_ANNUAL"]["return_rate"]) == Decimal("15")
    assert by_type["ANNUAL"]["duration_months"] == 12
    assert Decimal(by_type["ANNUAL"]["min_amount"]) == Decimal("1500000")


def test_real_estate_investment(client: TestClient, db_session, test_user, auth_headers):
    response = client.post(
        "/api/real-estate/investments",
        headers=auth_headers(test_user),
        json={"type": "SEMI_ANNUAL", "amount": "400000"},
    )
    assert response.status_code == 201
    investment = response.json()
    assert investment["plan_type"] == "SEMI_ANNUAL"
    assert Decimal(investment["expected_return"]) == Decimal("60000")
    assert wallet_balance(db_session, test_user) == Decimal("4600000.00")


def test_real_estate_investment_bounds(client: TestClient, test_user, auth_headers):
    response = client.post(
        "/api/real-estate/investments",
        headers=auth_headers(test_user),
        json={"type": "ANNUAL", "amount": "400000"},
    )
    assert response.status_code == 400


def test_withdraw_before_term_is_rejected(client: TestClient, db_session, test_user, auth_headers):
    investment = client.post(
        "/api/real-estate/investments",
        headers=auth_headers(test_user),
        json={"type": "SEMI_ANNUAL", "amount": "400000"},
    ).json()

    response = client.post(f"/api/real-estate/investments/{investment['id']}/withdraw", headers=auth_headers(test_user))
    assert response.status_code == 409
    assert response.json()["error"]["message"] == "Investment has not matured yet"
    assert wallet_balance(db_session, test_user) == Decimal("4600000.00")


def test_withdraw_after_term_pays_out_once(client: TestClient, db_session, test_user, auth_headers):
    investment = client.post(
        "/api/real-estate/investments",
        headers=auth_headers(test_user),
        json={"type": "SEMI_ANNUAL", "amount": "400000"},
    ).json()

    row = db_session.execute(select(RealEstateInvestment)).scalar_one()
    row.end_date = utcnow() - timedelta(days=1)
    db_session.commit()

    url = f"/api/real-estate/investments/{investment['id']}/withdraw"
    response = client.post(url, headers=auth_headers(test_user))
    assert response.status_code == 200
    assert response.json()["status"] == "MATURED"
    assert wallet_balance(db_session, test_user) == Decimal("5060000.00")

    assert client.post(url, headers=auth_headers(test_user)).status_code == 409
    assert wallet_balance(db_session, test_user) == Decimal("5060000.00")


def test_purchase_requires_kyc(client: TestClient, db_session, make_user, test_property, auth_headers):
    buyer = make_user(kyc_status=KycStatus.REJECTED, balance=Decimal("2000000"))
    response = _purchase(client, auth_headers(buyer), test_property)
    assert response.status_code == 403
    assert response.json()["error"]["requires_kyc"] is True
    assert db_session.execute(
        select(PropertyTransaction).where(PropertyTransaction.status == PropertyTransactionStatus.PENDING)
    ).first() is None
