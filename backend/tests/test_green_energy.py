"""
Tests for the equipment catalogue and the equipment order state machine
"""

from decimal import Decimal

from fastapi.testclient import TestClient

from conftest import delivery_address, wallet_balance
from terravest.core.green_energy.models import EquipmentStatus


def _order(client, headers, equipment, quantity=2, address=None):
    return client.post(
        f"/api/green-energy/equipment/{equipment.id}/purchase",
        headers=headers,
        json={"quantity": quantity, "delivery_address": address or delivery_address},
    )


def _set_status(client, headers, order_id, status, **extra):
    return client.post(
        f"/api/admin/equipment-orders/{order_id}/status",
        headers=headers,
        json={"status": status, **extra},
    )


def test_purchase_debits_and_takes_stock(client: TestClient, db_session, test_user, test_equipment, auth_headers):
    response = _order(client, auth_headers(test_user), test_equipment, quantity=4)
    assert response.status_code == 201
    order = response.json()
    assert order["status"] == "PENDING"
    assert Decimal(order["unit_price"]) == Decimal("250")
    assert Decimal(order["total_amount"]) == Decimal("1000")
    assert order["delivery_address"]["city"] == "Lisbon"
    assert order["delivery_pin"] is None
    assert wallet_balance(db_session, test_user) == Decimal("4999000.00")

    db_session.refresh(test_equipment)
    assert test_equipment.stock_quantity == 6


def test_last_units_mark_equipment_sold(client: TestClient, db_session, test_user, test_equipment, auth_headers):
    assert _order(client, auth_headers(test_user), test_equipment, quantity=10).status_code == 201
    db_session.refresh(test_equipment)
    assert test_equipment.stock_quantity == 0
    assert test_equipment.status == EquipmentStatus.SOLD

    response = _order(client, auth_headers(test_user), test_equipment, quantity=1)
    assert response.status_code == 409


def test_quantity_above_stock(client: TestClient, db_session, test_user, test_equipment, auth_headers):
    response = _order(client, auth_headers(test_user), test_equipment, quantity=11)
    assert response.status_code == 400
    assert wallet_balance(db_session, test_user) == Decimal("5000000.00")


def test_incomplete_delivery_address(client: TestClient, test_user, test_equipment, auth_headers):
    address = {**delivery_address, "postal_code": ""}
    response = _order(client, auth_headers(test_user), test_equipment, address=address)
    assert response.status_code in (400, 422)


def test_order_moves_through_delivery(client: TestClient, db_session, test_user, test_admin, test_equipment, auth_headers):
    order = _order(client, auth_headers(test_user), test_equipment).json()
    admin = auth_headers(test_admin)

    assert _set_status(client, admin, order["id"], "ACCEPTED").json()["status"] == "ACCEPTED"
    assert _set_status(client, admin, order["id"], "PROCESSING").json()["status"] == "PROCESSING"

    shipped = _set_status(client, admin, order["id"], "OUT_FOR_DELIVERY", tracking_number="TRK-0001").json()
    assert shipped["status"] == "OUT_FOR_DELIVERY"
    assert shipped["tracking_number"] == "TRK-0001"
    assert len(shipped["delivery_pin"]) == 6
    assert shipped["delivery_pin"].isdigit()
    assert shipped["delivery_date"] is not None

    done = _set_status(client, admin, order["id"], "COMPLETED").json()
    assert done["status"] == "COMPLETED"
    assert done["completed_at"] is not None

    response = _set_status(client, admin, order["id"], "CANCELLED")
    assert response.status_code == 409
    assert wallet_balance(db_session, test_user) == Decimal("4999500.00")


def test_illegal_transition_rejected(client: TestClient, test_user, test_admin, test_equipment, auth_headers):
    order = _order(client, auth_headers(test_user), test_equipment).json()
    response = _set_status(client, auth_headers(test_admin), order["id"], "OUT_FOR_DELIVERY")
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVALID_STATE"


def test_cancel_refunds_and_restocks(client: TestClient, db_session, test_user, test_admin, test_equipment, auth_headers):
    order = _order(client, auth_headers(test_user), test_equipment, quantity=10).json()
    _set_status(client, auth_headers(test_admin), order["id"], "ACCEPTED")

    response = _set_status(client, auth_headers(test_admin), order["id"], "CANCELLED", reason="Supplier delay")
    assert response.status_code == 200
    assert response.json()["cancelled_at"] is not None
    assert wallet_balance(db_session, test_user) == Decimal("5000000.00")

    db_session.refresh(test_equipment)
    assert test_equipment.stock_quantity == 10
    assert test_equipment.status == EquipmentStatus.AVAILABLE


def test_orders_listed_for_owner_only(client: TestClient, test_user, make_user, test_equipment, auth_headers):
    _order(client, auth_headers(test_user), test_equipment)
    other = make_user()
    assert client.get("/api/green-energy/orders", headers=auth_headers(other)).json() == []
    orders = client.get("/api/green-energy/orders", headers=auth_headers(test_user)).json()
    assert len(orders) == 1
    assert orders[0]["equipment"]["name"] == "Solar Panel 400W"


def test_admin_equipment_management(client: TestClient, test_user, test_admin, auth_headers):
    headers = auth_headers(test_admin)
    response = client.post(
        "/api/admin/equipment",
        headers=headers,
        json={"name": "Home Battery 10kWh", "type": "battery", "price": "4200", "stock_quantity": 3},
    )
    assert response.status_code == 201
    equipment = response.json()
    assert equipment["type"] == "BATTERY"

    response = client.put(
        f"/api/admin/equipment/{equipment['id']}",
        headers=headers,
        json={"stock_quantity": 8, "price": "3990"},
    )
    assert response.status_code == 200
    assert response.json()["stock_quantity"] == 8

    listed = client.get("/api/green-energy/equipment", headers=auth_headers(test_user)).json()
    assert [item["name"] for item in listed] == ["Home Battery 10kWh"]
