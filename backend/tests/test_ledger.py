"""
Tests for the wallet ledger (credits, debits and atomicity)
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from conftest import wallet_balance
from terravest.core.wallets.models import WalletTransaction, WalletTransactionStatus, WalletTransactionType
from terravest.services.exceptions import InsufficientFundsError, ValidationError
from terravest.services.ledger import credit_wallet, debit_wallet, get_wallet, ledger_transaction


def _count_entries(db, user) -> int:
    return db.execute(
        select(func.count(WalletTransaction.id)).where(WalletTransaction.user_id == user.id)
    ).scalar_one()


def test_credit_and_debit_record_balance_after(db_session, make_user):
    user = make_user(balance=Decimal("1000"))

    with ledger_transaction(db_session):
        entry = debit_wallet(
            db_session,
            user_id=user.id,
            amount="250",
            tx_type=WalletTransactionType.INVESTMENT,
            description="Test debit",
        )

    assert entry.status == WalletTransactionStatus.COMPLETED
    assert Decimal(str(entry.balance_after)) == Decimal("750.00")
    assert wallet_balance(db_session, user) == Decimal("750.00")
    # funding + debit
    assert get_wallet(db_session, user.id).version == 2


def test_insufficient_funds_writes_nothing(db_session, make_user):
    user = make_user(balance=Decimal("100"))
    entries_before = _count_entries(db_session, user)

    with pytest.raises(InsufficientFundsError):
        with ledger_transaction(db_session):
            debit_wallet(
                db_session,
                user_id=user.id,
                amount="100.01",
                tx_type=WalletTransactionType.PURCHASE,
                description="Too much",
            )

    assert wallet_balance(db_session, user) == Decimal("100.00")
    assert _count_entries(db_session, user) == entries_before


def test_failure_later_in_block_rolls_back_debit(db_session, make_user):
    user = make_user(balance=Decimal("500"))

    with pytest.raises(RuntimeError):
        with ledger_transaction(db_session):
            debit_wallet(
                db_session,
                user_id=user.id,
                amount="200",
                tx_type=WalletTransactionType.INVESTMENT,
                description="Rolled back",
            )
            raise RuntimeError("boom")

    assert wallet_balance(db_session, user) == Decimal("500.00")
    assert _count_entries(db_session, user) == 1


@pytest.mark.parametrize("amount", ["0", "-5", "0.004", "NaN", "1e30", "1000000000000000000"])
def test_invalid_amounts_rejected(db_session, make_user, amount):
    user = make_user(balance=Decimal("100"))
    with pytest.raises(ValidationError):
        with ledger_transaction(db_session):
            credit_wallet(
                db_session,
                user_id=user.id,
                amount=amount,
                tx_type=WalletTransactionType.DEPOSIT,
                description="Invalid",
            )


def test_direction_is_fixed_by_type(db_session, make_user):
    user = make_user(balance=Decimal("100"))
    with pytest.raises(ValueError):
        debit_wallet(
            db_session,
            user_id=user.id,
            amount="10",
            tx_type=WalletTransactionType.DEPOSIT,
            description="Wrong direction",
        )
    with pytest.raises(ValueError):
        credit_wallet(
            db_session,
            user_id=user.id,
            amount="10",
            tx_type=WalletTransactionType.WITHDRAWAL,
            description="Wrong direction",
        )


def test_amounts_are_quantized_to_cents(db_session, make_user):
    user = make_user()
    with ledger_transaction(db_session):
        entry = credit_wallet(
            db_session,
            user_id=user.id,
            amount="10.005",
            tx_type=WalletTransactionType.DEPOSIT,
            description="Rounded",
        )
    assert Decimal(str(entry.amount)) == Decimal("10.01")
