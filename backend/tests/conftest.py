"""
Pytest configuration and fixtures
"""

import os
import tempfile
from decimal import Decimal
from typing import Dict, Optional
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

# Set test environment variables before importing app
_TEST_DIR = tempfile.mkdtemp(prefix="terravest-tests-")
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'terravest_test.db')}"
os.environ["REDIS_URL"] = "redis://localhost:6379/1"
os.environ["JWT_SECRET"] = "test-jwt-secret-min-32-chars-for-testing-only"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["METRICS_TOKEN"] = "test-metrics-token"
os.environ["LOG_LEVEL"] = "DEBUG"

from terravest.auth.principal import create_access_token  # noqa: E402
from terravest.core.green_energy.models import Equipment, GreenEnergyPlan  # noqa: E402
from terravest.core.markets.models import MarketInvestmentPlan  # noqa: E402
from terravest.core.real_estate.models import Property  # noqa: E402
from terravest.core.users.models import KycStatus, Role, User  # noqa: E402
from terravest.core.wallets.models import WalletTransactionType  # noqa: E402
from terravest.infrastructure.database import Base, SessionLocal, engine, get_db  # noqa: E402
from terravest.main import app  # noqa: E402
from terravest.services.ledger import credit_wallet, get_wallet, ledger_transaction  # noqa: E402
from terravest.services.user_service import register_user  # noqa: E402


@pytest.fixture(scope="function")
def db_session() -> Session:
    """
    Create a fresh database session for each test.
    Clears all tables before and after each test.
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session: Session):
    """
    Create FastAPI test client with dependency overrides.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: Session):
    """
    Factory registering a user (wallet included).

    KYC is approved by default so the user can invest straight away.
    """
    def _make(
        email: Optional[str] = None,
        *,
        role: Role = Role.USER,
        kyc_status: KycStatus = KycStatus.APPROVED,
        balance: Optional[Decimal] = None,
        referral_code: Optional[str] = None,
        password: str = "Str0ngPassw0rd!",
    ) -> User:
        user = register_user(
            db_session,
            email=email or f"user-{uuid4().hex[:10]}@example.com",
            password=password,
            first_name="Test",
            last_name="User",
            referral_code=referral_code,
            role=role,
        )
        user.kyc_status = kyc_status
        db_session.commit()
        if balance:
            fund_wallet(db_session, user, balance)
        db_session.refresh(user)
        return user

    return _make


def fund_wallet(db: Session, user: User, amount) -> None:
    """Credit a wallet directly through the ledger"""
    with ledger_transaction(db):
        credit_wallet(
            db,
            user_id=user.id,
            amount=amount,
            tx_type=WalletTransactionType.DEPOSIT,
            description="Test funding",
        )


def wallet_balance(db: Session, user: User) -> Decimal:
    db.expire_all()
    return Decimal(str(get_wallet(db, user.id).balance)).quantize(Decimal("0.01"))


@pytest.fixture
def test_user(make_user) -> User:
    """KYC-approved user with 5,000,000 in the wallet"""
    return make_user("investor@example.com", balance=Decimal("5000000"))


@pytest.fixture
def test_admin(make_user) -> User:
    return make_user("admin@example.com", role=Role.ADMIN)


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> Dict[str, str]:
        token = create_access_token(user.id, user.email, user.role)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def test_property(db_session: Session) -> Property:
    prop = Property(
        name="Palm Villa",
        location="Lisbon",
        price=Decimal("1200000"),
        bedrooms=4,
        bathrooms=3,
    )
    db_session.add(prop)
    db_session.commit()
    db_session.refresh(prop)
    return prop


@pytest.fixture
def test_equipment(db_session: Session) -> Equipment:
    equipment = Equipment(
        name="Solar Panel 400W",
        type="SOLAR_PANEL",
        price=Decimal("250"),
        stock_quantity=10,
    )
    db_session.add(equipment)
    db_session.commit()
    db_session.refresh(equipment)
    return equipment


@pytest.fixture
def green_energy_plan(db_session: Session) -> GreenEnergyPlan:
    plan = GreenEnergyPlan(
        name="Solar Farm Starter",
        type="SOLAR",
        min_amount=Decimal("1000"),
        max_amount=Decimal("50000"),
        return_rate=Decimal("12"),
        duration_months=6,
        is_active=True,
    )
    db_session.add(plan)
    db_session.commit()
    db_session.refresh(plan)
    return plan


@pytest.fixture
def market_plan(db_session: Session) -> MarketInvestmentPlan:
    plan = MarketInvestmentPlan(
        name="Blue Chip Basket",
        type="STOCKS",
        min_amount=Decimal("500"),
        max_amount=Decimal("100000"),
        return_rate=Decimal("8"),
        duration_months=3,
        is_active=True,
    )
    db_session.add(plan)
    db_session.commit()
    db_session.refresh(plan)
    return plan


delivery_address = {
    "street": "12 Rua Augusta",
    "city": "Lisbon",
    "state": "Lisboa",
    "postal_code": "1100-053",
    "country": "PT",
}
