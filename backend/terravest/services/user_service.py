"""
User services - registration, authentication, KYC and account status
"""

import logging
import secrets
import string
from typing import List, Optional
from uuid import UUID

import bcrypt
from sqlalchemy import select
from sqlalchemy.orm import Session

from terravest.core.notifications.models import NotificationType
from terravest.core.users.models import KycStatus, Role, User, UserStatus
from terravest.services.audit_service import record_audit
from terravest.services.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from terravest.services.ledger import create_wallet, ledger_transaction
from terravest.services.notification_service import notify
from terravest.services.referral_service import create_referral

logger = logging.getLogger(__name__)

REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits
REFERRAL_CODE_LENGTH = 8


def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    return bcrypt.hashpw(password.encode("utf-8")[:72], bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def _new_referral_code(db: Session) -> str:
    while True:
        code = "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH))
        taken = db.execute(select(User.id).where(User.referral_code == code)).scalar_one_or_none()
        if taken is None:
            return code


def register_user(
    db: Session,
    *,
    email: str,
    password: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    referral_code: Optional[str] = None,
    role: Role = Role.USER,
) -> User:
    """Create the user, an empty wallet and (optionally) the referral link in one transaction"""
    email = email.strip().lower()
    if db.execute(select(User.id).where(User.email == email)).scalar_one_or_none() is not None:
        raise ValidationError("User with this email already exists")

    with ledger_transaction(db):
        user = User(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            status=UserStatus.ACTIVE,
            role=role,
            kyc_status=KycStatus.NOT_SUBMITTED,
            referral_code=_new_referral_code(db),
        )
        db.add(user)
        db.flush()
        create_wallet(db, user.id)
        if referral_code:
            create_referral(db, referral_code=referral_code, referred=user)

    db.refresh(user)
    logger.info("User registered", extra={"user_id": str(user.id), "referred": bool(referral_code)})
    return user


def authenticate(db: Session, *, email: str, password: str) -> User:
    user = db.execute(select(User).where(User.email == email.strip().lower())).scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid email or password")
    if user.status != UserStatus.ACTIVE:
        raise ForbiddenError("User account is suspended")
    return user


def get_user(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def list_users(
    db: Session,
    *,
    kyc_status: Optional[KycStatus] = None,
    limit: int = 100,
    offset: int = 0,
) -> List[User]:
    stmt = select(User)
    if kyc_status is not None:
        stmt = stmt.where(User.kyc_status == kyc_status)
    return list(db.execute(stmt.order_by(User.created_at.desc()).limit(limit).offset(offset)).scalars().all())


def _lock_user(db: Session, user_id: UUID) -> User:
    user = db.execute(select(User).where(User.id == user_id).with_for_update()).scalar_one_or_none()
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def set_kyc_status(
    db: Session,
    *,
    user_id: UUID,
    kyc_status: KycStatus,
    actor_id: UUID,
    reason: Optional[str] = None,
) -> User:
    with ledger_transaction(db):
        user = _lock_user(db, user_id)
        previous = user.kyc_status
        user.kyc_status = kyc_status
        notify(
            db,
            user_id=user.id,
            type=NotificationType.KYC_UPDATED,
            title="KYC status updated",
            message=(
                f"Your identity verification is now {kyc_status.value.lower()}."
                + (f" Reason: {reason}" if reason else "")
            ),
            action_url="/profile",
        )
        record_audit(
            db,
            actor_user_id=actor_id,
            action="KYC_STATUS_UPDATED",
            entity_type="User",
            entity_id=user.id,
            before={"kyc_status": previous.value},
            after={"kyc_status": kyc_status.value},
            reason=reason,
        )
    db.refresh(user)
    return user


def set_user_status(
    db: Session,
    *,
    user_id: UUID,
    status: UserStatus,
    actor_id: UUID,
    reason: Optional[str] = None,
) -> User:
    """
    Suspend or reactivate an account.

    A suspended user can no longer log in, and tokens already issued to them
    are refused. Admins cannot suspend themselves.
    """
    if user_id == actor_id and status == UserStatus.SUSPENDED:
        raise ValidationError("You cannot suspend your own account")

    with ledger_transaction(db):
        user = _lock_user(db, user_id)
        previous = user.status
        if previous == status:
            raise InvalidStateError(f"User is already {status.value}")
        user.status = status
        if status == UserStatus.SUSPENDED:
            title = "Account suspended"
            message = "Your account has been suspended. Please contact support for more information."
        else:
            title = "Account reactivated"
            message = "Your account has been reactivated. You can log in and use the platform again."
        notify(
            db,
            user_id=user.id,
            type=NotificationType.SYSTEM_UPDATE,
            title=title,
            message=message + (f" Reason: {reason}" if reason else ""),
            action_url="/login",
        )
        record_audit(
            db,
            actor_user_id=actor_id,
            action="USER_STATUS_UPDATED",
            entity_type="User",
            entity_id=user.id,
            before={"status": previous.value},
            after={"status": status.value},
            reason=reason,
        )
    logger.info("User status updated", extra={"user_id": str(user_id), "status": status.value})
    db.refresh(user)
    return user
