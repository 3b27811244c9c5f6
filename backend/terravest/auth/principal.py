"""
Authenticated principal extracted from a bearer token
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

import jwt as pyjwt

from terravest.core.users.models import Role
from terravest.infrastructure.settings import get_settings


@dataclass
class Principal:
    """Authenticated user principal"""
    subject: str  # JWT 'sub' claim (user id)
    email: Optional[str] = None
    roles: List[str] = field(default_factory=list)
    raw_claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def user_id(self) -> UUID:
        return UUID(self.subject)

    def has_role(self, role: str) -> bool:
        return role.upper() in (r.upper() for r in self.roles)


def create_access_token(user_id: UUID, email: str, role: Role = Role.USER) -> str:
    """Create JWT access token"""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "roles": role.token_roles,
        "iat": now,
        "exp": now + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return pyjwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Principal:
    """
    Verify signature and expiry and build a Principal.

    Raises pyjwt.InvalidTokenError (ExpiredSignatureError included).
    """
    settings = get_settings()
    payload = pyjwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    subject = payload.get("sub")
    if not subject:
        raise pyjwt.InvalidTokenError("Token has no subject")
    try:
        UUID(subject)
    except (ValueError, TypeError):
        raise pyjwt.InvalidTokenError("Token subject is not a user id")
    return Principal(
        subject=subject,
        email=payload.get("email"),
        roles=list(payload.get("roles") or ["USER"]),
        raw_claims=payload,
    )
