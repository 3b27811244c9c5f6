"""
FastAPI dependencies: bearer token -> Principal -> User
"""

from typing import Optional

import jwt as pyjwt
from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from terravest.auth.principal import Principal, decode_access_token
from terravest.core.users.models import Role, User, UserStatus
from terravest.infrastructure.database import get_db
from terravest.services.exceptions import ForbiddenError


def _unauthorized(code: str, message: str) -> HTTPException:
    # Rendered by http_exception_handler with `code` as the error code
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": {"code": code, "message": message}},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise _unauthorized("AUTHORIZATION_MISSING", "Authorization header missing")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("INVALID_TOKEN", "Expected 'Authorization: Bearer <token>'")
    return token.strip()


async def get_current_principal(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> Principal:
    token = _bearer_token(authorization)
    try:
        principal = decode_access_token(token)
    except pyjwt.ExpiredSignatureError:
        raise _unauthorized("TOKEN_EXPIRED", "Token expired")
    except pyjwt.InvalidTokenError as e:
        raise _unauthorized("INVALID_TOKEN", f"Invalid token: {e}")

    # Read by RequestLoggingMiddleware for actor fields
    request.state.principal = principal
    return principal


def require_role(role: Role):
    """Dependency factory: the token must carry `role`"""
    async def _check_role(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.has_role(role.value):
            raise ForbiddenError(f"{role.value} role required")
        return principal
    return _check_role


require_user = require_role(Role.USER)
require_admin = require_role(Role.ADMIN)


def get_current_user(
    principal: Principal = Depends(require_user),
    db: Session = Depends(get_db),
) -> User:
    """The active account behind the token"""
    user = db.get(User, principal.user_id)
    if user is None:
        raise _unauthorized("INVALID_TOKEN", "User no longer exists")
    if user.status != UserStatus.ACTIVE:
        raise ForbiddenError("User account is suspended")
    return user
