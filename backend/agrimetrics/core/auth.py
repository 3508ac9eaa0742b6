# backend/agrimetrics/core/auth.py

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import FrozenSet, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from agrimetrics.core.config import settings
from agrimetrics.core.exceptions import AuthenticationError, AuthorizationError

security = HTTPBearer(auto_error=False)


# ------------------------------------------------
# CALLER IDENTITY
# ------------------------------------------------
@dataclass(frozen=True)
class Caller:
    """Authenticated identity passed explicitly through every analytics call."""

    user_id: str
    organization_id: Optional[str]
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    def has_permission(self, name: str) -> bool:
        return name in self.permissions


# ------------------------------------------------
# BACKEND JWT DECODING
# ------------------------------------------------
def decode_backend_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")


def caller_from_claims(payload: dict) -> Caller:
    user_id = payload.get("user_id") or payload.get("sub")
    if not user_id:
        raise AuthenticationError("Token has no subject")

    return Caller(
        user_id=str(user_id),
        organization_id=payload.get("organization_id"),
        permissions=frozenset(payload.get("permissions") or []),
    )


async def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Caller:
    """
    Decode backend JWT that contains:
    - user_id (or sub)
    - organization_id
    - permissions
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")
    return caller_from_claims(decode_backend_token(credentials.credentials))


# ------------------------------------------------
# PERMISSION GUARD
# ------------------------------------------------
def require_permission(required_permission: str):
    """Dependency enforcing a permission flag carried by the token."""

    async def wrapper(caller: Caller = Depends(get_current_caller)) -> Caller:
        if not caller.organization_id:
            raise AuthorizationError("Invalid user context")

        if not caller.has_permission(required_permission):
            raise AuthorizationError(f"Permission denied: missing '{required_permission}'")

        return caller

    return wrapper


def create_access_token(data: dict, expires_delta: timedelta | None = None):
    to_encode = data.copy()
    if expires_delta:
        to_encode["exp"] = datetime.utcnow() + expires_delta
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
