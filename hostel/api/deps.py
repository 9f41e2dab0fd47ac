from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from hostel.core.config import settings
from hostel.core.security import verify_token

# Tokens are issued by the separate auth service; this API only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Principal:
    """Caller identity resolved from the bearer token."""

    user_id: str
    role: str = "student"
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def get_current_principal(token: str = Depends(oauth2_scheme)) -> Principal:
    try:
        payload = verify_token(token, token_type="access")
        user_id = payload.get("sub")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Principal(
        user_id=str(user_id),
        role=payload.get("role") or "student",
        name=payload.get("name"),
        email=payload.get("email"),
    )


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator privileges required",
        )
    return principal


def ensure_self_or_admin(principal: Principal, user_id: str) -> None:
    """Reject acting on another user's data unless the caller is an admin."""
    if principal.user_id != user_id and not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only act on your own bookings",
        )
