"""The current principal, as resolved by the identity service in front of us.

The gateway authenticates the session and forwards the caller as the
``X-User-Id`` and ``X-User-Role`` headers.
"""

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

from ordering.errors import Unauthorized

SELLER_ROLES = {"SELLER", "ADMIN"}


@dataclass(frozen=True)
class Principal:
    id: str
    role: str = "USER"

    @property
    def is_seller(self) -> bool:
        return self.role in SELLER_ROLES


def current_principal(
    x_user_id: str | None = Header(None),
    x_user_role: str | None = Header(None),
) -> Principal:
    if not x_user_id:
        raise Unauthorized("Sign in to continue")
    return Principal(id=x_user_id, role=(x_user_role or "USER").upper())


def current_seller(principal: Principal = Depends(current_principal)) -> Principal:
    if not principal.is_seller:
        raise HTTPException(status_code=403, detail="Seller role required")
    return principal
