# app/core/identity.py
from dataclasses import dataclass

from fastapi import Header, HTTPException

ROLE_ADMIN = "Admin"
ROLE_TECHNICIAN = "Technician"
ROLE_END_USER = "EndUser"

ROLES = (ROLE_ADMIN, ROLE_TECHNICIAN, ROLE_END_USER)


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: str


def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_role: str = Header(default=ROLE_END_USER),
) -> CurrentUser:
    """Identity is resolved upstream; the app only reads the forwarded headers."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    if x_user_role not in ROLES:
        raise HTTPException(status_code=403, detail=f"Unknown role '{x_user_role}'")
    return CurrentUser(id=x_user_id, role=x_user_role)


__all__ = [
    "ROLE_ADMIN",
    "ROLE_TECHNICIAN",
    "ROLE_END_USER",
    "ROLES",
    "CurrentUser",
    "get_current_user",
]
