"""
Shared request dependencies: session auth, role gates and platform keys.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from venturematch.core.config import get_settings
from venturematch.core.database import get_db
from venturematch.users.auth import AuthService


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> dict:
    """Extract and validate JWT token from Authorization header."""
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header required")

    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization format")

    token = authorization[7:]

    try:
        return AuthService(db).verify_token(token)
    except ValueError as e:
        raise HTTPException(status_code=401, detail=str(e))


def require_role(*roles: str):
    """Dependency factory: 403 unless the session user has one of the roles."""

    def checker(current_user: dict = Depends(get_current_user)) -> dict:
        if current_user["role"] not in roles:
            raise HTTPException(
                status_code=403,
                detail=f"This action requires role: {' or '.join(roles)}",
            )
        return current_user

    return checker


require_founder = require_role("founder")
require_investor = require_role("investor")


def require_admin(current_user: dict = Depends(require_role("admin"))) -> dict:
    """Admin session plus a configured service role key (MissingAPIKeyError -> 500)."""
    get_settings().require_service_role_key()
    return current_user


def require_anon_key(apikey: Optional[str] = Header(None)) -> None:
    """Public endpoints must present the anon key in the apikey header."""
    expected = get_settings().require_anon_key()
    if apikey != expected:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
