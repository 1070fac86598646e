# hardware_store/core/auth.py
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from hardware_store.core.config import get_settings

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so public routes (checkout, tracking) can read an optional customer token.
bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify an access token (JWT).

    Verification:
      - signature (JWT_ALG using JWT_SECRET)
      - expiration time (exp), when present
      - audience is NOT verified

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict[str, Any] | None:
    """
    Resolve the caller's claims.

    Returns:
        Decoded claims with a 'sub', or None for guests.

    Raises:
        HTTPException(401): if the token is malformed or has no 'sub'.
    """
    if credentials is None:
        return None  # guest mode

    payload = decode_access_token(credentials.credentials)
    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )
    return payload


def get_optional_customer_id(
    claims: dict[str, Any] | None = Depends(get_current_claims),
) -> str | None:
    """Registered customer id for checkout, None for guest checkout."""
    if claims is None:
        return None
    return str(claims["sub"])


def require_admin(
    claims: dict[str, Any] | None = Depends(get_current_claims),
) -> str:
    """
    Enforce admin role.

    Returns:
        The admin's actor id (the token 'sub'), recorded on ledger events.

    Raises:
        HTTPException(401): no token.
        HTTPException(403): role is not admin.
    """
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    if claims.get("role") != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return str(claims["sub"])
