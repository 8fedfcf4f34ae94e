import secrets
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from linkapi.config import settings
from linkapi.core.exceptions import AuthenticationError

# Tokens are issued by the auth service; this core only verifies them.
security = HTTPBearer(auto_error=False)


def decode_user_id(token: str) -> int:
    """Return the user id carried in the `sub` claim of a bearer token."""
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise AuthenticationError("Invalid token", details={"reason": str(e)})

    subject = payload.get("sub") or payload.get("user_id")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise AuthenticationError("Token has no user subject")


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> int:
    """Owner context required"""
    if not credentials:
        raise AuthenticationError("Authentication required")
    return decode_user_id(credentials.credentials)


def get_current_user_id_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[int]:
    """Viewer identity for public redirects; anonymous on any failure"""
    if not credentials:
        return None
    try:
        return decode_user_id(credentials.credentials)
    except AuthenticationError:
        return None


def verify_internal_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> bool:
    """Shared-secret check for payment provider callbacks (AUTH_TOKEN)."""
    if not settings.AUTH_TOKEN:
        raise AuthenticationError("Internal callbacks are disabled")
    if not credentials or not secrets.compare_digest(
        credentials.credentials, settings.AUTH_TOKEN
    ):
        raise AuthenticationError("Invalid internal token")
    return True
