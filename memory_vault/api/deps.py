"""
Request-scoped helpers shared by the API routers: current user, personal vault
unlock state, admin checks and activity logging.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core import dao
from ..core.config import get_admin_api_key, get_admin_owner_email
from ..core.schema import User
from ..core.security import AuthRateLimiter, PersonalVaultLocks, tokens_match
from ..util.logging import logger

security = HTTPBearer(auto_error=False)

# Process-wide state; cleared on restart
vault_locks = PersonalVaultLocks()
rate_limiter = AuthRateLimiter()

UNLOCK_HEADER = "X-Personal-Unlock-Token"


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For entry, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"


def log_activity(request: Request, action: str, user: Optional[User] = None,
                 email: Optional[str] = None, details: Dict[str, Any] = None) -> None:
    """Append an entry to the admin activity log. Never fails the request."""
    try:
        dao.add_activity(
            action=action,
            email=user.email if user else email,
            user_id=user.id if user else None,
            method=request.method,
            path=request.url.path,
            ip=get_client_ip(request),
            details=details or {},
        )
    except Exception as e:
        logger.warning(f"Failed to record activity '{action}': {e}")


def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> User:
    """Resolve the bearer session token to a user, or 401."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

    session = dao.get_session(credentials.credentials)
    if not session:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")

    user = dao.get_user(session.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")
    return user


def get_unlock_token(x_personal_unlock_token: Optional[str] = Header(None)) -> Optional[str]:
    return x_personal_unlock_token


def is_personal_unlocked(user: User, unlock_token: Optional[str]) -> bool:
    return vault_locks.is_unlocked(user.id, unlock_token)


def require_personal_unlock(user: User, unlock_token: Optional[str]) -> None:
    if not is_personal_unlocked(user, unlock_token):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Personal vault is locked")


def is_admin_user(user: User) -> bool:
    owner_email = get_admin_owner_email()
    return bool(owner_email) and user.email == owner_email


def require_admin(user: User = Depends(get_current_user),
                  x_admin_key: Optional[str] = Header(None)) -> User:
    """Owner account plus matching X-Admin-Key."""
    admin_key = get_admin_api_key()
    if not admin_key or not get_admin_owner_email():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Admin access is not configured")

    if not is_admin_user(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access denied")

    if not tokens_match(admin_key, x_admin_key):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin key")
    return user
