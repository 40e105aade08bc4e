"""
Account signup and signin.
"""

import math

from fastapi import APIRouter, HTTPException, Request, status

from .deps import get_client_ip, log_activity, rate_limiter
from .schemas import AuthResponse, SigninRequest, SignupRequest, UserInfo
from ..core import dao
from ..core.config import SESSION_TTL_SEC
from ..core.schema import User
from ..core.security import hash_secret, verify_secret
from ..util.logging import logger

router = APIRouter()


def _auth_response(user: User, message: str) -> AuthResponse:
    session = dao.create_session(user.id, SESSION_TTL_SEC)
    return AuthResponse(
        message=message,
        token=session.token,
        user=UserInfo(id=user.id, email=user.email, username=user.username, name=user.name),
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(req: SignupRequest, request: Request):
    """Create an account and start a session."""
    name = (req.name or "").strip() or req.username

    try:
        user = dao.create_user(req.email, req.username, name, hash_secret(req.password))
    except dao.DuplicateUserError as e:
        logger.log_auth_event("signup", req.email, "rejected", {"reason": f"duplicate {e.field}"})
        if e.field == "email":
            raise HTTPException(status_code=400, detail="Email already registered")
        raise HTTPException(status_code=400, detail="Username already taken")

    log_activity(request, "auth_signup", user)
    return _auth_response(user, "Account created")


@router.post("/signin", response_model=AuthResponse)
def signin(req: SigninRequest, request: Request):
    """Sign in with email or username."""
    ip = get_client_ip(request)

    retry_after = rate_limiter.retry_after(ip, req.identifier)
    if retry_after is not None:
        logger.log_auth_event("signin", req.identifier, "blocked", {"ip": ip})
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many failed sign-in attempts. Try again later.",
            headers={"Retry-After": str(math.ceil(retry_after))},
        )

    user = dao.get_user_by_identifier(req.identifier)
    if not user or not verify_secret(req.password, user.password_hash):
        rate_limiter.record_failure(ip, req.identifier)
        logger.log_auth_event("signin", req.identifier, "failed", {"ip": ip})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    rate_limiter.clear(ip, req.identifier)
    logger.log_auth_event("signin", user.email, "success")
    log_activity(request, "auth_signin", user)
    return _auth_response(user, "Signed in")
