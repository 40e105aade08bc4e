"""
Personal vault PIN: setup, verify (unlock), reset and lock.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from .deps import get_current_user, get_unlock_token, log_activity, vault_locks
from .schemas import MessageResponse, PinRequest, PinResetRequest, PinStatusResponse, UnlockResponse
from ..core import dao
from ..core.schema import User
from ..core.security import UnlockSession, hash_secret, tokens_match, verify_secret
from ..util.logging import logger

router = APIRouter()


def _unlock_response(session: UnlockSession, message: str) -> UnlockResponse:
    return UnlockResponse(
        message=message,
        unlock_token=session.token,
        expires_at=datetime.fromtimestamp(session.expires_at, tz=timezone.utc),
    )


@router.get("/status", response_model=PinStatusResponse)
def pin_status(user: User = Depends(get_current_user), unlock_token: Optional[str] = Depends(get_unlock_token)):
    session = vault_locks.get(user.id)
    unlocked = bool(session) and tokens_match(session.token, unlock_token)
    return PinStatusResponse(
        configured=bool(user.pin_hash),
        unlocked=unlocked,
        expires_at=datetime.fromtimestamp(session.expires_at, tz=timezone.utc) if unlocked else None,
    )


@router.post("/setup", response_model=UnlockResponse, status_code=status.HTTP_201_CREATED)
def setup_pin(req: PinRequest, request: Request, user: User = Depends(get_current_user)):
    if user.pin_hash:
        raise HTTPException(status_code=400, detail="PIN already configured. Use reset instead.")

    dao.set_pin_hash(user.id, hash_secret(req.pin))
    session = vault_locks.unlock(user.id)

    logger.log_auth_event("pin_setup", user.email)
    log_activity(request, "personal_pin_setup", user)
    return _unlock_response(session, "Personal vault PIN created")


@router.post("/verify", response_model=UnlockResponse)
def verify_pin(req: PinRequest, request: Request, user: User = Depends(get_current_user)):
    if not user.pin_hash:
        raise HTTPException(status_code=400, detail="PIN is not configured")

    if not verify_secret(req.pin, user.pin_hash):
        logger.log_auth_event("pin_verify", user.email, "failed")
        log_activity(request, "personal_pin_verify_failed", user)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid PIN")

    session = vault_locks.unlock(user.id)
    log_activity(request, "personal_pin_verify", user)
    return _unlock_response(session, "Personal vault unlocked")


@router.post("/reset", response_model=UnlockResponse)
def reset_pin(req: PinResetRequest, request: Request, user: User = Depends(get_current_user)):
    if not verify_secret(req.password, user.password_hash):
        logger.log_auth_event("pin_reset", user.email, "failed")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password")

    dao.set_pin_hash(user.id, hash_secret(req.new_pin))
    session = vault_locks.unlock(user.id)

    logger.log_auth_event("pin_reset", user.email)
    log_activity(request, "personal_pin_reset", user)
    return _unlock_response(session, "Personal vault PIN reset")


@router.post("/lock", response_model=MessageResponse)
def lock_vault(request: Request, user: User = Depends(get_current_user)):
    vault_locks.lock(user.id)
    log_activity(request, "personal_pin_lock", user)
    return MessageResponse(message="Personal vault locked")
