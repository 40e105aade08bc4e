"""
Credential hashing, personal-vault unlock sessions and sign-in rate limiting.
"""

import hmac
import re
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .config import (
    AUTH_BLOCK_SEC,
    AUTH_WINDOW_SEC,
    MAX_AUTH_ATTEMPTS,
    PASSWORD_HASH_ITERATIONS,
    PERSONAL_UNLOCK_TTL_SEC,
)

HASH_SCHEME = "pbkdf2_sha256"

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USERNAME_PATTERN = re.compile(r"^[a-z0-9_]{3,20}$")
PIN_PATTERN = re.compile(r"^\d{4,6}$")


def normalize_email(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def normalize_username(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def is_valid_username(username: str) -> bool:
    return bool(USERNAME_PATTERN.match(username))


def is_strong_password(password: str) -> bool:
    if len(password) < 8 or len(password) > 128:
        return False
    return bool(re.search(r"[A-Za-z]", password)) and bool(re.search(r"\d", password))


def is_valid_pin(pin: str) -> bool:
    return bool(PIN_PATTERN.match(pin))


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=iterations,
    )


def hash_secret(secret: str, iterations: int = PASSWORD_HASH_ITERATIONS) -> str:
    """Hash a password or PIN as 'pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>'."""
    salt = secrets.token_bytes(16)
    derived = _kdf(salt, iterations).derive(secret.encode())
    return f"{HASH_SCHEME}${iterations}${salt.hex()}${derived.hex()}"


def verify_secret(secret: str, encoded: Optional[str]) -> bool:
    if not encoded:
        return False
    try:
        scheme, iterations, salt_hex, hash_hex = encoded.split("$")
        if scheme != HASH_SCHEME:
            return False
        _kdf(bytes.fromhex(salt_hex), int(iterations)).verify(secret.encode(), bytes.fromhex(hash_hex))
        return True
    except InvalidKey:
        return False
    except ValueError:
        # Malformed stored hash
        return False


def tokens_match(expected: Optional[str], provided: Optional[str]) -> bool:
    """Constant-time token comparison."""
    if not expected or not provided:
        return False
    return hmac.compare_digest(expected.encode(), provided.encode())


@dataclass
class UnlockSession:
    token: str
    expires_at: float


class PersonalVaultLocks:
    """In-memory personal vault unlock sessions, keyed by user id."""

    def __init__(self, ttl_sec: int = PERSONAL_UNLOCK_TTL_SEC):
        self.ttl_sec = ttl_sec
        self._sessions: Dict[str, UnlockSession] = {}
        self._lock = threading.Lock()

    def unlock(self, user_id: str) -> UnlockSession:
        session = UnlockSession(token=secrets.token_hex(24), expires_at=time.time() + self.ttl_sec)
        with self._lock:
            self._sessions[user_id] = session
        return session

    def get(self, user_id: str) -> Optional[UnlockSession]:
        with self._lock:
            session = self._sessions.get(user_id)
            if session and time.time() > session.expires_at:
                del self._sessions[user_id]
                return None
            return session

    def is_unlocked(self, user_id: str, provided_token: Optional[str]) -> bool:
        session = self.get(user_id)
        if not session:
            return False
        return tokens_match(session.token, provided_token)

    def lock(self, user_id: str) -> None:
        with self._lock:
            self._sessions.pop(user_id, None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()


@dataclass
class AttemptRecord:
    first_attempt_at: float
    attempts: int = 0
    blocked_until: Optional[float] = None


class AuthRateLimiter:
    """Blocks an (ip, identifier) pair after repeated failed sign-ins inside a window."""

    def __init__(self, max_attempts: int = MAX_AUTH_ATTEMPTS, window_sec: int = AUTH_WINDOW_SEC,
                 block_sec: int = AUTH_BLOCK_SEC):
        self.max_attempts = max_attempts
        self.window_sec = window_sec
        self.block_sec = block_sec
        self._records: Dict[str, AttemptRecord] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(ip: str, identifier: str) -> str:
        return f"{ip}:{(identifier or '').lower()}"

    def retry_after(self, ip: str, identifier: str) -> Optional[float]:
        """Seconds until the pair may retry, or None when not blocked."""
        key = self._key(ip, identifier)
        now = time.time()
        with self._lock:
            record = self._records.get(key)
            if not record:
                return None
            if record.blocked_until and now < record.blocked_until:
                return record.blocked_until - now
            if now - record.first_attempt_at > self.window_sec:
                del self._records[key]
            return None

    def record_failure(self, ip: str, identifier: str) -> None:
        key = self._key(ip, identifier)
        now = time.time()
        with self._lock:
            record = self._records.get(key)
            if not record or now - record.first_attempt_at > self.window_sec:
                record = AttemptRecord(first_attempt_at=now)
                self._records[key] = record
            record.attempts += 1
            if record.attempts >= self.max_attempts:
                record.blocked_until = now + self.block_sec

    def clear(self, ip: str, identifier: str) -> None:
        with self._lock:
            self._records.pop(self._key(ip, identifier), None)

    def reset(self) -> None:
        with self._lock:
            self._records.clear()
