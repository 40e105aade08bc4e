"""
Data access for users, notes, sessions and the admin activity log.
All reads return typed records from schema.py; every note query is scoped by owner.
"""

import json
import secrets
import sqlite3
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from .db import get_db, init_db
from .config import ACTIVITY_LOG_LIMIT
from .schema import Activity, ActivityStats, Note, Session, User, parse_timestamp
from ..util.logging import logger

# Initialize database on module import
init_db()

USER_COLUMNS = "id, email, username, name, password_hash, pin_hash, created_at"
NOTE_COLUMNS = "id, owner_id, title, content, category, importance, is_favorite, timestamp"
NOTE_UPDATABLE_FIELDS = ("title", "content", "category", "importance", "is_favorite")


class DuplicateUserError(Exception):
    """Raised when an email or username is already registered."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} already registered")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _generate_id() -> str:
    """Creation-time-derived identifier with a random suffix so ids are never reused."""
    return f"{time.time_ns() // 1_000_000}{secrets.token_hex(3)}"


def _row_to_user(row) -> User:
    user_id, email, username, name, password_hash, pin_hash, created_at = row
    return User(
        id=user_id,
        email=email,
        username=username,
        name=name or "",
        password_hash=password_hash,
        pin_hash=pin_hash,
        created_at=parse_timestamp(created_at),
    )


def _row_to_note(row) -> Note:
    note_id, owner_id, title, content, category, importance, is_favorite, timestamp = row
    return Note(
        id=note_id,
        owner_id=owner_id,
        title=title or "",
        content=content or "",
        category=category or "",
        importance=bool(importance),
        is_favorite=bool(is_favorite),
        timestamp=parse_timestamp(timestamp),
    )


# --- Users -----------------------------------------------------------------

def create_user(email: str, username: str, name: str, password_hash: str) -> User:
    """Insert a new user. Raises DuplicateUserError on an email/username clash."""
    if get_user_by_email(email):
        raise DuplicateUserError("email")
    if get_user_by_username(username):
        raise DuplicateUserError("username")

    user = User(
        id=_generate_id(),
        email=email,
        username=username,
        name=name,
        password_hash=password_hash,
        created_at=_now(),
    )
    with get_db() as conn:
        try:
            conn.execute(
                f"INSERT INTO users ({USER_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (user.id, user.email, user.username, user.name, user.password_hash, None, user.created_at.isoformat())
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            # Lost a race with a concurrent signup
            raise DuplicateUserError("email" if "email" in str(e) else "username") from e

    logger.log_auth_event("user_created", email, details={"user_id": user.id})
    return user


def _get_user_where(clause: str, value: str) -> Optional[User]:
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {USER_COLUMNS} FROM users WHERE {clause}", (value,))
            row = cursor.fetchone()
            return _row_to_user(row) if row else None
    except sqlite3.Error as e:
        logger.error(f"Failed to load user ({clause}): {e}")
        return None


def get_user(user_id: str) -> Optional[User]:
    return _get_user_where("id = ?", user_id)


def get_user_by_email(email: str) -> Optional[User]:
    return _get_user_where("email = ?", (email or "").strip().lower())


def get_user_by_username(username: str) -> Optional[User]:
    return _get_user_where("username = ?", (username or "").strip().lower())


def get_user_by_identifier(identifier: str) -> Optional[User]:
    """Find a user by email or username."""
    return get_user_by_email(identifier) or get_user_by_username(identifier)


def set_pin_hash(user_id: str, pin_hash: str) -> bool:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("UPDATE users SET pin_hash = ? WHERE id = ?", (pin_hash, user_id))
        conn.commit()
        return cursor.rowcount > 0


# --- Sessions --------------------------------------------------------------

def create_session(user_id: str, ttl_sec: int) -> Session:
    created_at = _now()
    session = Session(
        token=secrets.token_hex(32),
        user_id=user_id,
        created_at=created_at,
        expires_at=created_at + timedelta(seconds=ttl_sec),
    )
    with get_db() as conn:
        conn.execute(
            "INSERT INTO sessions (token, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
            (session.token, session.user_id, session.created_at.isoformat(), session.expires_at.isoformat())
        )
        conn.commit()
    return session


def get_session(token: str) -> Optional[Session]:
    """Return a live session; expired sessions are removed and reported as missing."""
    if not token:
        return None
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT token, user_id, created_at, expires_at FROM sessions WHERE token = ?",
                (token,)
            )
            row = cursor.fetchone()
            if not row:
                return None

            session = Session(
                token=row[0],
                user_id=row[1],
                created_at=parse_timestamp(row[2]),
                expires_at=parse_timestamp(row[3]),
            )
            if session.expires_at is None or session.expires_at <= _now():
                cursor.execute("DELETE FROM sessions WHERE token = ?", (token,))
                conn.commit()
                return None
            return session
    except sqlite3.Error as e:
        logger.error(f"Failed to load session: {e}")
        return None


def delete_session(token: str) -> bool:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM sessions WHERE token = ?", (token,))
        conn.commit()
        return cursor.rowcount > 0


# --- Notes -----------------------------------------------------------------

def list_notes(owner_id: str) -> List[Note]:
    """All notes of one owner in creation order."""
    try:
        if not owner_id:
            return []

        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {NOTE_COLUMNS} FROM notes WHERE owner_id = ? ORDER BY seq ASC",
                (owner_id,)
            )
            return [_row_to_note(row) for row in cursor.fetchall()]
    except sqlite3.Error as e:
        logger.error(f"Failed to list notes for owner '{owner_id}': {e}")
        return []


def get_note(owner_id: str, note_id: str) -> Optional[Note]:
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {NOTE_COLUMNS} FROM notes WHERE owner_id = ? AND id = ?",
                (owner_id, note_id)
            )
            row = cursor.fetchone()
            return _row_to_note(row) if row else None
    except sqlite3.Error as e:
        logger.error(f"Failed to get note '{note_id}' for owner '{owner_id}': {e}")
        return None


def create_note(owner_id: str, title: str, content: str, category: str, importance: bool = False) -> Note:
    note = Note(
        id=_generate_id(),
        owner_id=owner_id,
        title=title or "",
        content=content or "",
        category=category or "",
        importance=bool(importance),
        is_favorite=False,
        timestamp=_now(),
    )
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT COALESCE(MAX(seq), 0) + 1 FROM notes WHERE owner_id = ?", (owner_id,))
        seq = cursor.fetchone()[0]
        cursor.execute(
            f"INSERT INTO notes ({NOTE_COLUMNS}, seq) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (note.id, owner_id, note.title, note.content, note.category,
             note.importance, note.is_favorite, note.timestamp.isoformat(), seq)
        )
        conn.commit()

    logger.log_note_operation("created", note.id, owner_id, {"category": note.category, "importance": note.importance})
    return note


def update_note(owner_id: str, note_id: str, changes: Dict[str, Any]) -> Optional[Note]:
    """Apply a partial update. The creation timestamp is never touched."""
    fields = {k: v for k, v in changes.items() if k in NOTE_UPDATABLE_FIELDS and v is not None}
    if not fields:
        return get_note(owner_id, note_id)

    assignments = ", ".join(f"{name} = ?" for name in fields)
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            f"UPDATE notes SET {assignments} WHERE owner_id = ? AND id = ?",
            (*fields.values(), owner_id, note_id)
        )
        conn.commit()
        if cursor.rowcount == 0:
            return None

    logger.log_note_operation("updated", note_id, owner_id, {"fields": sorted(fields)})
    return get_note(owner_id, note_id)


def delete_note(owner_id: str, note_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM notes WHERE owner_id = ? AND id = ?", (owner_id, note_id))
        conn.commit()
        deleted = cursor.rowcount > 0

    if deleted:
        logger.log_note_operation("deleted", note_id, owner_id)
    return deleted


# --- Activities ------------------------------------------------------------

def add_activity(action: str, email: Optional[str] = None, user_id: Optional[str] = None,
                 method: Optional[str] = None, path: Optional[str] = None, ip: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None) -> Activity:
    """Append to the activity log, keeping only the newest ACTIVITY_LOG_LIMIT entries."""
    activity = Activity(
        id=f"{time.time_ns() // 1_000_000}_{secrets.token_hex(3)}",
        timestamp=_now(),
        action=action,
        email=email,
        user_id=user_id,
        method=method,
        path=path,
        ip=ip,
        details=details if isinstance(details, dict) else {},
    )
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "INSERT INTO activities (id, timestamp, action, email, user_id, method, path, ip, details) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (activity.id, activity.timestamp.isoformat(), action, email, user_id, method, path, ip,
             json.dumps(activity.details, default=str))
        )
        cursor.execute(
            "DELETE FROM activities WHERE seq NOT IN (SELECT seq FROM activities ORDER BY seq DESC LIMIT ?)",
            (ACTIVITY_LOG_LIMIT,)
        )
        conn.commit()
    return activity


def list_activities(limit: int = 100) -> List[Activity]:
    """Most recent activities first."""
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, timestamp, action, email, user_id, method, path, ip, details "
                "FROM activities ORDER BY timestamp DESC, seq DESC LIMIT ?",
                (limit,)
            )
            activities = []
            for row in cursor.fetchall():
                try:
                    details = json.loads(row[8]) if row[8] else {}
                except json.JSONDecodeError:
                    details = {}
                activities.append(Activity(
                    id=row[0],
                    timestamp=parse_timestamp(row[1]),
                    action=row[2],
                    email=row[3],
                    user_id=row[4],
                    method=row[5],
                    path=row[6],
                    ip=row[7],
                    details=details,
                ))
            return activities
    except sqlite3.Error as e:
        logger.error(f"Failed to list activities: {e}")
        return []


def get_activity_stats() -> ActivityStats:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT action, COUNT(*) FROM activities GROUP BY action")
        by_action = {action or "unknown": count for action, count in cursor.fetchall()}
        cursor.execute("SELECT timestamp FROM activities ORDER BY seq DESC LIMIT 1")
        row = cursor.fetchone()

    return ActivityStats(
        total=sum(by_action.values()),
        by_action=by_action,
        latest=parse_timestamp(row[0]) if row else None,
    )
