"""
Typed records shared by the storage layer, the HTTP layer and the assistant engine.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

VAULT_CATEGORIES = ("learning", "cultural", "future", "personal")

T = TypeVar("T")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a stored timestamp into an aware UTC datetime; None when unparseable."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        # Epoch milliseconds when too large to be seconds
        seconds = value / 1000 if abs(value) > 1e11 else value
        try:
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


@dataclass
class Note:
    id: str
    title: str = ""
    content: str = ""
    category: str = ""
    importance: bool = False
    timestamp: Optional[datetime] = None
    is_favorite: bool = False
    owner_id: str = ""

    def __post_init__(self):
        # Timestamps are always aware UTC or None
        self.timestamp = parse_timestamp(self.timestamp)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Note":
        """Build a note from loosely-shaped data, defaulting missing optional fields."""
        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or ""),
            content=str(data.get("content") or ""),
            category=str(data.get("category") or data.get("vault_type") or ""),
            importance=_as_bool(data.get("importance", data.get("is_important", False))),
            timestamp=data.get("timestamp"),
            is_favorite=_as_bool(data.get("is_favorite", data.get("isFavorite", False))),
            owner_id=str(data.get("owner_id") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "category": self.category,
            "importance": self.importance,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "is_favorite": self.is_favorite,
        }


@dataclass(frozen=True)
class KnowledgeEntry:
    topic: str
    answer: str
    keywords: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KnowledgeEntry":
        keywords = data.get("keywords")
        if not isinstance(keywords, list):
            keywords = []
        return cls(
            topic=str(data.get("topic") or ""),
            answer=str(data.get("answer") or ""),
            keywords=tuple(str(k) for k in keywords if k is not None),
        )


@dataclass
class ScoredCandidate(Generic[T]):
    item: T
    score: float


@dataclass
class User:
    id: str
    email: str
    username: str
    name: str
    password_hash: str
    created_at: datetime
    pin_hash: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or "Friend"


@dataclass
class Session:
    token: str
    user_id: str
    created_at: datetime
    expires_at: datetime


@dataclass
class Activity:
    id: str
    timestamp: datetime
    action: str
    email: Optional[str] = None
    user_id: Optional[str] = None
    method: Optional[str] = None
    path: Optional[str] = None
    ip: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ActivityStats:
    total: int
    by_action: Dict[str, int]
    latest: Optional[datetime]


@dataclass
class NoteCounts:
    total: int = 0
    learning: int = 0
    cultural: int = 0
    future: int = 0
    personal: int = 0
    important: int = 0

    @classmethod
    def from_notes(cls, notes: List[Note]) -> "NoteCounts":
        counts = cls(total=len(notes))
        for note in notes:
            if note.category in VAULT_CATEGORIES:
                setattr(counts, note.category, getattr(counts, note.category) + 1)
            if note.importance:
                counts.important += 1
        return counts
