"""
Keyword relevance ranking of knowledge entries and of a user's notes.

Both rankers are pure: they take a snapshot, score it, and return a new list.
Ties keep input order (sorted() is stable, including with reverse=True).
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from .text import normalize, tokenize
from ..core.schema import KnowledgeEntry, Note, ScoredCandidate, parse_timestamp

DEFAULT_KNOWLEDGE_LIMIT = 4
DEFAULT_NOTE_LIMIT = 8
KNOWLEDGE_DEFAULT_COUNT = 2

# Knowledge weights
TOKEN_IN_ENTRY_WEIGHT = 2
KEYWORD_IN_MESSAGE_WEIGHT = 4

# Note weights
TITLE_WEIGHT = 8
CATEGORY_WEIGHT = 6
CONTENT_WEIGHT = 3
IMPORTANCE_BONUS = 2
RECENCY_MAX_BONUS = 2.0
RECENCY_HORIZON_DAYS = 30.0

SECONDS_PER_DAY = 86400.0

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def knowledge_score(entry: KnowledgeEntry, query_tokens: Sequence[str], normalized_message: str) -> int:
    combined = normalize(" ".join([entry.topic, entry.answer, " ".join(entry.keywords)]))

    score = 0
    for token in query_tokens:
        if token in combined:
            score += TOKEN_IN_ENTRY_WEIGHT

    for keyword in entry.keywords:
        normalized_keyword = normalize(keyword)
        if normalized_keyword and normalized_keyword in normalized_message:
            score += KEYWORD_IN_MESSAGE_WEIGHT

    return score


def rank_knowledge(message: str, entries: Sequence[KnowledgeEntry], limit: int = DEFAULT_KNOWLEDGE_LIMIT,
                   include_defaults: bool = True) -> List[KnowledgeEntry]:
    """
    Return up to `limit` knowledge entries relevant to `message`, best first.

    When nothing matches and include_defaults is set, the first min(limit, 2)
    entries are returned so the assistant always has some grounding text.
    """
    if not entries:
        return []

    query_tokens = tokenize(message)
    normalized_message = normalize(message)

    scored = [ScoredCandidate(entry, knowledge_score(entry, query_tokens, normalized_message)) for entry in entries]
    ranked = sorted((c for c in scored if c.score > 0), key=lambda c: c.score, reverse=True)

    if ranked:
        return [c.item for c in ranked[:limit]]
    if include_defaults:
        return list(entries[:min(limit, KNOWLEDGE_DEFAULT_COUNT)])
    return []


def recency_bonus(timestamp: Optional[datetime], now: datetime) -> float:
    """Linear decay from 2 to 0 over 30 days. Future timestamps count as age 0; missing ones score 0."""
    if timestamp is None:
        return 0.0
    try:
        days_old = max(0.0, (now - timestamp).total_seconds() / SECONDS_PER_DAY)
    except (TypeError, OverflowError):
        return 0.0
    return max(0.0, RECENCY_MAX_BONUS - days_old / RECENCY_HORIZON_DAYS)


def note_score(note: Note, query_tokens: Sequence[str], now: datetime) -> float:
    title = normalize(note.title)
    content = normalize(note.content)
    category = normalize(note.category)

    score = 0.0
    for token in query_tokens:
        if token in title:
            score += TITLE_WEIGHT
        if token in category:
            score += CATEGORY_WEIGHT
        if token in content:
            score += CONTENT_WEIGHT

    if note.importance:
        score += IMPORTANCE_BONUS

    return score + recency_bonus(note.timestamp, now)


def sort_by_recency(notes: Sequence[Note]) -> List[Note]:
    """Newest first; notes without a valid timestamp go last."""
    return sorted(notes, key=lambda n: n.timestamp or _OLDEST, reverse=True)


def rank_notes(message: str, notes: Sequence[Note], limit: int = DEFAULT_NOTE_LIMIT,
               now: Optional[datetime] = None) -> List[Note]:
    """
    Return up to `limit` notes relevant to `message`, best first.

    A message with no usable tokens (blank, or only stop words) skips scoring and
    yields the most recent notes instead.
    """
    query_tokens = tokenize(message)
    if not query_tokens:
        return sort_by_recency(notes)[:limit]

    now = parse_timestamp(now) or datetime.now(timezone.utc)
    scored = [ScoredCandidate(note, note_score(note, query_tokens, now)) for note in notes]
    ranked = sorted((c for c in scored if c.score > 0), key=lambda c: c.score, reverse=True)
    return [c.item for c in ranked[:limit]]
