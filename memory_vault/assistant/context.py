"""
Builds the note and knowledge context blocks handed to the external responder.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from .ranking import rank_knowledge, rank_notes, sort_by_recency
from ..core.schema import KnowledgeEntry, Note, NoteCounts

CONTEXT_NOTE_LIMIT = 8
CONTEXT_RECENT_LIMIT = 5
CONTEXT_KNOWLEDGE_LIMIT = 4
CONTENT_PREVIEW_CHARS = 500

NO_RELEVANT_NOTES = "No strongly relevant memory found for this question."
NO_NOTES = "No memories yet."
NO_KNOWLEDGE = "No Memory Vault knowledge entry matched this question."


@dataclass
class NoteContext:
    relevant_notes: List[Note]
    text: str


@dataclass
class KnowledgeContext:
    relevant_knowledge: List[KnowledgeEntry]
    text: str


def build_note_context(message: str, notes: Sequence[Note], now: Optional[datetime] = None) -> NoteContext:
    relevant = rank_notes(message, notes, CONTEXT_NOTE_LIMIT, now=now)
    recent = sort_by_recency(notes)[:CONTEXT_RECENT_LIMIT]
    counts = NoteCounts.from_notes(list(notes))

    if relevant:
        relevant_section = "\n\n".join(
            f"{idx}. [{note.category}] {note.title}\n{note.content[:CONTENT_PREVIEW_CHARS]}"
            for idx, note in enumerate(relevant, start=1)
        )
    else:
        relevant_section = NO_RELEVANT_NOTES

    if recent:
        recent_section = "\n".join(
            f"{idx}. [{note.category}] {note.title}" for idx, note in enumerate(recent, start=1)
        )
    else:
        recent_section = NO_NOTES

    text = "\n".join([
        "Memory Vault summary",
        f"- Total memories: {counts.total}",
        f"- Learning: {counts.learning}",
        f"- Cultural: {counts.cultural}",
        f"- Future: {counts.future}",
        f"- Personal: {counts.personal}",
        f"- Important: {counts.important}",
        "",
        "Most relevant memories for this question:",
        relevant_section,
        "",
        "Most recent memory titles:",
        recent_section,
    ])
    return NoteContext(relevant_notes=relevant, text=text)


def build_knowledge_context(message: str, knowledge: Sequence[KnowledgeEntry]) -> KnowledgeContext:
    relevant = rank_knowledge(message, knowledge, CONTEXT_KNOWLEDGE_LIMIT)

    if relevant:
        section = "\n\n".join(
            f"{idx}. {entry.topic}\n{entry.answer}" for idx, entry in enumerate(relevant, start=1)
        )
    else:
        section = NO_KNOWLEDGE

    return KnowledgeContext(
        relevant_knowledge=relevant,
        text="\n".join(["Verified Memory Vault knowledge:", section]),
    )
