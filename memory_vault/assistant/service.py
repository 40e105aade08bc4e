"""
Assistant orchestration: domain gate, context building, external responder, local fallback.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from .context import build_knowledge_context, build_note_context
from .domain_gate import POLICY_TAG, get_out_of_scope_response, is_in_scope
from .fallback import generate_fallback_response
from .ranking import rank_knowledge, rank_notes, sort_by_recency
from .responders import BaseResponder, NullResponder, ResponderError
from ..core.config import ASSISTANT_NOTE_SCAN_LIMIT
from ..core.schema import KnowledgeEntry, Note
from ..util.logging import logger

SOURCE_POLICY = "policy"
SOURCE_FALLBACK = "fallback"


@dataclass
class AssistantReply:
    response: str
    source: str
    policy: Optional[str] = None
    model: Optional[str] = None
    note: Optional[str] = None
    knowledge_hits: Optional[int] = None


class AssistantService:
    """Answers one question against one user's note snapshot. Holds no per-user state."""

    def __init__(self, knowledge: Sequence[KnowledgeEntry] = (), responder: BaseResponder = None,
                 note_scan_limit: int = ASSISTANT_NOTE_SCAN_LIMIT):
        self.knowledge = tuple(knowledge)
        self.responder = responder or NullResponder()
        self.note_scan_limit = note_scan_limit

    def _bounded(self, notes: Sequence[Note]) -> Sequence[Note]:
        """Cap scoring work on very large snapshots by keeping the most recent notes."""
        if self.note_scan_limit and len(notes) > self.note_scan_limit:
            return sort_by_recency(notes)[:self.note_scan_limit]
        return notes

    def answer(self, message: str, notes: Sequence[Note], display_name: str, owner_id: str = "") -> AssistantReply:
        if not is_in_scope(message):
            logger.log_assistant_reply(SOURCE_POLICY, owner_id, {"policy": POLICY_TAG})
            return AssistantReply(response=get_out_of_scope_response(), source=SOURCE_POLICY, policy=POLICY_TAG)

        notes = self._bounded(notes)
        note_context = build_note_context(message, notes)
        knowledge_context = build_knowledge_context(message, self.knowledge)

        try:
            text = self.responder.generate(message, display_name, note_context.text, knowledge_context.text)
        except ResponderError as e:
            logger.log_responder_failure(self.responder.provider, str(e))
            response = generate_fallback_response(
                message,
                notes,
                display_name,
                relevant_notes=note_context.relevant_notes,
                relevant_knowledge=knowledge_context.relevant_knowledge,
            )
            reply = AssistantReply(
                response=response,
                source=SOURCE_FALLBACK,
                note=f"Using local AI ({e})",
                knowledge_hits=len(knowledge_context.relevant_knowledge),
            )
            logger.log_assistant_reply(SOURCE_FALLBACK, owner_id, {"knowledge_hits": reply.knowledge_hits})
            return reply

        logger.log_assistant_reply(self.responder.provider, owner_id, {"model": self.responder.model_name})
        return AssistantReply(response=text, source=self.responder.provider, model=self.responder.model_name)

    def fallback(self, message: str, notes: Sequence[Note], display_name: str, cause: str) -> AssistantReply:
        """Local answer when nothing upstream of this call can be trusted; rankings are recomputed."""
        notes = self._bounded(notes)
        relevant_knowledge = rank_knowledge(message, self.knowledge)
        response = generate_fallback_response(
            message,
            notes,
            display_name,
            relevant_notes=rank_notes(message, notes),
            relevant_knowledge=relevant_knowledge,
        )
        return AssistantReply(
            response=response,
            source=SOURCE_FALLBACK,
            note=f"Using local AI ({cause})",
            knowledge_hits=len(relevant_knowledge),
        )
