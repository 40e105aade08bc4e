"""
Relevance ranking and answer generation for the Memory Vault assistant.
"""

from .text import normalize, tokenize
from .ranking import rank_knowledge, rank_notes
from .domain_gate import is_in_scope, get_out_of_scope_response
from .context import build_note_context, build_knowledge_context
from .fallback import generate_fallback_response
from .responders import BaseResponder, ResponderError, get_responder
from .service import AssistantService, AssistantReply

__all__ = [
    "normalize",
    "tokenize",
    "rank_knowledge",
    "rank_notes",
    "is_in_scope",
    "get_out_of_scope_response",
    "build_note_context",
    "build_knowledge_context",
    "generate_fallback_response",
    "BaseResponder",
    "ResponderError",
    "get_responder",
    "AssistantService",
    "AssistantReply",
]
