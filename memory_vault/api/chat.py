"""
Assistant chat endpoint.

Every answer goes through the domain gate first; out-of-scope questions are
refused without ranking notes or calling an external model.
"""

from fastapi import APIRouter, Depends, Request

from .deps import get_current_user, log_activity
from .schemas import ChatRequest, ChatResponse
from ..assistant import AssistantReply, AssistantService, get_responder
from ..core import dao
from ..core.knowledge import load_knowledge_base
from ..core.schema import User
from ..util.logging import logger

router = APIRouter()

# Knowledge is read once per process
knowledge_base = load_knowledge_base()
assistant = AssistantService(knowledge_base, get_responder())


def _to_response(reply: AssistantReply) -> ChatResponse:
    return ChatResponse(
        response=reply.response,
        source=reply.source,
        policy=reply.policy,
        model=reply.model,
        note=reply.note,
        knowledge_hits=reply.knowledge_hits,
    )


@router.post("/chat", response_model=ChatResponse)
def chat(req: ChatRequest, request: Request, user: User = Depends(get_current_user)):
    """Answer a Memory Vault question using the user's notes and the product knowledge base."""
    notes = dao.list_notes(user.id)

    try:
        reply = assistant.answer(req.message, notes, user.display_name, owner_id=user.id)
    except Exception as e:
        # Unexpected failure anywhere in the pipeline still yields a local answer
        logger.error(f"Assistant pipeline failed for user '{user.id}': {e}")
        reply = assistant.fallback(req.message, notes, user.display_name, str(e))

    log_activity(request, "ai_chat", user, details={
        "source": reply.source,
        "message_length": len(req.message),
    })
    return _to_response(reply)
