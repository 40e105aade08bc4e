"""
Memory (note) CRUD, scoped to the signed-in user. Notes in the personal
category are only visible or editable while the personal vault is unlocked.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from .deps import get_current_user, get_unlock_token, is_personal_unlocked, log_activity, require_personal_unlock
from .schemas import MessageResponse, NoteCreateRequest, NoteItemResponse, NoteListResponse, NoteResponse, NoteUpdateRequest
from ..core import dao
from ..core.schema import Note, User

router = APIRouter()

PERSONAL_CATEGORY = "personal"


def _to_response(note: Note) -> NoteResponse:
    return NoteResponse(
        id=note.id,
        title=note.title,
        content=note.content,
        category=note.category,
        importance=note.importance,
        is_favorite=note.is_favorite,
        timestamp=note.timestamp,
    )


def _get_owned_note(user: User, note_id: str) -> Note:
    note = dao.get_note(user.id, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Memory not found")
    return note


@router.get("", response_model=NoteListResponse)
def list_memories(request: Request, user: User = Depends(get_current_user),
                  unlock_token: Optional[str] = Depends(get_unlock_token)):
    notes = dao.list_notes(user.id)
    unlocked = is_personal_unlocked(user, unlock_token)
    if not unlocked:
        notes = [note for note in notes if note.category != PERSONAL_CATEGORY]

    log_activity(request, "memories_list", user, details={"count": len(notes)})
    return NoteListResponse(data=[_to_response(n) for n in notes], personal_locked=not unlocked)


@router.post("", response_model=NoteItemResponse, status_code=status.HTTP_201_CREATED)
def create_memory(req: NoteCreateRequest, request: Request, user: User = Depends(get_current_user),
                  unlock_token: Optional[str] = Depends(get_unlock_token)):
    if req.category == PERSONAL_CATEGORY:
        require_personal_unlock(user, unlock_token)

    note = dao.create_note(user.id, req.title, req.content, req.category, req.importance)
    log_activity(request, "memory_create", user, details={"memory_id": note.id, "category": note.category})
    return NoteItemResponse(data=_to_response(note))


@router.patch("/{note_id}", response_model=NoteItemResponse)
def update_memory(note_id: str, req: NoteUpdateRequest, request: Request, user: User = Depends(get_current_user),
                  unlock_token: Optional[str] = Depends(get_unlock_token)):
    existing = _get_owned_note(user, note_id)
    if existing.category == PERSONAL_CATEGORY or req.category == PERSONAL_CATEGORY:
        require_personal_unlock(user, unlock_token)

    changes = req.model_dump(exclude_none=True)
    if "category" in changes and not changes["category"].strip():
        raise HTTPException(status_code=400, detail="category cannot be empty")

    note = dao.update_note(user.id, note_id, changes)
    if not note:
        raise HTTPException(status_code=404, detail="Memory not found")

    log_activity(request, "memory_update", user, details={"memory_id": note_id, "fields": sorted(changes)})
    return NoteItemResponse(data=_to_response(note))


@router.delete("/{note_id}", response_model=MessageResponse)
def delete_memory(note_id: str, request: Request, user: User = Depends(get_current_user),
                  unlock_token: Optional[str] = Depends(get_unlock_token)):
    existing = _get_owned_note(user, note_id)
    if existing.category == PERSONAL_CATEGORY:
        require_personal_unlock(user, unlock_token)

    if not dao.delete_note(user.id, note_id):
        raise HTTPException(status_code=404, detail="Memory not found")

    log_activity(request, "memory_delete", user, details={"memory_id": note_id})
    return MessageResponse(message="Memory deleted")
