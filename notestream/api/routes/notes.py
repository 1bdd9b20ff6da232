from fastapi import APIRouter, Depends

from notestream.models.request import NoteUpdateRequest
from notestream.models.response import MessageResponse
from notestream.services.notes_service import NotesService, get_notes_service

router = APIRouter(prefix="/api", tags=["notes"])


@router.post("/delete", response_model=MessageResponse)
def delete_note(request: NoteUpdateRequest, service: NotesService = Depends(get_notes_service)):
    """Delete a note. Always reports success; failures are only logged."""
    service.delete_note(request.memory_id)
    return MessageResponse(message="success")


@router.post("/update", response_model=MessageResponse)
def update_note(request: NoteUpdateRequest, service: NotesService = Depends(get_notes_service)):
    """Create or replace a note. Always reports success; failures are only logged."""
    service.update_note(request.memory_id, request.text)
    return MessageResponse(message="success")
