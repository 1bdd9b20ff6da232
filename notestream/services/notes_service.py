"""
Out-of-band note editing.

The browser edits or removes notes it was shown. These calls are fire and
forget: the client is always told "success" and failures only show up in
the server log.
"""

from typing import Optional

from notestream.core.logging import get_logger
from notestream.notes.client import NotesClient, get_notes_client

logger = get_logger(__name__)


class NotesService:
    """Wraps the notes client for the edit endpoints"""

    def __init__(self, notes_client: Optional[NotesClient] = None):
        self.notes_client = notes_client or get_notes_client()

    def delete_note(self, memory_id: str) -> bool:
        """Delete a note; returns whether the service confirmed it"""
        result = self.notes_client.delete(memory_id)
        if result is None:
            logger.error(f"Failed to delete note {memory_id}")
            return False
        return True

    def update_note(self, memory_id: str, text: str) -> bool:
        """Create or replace a note; returns whether the service confirmed it"""
        result = self.notes_client.upsert(memory_id, text)
        if result is None:
            logger.error(f"Failed to update note {memory_id}")
            return False
        return True


# Global service instance
_notes_service = None


def get_notes_service() -> NotesService:
    """Get or create notes service instance"""
    global _notes_service
    if _notes_service is None:
        _notes_service = NotesService()
    return _notes_service
