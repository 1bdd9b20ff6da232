"""
Notes Service Client

HTTP client for the external notes retrieval service.

Endpoints used:
- POST   /query   {"queries": [{"query": term}]}
- POST   /upsert  {"documents": [{"id": id, "text": text}]}
- DELETE /delete  {"ids": [id]}

Every call is a single attempt. Failures (non-2xx status, network error,
unreadable body) are logged and reported as "nothing available"; they are
never raised, because a failed lookup must not break the chat stream.
"""

import json
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from notestream.core.config import settings
from notestream.core.logging import get_logger
from notestream.models.documents import QueryResponse
from notestream.models.events import Retrieved, RetrievalOutcome, Unavailable

logger = get_logger(__name__)


class NotesClient:
    """
    Client for querying and editing notes.
    """

    def __init__(
        self,
        base_url: str = settings.NOTES_BASE_URL,
        bearer_token: Optional[str] = settings.BEARER_TOKEN,
        timeout: Optional[float] = settings.NOTES_TIMEOUT
    ):
        """
        Initialize notes client.

        Args:
            base_url: Root URL of the notes service
            bearer_token: Token sent as "Authorization: Bearer <token>"
            timeout: Request timeout in seconds (None = no explicit timeout)
        """
        self.base_url = base_url.rstrip("/")
        self.bearer_token = bearer_token
        self.timeout = timeout

        logger.info(f"Initialized NotesClient for {self.base_url}")

    @property
    def headers(self) -> Dict[str, str]:
        # An unset token still produces the header; the service rejects it
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.bearer_token or ''}",
        }

    def _send(self, method: str, path: str, payload: Dict[str, Any]) -> Optional[Any]:
        """
        Issue one request and decode its JSON body.

        Returns:
            Decoded body, or None on any failure
        """
        url = f"{self.base_url}{path}"
        try:
            response = requests.request(
                method,
                url,
                headers=self.headers,
                data=json.dumps(payload),
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Notes service request failed ({method} {path}): {e}")
            return None

        if not response.ok:
            logger.error(f"Request failed with status code: {response.status_code} ({method} {path})")
            return None

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Notes service returned invalid JSON ({method} {path}): {e}")
            return None

    def query(self, term: str) -> RetrievalOutcome:
        """
        Look up notes matching a term.

        Args:
            term: Directive term extracted from the assistant text

        Returns:
            Retrieved with the result for this term, or Unavailable
        """
        logger.info(f"Querying notes for: {term[:100]}")
        body = self._send("POST", "/query", {"queries": [{"query": term}]})
        if body is None:
            return Unavailable(reason="request failed")

        try:
            parsed = QueryResponse.model_validate(body)
        except ValidationError as e:
            logger.error(f"Unexpected notes query response: {e}")
            return Unavailable(reason="unexpected response")

        if not parsed.results:
            logger.warning(f"Notes service returned no result set for: {term[:100]}")
            return Unavailable(reason="empty response")

        result = parsed.results[0]
        logger.info(f"Retrieved {len(result.results)} notes for: {term[:100]}")
        return Retrieved(result=result)

    def upsert(self, memory_id: str, text: str) -> Optional[Dict[str, Any]]:
        """Create or replace a note; returns the service response or None"""
        logger.info(f"Upserting note {memory_id}")
        return self._send("POST", "/upsert", {"documents": [{"id": memory_id, "text": text}]})

    def delete(self, memory_id: str) -> Optional[Dict[str, Any]]:
        """Delete a note; returns the service response or None"""
        logger.info(f"Deleting note {memory_id}")
        return self._send("DELETE", "/delete", {"ids": [memory_id]})


# Global client instance
_notes_client: Optional[NotesClient] = None


def get_notes_client() -> NotesClient:
    """Get or create the notes client"""
    global _notes_client
    if _notes_client is None:
        _notes_client = NotesClient()
    return _notes_client


def set_notes_client(client: NotesClient):
    """Set custom notes client"""
    global _notes_client
    _notes_client = client
