"""
Chat Service Module

Business logic layer for chat operations.
Handles:
- API key resolution (client key, then server default)
- Building the upstream request, always as a single-choice stream
- Opening the provider stream
- Handing the body to a per-request StreamCompositor
"""

from typing import Optional, Dict, Any, Iterator, List, Union

from notestream.core.config import settings
from notestream.core.errors import ConfigurationError
from notestream.core.logging import get_logger
from notestream.llm.client import LLMClient, get_llm_client
from notestream.llm.directives import DirectiveScanner, get_scanner
from notestream.models.request import ChatMessage
from notestream.notes.client import NotesClient, get_notes_client
from notestream.services.compositor import CompositorPolicy, StreamCompositor, get_policy

logger = get_logger(__name__)

MISSING_KEY_MESSAGE = (
    "missing OpenAI API Key. Add it on the client side (Settings icon) "
    "or server side (your deployment)."
)


class ChatService:
    """
    Service that streams chat completions enriched with notes lookups.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        notes_client: Optional[NotesClient] = None,
        scanner: Optional[DirectiveScanner] = None,
        policy: Optional[CompositorPolicy] = None,
        default_api_key: Optional[str] = settings.OPENAI_API_KEY
    ):
        """Initialize chat service; collaborators default to the configured ones"""
        self.llm_client = llm_client or get_llm_client()
        self.notes_client = notes_client or get_notes_client()
        self.scanner = scanner or get_scanner()
        self.policy = policy or get_policy(settings.COMPOSITOR_POLICY)
        self.default_api_key = default_api_key

        logger.info(f"Initialized ChatService (policy={self.policy.name})")

    def resolve_api_key(self, api_key: Optional[str] = None) -> str:
        """
        Pick the provider key for a request.

        Args:
            api_key: Key sent by the client, if any

        Returns:
            Client key if given, else the server default

        Raises:
            ConfigurationError: If neither is available
        """
        resolved = api_key or self.default_api_key or ""
        if not resolved:
            logger.warning("Rejecting chat request: no API key available")
            raise ConfigurationError(MISSING_KEY_MESSAGE)
        return resolved

    def build_payload(
        self,
        model: str,
        messages: List[Union[ChatMessage, Dict[str, Any]]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Build the completion request body.

        stream and n are always overridden: this path only serves
        single-choice streams.
        """
        return {
            "model": model,
            "messages": [
                m.model_dump(mode="json") if isinstance(m, ChatMessage) else dict(m)
                for m in messages
            ],
            "temperature": settings.LLM_TEMPERATURE if temperature is None else temperature,
            "max_tokens": settings.LLM_MAX_TOKENS if max_tokens is None else max_tokens,
            "stream": True,
            "n": 1,
        }

    def new_compositor(self) -> StreamCompositor:
        return StreamCompositor(
            scanner=self.scanner,
            notes_client=self.notes_client,
            policy=self.policy,
            provider_name=self.llm_client.name,
        )

    def stream_response(
        self,
        model: str,
        messages: List[Union[ChatMessage, Dict[str, Any]]],
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Iterator[bytes]:
        """
        Start a chat completion and return its output stream.

        The key check and the upstream request happen before this returns,
        so their errors reach the caller before any byte is sent.

        Args:
            model: Provider model name
            messages: Conversation so far
            api_key: Client-supplied key, if any
            temperature: Sampling temperature override
            max_tokens: Maximum tokens override

        Returns:
            Iterator over output chunks

        Raises:
            ConfigurationError: If no API key is available
            UpstreamUnavailableError: If the provider cannot be reached
        """
        key = self.resolve_api_key(api_key)
        payload = self.build_payload(model, messages, temperature, max_tokens)

        logger.info(f"Starting chat stream: model={model}, messages={len(payload['messages'])}")
        response = self.llm_client.open_stream(key, payload)

        return self.new_compositor().compose(response)


# Global service instance
_chat_service = None


def get_chat_service() -> ChatService:
    """Get or create chat service instance"""
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService()
    return _chat_service


def stream_response(model: str, messages: List[Union[ChatMessage, Dict[str, Any]]], **kwargs) -> Iterator[bytes]:
    """Stream a chat completion"""
    return get_chat_service().stream_response(model, messages, **kwargs)
