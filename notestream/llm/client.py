import requests
from typing import Optional, Dict, Any
from abc import ABC, abstractmethod

from notestream.core.config import settings
from notestream.core.errors import UpstreamUnavailableError
from notestream.core.logging import get_logger

logger = get_logger(__name__)


class LLMClient(ABC):
    """Abstract base class for completion providers"""

    name: str = "LLM"

    @abstractmethod
    def open_stream(self, api_key: str, payload: Dict[str, Any]) -> requests.Response:
        """Send a streaming completion request and return the unread response"""
        pass


class OpenAIClient(LLMClient):
    """Client for the OpenAI chat completions API"""

    def __init__(
        self,
        base_url: str = settings.OPENAI_BASE_URL,
        name: str = settings.PROVIDER_NAME,
        timeout: Optional[float] = None
    ):
        """
        Initialize OpenAI client

        Args:
            base_url: API root, without the /v1 suffix
            name: Provider name used in diagnostics
            timeout: Connect/read timeout in seconds (None = wait indefinitely)
        """
        self.base_url = base_url.rstrip("/")
        self.name = name
        self.timeout = timeout

        logger.info(f"Initialized {self.name} client at {self.base_url}")

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/v1/chat/completions"

    def open_stream(self, api_key: str, payload: Dict[str, Any]) -> requests.Response:
        """
        Start a streaming chat completion.

        The response is returned whatever its status; error statuses are
        reported to the client inside the stream.

        Args:
            api_key: Bearer token for the provider
            payload: Request body, already forced to streaming mode

        Returns:
            Response with its body still unread

        Raises:
            UpstreamUnavailableError: If no response was received
        """
        try:
            logger.debug(f"Streaming completion with model: {payload.get('model')}")
            return requests.post(
                self.completions_url,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "text/event-stream",
                    "Authorization": f"Bearer {api_key}",
                },
                json=payload,
                timeout=self.timeout,
                stream=True
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Error reaching {self.name} API: {e}")
            raise UpstreamUnavailableError(f"{self.name} API unreachable: {e}") from e


class LLMClientFactory:
    """Factory for creating LLM clients"""

    _clients = {
        "openai": OpenAIClient,
    }

    @classmethod
    def create_client(
        cls,
        client_type: str = settings.PROVIDER_TYPE,
        **kwargs
    ) -> LLMClient:
        """
        Create LLM client instance

        Args:
            client_type: Type of client ('openai')
            **kwargs: Additional arguments for client initialization

        Returns:
            LLMClient instance

        Raises:
            ValueError: If client type is not supported
        """
        if client_type not in cls._clients:
            raise ValueError(
                f"Unsupported LLM client type: {client_type}. "
                f"Supported types: {list(cls._clients.keys())}"
            )

        client_class = cls._clients[client_type]
        logger.info(f"Creating {client_type} LLM client")
        return client_class(**kwargs)


# Default client instance
llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get or create the LLM client"""
    global llm_client
    if llm_client is None:
        llm_client = LLMClientFactory.create_client()
    return llm_client


def set_llm_client(client: LLMClient):
    """Set custom LLM client"""
    global llm_client
    llm_client = client
