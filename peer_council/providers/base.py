"""Abstract bases for model providers and the completion service the council talks to."""

from abc import ABC, abstractmethod

from peer_council.models import Completion

Message = dict[str, str]


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class AIProvider(ABC):
    """Abstract base for all AI model providers."""

    @abstractmethod
    def name(self) -> str:
        """Return the model id this provider serves (e.g. 'anthropic/claude-sonnet-4')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string sent to the API."""
        ...

    @abstractmethod
    async def generate(self, messages: list[Message]) -> Completion:
        """Generate a completion for the given chat messages.

        Args:
            messages: Ordered {"role", "content"} dicts; role is one of
                "system", "user" or "assistant".

        Returns:
            Completion dataclass with content and metadata.

        Raises:
            ProviderError: On API failure, timeout, or invalid response.
        """
        ...


class CompletionService(ABC):
    """What the council needs from the outside world: text in, text out."""

    @abstractmethod
    async def complete(self, model_id: str, messages: list[Message]) -> str:
        """Return generated text for ``model_id``.

        Raises:
            ProviderError: On network, auth, rate-limit or empty-response failures.
        """
        ...
