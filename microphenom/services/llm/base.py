"""
Abstract base class for LLM providers.

Every analysis backend must implement this interface, so the analysis
client can be handed a real provider or a stub interchangeably.
"""

from abc import ABC, abstractmethod

from microphenom.core.models import InlineData


class BaseLLM(ABC):
    """Interface that every LLM provider must implement."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        json_mode: bool = False,
        inline_data: InlineData | None = None,
        **kwargs,
    ) -> str | None:
        """Send one prompt and return the model's text.

        Args:
            prompt: The instruction prompt.
            json_mode: Request strictly machine-parseable JSON output.
            inline_data: Optional binary payload (e.g. audio) sent with
                the prompt.
            **kwargs: Provider-specific options (temperature, etc.).

        Returns:
            The response text, or ``None`` when the model produced none.

        Raises:
            ConnectionError: Transport failure or rate limiting.
            TimeoutError: The request timed out.
            RuntimeError: Any other provider failure.
        """
