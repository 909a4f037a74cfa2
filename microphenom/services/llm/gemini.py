"""
Gemini LLM provider implementation.

Uses the Google GenAI SDK (``google.genai.Client``) through its async
surface (``client.aio``). SDK and transport exceptions are translated to
standard Python exceptions, and transient failures are retried.
"""

import base64
import logging

import httpx
from google import genai
from google.genai import errors, types
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from microphenom.core.config import get_settings
from microphenom.core.exceptions import ConfigurationError
from microphenom.core.models import InlineData
from microphenom.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)


class GeminiLLM(BaseLLM):
    """Gemini API provider with lazy client creation and retry logic.

    The credential is only checked when the first request is made, so a
    missing key surfaces as a call-time ``ConfigurationError``.

    Args:
        api_key: Gemini API key (falls back to settings).
        model: Model identifier (falls back to settings).
        temperature: Sampling temperature (falls back to settings).
        timeout: Request timeout in seconds (falls back to settings).
        client: Pre-built ``genai.Client``; skips key lookup entirely.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
        client: genai.Client | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.gemini_api_key
        self._model = model or settings.gemini_model
        self._temperature = (
            temperature if temperature is not None else settings.gemini_temperature
        )
        self._timeout = timeout if timeout is not None else settings.gemini_timeout_seconds
        self._client = client

    @property
    def model(self) -> str:
        return self._model

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                raise ConfigurationError(
                    "GEMINI_API_KEY is not set; add it to the environment or .env file"
                )
            self._client = genai.Client(
                api_key=self._api_key,
                http_options=types.HttpOptions(timeout=int(self._timeout * 1000)),
            )
        return self._client

    @staticmethod
    def _build_contents(prompt: str, inline_data: InlineData | None) -> types.Content:
        parts: list[types.Part] = []
        if inline_data is not None:
            parts.append(
                types.Part.from_bytes(
                    data=base64.b64decode(inline_data.data),
                    mime_type=inline_data.mime_type,
                )
            )
        parts.append(types.Part.from_text(text=prompt))
        return types.Content(role="user", parts=parts)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=16),
        retry=retry_if_exception_type((ConnectionError, TimeoutError)),
        reraise=True,
    )
    async def _call_api(
        self,
        contents: types.Content,
        config: types.GenerateContentConfig,
    ) -> str | None:
        """Send a request to Gemini.

        All SDK exceptions are translated to standard Python exceptions so that
        upstream callers can rely on ``ConnectionError`` / ``TimeoutError``
        for retry decisions.
        """
        client = self._get_client()
        try:
            response = await client.aio.models.generate_content(
                model=self._model,
                contents=contents,
                config=config,
            )
            return response.text

        except errors.ServerError as exc:
            logger.warning("Gemini server error (%s): %s", exc.code, exc)
            raise ConnectionError(f"Gemini server error: {exc}") from exc
        except errors.ClientError as exc:
            if exc.code == 429:
                logger.warning("Gemini rate limit hit: %s", exc)
                raise ConnectionError(f"Gemini rate limit exceeded: {exc}") from exc
            logger.error("Gemini rejected the request (%s): %s", exc.code, exc)
            raise RuntimeError(f"Gemini API error: {exc}") from exc
        except httpx.TimeoutException as exc:
            logger.warning("Gemini API timeout: %s", exc)
            raise TimeoutError(f"Gemini API request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            logger.warning("Gemini API connection error: %s", exc)
            raise ConnectionError(f"Failed to connect to Gemini API: {exc}") from exc
        except Exception as exc:
            logger.error("Unexpected Gemini API error: %s", exc)
            raise RuntimeError(f"Gemini API error: {exc}") from exc

    async def generate(
        self,
        prompt: str,
        *,
        json_mode: bool = False,
        inline_data: InlineData | None = None,
        **kwargs,
    ) -> str | None:
        """Generate a response, optionally in strict JSON mode."""
        temperature = kwargs.pop("temperature", None)
        config = types.GenerateContentConfig(
            temperature=temperature if temperature is not None else self._temperature,
            response_mime_type="application/json" if json_mode else None,
        )
        contents = self._build_contents(prompt, inline_data)
        return await self._call_api(contents, config)
