"""
Analysis client for the three backend request variants.

- ``get_welcome_message`` is best-effort: any failure yields
  ``DEFAULT_WELCOME_MESSAGE`` and nothing is raised.
- ``analyze_text_transcript`` and ``analyze_interview`` are the primary
  deliverable: failures are raised as typed ``MicroPhenomError`` subclasses
  and never replaced by an empty result.
"""

import logging

from microphenom.core.exceptions import BackendUnavailableError
from microphenom.core.models import (
    AnalysisRequest,
    AnalysisResult,
    AudioArtifact,
    AudioTranscriptRequest,
    InlineData,
    TextTranscriptRequest,
    WelcomeRequest,
)
from microphenom.services.analysis.parser import parse_analysis_result
from microphenom.services.analysis.prompts import (
    DEFAULT_WELCOME_MESSAGE,
    WELCOME_PROMPT,
    build_audio_prompt,
    build_text_prompt,
)
from microphenom.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)


class AnalysisClient:
    """Builds prompts, calls the injected LLM provider and validates results."""

    def __init__(self, llm: BaseLLM) -> None:
        """Initialize with an LLM provider.

        Args:
            llm: Any ``BaseLLM`` implementation (a stub in tests).
        """
        self._llm = llm

    async def get_welcome_message(self) -> str:
        """Fetch a short greeting, falling back to a fixed message."""
        try:
            text = await self._llm.generate(WELCOME_PROMPT)
        except Exception as exc:
            logger.warning("Welcome message request failed, using default: %s", exc)
            return DEFAULT_WELCOME_MESSAGE

        if not isinstance(text, str) or not text.strip():
            logger.info("Welcome message was empty, using default")
            return DEFAULT_WELCOME_MESSAGE
        return text.strip()

    async def analyze_text_transcript(self, text: str) -> AnalysisResult:
        """Analyze a written transcript.

        Raises:
            ValueError: If ``text`` is blank.
            BackendUnavailableError: If the backend call fails.
            BackendEmptyResponseError: If the backend returns no text.
            MalformedResultError: If the text is not a valid result.
        """
        if not text or not text.strip():
            raise ValueError("Transcript text is empty")
        logger.info("Analyzing text transcript (%d chars)", len(text))
        return await self._analyze(build_text_prompt(text))

    async def analyze_interview(self, artifact: AudioArtifact) -> AnalysisResult:
        """Analyze a recorded interview sent inline as base64 audio.

        The payload's ``mime_type`` is taken from the artifact, i.e. from the
        encoder that produced it.

        Raises:
            BackendUnavailableError: If the backend call fails.
            BackendEmptyResponseError: If the backend returns no text.
            MalformedResultError: If the text is not a valid result.
        """
        if not artifact.media_type.startswith("audio/"):
            logger.warning(
                "Artifact media type %r does not look like audio; sending as declared",
                artifact.media_type,
            )
        inline = InlineData(mime_type=artifact.media_type, data=artifact.to_base64())
        logger.info(
            "Analyzing audio interview (%ds, %d bytes, %s)",
            artifact.duration_seconds,
            artifact.size_bytes,
            artifact.media_type,
        )
        return await self._analyze(build_audio_prompt(), inline_data=inline)

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult | str:
        """Dispatch a tagged request to the matching entry point."""
        if isinstance(request, WelcomeRequest):
            return await self.get_welcome_message()
        elif isinstance(request, TextTranscriptRequest):
            return await self.analyze_text_transcript(request.text)
        elif isinstance(request, AudioTranscriptRequest):
            return await self.analyze_interview(request.artifact)
        else:
            raise TypeError(f"Unknown analysis request: {type(request).__name__}")

    async def _analyze(
        self,
        prompt: str,
        inline_data: InlineData | None = None,
    ) -> AnalysisResult:
        try:
            raw = await self._llm.generate(prompt, json_mode=True, inline_data=inline_data)
        except BackendUnavailableError:
            raise
        except Exception as exc:
            logger.error("Analysis backend call failed: %s", exc)
            raise BackendUnavailableError(
                detail=f"Analysis backend call failed: {exc}"
            ) from exc

        result = parse_analysis_result(raw)
        logger.info(
            "Analysis complete: %d segments, %d phases, %d synchronic entries",
            len(result.transcript_segments),
            len(result.diachronic_structure),
            len(result.synchronic_structure),
        )
        return result
