"""
Analysis REST endpoints.

Thin HTTP wrappers around ``AnalysisClient``; the client instance lives on
``app.state`` so tests can inject one backed by a stub LLM.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request

from microphenom.core.exceptions import MicroPhenomError
from microphenom.core.models import (
    AnalysisResult,
    AudioArtifact,
    TextAnalysisBody,
    WelcomeResponse,
)
from microphenom.services.analysis import AnalysisClient, create_analysis_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])


def get_analysis_client(request: Request) -> AnalysisClient:
    """Return the app's analysis client, creating it on first use."""
    client = getattr(request.app.state, "analysis_client", None)
    if client is None:
        client = create_analysis_client()
        request.app.state.analysis_client = client
    return client


@router.get("/welcome", response_model=WelcomeResponse)
async def get_welcome(client: AnalysisClient = Depends(get_analysis_client)):
    """Short greeting for the recording screen. Always succeeds."""
    return WelcomeResponse(message=await client.get_welcome_message())


@router.post("/analysis/text", response_model=AnalysisResult)
async def analyze_text(
    body: TextAnalysisBody,
    client: AnalysisClient = Depends(get_analysis_client),
):
    """Analyze a pasted transcript."""
    if not body.text.strip():
        raise MicroPhenomError(
            detail="Transcript text is empty", code="VALIDATION_ERROR", status_code=422
        )
    return await client.analyze_text_transcript(body.text)


@router.post("/analysis/audio", response_model=AnalysisResult)
async def analyze_audio(
    request: Request,
    duration_seconds: int = Query(0, ge=0),
    client: AnalysisClient = Depends(get_analysis_client),
):
    """Analyze a recorded interview sent as the raw request body.

    The ``Content-Type`` header is used as the payload's media type.
    """
    media_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if not media_type.startswith("audio/"):
        raise MicroPhenomError(
            detail=f"Expected an audio/* body, got {media_type or 'no content type'}",
            code="UNSUPPORTED_MEDIA_TYPE",
            status_code=415,
        )
    data = await request.body()
    if not data:
        raise MicroPhenomError(
            detail="Audio body is empty", code="VALIDATION_ERROR", status_code=422
        )
    artifact = AudioArtifact(data=data, media_type=media_type, duration_seconds=duration_seconds)
    return await client.analyze_interview(artifact)
