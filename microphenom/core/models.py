"""
Pydantic v2 models shared by the capture, analysis, session and API layers.

The analysis result schema mirrors the JSON document requested from the
backend (camelCase aliases); the Python attribute names are snake_case.
"""

import base64
from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SPEAKER = "Participant"
DEFAULT_TIMESTAMP = "00:00"


def _blank_to(default: str, value):
    """Return ``default`` for ``None`` or whitespace-only strings."""
    if value is None:
        return default
    if isinstance(value, str) and not value.strip():
        return default
    return value


# ---------------------------------------------------------------------------
# Analysis result
# ---------------------------------------------------------------------------


class _ResultModel(BaseModel):
    """Common config: immutable, alias-aware, numbers accepted as strings."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class TranscriptSegment(_ResultModel):
    """One diarized piece of the interview transcript."""

    speaker: str = DEFAULT_SPEAKER
    text: str = ""
    timestamp: str = DEFAULT_TIMESTAMP

    @field_validator("speaker", mode="before")
    @classmethod
    def _default_speaker(cls, value):
        return _blank_to(DEFAULT_SPEAKER, value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _default_timestamp(cls, value):
        return _blank_to(DEFAULT_TIMESTAMP, value)

    @field_validator("text", mode="before")
    @classmethod
    def _none_text(cls, value):
        return "" if value is None else value


class DiachronicPhase(_ResultModel):
    """A phase in the temporal unfolding ("film") of the experience."""

    phase: str = ""
    description: str = ""
    timestamp_estimate: str = Field(default="", alias="timestampEstimate")

    @field_validator("phase", "description", "timestamp_estimate", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class SynchronicEntry(_ResultModel):
    """Sensory modality and submodality of a key moment."""

    modality: str = ""
    description: str = ""
    submodality: str = ""

    @field_validator("modality", "description", "submodality", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class AnalysisResult(_ResultModel):
    """Structured micro-phenomenological analysis of one interview.

    Every field is always present. Absent or ``null`` fields from the
    backend degrade to empty values; wrongly typed containers fail
    validation so the caller can report a malformed result.
    """

    transcript_segments: tuple[TranscriptSegment, ...] = Field(
        default=(), alias="transcriptSegments"
    )
    summary: str = ""
    diachronic_structure: tuple[DiachronicPhase, ...] = Field(
        default=(), alias="diachronicStructure"
    )
    synchronic_structure: tuple[SynchronicEntry, ...] = Field(
        default=(), alias="synchronicStructure"
    )
    satellites: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    @field_validator(
        "transcript_segments",
        "diachronic_structure",
        "synchronic_structure",
        "satellites",
        "suggestions",
        mode="before",
    )
    @classmethod
    def _none_to_empty_sequence(cls, value):
        return () if value is None else value

    @field_validator("summary", mode="before")
    @classmethod
    def _none_summary(cls, value):
        return "" if value is None else value

    def to_payload(self) -> dict:
        """Serialize back to the backend's camelCase JSON shape."""
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Audio
# ---------------------------------------------------------------------------


class AudioArtifact(BaseModel):
    """An encoded recording, tagged with the media type of its encoding."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    media_type: str
    duration_seconds: int = Field(default=0, ge=0)

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    def to_base64(self) -> str:
        """Return the payload as a base64 string (no data-URL prefix)."""
        return base64.b64encode(self.data).decode("ascii")


class InlineData(BaseModel):
    """Inline binary payload sent alongside a prompt."""

    model_config = ConfigDict(frozen=True)

    mime_type: str
    data: str  # base64


# ---------------------------------------------------------------------------
# Analysis requests
# ---------------------------------------------------------------------------


class WelcomeRequest(BaseModel):
    """Ask the backend for a short greeting before recording."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["welcome"] = "welcome"


class TextTranscriptRequest(BaseModel):
    """Analyze a pasted or typed transcript."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str


class AudioTranscriptRequest(BaseModel):
    """Analyze a recorded interview."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["audio"] = "audio"
    artifact: AudioArtifact


AnalysisRequest = Annotated[
    WelcomeRequest | TextTranscriptRequest | AudioTranscriptRequest,
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class SessionState(StrEnum):
    """Possible states of an interview session."""

    idle = "idle"
    recording = "recording"
    stopped = "stopped"
    analyzing = "analyzing"
    analyzing_text = "analyzing_text"
    result = "result"
    error = "error"


class SessionSnapshot(BaseModel):
    """Read-only view of a session, handed to observers on every change."""

    model_config = ConfigDict(frozen=True)

    state: SessionState
    elapsed_seconds: int = 0
    duration_seconds: int | None = None
    has_artifact: bool = False
    welcome_message: str | None = None
    warning: str | None = None
    error_code: str | None = None
    error_detail: str | None = None
    result: AnalysisResult | None = None


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


class WelcomeResponse(BaseModel):
    """GET /api/v1/welcome response."""

    message: str


class TextAnalysisBody(BaseModel):
    """POST /api/v1/analysis/text request body."""

    text: str = Field(min_length=1)


class ErrorResponse(BaseModel):
    """Standard error envelope returned by the API."""

    detail: str
    code: str
    timestamp: str
