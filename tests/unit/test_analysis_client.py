"""Unit tests for AnalysisClient (prompting, error policy, payload building)."""

import base64
import json

import pytest

from microphenom.core.exceptions import (
    BackendEmptyResponseError,
    BackendUnavailableError,
    ConfigurationError,
    MalformedResultError,
)
from microphenom.core.models import (
    AnalysisResult,
    AudioArtifact,
    AudioTranscriptRequest,
    TextTranscriptRequest,
    WelcomeRequest,
)
from microphenom.services.analysis import DEFAULT_WELCOME_MESSAGE, AnalysisClient

TIGHTNESS_TEXT = "I walked into the room and suddenly felt a tightness in my chest."


@pytest.fixture
def client(mock_llm):
    return AnalysisClient(mock_llm)


@pytest.fixture
def artifact():
    return AudioArtifact(data=b"RIFF-fake-wave", media_type="audio/wav", duration_seconds=12)


# ---------------------------------------------------------------------------
# Welcome message
# ---------------------------------------------------------------------------


class TestWelcomeMessage:
    async def test_returns_backend_text(self, client, mock_llm):
        mock_llm.generate.return_value = "  Welcome, let's begin.  "
        assert await client.get_welcome_message() == "Welcome, let's begin."

    async def test_not_json_mode(self, client, mock_llm):
        mock_llm.generate.return_value = "Hi"
        await client.get_welcome_message()
        assert mock_llm.generate.call_args.kwargs.get("json_mode", False) is False

    async def test_fallback_when_backend_raises(self, client, mock_llm):
        mock_llm.generate.side_effect = ConnectionError("offline")
        assert await client.get_welcome_message() == DEFAULT_WELCOME_MESSAGE

    async def test_fallback_when_not_configured(self, client, mock_llm):
        mock_llm.generate.side_effect = ConfigurationError()
        assert await client.get_welcome_message() == DEFAULT_WELCOME_MESSAGE

    @pytest.mark.parametrize("text", [None, "", "   "])
    async def test_fallback_when_empty(self, client, mock_llm, text):
        mock_llm.generate.return_value = text
        assert await client.get_welcome_message() == DEFAULT_WELCOME_MESSAGE


# ---------------------------------------------------------------------------
# Text analysis
# ---------------------------------------------------------------------------


class TestTextAnalysis:
    async def test_tightness_scenario(self, client, mock_llm):
        mock_llm.generate.return_value = json.dumps(
            {
                "transcriptSegments": [
                    {"speaker": "Participant", "text": TIGHTNESS_TEXT, "timestamp": "00:00"}
                ],
                "summary": "Sudden chest tightness on entering a room.",
                "diachronicStructure": [
                    {"phase": "Entering", "description": "Walks in", "timestampEstimate": "00:00"}
                ],
                "synchronicStructure": [
                    {"modality": "Kinesthetic", "description": "Chest", "submodality": "tightness"}
                ],
                "satellites": [],
                "suggestions": ["Where is the tightness?", "What is its shape?"],
            }
        )

        result = await client.analyze_text_transcript(TIGHTNESS_TEXT)

        assert isinstance(result, AnalysisResult)
        assert len(result.transcript_segments) == 1
        assert result.summary
        assert len(result.diachronic_structure) == 1
        assert result.synchronic_structure[0].modality == "Kinesthetic"
        assert result.synchronic_structure[0].submodality == "tightness"
        assert len(result.suggestions) == 2
        assert result.satellites == ()

    async def test_transcript_embedded_verbatim(self, client, mock_llm):
        await client.analyze_text_transcript(TIGHTNESS_TEXT)
        prompt = mock_llm.generate.call_args.args[0]
        assert TIGHTNESS_TEXT in prompt
        assert "Participant" in prompt
        assert "00:00" in prompt

    async def test_requests_json_mode_without_payload(self, client, mock_llm):
        await client.analyze_text_transcript(TIGHTNESS_TEXT)
        kwargs = mock_llm.generate.call_args.kwargs
        assert kwargs["json_mode"] is True
        assert kwargs["inline_data"] is None

    async def test_unlabelled_segments_get_defaults(self, client, mock_llm):
        mock_llm.generate.return_value = json.dumps(
            {"transcriptSegments": [{"text": "I walked in."}, {"text": "It felt tight."}]}
        )
        result = await client.analyze_text_transcript("I walked in. It felt tight.")
        assert {s.speaker for s in result.transcript_segments} == {"Participant"}
        assert {s.timestamp for s in result.transcript_segments} == {"00:00"}

    async def test_blank_text_rejected(self, client, mock_llm):
        with pytest.raises(ValueError):
            await client.analyze_text_transcript("   ")
        mock_llm.generate.assert_not_called()

    async def test_empty_response(self, client, mock_llm):
        mock_llm.generate.return_value = ""
        with pytest.raises(BackendEmptyResponseError):
            await client.analyze_text_transcript(TIGHTNESS_TEXT)

    async def test_malformed_response(self, client, mock_llm):
        mock_llm.generate.return_value = "not json at all"
        with pytest.raises(MalformedResultError):
            await client.analyze_text_transcript(TIGHTNESS_TEXT)

    async def test_transport_error_becomes_backend_unavailable(self, client, mock_llm):
        mock_llm.generate.side_effect = ConnectionError("refused")
        with pytest.raises(BackendUnavailableError, match="refused") as exc_info:
            await client.analyze_text_transcript(TIGHTNESS_TEXT)
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    async def test_missing_key_propagates_as_configuration_error(self, client, mock_llm):
        mock_llm.generate.side_effect = ConfigurationError()
        with pytest.raises(ConfigurationError):
            await client.analyze_text_transcript(TIGHTNESS_TEXT)


# ---------------------------------------------------------------------------
# Audio analysis
# ---------------------------------------------------------------------------


class TestAudioAnalysis:
    async def test_returns_result(self, client, artifact, analysis_payload):
        result = await client.analyze_interview(artifact)
        assert result.to_payload() == analysis_payload

    async def test_inline_payload_is_base64_with_artifact_media_type(
        self, client, mock_llm, artifact
    ):
        await client.analyze_interview(artifact)
        kwargs = mock_llm.generate.call_args.kwargs
        inline = kwargs["inline_data"]
        assert kwargs["json_mode"] is True
        assert inline.mime_type == "audio/wav"
        assert base64.b64decode(inline.data) == artifact.data

    async def test_media_type_follows_artifact(self, client, mock_llm):
        ogg = AudioArtifact(data=b"OggS", media_type="audio/ogg", duration_seconds=1)
        await client.analyze_interview(ogg)
        assert mock_llm.generate.call_args.kwargs["inline_data"].mime_type == "audio/ogg"

    async def test_empty_text_is_empty_response(self, client, mock_llm, artifact):
        mock_llm.generate.return_value = ""
        with pytest.raises(BackendEmptyResponseError):
            await client.analyze_interview(artifact)

    async def test_none_text_is_empty_response(self, client, mock_llm, artifact):
        mock_llm.generate.return_value = None
        with pytest.raises(BackendEmptyResponseError):
            await client.analyze_interview(artifact)

    async def test_backend_error(self, client, mock_llm, artifact):
        mock_llm.generate.side_effect = RuntimeError("Gemini API error: 403")
        with pytest.raises(BackendUnavailableError):
            await client.analyze_interview(artifact)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class TestDispatch:
    async def test_welcome_request(self, client, mock_llm):
        mock_llm.generate.return_value = "Hello"
        assert await client.analyze(WelcomeRequest()) == "Hello"

    async def test_text_request(self, client):
        result = await client.analyze(TextTranscriptRequest(text=TIGHTNESS_TEXT))
        assert isinstance(result, AnalysisResult)

    async def test_audio_request(self, client, mock_llm, artifact):
        await client.analyze(AudioTranscriptRequest(artifact=artifact))
        assert mock_llm.generate.call_args.kwargs["inline_data"] is not None
