"""Shared pytest fixtures for the MicroPhenom test suite.

Provides a stub LLM provider, a canned analysis payload, PCM audio samples
and a fake input stream so capture tests never touch a real microphone.
"""

import json
import struct
from unittest.mock import AsyncMock, MagicMock

import pytest

# ---------------------------------------------------------------------------
# LLM Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def analysis_payload():
    """A complete analysis document in the backend's JSON shape."""
    return {
        "transcriptSegments": [
            {"speaker": "Interviewer", "text": "What did you notice first?", "timestamp": "00:00"},
            {"speaker": "Interviewee", "text": "A tightness in my chest.", "timestamp": "00:07"},
        ],
        "summary": "Entering a room and noticing sudden chest tightness.",
        "diachronicStructure": [
            {"phase": "Entering", "description": "Walks into the room", "timestampEstimate": "00:00"},
            {"phase": "Onset", "description": "Tightness appears", "timestampEstimate": "00:07"},
        ],
        "synchronicStructure": [
            {"modality": "Kinesthetic", "description": "Pressure in the chest", "submodality": "tightness"},
        ],
        "satellites": ["I always get nervous in meetings."],
        "suggestions": ["Where exactly is the tightness?", "Does it move or stay still?"],
    }


@pytest.fixture
def mock_llm(analysis_payload):
    """Create a mock LLM provider for unit testing.

    Returns:
        AsyncMock: A mock implementing the BaseLLM interface whose
        ``generate`` returns ``analysis_payload`` as JSON.
    """
    from microphenom.services.llm.base import BaseLLM

    llm = AsyncMock(spec=BaseLLM)
    llm.generate.return_value = json.dumps(analysis_payload)
    return llm


# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_pcm_bytes():
    """Generate 1 second of 440Hz sine-wave PCM audio (16kHz, 16-bit, mono).

    Returns:
        bytes: Raw PCM audio data.
    """
    import math

    sample_rate = 16000
    frequency = 440.0
    amplitude = 16000  # ~50% of max int16

    samples = []
    for i in range(sample_rate):
        value = int(amplitude * math.sin(2 * math.pi * frequency * i / sample_rate))
        samples.append(struct.pack("<h", value))
    return b"".join(samples)


@pytest.fixture
def silent_pcm_bytes():
    """Generate 1 second of silence as PCM audio (16kHz, 16-bit, mono).

    Returns:
        bytes: Raw PCM silence data (all zeros).
    """
    return b"\x00\x00" * 16000


class FakeStream:
    """Stands in for ``sounddevice.InputStream``; records stop/close calls."""

    def __init__(self, on_data):
        self.on_data = on_data
        self.stopped = False
        self.closed = False

    def feed(self, chunk: bytes) -> None:
        self.on_data(chunk)

    def stop(self) -> None:
        self.stopped = True

    def close(self) -> None:
        self.closed = True


class FakeStreamFactory:
    """Stream factory that hands out ``FakeStream``s or raises ``error``."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.streams: list[FakeStream] = []

    def __call__(self, on_data):
        if self.error is not None:
            raise self.error
        stream = FakeStream(on_data)
        self.streams.append(stream)
        return stream

    @property
    def last(self) -> FakeStream:
        return self.streams[-1]


@pytest.fixture
def stream_factory():
    """A fake stream factory that always opens successfully."""
    return FakeStreamFactory()


@pytest.fixture
def failing_stream_factory():
    """Build a stream factory that raises the given exception on open."""
    return FakeStreamFactory


class FakePortAudioError(Exception):
    """Stands in for ``sounddevice.PortAudioError``."""


@pytest.fixture
def fake_sounddevice(monkeypatch):
    """Install a fake ``sounddevice`` module for the recorder.

    Call the returned function with the ``InputStream`` replacement (usually a
    ``MagicMock``). It returns the fake module, whose attributes tests may
    replace; ``sd.PortAudioError`` is the error class to raise.
    """
    from types import SimpleNamespace

    def _install(input_stream):
        sd = SimpleNamespace(
            query_devices=MagicMock(
                return_value=[
                    {"index": 0, "name": "Built-in Microphone", "max_input_channels": 1},
                    {"index": 3, "name": "USB Headset", "max_input_channels": 1},
                    {"index": 5, "name": "Speakers", "max_input_channels": 0},
                ]
            ),
            InputStream=input_stream,
            PortAudioError=FakePortAudioError,
        )
        monkeypatch.setattr("microphenom.services.audio.recorder._import_sounddevice", lambda: sd)
        return sd

    return _install
