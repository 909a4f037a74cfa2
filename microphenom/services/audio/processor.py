"""Audio processing utilities for PCM data.

Converts raw PCM bytes to numpy arrays, measures signal level, and encodes
captured audio into the container format sent to the analysis backend.
"""

import io
import wave
from abc import ABC, abstractmethod

import numpy as np


class AudioProcessor:
    """Handles PCM audio data conversion and analysis.

    Provides utilities for converting raw PCM bytes to numpy arrays and
    measuring RMS energy, e.g. for a live level meter.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        """Initialize the audio processor.

        Args:
            sample_rate: Audio sample rate in Hz (default: 16 kHz).
            sample_width: Bytes per sample (2 = 16-bit signed PCM).
            channels: Number of audio channels (1 = mono).
        """
        self.sample_rate = sample_rate
        self.sample_width = sample_width
        self.channels = channels

    @property
    def frame_size(self) -> int:
        return self.sample_width * self.channels

    def pcm_to_ndarray(self, pcm_data: bytes) -> np.ndarray:
        """Convert raw PCM bytes (16-bit signed) to float32 numpy array.

        Args:
            pcm_data: Raw PCM bytes (16-bit, interleaved channels).

        Returns:
            Float32 numpy array normalized to [-1.0, 1.0].

        Raises:
            ValueError: If data length is not aligned to sample frame size.
        """
        if len(pcm_data) % self.frame_size != 0:
            raise ValueError(
                f"PCM data length ({len(pcm_data)}) is not aligned to frame size "
                f"({self.frame_size})"
            )
        return np.frombuffer(pcm_data, dtype=np.int16).astype(np.float32) / 32768.0

    def duration_seconds(self, pcm_data: bytes) -> float:
        """Duration of the given PCM bytes in seconds."""
        return len(pcm_data) / (self.sample_rate * self.frame_size)

    def rms_level(self, audio: np.ndarray) -> float:
        """Root-mean-square energy of the samples (0.0 for empty input)."""
        if len(audio) == 0:
            return 0.0
        return float(np.sqrt(np.mean(audio**2)))

    def is_silent(self, audio: np.ndarray, threshold: float = 0.01) -> bool:
        """Check if an audio segment is silence based on RMS energy.

        Args:
            audio: Float32 numpy array of audio samples.
            threshold: RMS energy below this value is considered silence.

        Returns:
            True if the audio is silence.
        """
        return self.rms_level(audio) < threshold


class AudioEncoder(ABC):
    """Turns captured PCM into an encoded payload.

    ``media_type`` must describe what ``encode()`` actually produces; it is
    copied onto every artifact and from there into the backend request.
    """

    media_type: str

    @abstractmethod
    def encode(self, pcm_data: bytes) -> bytes:
        """Encode raw PCM bytes.

        Args:
            pcm_data: Raw 16-bit PCM, possibly empty.

        Returns:
            The encoded audio payload.
        """


class WavEncoder(AudioEncoder):
    """In-memory RIFF/WAV encoder for 16-bit PCM."""

    media_type = "audio/wav"

    def __init__(
        self,
        sample_rate: int = 16000,
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        self.sample_rate = sample_rate
        self.sample_width = sample_width
        self.channels = channels

    def encode(self, pcm_data: bytes) -> bytes:
        """Wrap PCM bytes in a WAV container.

        Empty input yields a valid, zero-frame WAV file.

        Raises:
            ValueError: If data length is not aligned to the frame size.
        """
        frame_size = self.sample_width * self.channels
        if len(pcm_data) % frame_size != 0:
            raise ValueError(
                f"PCM data length ({len(pcm_data)}) is not aligned to frame size ({frame_size})"
            )
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(self.sample_width)
            wf.setframerate(self.sample_rate)
            wf.writeframes(pcm_data)
        return buf.getvalue()
