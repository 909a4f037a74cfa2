"""
Audio module - Microphone capture and encoding utilities.
"""

from .processor import AudioEncoder, AudioProcessor, WavEncoder
from .recorder import AudioCapture, ChunkBuffer, SoundDeviceStreamFactory

__all__ = [
    "AudioCapture",
    "AudioEncoder",
    "AudioProcessor",
    "ChunkBuffer",
    "SoundDeviceStreamFactory",
    "WavEncoder",
]
