"""Microphone capture for interview recordings.

``AudioCapture`` owns the input stream for the duration of one recording:
it buffers PCM chunks delivered by the audio thread, ticks an elapsed-seconds
counter on the event loop, and on ``stop()`` releases the device and returns
one encoded ``AudioArtifact``.
"""

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any, Protocol

from microphenom.core.exceptions import (
    DeviceUnavailableError,
    PermissionDeniedError,
    RecordingAlreadyActiveError,
)
from microphenom.core.models import AudioArtifact
from microphenom.services.audio.processor import AudioEncoder, AudioProcessor, WavEncoder

logger = logging.getLogger(__name__)


class InputStream(Protocol):
    """The subset of ``sounddevice.InputStream`` the capture unit relies on."""

    def stop(self) -> None: ...

    def close(self) -> None: ...


# Opens and starts a stream that delivers raw PCM bytes to the given callback.
StreamFactory = Callable[[Callable[[bytes], None]], InputStream]


class ChunkBuffer:
    """Thread-safe accumulator for PCM chunks.

    The audio callback thread appends; the event loop drains once on stop.
    """

    def __init__(self, frame_size: int = 2) -> None:
        self._frame_size = frame_size
        self._chunks: list[bytes] = []
        self._lock = threading.Lock()

    def append(self, chunk: bytes) -> None:
        """Add one chunk (empty chunks are ignored)."""
        if not chunk:
            return
        with self._lock:
            self._chunks.append(chunk)

    def drain(self) -> bytes:
        """Return all buffered audio aligned to a frame boundary and clear."""
        with self._lock:
            data = b"".join(self._chunks)
            self._chunks.clear()
        usable = len(data) - (len(data) % self._frame_size)
        return data[:usable]

    def reset(self) -> None:
        """Clear the buffer."""
        with self._lock:
            self._chunks.clear()


# ---------------------------------------------------------------------------
# Device discovery (sounddevice)
# ---------------------------------------------------------------------------


def _import_sounddevice():
    try:
        import sounddevice as sd
    except (ImportError, OSError) as exc:  # pragma: no cover - environment-dependent
        raise DeviceUnavailableError(
            f"Audio input is unavailable (sounddevice/PortAudio could not be loaded): {exc}"
        ) from exc
    return sd


def list_input_devices() -> list[dict[str, Any]]:
    """Return every device that exposes at least one input channel."""
    sd = _import_sounddevice()
    try:
        devices = sd.query_devices()
    except sd.PortAudioError as exc:
        raise DeviceUnavailableError(f"Could not list audio devices: {exc}") from exc
    return [dict(d) for d in devices if d.get("max_input_channels", 0) > 0]


def select_preferred_device(
    candidates: list[dict[str, Any]],
    prefer_name: str | None = None,
) -> dict[str, Any]:
    """Pick the first device whose name contains ``prefer_name``.

    Falls back to the first candidate when nothing matches.

    Raises:
        DeviceUnavailableError: If there are no candidates.
    """
    if not candidates:
        raise DeviceUnavailableError("No input devices found.")
    if prefer_name:
        preferred = [
            d for d in candidates if prefer_name.lower() in d.get("name", "").lower()
        ]
        if preferred:
            return preferred[0]
        logger.warning("No input device matches %r; using %s", prefer_name, candidates[0].get("name"))
    return candidates[0]


def find_input_device(prefer_name: str | None = None) -> dict[str, Any]:
    return select_preferred_device(list_input_devices(), prefer_name=prefer_name)


def _capture_error(exc: Exception, device_label: str) -> Exception:
    """Map a PortAudio failure to the matching capture error."""
    if "permission" in str(exc).lower():
        return PermissionDeniedError()
    return DeviceUnavailableError(f"Could not use input device {device_label}: {exc}")


class SoundDeviceStreamFactory:
    """Opens a 16-bit ``sounddevice.InputStream`` on the chosen microphone.

    Without ``device_name`` the stream is opened on the system default input.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        device_name: str | None = None,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.device_name = device_name or None

    def __call__(self, on_data: Callable[[bytes], None]) -> InputStream:
        sd = _import_sounddevice()
        if self.device_name:
            device = find_input_device(self.device_name)
            device_index = device.get("index")
            device_label = repr(device.get("name"))
        else:
            device_index = None
            device_label = "(system default)"

        def _callback(indata, _frames, _time, status):
            if status:
                logger.debug("Input stream status: %s", status)
            on_data(indata.tobytes())

        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                device=device_index,
                callback=_callback,
            )
        except PermissionError as exc:
            raise PermissionDeniedError() from exc
        except sd.PortAudioError as exc:
            raise _capture_error(exc, device_label) from exc

        try:
            stream.start()
        except (PermissionError, sd.PortAudioError) as exc:
            stream.close()
            if isinstance(exc, PermissionError):
                raise PermissionDeniedError() from exc
            raise _capture_error(exc, device_label) from exc
        logger.info(
            "Opened input stream on %s (%d Hz, %d ch)",
            device_label,
            self.sample_rate,
            self.channels,
        )
        return stream


def _release_stream(stream: InputStream) -> None:
    """Stop and close a stream; close always runs."""
    try:
        stream.stop()
    except Exception:
        logger.warning("Failed to stop input stream cleanly", exc_info=True)
    finally:
        try:
            stream.close()
        except Exception:
            logger.warning("Failed to close input stream", exc_info=True)


# ---------------------------------------------------------------------------
# Capture unit
# ---------------------------------------------------------------------------


class AudioCapture:
    """Records one microphone stream at a time into an ``AudioArtifact``.

    Args:
        stream_factory: Opens and starts an input stream. Defaults to
            ``SoundDeviceStreamFactory()``; tests pass a fake.
        encoder: Encoder for the finished recording. Its ``media_type`` is
            what the artifact (and later the backend request) declares.
        on_chunk: Optional callback receiving each raw PCM chunk, called from
            the audio thread (for live visualizers).
        on_tick: Optional callback receiving elapsed seconds on every tick.
        tick_interval: Seconds per duration tick.
    """

    def __init__(
        self,
        stream_factory: StreamFactory | None = None,
        encoder: AudioEncoder | None = None,
        on_chunk: Callable[[bytes], None] | None = None,
        on_tick: Callable[[int], None] | None = None,
        tick_interval: float = 1.0,
    ) -> None:
        self._encoder = encoder or WavEncoder()
        self._stream_factory = stream_factory or SoundDeviceStreamFactory(
            sample_rate=getattr(self._encoder, "sample_rate", 16000),
            channels=getattr(self._encoder, "channels", 1),
        )
        self._processor = AudioProcessor(
            sample_rate=getattr(self._encoder, "sample_rate", 16000),
            sample_width=getattr(self._encoder, "sample_width", 2),
            channels=getattr(self._encoder, "channels", 1),
        )
        self._buffer = ChunkBuffer(frame_size=self._processor.frame_size)
        self._level = 0.0
        self._last_silent = False
        self._on_chunk = on_chunk
        self._on_tick = on_tick
        self._tick_interval = tick_interval
        self._stream: InputStream | None = None
        self._tick_task: asyncio.Task | None = None
        self._elapsed = 0
        self._closed = False

    # -- observable state --

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed

    @property
    def stream(self) -> InputStream | None:
        """Live stream handle while recording (for visualization only)."""
        return self._stream

    @property
    def media_type(self) -> str:
        return self._encoder.media_type

    @property
    def level(self) -> float:
        """RMS level (0.0-1.0) of the most recent chunk, for a level meter."""
        return self._level

    @property
    def last_recording_silent(self) -> bool:
        """True when the last stopped recording contained no audible signal."""
        return self._last_silent

    # -- lifecycle --

    async def start(self) -> None:
        """Open the microphone and begin buffering.

        Raises:
            RecordingAlreadyActiveError: If a recording is already open.
            PermissionDeniedError: If microphone access is refused.
            DeviceUnavailableError: If no usable input device exists.
        """
        if self._stream is not None:
            raise RecordingAlreadyActiveError()
        self._closed = False
        self._buffer.reset()
        self._elapsed = 0
        self._level = 0.0

        try:
            stream = await asyncio.to_thread(self._stream_factory, self._handle_data)
        except PermissionError as exc:
            raise PermissionDeniedError() from exc

        if self._closed:
            # Torn down while the device was opening
            await asyncio.to_thread(_release_stream, stream)
            return

        self._stream = stream
        self._tick_task = asyncio.create_task(self._tick_loop())
        logger.info("Recording started")

    async def stop(self) -> AudioArtifact | None:
        """Finish the recording and return it encoded.

        Returns:
            The encoded artifact, or ``None`` when nothing was recording.
        """
        if self._stream is None:
            return None

        self._cancel_tick()
        stream, self._stream = self._stream, None
        await asyncio.to_thread(_release_stream, stream)

        pcm = self._buffer.drain()
        self._level = 0.0
        self._last_silent = self._processor.is_silent(self._processor.pcm_to_ndarray(pcm))
        if self._last_silent:
            logger.warning("Recording contains no audible signal")
        artifact = AudioArtifact(
            data=self._encoder.encode(pcm),
            media_type=self._encoder.media_type,
            duration_seconds=self._elapsed,
        )
        logger.info(
            "Recording stopped: %ds, %d bytes (%s)",
            artifact.duration_seconds,
            artifact.size_bytes,
            artifact.media_type,
        )
        return artifact

    async def cancel(self) -> None:
        """Discard the current recording and release the device."""
        self._cancel_tick()
        stream, self._stream = self._stream, None
        if stream is not None:
            await asyncio.to_thread(_release_stream, stream)
            logger.info("Recording cancelled")
        self._buffer.reset()
        self._elapsed = 0

    async def close(self) -> None:
        """Teardown: release any open stream. Safe to call repeatedly."""
        self._closed = True
        await self.cancel()

    async def __aenter__(self) -> "AudioCapture":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # -- internals --

    def _handle_data(self, chunk: bytes) -> None:
        """Audio-thread callback: buffer the chunk, update the level, forward it."""
        self._buffer.append(chunk)
        aligned = len(chunk) - len(chunk) % self._processor.frame_size
        if aligned:
            self._level = self._processor.rms_level(
                self._processor.pcm_to_ndarray(chunk[:aligned])
            )
        if self._on_chunk is not None:
            try:
                self._on_chunk(chunk)
            except Exception:
                logger.warning("on_chunk callback failed (non-fatal)", exc_info=True)

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            self._elapsed += 1
            if self._on_tick is not None:
                try:
                    self._on_tick(self._elapsed)
                except Exception:
                    logger.warning("on_tick callback failed (non-fatal)", exc_info=True)

    def _cancel_tick(self) -> None:
        if self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None
