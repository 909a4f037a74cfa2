"""Interview session state machine.

Sequences one interview through capture and analysis::

    idle --start--> recording --stop--> stopped --submit--> analyzing --> result | error
    idle --analyze_text--> analyzing_text --> result | error
    recording | stopped --cancel--> idle
    error --retry--> stopped (artifact kept) | idle

A best-effort welcome-message fetch runs as an independent task when the
session is opened and never gates the recording controls.

Usage::

    session = InterviewSession(analysis_client, AudioCapture())
    session.open()
    await session.start()
    await session.stop()
    result = await session.submit()
    await session.close()
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from microphenom.core.exceptions import (
    DeviceUnavailableError,
    InvalidTransitionError,
    MicroPhenomError,
    PermissionDeniedError,
)
from microphenom.core.models import (
    AnalysisResult,
    AudioArtifact,
    SessionSnapshot,
    SessionState,
)
from microphenom.services.analysis.client import AnalysisClient
from microphenom.services.audio.recorder import AudioCapture

logger = logging.getLogger(__name__)

Observer = Callable[[SessionSnapshot], Awaitable[None]]

SILENT_RECORDING_WARNING = "No sound was detected in the recording. Check the microphone."


class InterviewSession:
    """Coordinates capture, analysis and display state for one interviewer.

    Args:
        analysis: Client used for the welcome message and both analyses.
        capture: Capture unit; defaults to a sounddevice-backed one.
    """

    def __init__(
        self,
        analysis: AnalysisClient,
        capture: AudioCapture | None = None,
    ) -> None:
        self._analysis = analysis
        self._capture = capture or AudioCapture()
        self._state = SessionState.idle
        self._observers: list[Observer] = []
        self._welcome_task: asyncio.Task | None = None
        self._welcome_message: str | None = None
        self._artifact: AudioArtifact | None = None
        self._result: AnalysisResult | None = None
        self._error: MicroPhenomError | None = None
        self._warning: str | None = None
        self._closed = False

    # -- observable state --

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def capture(self) -> AudioCapture:
        return self._capture

    @property
    def artifact(self) -> AudioArtifact | None:
        """Last finished recording; kept after a failed analysis for retry."""
        return self._artifact

    @property
    def result(self) -> AnalysisResult | None:
        return self._result

    @property
    def error(self) -> MicroPhenomError | None:
        return self._error

    @property
    def warning(self) -> str | None:
        """Non-fatal capture problem (e.g. microphone permission denied)."""
        return self._warning

    @property
    def welcome_message(self) -> str | None:
        return self._welcome_message

    @property
    def welcome_task(self) -> asyncio.Task | None:
        return self._welcome_task

    @property
    def is_busy(self) -> bool:
        """True while an analysis call is outstanding."""
        return self._state in (SessionState.analyzing, SessionState.analyzing_text)

    @property
    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            elapsed_seconds=self._capture.elapsed_seconds,
            duration_seconds=self._artifact.duration_seconds if self._artifact else None,
            has_artifact=self._artifact is not None,
            welcome_message=self._welcome_message,
            warning=self._warning,
            error_code=self._error.code if self._error else None,
            error_detail=self._error.detail if self._error else None,
            result=self._result,
        )

    def subscribe(self, observer: Observer) -> None:
        """Register an async callback invoked with a snapshot on every change."""
        self._observers.append(observer)

    # -- lifecycle --

    def open(self) -> asyncio.Task:
        """Enter the session and launch the welcome-message fetch."""
        if self._welcome_task is None:
            self._welcome_task = asyncio.create_task(self._fetch_welcome())
        return self._welcome_task

    async def close(self) -> None:
        """Tear down: release the microphone and drop any late results."""
        if self._closed:
            return
        self._closed = True
        if self._welcome_task is not None and not self._welcome_task.done():
            self._welcome_task.cancel()
        await self._capture.close()
        logger.info("Session closed in state %s", self._state)

    async def __aenter__(self) -> "InterviewSession":
        self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # -- transitions --

    async def start(self) -> bool:
        """Begin recording.

        Returns:
            True when recording started; False when the microphone could not
            be opened (the session stays idle and ``warning`` is set).
        """
        self._require("start", SessionState.idle)
        try:
            await self._capture.start()
        except (PermissionDeniedError, DeviceUnavailableError) as exc:
            logger.warning("Could not start recording: %s", exc.detail)
            self._warning = exc.detail
            await self._emit()
            return False

        if not self._capture.is_recording:
            # Session closed while the device was opening
            return False
        self._warning = None
        await self._transition(SessionState.recording)
        return True

    async def stop(self) -> AudioArtifact | None:
        """Stop recording and keep the finished artifact.

        A recording with no audible signal is kept, but ``warning`` is set so
        the interviewer can re-record before submitting.
        """
        self._require("stop", SessionState.recording)
        artifact = await self._capture.stop()
        if artifact is None:
            await self._transition(SessionState.idle)
            return None
        if self._capture.last_recording_silent:
            self._warning = SILENT_RECORDING_WARNING
        self._artifact = artifact
        await self._transition(SessionState.stopped)
        return artifact

    async def submit(self) -> AnalysisResult | None:
        """Send the stopped recording for analysis.

        Returns:
            The result, or None when the analysis failed (see ``error``) or
            the session was closed while the call was in flight.
        """
        self._require("submit", SessionState.stopped)
        artifact = self._artifact
        return await self._run_analysis(
            SessionState.analyzing,
            lambda: self._analysis.analyze_interview(artifact),
        )

    async def analyze_text(self, text: str) -> AnalysisResult | None:
        """Analyze a pasted transcript without recording.

        Raises:
            ValueError: If ``text`` is blank.
        """
        self._require("analyze text", SessionState.idle)
        if not text or not text.strip():
            raise ValueError("Transcript text is empty")
        return await self._run_analysis(
            SessionState.analyzing_text,
            lambda: self._analysis.analyze_text_transcript(text),
        )

    async def cancel(self) -> None:
        """Discard the current recording or artifact and return to idle."""
        self._require("cancel", SessionState.recording, SessionState.stopped)
        await self._capture.cancel()
        self._artifact = None
        await self._transition(SessionState.idle)

    async def retry(self) -> None:
        """Leave the error state, keeping the artifact when there is one."""
        self._require("retry", SessionState.error)
        self._error = None
        target = SessionState.stopped if self._artifact is not None else SessionState.idle
        await self._transition(target)

    async def reset(self) -> None:
        """Start a new session from scratch and re-fetch the welcome message."""
        if self._state in (
            SessionState.recording,
            SessionState.analyzing,
            SessionState.analyzing_text,
        ):
            raise InvalidTransitionError("reset", self._state)
        if self._welcome_task is not None and not self._welcome_task.done():
            self._welcome_task.cancel()
        self._artifact = None
        self._result = None
        self._error = None
        self._warning = None
        self._welcome_message = None
        self._welcome_task = None
        await self._transition(SessionState.idle)
        self.open()

    # -- internals --

    def _require(self, operation: str, *allowed: SessionState) -> None:
        if self._closed:
            raise InvalidTransitionError(operation, "closed")
        if self._state not in allowed:
            raise InvalidTransitionError(operation, self._state)

    async def _run_analysis(
        self,
        pending: SessionState,
        call: Callable[[], Awaitable[AnalysisResult]],
    ) -> AnalysisResult | None:
        self._error = None
        await self._transition(pending)
        try:
            result = await call()
        except Exception as exc:
            if self._closed:
                logger.info("Discarding analysis failure for closed session: %s", exc)
                return None
            if isinstance(exc, MicroPhenomError):
                error = exc
            else:
                logger.exception("Unexpected analysis failure")
                error = MicroPhenomError(detail=f"Analysis failed: {exc}", code="ANALYSIS_FAILED")
            logger.warning("Analysis failed (%s): %s", error.code, error.detail)
            self._error = error
            await self._transition(SessionState.error)
            return None

        if self._closed:
            logger.info("Discarding analysis result for closed session")
            return None
        self._result = result
        await self._transition(SessionState.result)
        return result

    async def _fetch_welcome(self) -> None:
        message = await self._analysis.get_welcome_message()
        if self._closed:
            return
        self._welcome_message = message
        await self._emit()

    async def _transition(self, state: SessionState) -> None:
        logger.debug("Session %s -> %s", self._state, state)
        self._state = state
        await self._emit()

    async def _emit(self) -> None:
        if self._closed or not self._observers:
            return
        snapshot = self.snapshot
        for observer in list(self._observers):
            try:
                await observer(snapshot)
            except Exception:
                logger.warning("Session observer failed (non-fatal)", exc_info=True)
