"""
MicroPhenom exception hierarchy.

All application-specific exceptions inherit from MicroPhenomError,
enabling centralized error handling in the API middleware layer and
human-readable messages in the CLI.
"""

from datetime import UTC, datetime


class MicroPhenomError(Exception):
    """Base exception for all MicroPhenom errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "MICROPHENOM_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------


class PermissionDeniedError(MicroPhenomError):
    """Raised when the OS refuses microphone access."""

    def __init__(
        self,
        detail: str = "Microphone access denied. Please allow microphone permissions.",
    ) -> None:
        super().__init__(detail=detail, code="PERMISSION_DENIED", status_code=403)


class DeviceUnavailableError(MicroPhenomError):
    """Raised when no input device exists or the stream cannot be opened."""

    def __init__(self, detail: str = "No microphone is available") -> None:
        super().__init__(detail=detail, code="DEVICE_UNAVAILABLE", status_code=503)


class RecordingAlreadyActiveError(MicroPhenomError):
    """Raised when trying to start a recording while one is already active."""

    def __init__(self) -> None:
        super().__init__(
            detail="A recording is already active",
            code="RECORDING_ALREADY_ACTIVE",
            status_code=409,
        )


# ---------------------------------------------------------------------------
# Analysis backend
# ---------------------------------------------------------------------------


class BackendUnavailableError(MicroPhenomError):
    """Raised when the analysis backend cannot be reached or rejects the call."""

    def __init__(
        self,
        detail: str = "Analysis backend is unavailable",
        code: str = "BACKEND_UNAVAILABLE",
    ) -> None:
        super().__init__(detail=detail, code=code, status_code=503)


class ConfigurationError(BackendUnavailableError):
    """Raised at call time when the backend credential is missing."""

    def __init__(self, detail: str = "Backend API key is not configured") -> None:
        super().__init__(detail=detail, code="CONFIGURATION_ERROR")


class BackendEmptyResponseError(MicroPhenomError):
    """Raised when the backend call succeeded but returned no text."""

    def __init__(self, detail: str = "No response text from the analysis backend") -> None:
        super().__init__(detail=detail, code="BACKEND_EMPTY_RESPONSE", status_code=502)


class MalformedResultError(MicroPhenomError):
    """Raised when backend text is not a valid analysis result."""

    def __init__(self, detail: str = "Analysis backend returned a malformed result") -> None:
        super().__init__(detail=detail, code="MALFORMED_RESULT", status_code=502)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class InvalidTransitionError(MicroPhenomError):
    """Raised when a session operation is not valid in the current state."""

    def __init__(self, operation: str, state: str) -> None:
        super().__init__(
            detail=f"Cannot {operation} while session is {state}",
            code="INVALID_TRANSITION",
            status_code=409,
        )
