from enum import Enum
from typing import Optional


class ErrorSeverity(Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    CRITICAL = 'critical'


class SyncStage(str, Enum):
    """Pipeline stage in which a sync error occurred."""

    AUTHENTICATION = "authentication"
    CONNECTION = "connection"
    FETCH = "fetch"
    UPLOAD = "upload"


class SyncError(Exception):
    """Base class for errors raised during a sync cycle."""
    stage: SyncStage = SyncStage.FETCH
    invalidates_session: bool = True

    def __init__(self, message: str, severity: ErrorSeverity = ErrorSeverity.MEDIUM, status_code: Optional[int] = None):
        self.message = message
        self.severity = severity
        self.status_code = status_code
        super().__init__(message)


class AuthenticationError(SyncError):
    stage = SyncStage.AUTHENTICATION


class RegionMismatchError(AuthenticationError):
    """Login succeeded against the wrong regional host."""

    def __init__(self, region: str):
        self.region = region.upper()
        super().__init__(
            f"Logged in to the wrong region. Switch to '{self.region}' region.",
            severity=ErrorSeverity.HIGH,
        )


class ConnectionResolutionError(SyncError):
    stage = SyncStage.CONNECTION


class FetchError(SyncError):
    stage = SyncStage.FETCH


class UploadError(SyncError):
    # Downstream failures say nothing about the upstream session
    stage = SyncStage.UPLOAD
    invalidates_session = False
