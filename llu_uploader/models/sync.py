"""Models for sync cycles."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from llu_uploader.utils.error_handling import SyncError, SyncStage


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncStatus(str, Enum):
    """Enum for sync cycle outcomes."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    NO_NEW_DATA = "no_new_data"
    FAILED = "failed"
    SKIPPED = "skipped"


class SyncCycleStats(BaseModel):
    """Statistics for a sync cycle."""

    readings_fetched: int = Field(0, description="Readings returned by LibreLink Up (current + history)")
    entries_formatted: int = Field(0, description="Entries newer than the Nightscout watermark")
    entries_uploaded: int = Field(0, description="Entries accepted by Nightscout")
    processing_time_ms: int = Field(0, description="Total processing time in milliseconds")


class SyncCycle(BaseModel):
    """Outcome of one poll-then-upload run."""

    cycle_id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique identifier for the cycle")
    status: SyncStatus = Field(SyncStatus.IN_PROGRESS, description="Current status of the cycle")
    logged_in: bool = Field(False, description="Whether this cycle performed a fresh login")
    patient_id: Optional[str] = Field(None, description="Connection the readings were fetched for")
    watermark: Optional[datetime] = Field(None, description="Date of the last Nightscout entry, if fetched")
    stats: SyncCycleStats = Field(default_factory=SyncCycleStats)
    error_stage: Optional[SyncStage] = Field(None, description="Stage that failed")
    error_message: Optional[str] = Field(None, description="Error message if the cycle failed")
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    def record_failure(self, error: SyncError) -> None:
        """Mark the cycle as failed."""
        self.status = SyncStatus.FAILED
        self.error_stage = error.stage
        self.error_message = error.message
        self._finish()

    def record_completion(self, entries_uploaded: int) -> None:
        """Mark the cycle as completed."""
        self.stats.entries_uploaded = entries_uploaded
        self.status = SyncStatus.COMPLETED if entries_uploaded else SyncStatus.NO_NEW_DATA
        self._finish()

    def record_skip(self) -> None:
        self.status = SyncStatus.SKIPPED
        self._finish()

    def _finish(self) -> None:
        self.completed_at = _utcnow()
        self.stats.processing_time_ms = int((self.completed_at - self.started_at).total_seconds() * 1000)
