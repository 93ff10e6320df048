"""Pydantic models and schemas."""

from llu_uploader.models.librelink import (
    AuthTicket,
    Connection,
    GlucoseItem,
    GraphData,
    LoginData,
)
from llu_uploader.models.nightscout import (
    Entry,
    TrendDirection
)
from llu_uploader.models.sync import (
    SyncCycle,
    SyncCycleStats,
    SyncStatus
)

__all__ = [
    # LibreLink Up models
    "AuthTicket",
    "Connection",
    "GlucoseItem",
    "GraphData",
    "LoginData",

    # Nightscout models
    "Entry",
    "TrendDirection",

    # Sync cycle models
    "SyncCycle",
    "SyncCycleStats",
    "SyncStatus"
]
