"""Models for Nightscout entries."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class TrendDirection(str, Enum):
    """Nightscout direction names."""

    DOUBLE_UP = "DoubleUp"
    SINGLE_UP = "SingleUp"
    FORTY_FIVE_UP = "FortyFiveUp"
    FLAT = "Flat"
    FORTY_FIVE_DOWN = "FortyFiveDown"
    SINGLE_DOWN = "SingleDown"
    DOUBLE_DOWN = "DoubleDown"
    NOT_COMPUTABLE = "NOT COMPUTABLE"


class Entry(BaseModel):
    """A sensor glucose value in the shape Nightscout stores it."""

    date: datetime = Field(..., description="Reading time in UTC")
    sgv: Optional[int] = Field(None, description="Sensor glucose value in mg/dL")
    direction: Optional[TrendDirection] = Field(None, description="Trend direction, current reading only")

    @field_validator("date")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        """Treat naive datetimes as UTC so comparisons never mix naive and aware values."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @property
    def epoch_ms(self) -> int:
        return int(self.date.timestamp() * 1000)

    def to_nightscout_document(self, device: str) -> Dict[str, Any]:
        """Convert the entry to the document body posted to Nightscout."""
        document: Dict[str, Any] = {
            "type": "sgv",
            "sgv": self.sgv,
            "device": device,
            "date": self.epoch_ms,
            "dateString": self.date.strftime("%Y-%m-%dT%H:%M:%S.") + f"{self.date.microsecond // 1000:03d}Z",
        }
        if self.direction is not None:
            document["direction"] = self.direction.value
        return document

    @classmethod
    def from_nightscout_document(cls, document: Dict[str, Any]) -> "Entry":
        """Create an Entry from a stored Nightscout document; `date` is epoch milliseconds."""
        date = datetime.fromtimestamp(int(document["date"]) / 1000, tz=timezone.utc)
        try:
            direction = TrendDirection(document.get("direction"))
        except ValueError:
            direction = None
        return cls(date=date, sgv=document.get("sgv"), direction=direction)
