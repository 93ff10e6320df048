"""Models for LibreLink Up API responses."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LibreLinkUpModel(BaseModel):
    """Base model for upstream payloads; unknown fields are kept, not rejected."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class AuthTicket(LibreLinkUpModel):
    """Short-lived bearer credential issued on login."""

    token: str = Field(..., description="Bearer token")
    expires: int = Field(..., description="Expiry as unix timestamp in seconds")
    duration: int = Field(0, description="Ticket lifetime in milliseconds")


class LoginUser(LibreLinkUpModel):
    id: str = Field(..., description="Account identifier")


class LoginData(LibreLinkUpModel):
    """The `data` member of a login response."""

    user: Optional[LoginUser] = None
    auth_ticket: Optional[AuthTicket] = Field(None, alias="authTicket")
    redirect: bool = False
    region: Optional[str] = None


class LoginResponse(LibreLinkUpModel):
    status: int
    data: Optional[LoginData] = None


class GlucoseItem(LibreLinkUpModel):
    """A single glucose measurement as reported by LibreLink Up."""

    factory_timestamp: str = Field(..., alias="FactoryTimestamp", description="UTC, M/D/YYYY h:mm:ss AM")
    timestamp: Optional[str] = Field(None, alias="Timestamp", description="Sensor-local time")
    value_in_mg_per_dl: int = Field(..., alias="ValueInMgPerDl")
    trend_arrow: Optional[int] = Field(None, alias="TrendArrow")
    is_high: Optional[bool] = Field(None, alias="isHigh")
    is_low: Optional[bool] = Field(None, alias="isLow")


class Connection(LibreLinkUpModel):
    """A caregiver-to-patient sharing link."""

    patient_id: str = Field(..., alias="patientId")
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    glucose_measurement: Optional[GlucoseItem] = Field(None, alias="glucoseMeasurement")

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name} (Patient-ID: {self.patient_id})"


class ConnectionsResponse(LibreLinkUpModel):
    status: int = 0
    data: List[Connection] = Field(default_factory=list)


class GraphConnection(LibreLinkUpModel):
    patient_id: Optional[str] = Field(None, alias="patientId")
    glucose_measurement: GlucoseItem = Field(..., alias="glucoseMeasurement")


class GraphData(LibreLinkUpModel):
    """Current reading plus the recent history window for one connection."""

    connection: GraphConnection
    graph_data: List[GlucoseItem] = Field(default_factory=list, alias="graphData")

    @property
    def current(self) -> GlucoseItem:
        return self.connection.glucose_measurement


class GraphResponse(LibreLinkUpModel):
    status: int = 0
    data: GraphData
