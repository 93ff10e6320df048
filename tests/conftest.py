"""Global test fixtures and configuration."""

import os
import sys

import pytest

# Make sure the package root is in the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Set up environment variables for testing
os.environ.setdefault("LINK_UP_USERNAME", "follower@example.com")
os.environ.setdefault("LINK_UP_PASSWORD", "hunter22")
os.environ.setdefault("NIGHTSCOUT_URL", "ns.example.com")
os.environ.setdefault("NIGHTSCOUT_API_TOKEN", "ns-api-secret")

from llu_uploader.auth.session import SessionCache
from llu_uploader.models.librelink import AuthTicket, GraphData
from llu_uploader.utils.config import Settings

LLU_BASE_URL = "https://api-eu.libreview.io"
NS_BASE_URL = "https://ns.example.com"

# 2024-06-30 20:00:00 UTC
BASE_EPOCH = 1719777600
FAR_FUTURE = 4102444800  # 2100-01-01


def factory_timestamp(minute: int) -> str:
    """FactoryTimestamp for 2024-06-30 8:<minute> PM UTC."""
    return f"6/30/2024 8:{minute:02d}:00 PM"


def make_settings(**overrides) -> Settings:
    values = dict(
        service_env="test",
        link_up_username="follower@example.com",
        link_up_password="hunter22",
        link_up_region="EU",
        nightscout_url="ns.example.com",
        nightscout_api_token="ns-api-secret",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings():
    """Settings for the EU region and Nightscout API v1."""
    return make_settings()


@pytest.fixture
def auth_ticket():
    return AuthTicket(token="llu-token", expires=FAR_FUTURE, duration=15552000000)


@pytest.fixture
def session():
    return SessionCache()


@pytest.fixture
def logged_in_session(session, auth_ticket):
    session.set(auth_ticket, "user-123")
    return session


@pytest.fixture
def login_payload():
    """A successful LibreLink Up login response body."""
    return {
        "status": 0,
        "data": {
            "user": {"id": "user-123", "firstName": "Fran", "lastName": "Follower"},
            "authTicket": {"token": "llu-token", "expires": FAR_FUTURE, "duration": 15552000000},
        },
    }


@pytest.fixture
def connections_payload():
    return {
        "status": 0,
        "data": [
            {"patientId": "patient-1", "firstName": "Pat", "lastName": "One"},
        ],
    }


@pytest.fixture
def graph_payload():
    """Current reading at 8:15 PM plus history at 8:00, 8:05 and 8:10 PM."""
    return {
        "status": 0,
        "data": {
            "connection": {
                "patientId": "patient-1",
                "glucoseMeasurement": {
                    "FactoryTimestamp": factory_timestamp(15),
                    "Timestamp": "6/30/2024 10:15:00 PM",
                    "ValueInMgPerDl": 131,
                    "TrendArrow": 4,
                },
            },
            "graphData": [
                {"FactoryTimestamp": factory_timestamp(0), "Timestamp": "6/30/2024 10:00:00 PM", "ValueInMgPerDl": 110},
                {"FactoryTimestamp": factory_timestamp(5), "Timestamp": "6/30/2024 10:05:00 PM", "ValueInMgPerDl": 118},
                {"FactoryTimestamp": factory_timestamp(10), "Timestamp": "6/30/2024 10:10:00 PM", "ValueInMgPerDl": 125},
            ],
        },
    }


@pytest.fixture
def graph_data(graph_payload):
    return GraphData.model_validate(graph_payload["data"])
