"""Tests for the FastAPI application."""

import base64
from unittest import mock

import pytest
from fastapi.testclient import TestClient

from llu_uploader.main import create_app

from conftest import make_settings


@pytest.fixture
def client():
    # No context manager: the lifespan (and with it the sync schedule) does not run
    return TestClient(create_app(make_settings()))


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "llu-uploader"}


def test_root_is_plain_text(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "running" in response.text


def test_metrics_without_auth(client):
    response = client.get("/metrics/")
    assert response.status_code == 200
    assert "sync_cycle_total" in response.text


def test_metrics_basic_auth():
    app = create_app(make_settings(metrics_user="prom", metrics_pass="scrape"))
    client = TestClient(app)

    assert client.get("/metrics/").status_code == 401
    bad = base64.b64encode(b"prom:wrong").decode()
    assert client.get("/metrics/", headers={"Authorization": f"Basic {bad}"}).status_code == 401
    good = base64.b64encode(b"prom:scrape").decode()
    assert client.get("/metrics/", headers={"Authorization": f"Basic {good}"}).status_code == 200


def test_lifespan_schedules_pipeline():
    pipeline = mock.MagicMock()
    pipeline.close = mock.AsyncMock()
    scheduler = mock.MagicMock()
    with mock.patch("llu_uploader.main.SyncPipeline.from_settings", return_value=pipeline), \
         mock.patch("llu_uploader.main.start_scheduler", return_value=scheduler) as mock_start, \
         mock.patch("llu_uploader.main.stop_scheduler") as mock_stop:
        with TestClient(create_app(make_settings(link_up_time_interval=7))) as client:
            assert client.get("/health").status_code == 200
            mock_start.assert_called_once_with(pipeline, 7)

    mock_stop.assert_called_once_with(scheduler)
    pipeline.close.assert_awaited_once()


def test_lifespan_single_shot_runs_one_cycle():
    pipeline = mock.MagicMock()
    pipeline.close = mock.AsyncMock()
    with mock.patch("llu_uploader.main.SyncPipeline.from_settings", return_value=pipeline), \
         mock.patch("llu_uploader.main.run_sync_job", new_callable=mock.AsyncMock) as mock_job, \
         mock.patch("llu_uploader.main.start_scheduler") as mock_start:
        with TestClient(create_app(make_settings(single_shot=True))) as client:
            client.get("/health")

    mock_start.assert_not_called()
    mock_job.assert_awaited_once_with(pipeline)
