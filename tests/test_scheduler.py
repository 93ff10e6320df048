from unittest.mock import AsyncMock, MagicMock

import pytest

from llu_uploader.models.sync import SyncCycle
from llu_uploader.scheduler import SYNC_JOB_ID, run_sync_job, start_scheduler, stop_scheduler
from llu_uploader.sync import SyncPipeline


@pytest.fixture
def pipeline():
    pipeline = MagicMock(spec=SyncPipeline)
    cycle = SyncCycle()
    cycle.record_completion(3)
    pipeline.run_cycle = AsyncMock(return_value=cycle)
    return pipeline


@pytest.mark.asyncio
async def test_run_sync_job_runs_one_cycle(pipeline):
    await run_sync_job(pipeline)
    pipeline.run_cycle.assert_awaited_once()


@pytest.mark.asyncio
async def test_run_sync_job_logs_unexpected_errors(pipeline, caplog):
    pipeline.run_cycle.side_effect = RuntimeError("unexpected")

    await run_sync_job(pipeline)

    assert "Unexpected error in sync cycle" in caplog.text


@pytest.mark.asyncio
async def test_start_scheduler_adds_single_flight_interval_job(pipeline):
    scheduler = start_scheduler(pipeline, interval_minutes=5)
    try:
        job = scheduler.get_job(SYNC_JOB_ID)
        assert job is not None
        assert job.max_instances == 1
        assert job.coalesce is True
        assert job.trigger.interval.total_seconds() == 300
        assert job.args == (pipeline,)
        assert scheduler.running
    finally:
        stop_scheduler(scheduler)
