"""LibreLink Up to Nightscout sync pipeline.

One cycle runs login (when the session is not valid), connection
resolution, graph fetch, watermark lookup, formatting and upload, in that
order. Every `SyncError` ends the cycle and is logged; errors raised by
login, connection resolution or fetching also clear the session so the
next cycle starts with a fresh login.
"""
import asyncio
import logging
import time
from typing import Optional

from llu_uploader.auth.client import LibreLinkUpClient
from llu_uploader.auth.connections import resolve_connection
from llu_uploader.auth.session import SessionCache
from llu_uploader.data.nightscout import NightscoutClient, create_nightscout_client
from llu_uploader.metrics import sync_cycle_duration_seconds, sync_cycle_total
from llu_uploader.models.nightscout import Entry
from llu_uploader.models.sync import SyncCycle
from llu_uploader.utils.config import Settings
from llu_uploader.utils.error_handling import FetchError, RegionMismatchError, SyncError
from llu_uploader.utils.normalization import format_measurements

logger = logging.getLogger(__name__)


class SyncPipeline:
    """Runs sync cycles against one LibreLink Up account and one Nightscout site."""

    def __init__(
        self,
        settings: Settings,
        llu_client: LibreLinkUpClient,
        nightscout_client: NightscoutClient,
        session: SessionCache,
    ):
        self.settings = settings
        self.llu_client = llu_client
        self.nightscout_client = nightscout_client
        self.session = session
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "SyncPipeline":
        session = SessionCache()
        return cls(
            settings=settings,
            llu_client=LibreLinkUpClient(settings, session),
            nightscout_client=create_nightscout_client(settings),
            session=session,
        )

    async def close(self) -> None:
        """Close both HTTP clients once any running cycle has finished."""
        async with self._lock:
            await self.llu_client.close()
            await self.nightscout_client.close()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def run_cycle(self) -> SyncCycle:
        """Run one sync cycle. Never raises `SyncError`; the outcome is in the returned cycle."""
        cycle = SyncCycle()
        if self._lock.locked():
            logger.warning("Previous sync cycle still running, skipping this one", extra={"cycle_id": cycle.cycle_id})
            cycle.record_skip()
            sync_cycle_total.labels(status=cycle.status.value).inc()
            return cycle

        async with self._lock:
            start_time = time.monotonic()
            try:
                await self._run(cycle)
            except SyncError as e:
                self._handle_failure(cycle, e)
            finally:
                sync_cycle_duration_seconds.observe(time.monotonic() - start_time)
                sync_cycle_total.labels(status=cycle.status.value).inc()
        return cycle

    async def _run(self, cycle: SyncCycle) -> None:
        await self._ensure_session(cycle)

        connections = await self.llu_client.get_connections()
        connection = resolve_connection(connections, self.settings.link_up_connection)
        cycle.patient_id = connection.patient_id

        graph = await self.llu_client.get_graph(connection.patient_id)
        cycle.stats.readings_fetched = 1 + len(graph.graph_data)

        last_entry = await self._last_entry()
        cycle.watermark = last_entry.date if last_entry else None

        try:
            entries = format_measurements(graph, last_entry)
        except ValueError as e:
            raise FetchError(f"Malformed glucose measurement: {e}") from e
        cycle.stats.entries_formatted = len(entries)
        if not entries:
            logger.info("No new measurements to upload", extra={"cycle_id": cycle.cycle_id})
            cycle.record_completion(0)
            return

        logger.info(f"Uploading {len(entries)} entries to Nightscout...", extra={"cycle_id": cycle.cycle_id})
        uploaded = await self.nightscout_client.upload_entries(entries)
        logger.info("Upload successful", extra={"cycle_id": cycle.cycle_id, "entries": uploaded})
        cycle.record_completion(uploaded)

    async def _ensure_session(self, cycle: SyncCycle) -> None:
        if self.session.is_valid():
            return
        logger.info("Renewing LibreLink Up session", extra={"cycle_id": cycle.cycle_id})
        self.session.clear()
        login = await self.llu_client.login()
        self.session.set(login.auth_ticket, login.user.id)
        cycle.logged_in = True

    async def _last_entry(self) -> Optional[Entry]:
        if self.settings.all_data:
            return None
        return await self.nightscout_client.last_entry()

    def _handle_failure(self, cycle: SyncCycle, error: SyncError) -> None:
        if error.invalidates_session:
            self.session.clear()
        extra = {
            "cycle_id": cycle.cycle_id,
            "error_type": type(error).__name__,
            "stage": error.stage.value,
            "severity": error.severity.value,
            "status_code": error.status_code,
            "session_cleared": error.invalidates_session,
        }
        if isinstance(error, RegionMismatchError):
            extra["correct_region"] = error.region
        logger.error(f"Sync cycle failed: {error.message}", extra=extra)
        cycle.record_failure(error)
