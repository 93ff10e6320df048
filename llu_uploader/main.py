"""Main entry point for the LibreLink Up uploader."""

import asyncio
import base64
import binascii
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse, Response
from prometheus_client import make_asgi_app
from starlette.status import HTTP_401_UNAUTHORIZED

from llu_uploader.scheduler import run_sync_job, start_scheduler, stop_scheduler
from llu_uploader.sync import SyncPipeline
from llu_uploader.utils.config import Settings, get_settings
from llu_uploader.utils.logging_utils import setup_json_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """
    Application startup and shutdown events.

    Args:
        app: The FastAPI application instance

    Yields:
        None
    """
    settings: Settings = app.state.settings
    logger.info("Starting LibreLink Up uploader...")

    pipeline = SyncPipeline.from_settings(settings)
    app.state.pipeline = pipeline
    scheduler = None
    single_shot_task: Optional[asyncio.Task] = None

    if settings.single_shot:
        logger.info("Single-shot mode, running one sync cycle")
        single_shot_task = asyncio.create_task(run_sync_job(pipeline))
    else:
        scheduler = start_scheduler(pipeline, settings.link_up_time_interval)

    yield

    logger.info("Shutting down LibreLink Up uploader...")
    if scheduler is not None:
        stop_scheduler(scheduler)
    if single_shot_task is not None:
        # Wait for the in-flight cycle
        await single_shot_task
    await pipeline.close()


class MetricsAuthMiddleware:
    """HTTP basic auth in front of the Prometheus ASGI app."""

    def __init__(self, app, username, password):
        self.app = app
        self.username = username
        self.password = password

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and not self._authorized(scope):
            response = Response(
                status_code=HTTP_401_UNAUTHORIZED,
                headers={"WWW-Authenticate": "Basic"},
            )
            await response(scope, receive, send)
            return
        await self.app(scope, receive, send)

    def _authorized(self, scope) -> bool:
        headers = dict(scope.get("headers") or [])
        auth_header = headers.get(b"authorization")
        if not auth_header or not auth_header.startswith(b"Basic "):
            return False
        try:
            encoded = auth_header.split(b" ", 1)[1]
            username, password = base64.b64decode(encoded).decode().split(":", 1)
        except (binascii.Error, UnicodeDecodeError, ValueError):
            return False
        return username == self.username and password == self.password


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the cached environment settings

    Returns:
        FastAPI: The configured FastAPI application
    """
    settings = settings or get_settings()
    setup_json_logging(settings.log_level, settings.log_output, settings.log_file_path)

    app = FastAPI(
        title="LibreLink Up Uploader",
        description="Uploads CGM readings from LibreLink Up to Nightscout",
        version="0.1.0",
        lifespan=lifespan
    )
    app.state.settings = settings

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "LibreLink Up uploader is running"

    @app.get("/health")
    async def health_check() -> Dict[str, str]:
        """
        Health check endpoint.

        Returns:
            dict: Health status
        """
        return {"status": "healthy", "service": "llu-uploader"}

    # Mount the Prometheus metrics endpoint, behind basic auth when configured
    metrics_app = make_asgi_app()
    if settings.metrics_user and settings.metrics_pass:
        metrics_app = MetricsAuthMiddleware(
            metrics_app, settings.metrics_user, settings.metrics_pass.get_secret_value()
        )
    app.mount("/metrics", metrics_app)

    return app


def run() -> None:
    """Console entry point: serve the health endpoint and run the sync schedule."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "llu_uploader.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
