"""HTTP surface of the scheduled deployment.

Endpoints:
- GET /health: configuration and GitHub credential status, one request
  to GitHub without retries
- GET|POST /run: trigger one scan-and-resolve run in the background
- GET /: short banner

The recurring run is driven by a Scheduler started in the app lifespan.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from functools import partial

import structlog
from fastapi import BackgroundTasks, FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

from .._version import __version__
from ..adapters.vcs.github import GitHubAdapter
from ..config.schema import ResolverConfig
from ..core.orchestrator import run_scan
from ..models.stats import ScanReport
from ..utils.health import HealthChecker, HealthReport
from .scheduler import Scheduler

log = structlog.get_logger()

ScanJob = Callable[[], Awaitable[ScanReport]]
HealthProbe = Callable[[], Awaitable[HealthReport]]


def create_app(
    config: ResolverConfig,
    job: ScanJob | None = None,
    health_probe: HealthProbe | None = None,
) -> FastAPI:
    """Create the FastAPI application for the scheduled deployment.

    Args:
        config: Loaded configuration.
        job: Coroutine function running one scan. Defaults to a scan of
            ``config.organizations`` with ``config.schedule.dry_run``.
        health_probe: Coroutine function producing a health report.
            Defaults to HealthChecker against the GitHub API.
    """
    if job is None:
        job = partial(run_scan, config, dry_run=config.schedule.dry_run)

    if health_probe is None:

        async def health_probe() -> HealthReport:
            async with GitHubAdapter(config.github, config.retry) as github:
                return await HealthChecker(config, github).check()

    async def run_and_log() -> None:
        report = await job()
        stats = report.stats
        log.info(
            "scheduled_run_complete",
            scanned=stats.scanned,
            closed=stats.closed,
            failed=stats.failed,
            dry_run=report.dry_run,
        )

    scheduler = Scheduler(
        run_and_log,
        interval_seconds=config.schedule.interval_seconds,
        run_on_startup=config.schedule.run_on_startup,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if config.schedule.enabled:
            scheduler.start()
        try:
            yield
        finally:
            await scheduler.stop()

    app = FastAPI(
        title="issue-resolver",
        description="Automated issue resolution for GitHub organizations",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.scheduler = scheduler

    @app.get("/health")
    async def health() -> JSONResponse:
        report = await health_probe()
        return JSONResponse(
            {
                "status": report.status.value,
                "organizations": list(config.organizations),
                "stale_days": config.rules.stale_threshold_days,
                "checks": report.to_dict()["checks"],
            },
            status_code=200 if report.healthy else 503,
        )

    @app.api_route("/run", methods=["GET", "POST"])
    async def trigger_run(background_tasks: BackgroundTasks) -> dict[str, str]:
        log.info("manual_run_triggered")
        background_tasks.add_task(scheduler.run_once)
        return {"status": "triggered"}

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "issue-resolver - GET /health or POST /run"

    return app
