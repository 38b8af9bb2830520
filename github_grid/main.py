from collections.abc import AsyncIterator
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI

from github_grid.api.routes.grid import router
from github_grid.core.observability import init_sentry
from github_grid.gh_cli import GitHubCLI
from github_grid.services.contribution_service import ContributionService
from github_grid.services.view_coordinator import ViewCoordinator
from github_grid.settings import Settings


def build_coordinator(
    app_settings: Settings, on_quit: Callable[[], None] | None = None
) -> ViewCoordinator:
    cli = GitHubCLI(
        executable=app_settings.gh_executable,
        timeout_seconds=app_settings.fetch_timeout_seconds,
    )
    return ViewCoordinator(
        service=ContributionService(cli),
        refresh_interval_minutes=app_settings.refresh_interval_minutes,
        on_quit=on_quit,
    )


def create_app(
    settings: Settings | None = None,
    coordinator: ViewCoordinator | None = None,
    on_quit: Callable[[], None] | None = None,
) -> FastAPI:
    """Build the app that publishes the contribution grid over HTTP.

    The coordinator starts loading in the background when the app starts and
    is disposed on shutdown.
    """

    app_settings = settings or Settings()
    init_sentry(app_settings)

    grid_coordinator = coordinator or build_coordinator(app_settings, on_quit)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        grid_coordinator.start()
        try:
            yield
        finally:
            await grid_coordinator.dispose()

    app = FastAPI(title="github-grid", lifespan=lifespan)
    app.state.coordinator = grid_coordinator
    app.include_router(router)
    return app
