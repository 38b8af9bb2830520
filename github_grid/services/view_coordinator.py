import asyncio
import logging
from collections.abc import Callable
from collections.abc import Coroutine
from datetime import date
from enum import StrEnum
from typing import Any

from github_grid.core.events import Signal
from github_grid.errors import AuthenticationError
from github_grid.errors import CLIError
from github_grid.errors import CLITimeoutError
from github_grid.errors import ExecutableNotFoundError
from github_grid.errors import GitHubGridError
from github_grid.errors import InvalidIdentifierError
from github_grid.errors import MalformedResponseError
from github_grid.errors import NonZeroExitError
from github_grid.models import ContributionData
from github_grid.services.contribution_service import ContributionService
from github_grid.services.grid_layout import build_grid_layout
from github_grid.services.grid_layout import GridLayout
from github_grid.services.refresh_scheduler import RefreshScheduler


logger = logging.getLogger(__name__)

LOADING_STATUS = "Loading..."
REFRESHING_STATUS = "Refreshing..."
GH_NOT_FOUND_STATUS = "GitHub CLI (gh) not found. Install it and run 'gh auth login'."


class CoordinatorState(StrEnum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    READY = "ready"
    REFRESHING = "refreshing"
    FAILED = "failed"
    CLOSED = "closed"


def status_for_error(exc: BaseException) -> str:
    """Translate a pipeline failure into short user-facing text."""

    if isinstance(exc, AuthenticationError):
        if isinstance(exc.__cause__, ExecutableNotFoundError):
            return GH_NOT_FOUND_STATUS
        return "Failed to connect. Check gh CLI authentication."
    if isinstance(exc, ExecutableNotFoundError):
        return GH_NOT_FOUND_STATUS
    if isinstance(exc, CLITimeoutError):
        return "GitHub CLI request timed out."
    if isinstance(exc, NonZeroExitError):
        return "GitHub request failed. Check internet connection."
    if isinstance(exc, InvalidIdentifierError):
        return "Invalid GitHub username received."
    if isinstance(exc, MalformedResponseError):
        return "Unexpected response from GitHub."
    if isinstance(exc, CLIError):
        return "GitHub CLI could not be run."
    return "Unexpected error."


class ViewCoordinator:
    """Owns the current contribution data and the refresh state machine.

    All state changes and notifications happen on the event loop the
    coordinator was started on. At most one fetch runs at a time: a refresh
    requested while another is in flight joins it instead of fetching again.
    """

    def __init__(
        self,
        service: ContributionService,
        scheduler: RefreshScheduler | None = None,
        refresh_interval_minutes: float = 20,
        on_quit: Callable[[], None] | None = None,
    ) -> None:
        self._service = service
        self._scheduler = scheduler or RefreshScheduler()
        self._refresh_interval_minutes = refresh_interval_minutes
        self._on_quit = on_quit

        self.data_changed = Signal("data_changed")
        self.property_changed = Signal("property_changed")

        self._state = CoordinatorState.IDLE
        self._handle: str | None = None
        self._data: ContributionData | None = None
        self._status_text = LOADING_STATUS
        self._is_busy = False

        self._loop: asyncio.AbstractEventLoop | None = None
        self._in_flight: asyncio.Task[bool] | None = None
        self._background: set[asyncio.Task[Any]] = set()
        self._disposed = False

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def handle(self) -> str | None:
        return self._handle

    @property
    def data(self) -> ContributionData | None:
        return self._data

    @property
    def status_text(self) -> str:
        return self._status_text

    @property
    def is_busy(self) -> bool:
        return self._is_busy

    @property
    def scheduler(self) -> RefreshScheduler:
        return self._scheduler

    def layout(self, today: date | None = None) -> GridLayout | None:
        if self._data is None:
            return None
        return build_grid_layout(self._data, today)

    def start(self) -> asyncio.Task[None]:
        """Bind to the running loop, listen to the scheduler and initialize."""

        self._loop = asyncio.get_running_loop()
        self._scheduler.refresh_requested.connect(self.request_refresh)
        return self._spawn(self.initialize())

    async def initialize(self) -> None:
        """Resolve the GitHub user and load the first calendar."""

        if self._state not in (CoordinatorState.IDLE, CoordinatorState.FAILED):
            logger.debug("initialize() ignored in state %s", self._state)
            return

        self._set("state", CoordinatorState.INITIALIZING)
        self._set("is_busy", True)
        self._set("status_text", LOADING_STATUS)

        try:
            handle = await self._service.resolve_handle()
            self._set("handle", handle)
            data = await self._service.fetch_contributions(handle)
        except Exception as exc:
            self._report_failure("Initialization", exc)
            if self._state is CoordinatorState.CLOSED:
                return
            self._set("status_text", status_for_error(exc))
            self._set("state", CoordinatorState.FAILED)
            self._set("is_busy", False)
        else:
            if self._state is CoordinatorState.CLOSED:
                return
            self._publish(data)

        if self._handle is not None and not self._disposed:
            self._scheduler.start(self._refresh_interval_minutes)

    async def refresh(self) -> bool:
        """Fetch fresh data, or join the fetch already in flight.

        Returns True when the fetch succeeded. Returns False without fetching
        before initialize() has run, while initializing or after quit. When
        initialization failed before the user was resolved, initialization
        is retried instead.
        """

        if self._state in (CoordinatorState.CLOSED, CoordinatorState.INITIALIZING):
            logger.debug("refresh() ignored in state %s", self._state)
            return False
        if self._handle is None:
            if self._state is not CoordinatorState.FAILED:
                logger.debug("refresh() ignored: GitHub user not resolved")
                return False
            logger.info("Retrying initialization")
            await self.initialize()
            return self._state is CoordinatorState.READY

        if self._in_flight is None or self._in_flight.done():
            self._in_flight = asyncio.get_running_loop().create_task(
                self._refresh_once(self._handle)
            )
        else:
            logger.debug("Refresh already in flight, joining it")

        return await asyncio.shield(self._in_flight)

    def request_refresh(self) -> None:
        """Ask for a refresh from any thread; runs on the owner loop."""

        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("Refresh requested before the coordinator was started")
            return
        loop.call_soon_threadsafe(self._spawn_refresh)

    def quit(self) -> None:
        """Stop auto-refresh and ask the host to shut down."""

        if self._state is CoordinatorState.CLOSED:
            return

        self._set("state", CoordinatorState.CLOSED)
        self._scheduler.dispose()
        logger.info("Quit requested")
        if self._on_quit is not None:
            self._on_quit()

    async def dispose(self) -> None:
        self._disposed = True
        self._scheduler.dispose()

        tasks = [task for task in self._background if not task.done()]
        if self._in_flight is not None and not self._in_flight.done():
            tasks.append(self._in_flight)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _refresh_once(self, handle: str) -> bool:
        self._set("state", CoordinatorState.REFRESHING)
        self._set("is_busy", True)
        self._set("status_text", REFRESHING_STATUS)

        try:
            data = await self._service.fetch_contributions(handle)
        except Exception as exc:
            self._report_failure("Refresh", exc)
            if self._state is CoordinatorState.CLOSED:
                return False
            self._set("status_text", f"Failed to refresh. {status_for_error(exc)}")
            self._set(
                "state",
                CoordinatorState.READY
                if self._data is not None
                else CoordinatorState.FAILED,
            )
            self._set("is_busy", False)
            return False

        if self._state is CoordinatorState.CLOSED:
            return False
        self._publish(data)
        return True

    def _publish(self, data: ContributionData) -> None:
        self._set("data", data)
        self._set(
            "status_text",
            f"{data.total_contributions} contributions in the last year",
        )
        self._set("state", CoordinatorState.READY)
        self._set("is_busy", False)
        self.data_changed.emit(data)

    def _spawn_refresh(self) -> None:
        if self._state is CoordinatorState.CLOSED or self._disposed:
            return
        self._spawn(self.refresh())

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def _set(self, name: str, value: object) -> None:
        attribute = f"_{name}"
        if getattr(self, attribute) == value:
            return
        setattr(self, attribute, value)
        self.property_changed.emit(name)

    @staticmethod
    def _report_failure(action: str, exc: Exception) -> None:
        if isinstance(exc, GitHubGridError):
            logger.warning("%s failed: %s", action, exc)
        else:
            logger.error("%s failed unexpectedly", action, exc_info=exc)
