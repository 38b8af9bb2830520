"""Shared fixtures for the contribution grid tests."""

import asyncio
from collections.abc import Callable
from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import UTC

import pytest

from github_grid.models import ContributionData
from github_grid.models import ContributionDay
from github_grid.models import ContributionLevel
from github_grid.models import ContributionWeek


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class FakeCLI:
    """Stands in for GitHubCLI, replaying canned outputs or errors."""

    def __init__(self, *responses: str | BaseException) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, ...]] = []

    async def run(self, *args: str) -> str:
        self.calls.append(args)
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


class FakeService:
    """Stands in for ContributionService inside coordinator tests.

    `fetch_results` is consumed in order; the last entry repeats. When `gate`
    is set, fetches wait for it before answering.
    """

    def __init__(
        self,
        handle: str | BaseException = "octocat",
        fetch_results: list[ContributionData | BaseException] | None = None,
    ) -> None:
        self.handle = handle
        self.fetch_results = list(fetch_results or [])
        self.fetch_calls: list[str] = []
        self.gate: asyncio.Event | None = None

    async def resolve_handle(self) -> str:
        if isinstance(self.handle, BaseException):
            raise self.handle
        return self.handle

    async def fetch_contributions(self, username: str) -> ContributionData:
        self.fetch_calls.append(username)
        if self.gate is not None:
            await self.gate.wait()
        result = (
            self.fetch_results.pop(0)
            if len(self.fetch_results) > 1
            else self.fetch_results[0]
        )
        if isinstance(result, BaseException):
            raise result
        return result


class ManualClock:
    """Sleep replacement whose sleeps only finish when `advance` is called."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self._waiters: list[asyncio.Future[None]] = []

    async def sleep(self, seconds: float) -> None:
        self.delays.append(seconds)
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        await waiter

    @property
    def pending(self) -> list[asyncio.Future[None]]:
        return [waiter for waiter in self._waiters if not waiter.done()]

    def advance(self) -> None:
        for waiter in self.pending:
            waiter.set_result(None)


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def fake_cli() -> type[FakeCLI]:
    return FakeCLI


@pytest.fixture
def make_data() -> Callable[..., ContributionData]:
    """Build ContributionData with `week_count` full weeks from `start`."""

    def build(
        total: int = 42,
        start: date = date(2026, 3, 1),
        week_count: int = 2,
        count: int = 1,
    ) -> ContributionData:
        weeks = []
        for week_index in range(week_count):
            days = tuple(
                ContributionDay(
                    date=start + timedelta(days=week_index * 7 + offset),
                    count=count,
                    level=ContributionLevel.FIRST_QUARTILE
                    if count
                    else ContributionLevel.NONE,
                )
                for offset in range(7)
            )
            weeks.append(ContributionWeek(days=days))
        return ContributionData(
            total_contributions=total,
            weeks=tuple(weeks),
            fetched_at=datetime.now(UTC),
        )

    return build


@pytest.fixture
def fake_service(make_data: Callable[..., ContributionData]) -> FakeService:
    return FakeService(fetch_results=[make_data()])


@pytest.fixture
def calendar_payload() -> Callable[..., dict[str, object]]:
    """Build a GraphQL contributionCalendar response body."""

    def build(
        weeks: list[list[tuple[str, int, str]]],
        total: int = 0,
    ) -> dict[str, object]:
        return {
            "data": {
                "user": {
                    "contributionsCollection": {
                        "contributionCalendar": {
                            "totalContributions": total,
                            "weeks": [
                                {
                                    "contributionDays": [
                                        {
                                            "contributionCount": day_count,
                                            "date": day_date,
                                            "contributionLevel": level,
                                        }
                                        for day_date, day_count, level in week
                                    ]
                                }
                                for week in weeks
                            ],
                        }
                    }
                }
            }
        }

    return build
