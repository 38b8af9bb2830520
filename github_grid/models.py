from collections.abc import Iterator
from datetime import date
from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class ContributionLevel(IntEnum):
    """Relative intensity bucket assigned by GitHub, ordered low to high."""

    NONE = 0
    FIRST_QUARTILE = 1
    SECOND_QUARTILE = 2
    THIRD_QUARTILE = 3
    FOURTH_QUARTILE = 4


class ContributionDay(BaseModel):
    """Single day of the contribution calendar."""

    model_config = ConfigDict(frozen=True)

    date: date
    count: int = Field(ge=0)
    level: ContributionLevel = ContributionLevel.NONE


class ContributionWeek(BaseModel):
    """Chronologically ordered days of one calendar week.

    Boundary weeks at either end of the range may hold fewer than seven days.
    A week with no days is accepted as well; it occupies a column but places
    no cells and emits no month label.
    """

    model_config = ConfigDict(frozen=True)

    days: tuple[ContributionDay, ...] = Field(default=(), max_length=7)


class ContributionData(BaseModel):
    """One fetched contribution calendar.

    `total_contributions` is reported by GitHub and may cover a different
    window than the visible days, so it is never recomputed from them.
    """

    model_config = ConfigDict(frozen=True)

    total_contributions: int
    weeks: tuple[ContributionWeek, ...]
    fetched_at: datetime

    def iter_days(self) -> Iterator[ContributionDay]:
        for week in self.weeks:
            yield from week.days
