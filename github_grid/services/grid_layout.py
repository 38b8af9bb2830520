from collections.abc import Sequence
from datetime import date

from pydantic import BaseModel
from pydantic import ConfigDict

from github_grid.models import ContributionData
from github_grid.models import ContributionDay
from github_grid.models import ContributionLevel
from github_grid.models import ContributionWeek


LEVEL_COLORS: dict[ContributionLevel, str] = {
    ContributionLevel.NONE: "#161B22",
    ContributionLevel.FIRST_QUARTILE: "#0E4429",
    ContributionLevel.SECOND_QUARTILE: "#006D32",
    ContributionLevel.THIRD_QUARTILE: "#26A641",
    ContributionLevel.FOURTH_QUARTILE: "#39D353",
}

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Rows are Sunday-first.
DAY_LABEL_ROWS = ((1, "Mon"), (3, "Wed"), (5, "Fri"))


class GridCell(BaseModel):
    """A day placed at column `week_index` and row `weekday_index`."""

    model_config = ConfigDict(frozen=True)

    week_index: int
    weekday_index: int
    day: ContributionDay
    color: str
    tooltip: str


class MonthLabel(BaseModel):
    model_config = ConfigDict(frozen=True)

    week_index: int
    text: str


class DayLabel(BaseModel):
    model_config = ConfigDict(frozen=True)

    weekday_index: int
    text: str


class LegendEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: ContributionLevel
    color: str


class GridLayout(BaseModel):
    """Everything a renderer needs to draw one contribution grid."""

    model_config = ConfigDict(frozen=True)

    week_count: int
    cells: tuple[GridCell, ...]
    month_labels: tuple[MonthLabel, ...]
    day_labels: tuple[DayLabel, ...]
    legend: tuple[LegendEntry, ...]
    today_text: str


def weekday_row(day: date) -> int:
    """Return the grid row for day, with Sunday as row 0."""

    return (day.weekday() + 1) % 7


def color_for_level(level: ContributionLevel) -> str:
    return LEVEL_COLORS[level]


def ordinal_suffix(day_of_month: int) -> str:
    if day_of_month in (1, 21, 31):
        return "st"
    if day_of_month in (2, 22):
        return "nd"
    if day_of_month in (3, 23):
        return "rd"
    return "th"


def format_contribution_count(count: int) -> str:
    if count == 0:
        return "No contributions"
    return f"{count} contribution{'' if count == 1 else 's'}"


def format_tooltip(day: ContributionDay) -> str:
    """Format hover text, e.g. "3 contributions on March 21st."."""

    month_name = MONTH_NAMES[day.date.month - 1]
    day_of_month = day.date.day
    return (
        f"{format_contribution_count(day.count)} on "
        f"{month_name} {day_of_month}{ordinal_suffix(day_of_month)}."
    )


def place_cells(weeks: Sequence[ContributionWeek]) -> list[GridCell]:
    cells: list[GridCell] = []
    for week_index, week in enumerate(weeks):
        for day in week.days:
            cells.append(
                GridCell(
                    week_index=week_index,
                    weekday_index=weekday_row(day.date),
                    day=day,
                    color=color_for_level(day.level),
                    tooltip=format_tooltip(day),
                )
            )
    return cells


def month_labels(weeks: Sequence[ContributionWeek]) -> list[MonthLabel]:
    """Label each week whose first day starts a month not labelled just before.

    Only the most recently emitted month is remembered, so a month that shows
    up again later in the range is labelled again.
    """

    labels: list[MonthLabel] = []
    last_month: int | None = None
    for week_index, week in enumerate(weeks):
        if not week.days:
            continue
        month = week.days[0].date.month
        if month != last_month:
            last_month = month
            labels.append(
                MonthLabel(week_index=week_index, text=MONTH_ABBREVIATIONS[month - 1])
            )
    return labels


def day_labels() -> list[DayLabel]:
    return [DayLabel(weekday_index=row, text=text) for row, text in DAY_LABEL_ROWS]


def legend() -> list[LegendEntry]:
    return [LegendEntry(level=level, color=color) for level, color in LEVEL_COLORS.items()]


def today_contribution_text(data: ContributionData, today: date) -> str:
    """Summarise today's count, or return "" when today is outside the data."""

    for day in data.iter_days():
        if day.date == today:
            return f"{format_contribution_count(day.count)} today"
    return ""


def build_grid_layout(data: ContributionData, today: date | None = None) -> GridLayout:
    """Lay out data as a week-by-weekday grid."""

    if today is None:
        today = date.today()

    return GridLayout(
        week_count=len(data.weeks),
        cells=tuple(place_cells(data.weeks)),
        month_labels=tuple(month_labels(data.weeks)),
        day_labels=tuple(day_labels()),
        legend=tuple(legend()),
        today_text=today_contribution_text(data, today),
    )
