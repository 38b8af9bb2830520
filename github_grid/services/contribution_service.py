import json
import logging
import re
from collections.abc import Mapping
from datetime import date
from datetime import datetime
from datetime import UTC
from typing import Any

from pydantic import ValidationError

from github_grid.errors import AuthenticationError
from github_grid.errors import CLIError
from github_grid.errors import InvalidIdentifierError
from github_grid.errors import MalformedResponseError
from github_grid.gh_cli import GitHubCLI
from github_grid.models import ContributionData
from github_grid.models import ContributionDay
from github_grid.models import ContributionLevel
from github_grid.models import ContributionWeek


logger = logging.getLogger(__name__)

CONTRIBUTIONS_QUERY = (
    "query($username:String!){user(login:$username){contributionsCollection"
    "{contributionCalendar{totalContributions weeks{contributionDays"
    "{contributionCount date contributionLevel}}}}}}"
)

_USERNAME_PATTERN = re.compile(r"[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?")

_LEVELS_BY_TOKEN = {
    "NONE": ContributionLevel.NONE,
    "FIRST_QUARTILE": ContributionLevel.FIRST_QUARTILE,
    "SECOND_QUARTILE": ContributionLevel.SECOND_QUARTILE,
    "THIRD_QUARTILE": ContributionLevel.THIRD_QUARTILE,
    "FOURTH_QUARTILE": ContributionLevel.FOURTH_QUARTILE,
}


def is_valid_username(username: str) -> bool:
    """Return True when username matches the GitHub login grammar."""

    return _USERNAME_PATTERN.fullmatch(username) is not None


def parse_contribution_level(token: object) -> ContributionLevel:
    """Map a GraphQL contributionLevel token to ContributionLevel.

    Unknown tokens map to NONE so new server-side levels do not break parsing.
    """

    if not isinstance(token, str):
        return ContributionLevel.NONE
    return _LEVELS_BY_TOKEN.get(token, ContributionLevel.NONE)


def _require_mapping(parent: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = parent.get(key)
    if not isinstance(value, Mapping):
        raise MalformedResponseError(f"GitHub response is missing '{key}'")
    return value


def _parse_day(item: object) -> ContributionDay:
    if not isinstance(item, Mapping):
        raise MalformedResponseError("GitHub contribution day is invalid")

    raw_date = item.get("date")
    raw_count = item.get("contributionCount")
    if not isinstance(raw_date, str):
        raise MalformedResponseError("GitHub contribution day is missing 'date'")
    if not isinstance(raw_count, int) or isinstance(raw_count, bool):
        raise MalformedResponseError(
            "GitHub contribution day is missing 'contributionCount'"
        )

    try:
        return ContributionDay(
            date=date.fromisoformat(raw_date),
            count=raw_count,
            level=parse_contribution_level(item.get("contributionLevel")),
        )
    except (ValueError, ValidationError) as exc:
        raise MalformedResponseError(
            f"GitHub contribution day {raw_date!r} is invalid"
        ) from exc


def parse_contribution_response(raw_json: str) -> ContributionData:
    """Parse `gh api graphql` output into ContributionData.

    Raises:
        MalformedResponseError: If the calendar object, its total or its
            weeks are missing, or a day lacks its date or count.
    """

    try:
        payload: Any = json.loads(raw_json)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError("GitHub response is not valid JSON") from exc

    if not isinstance(payload, Mapping):
        raise MalformedResponseError("GitHub GraphQL response is invalid")

    errors = payload.get("errors")
    if errors and not isinstance(payload.get("data"), Mapping):
        raise MalformedResponseError(f"GitHub GraphQL returned errors: {errors}")

    data = _require_mapping(payload, "data")
    user = _require_mapping(data, "user")
    collection = _require_mapping(user, "contributionsCollection")
    calendar = _require_mapping(collection, "contributionCalendar")

    total = calendar.get("totalContributions")
    if not isinstance(total, int) or isinstance(total, bool):
        raise MalformedResponseError("GitHub response is missing 'totalContributions'")

    raw_weeks = calendar.get("weeks")
    if not isinstance(raw_weeks, list):
        raise MalformedResponseError("GitHub contribution weeks are missing")

    weeks: list[ContributionWeek] = []
    for raw_week in raw_weeks:
        if not isinstance(raw_week, Mapping):
            raise MalformedResponseError("GitHub contribution week is invalid")
        raw_days = raw_week.get("contributionDays")
        if not isinstance(raw_days, list):
            raise MalformedResponseError(
                "GitHub contribution week is missing 'contributionDays'"
            )

        days = tuple(_parse_day(item) for item in raw_days)
        try:
            weeks.append(ContributionWeek(days=days))
        except ValidationError as exc:
            raise MalformedResponseError(
                "GitHub contribution week has too many days"
            ) from exc

    return ContributionData(
        total_contributions=total,
        weeks=tuple(weeks),
        fetched_at=datetime.now(UTC),
    )


class ContributionService:
    """Resolves the authenticated GitHub user and fetches their calendar."""

    def __init__(self, cli: GitHubCLI) -> None:
        self.cli = cli

    async def resolve_handle(self) -> str:
        """Return the login of the user `gh` is authenticated as.

        Raises:
            AuthenticationError: If the `gh` invocation fails for any reason.
            InvalidIdentifierError: If the returned login is malformed.
        """

        try:
            output = await self.cli.run("api", "user", "--jq", ".login")
        except CLIError as exc:
            raise AuthenticationError(
                "Failed to get GitHub username. Ensure 'gh auth login' has been run."
            ) from exc

        username = output.strip()
        if not is_valid_username(username):
            raise InvalidIdentifierError("Invalid GitHub username format received")

        logger.info("Resolved GitHub user %s", username)
        return username

    async def fetch_contributions(self, username: str) -> ContributionData:
        """Fetch the trailing-year contribution calendar for username."""

        if not is_valid_username(username):
            raise InvalidIdentifierError(f"Invalid GitHub username: {username!r}")

        output = await self.cli.run(
            "api",
            "graphql",
            "-f",
            f"query={CONTRIBUTIONS_QUERY}",
            "-f",
            f"username={username}",
        )
        contributions = parse_contribution_response(output)
        logger.info(
            "Fetched %d weeks of contributions for %s",
            len(contributions.weeks),
            username,
        )
        return contributions
