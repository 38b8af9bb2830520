from datetime import datetime

from pydantic import BaseModel

from github_grid.services.grid_layout import GridLayout
from github_grid.services.view_coordinator import CoordinatorState


class GridResponse(BaseModel):
    """Current grid state as published by the coordinator."""

    state: CoordinatorState
    username: str | None
    status: str
    busy: bool
    total: int | None
    fetched_at: datetime | None
    layout: GridLayout | None


class RefreshResponse(BaseModel):
    """Outcome of a manual refresh request."""

    refreshed: bool
    state: CoordinatorState
    status: str
