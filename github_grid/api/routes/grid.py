from datetime import date

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Query
from fastapi import Request

from github_grid.api.schemas.grid import GridResponse
from github_grid.api.schemas.grid import RefreshResponse
from github_grid.models import ContributionData
from github_grid.services.view_coordinator import CoordinatorState
from github_grid.services.view_coordinator import ViewCoordinator


router = APIRouter()


def get_coordinator(request: Request) -> ViewCoordinator:
    return request.app.state.coordinator


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get("/grid")
async def get_grid(
    today: date | None = Query(default=None),
    coordinator: ViewCoordinator = Depends(get_coordinator),
) -> GridResponse:
    """Return status and the laid-out contribution grid."""

    data = coordinator.data
    return GridResponse(
        state=coordinator.state,
        username=coordinator.handle,
        status=coordinator.status_text,
        busy=coordinator.is_busy,
        total=data.total_contributions if data else None,
        fetched_at=data.fetched_at if data else None,
        layout=coordinator.layout(today),
    )


@router.get("/contributions")
async def get_contributions(
    coordinator: ViewCoordinator = Depends(get_coordinator),
) -> ContributionData:
    """Return the last successfully fetched contribution calendar."""

    if coordinator.data is None:
        raise HTTPException(status_code=404, detail="contributions not loaded")
    return coordinator.data


@router.post("/refresh")
async def refresh(
    coordinator: ViewCoordinator = Depends(get_coordinator),
) -> RefreshResponse:
    """Refresh now, or wait for the refresh already running."""

    if coordinator.state is CoordinatorState.CLOSED:
        raise HTTPException(status_code=409, detail="grid is shutting down")
    if coordinator.handle is None and coordinator.state is not CoordinatorState.FAILED:
        raise HTTPException(status_code=409, detail="GitHub user not resolved")

    refreshed = await coordinator.refresh()
    return RefreshResponse(
        refreshed=refreshed,
        state=coordinator.state,
        status=coordinator.status_text,
    )


@router.post("/quit", status_code=202)
async def quit_grid(
    coordinator: ViewCoordinator = Depends(get_coordinator),
) -> dict[str, str]:
    """Stop refreshing and ask the host process to exit."""

    coordinator.quit()
    return {"status": "closing"}
