"""Logbook API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from resus_tracker.containers import AppContainer

router = APIRouter(prefix="/logbook", tags=["logbook"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("", dependencies=[Depends(require_admin)])
async def list_logbook(request: Request, limit: int = 50) -> dict[str, object]:
    """Return archived arrests, newest first."""
    container: AppContainer = request.app.state.container
    return {"entries": container.logbook_service.list_entries(limit)}
