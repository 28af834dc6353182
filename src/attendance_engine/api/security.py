"""Shared-secret header checks for kiosk and admin callers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from attendance_engine.containers import AppContainer


def _get_api_secret(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_secret


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_device(
    x_device_token: str | None = Header(default=None),
    api_secret: str = Depends(_get_api_secret),
) -> None:
    """Ensure scan requests carry the kiosk shared secret."""
    if not x_device_token or x_device_token != api_secret:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized"
        )


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized"
        )
