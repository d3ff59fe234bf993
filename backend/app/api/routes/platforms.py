"""
Platform Connection API Routes

Link and unlink social accounts. Connecting twice keeps one row per
(user, platform); the latest call's profile fields win.
"""

from fastapi import APIRouter

from app.api.dependencies import ConnectionRegistryDep, CurrentUserDep
from app.domain.models import (
    ConnectedAccount,
    ConnectPlatformRequest,
    DisconnectPlatformRequest,
    SuccessResponse,
)


router = APIRouter()


@router.get("/platforms/connected", response_model=list[ConnectedAccount])
async def list_connected_platforms(user: CurrentUserDep, registry: ConnectionRegistryDep):
    return await registry.list_active(user.id)


@router.post("/platforms/connect", response_model=SuccessResponse)
async def connect_platform(
    request: ConnectPlatformRequest,
    user: CurrentUserDep,
    registry: ConnectionRegistryDep,
):
    await registry.connect(user.id, request)
    return SuccessResponse()


@router.post("/platforms/disconnect", response_model=SuccessResponse)
async def disconnect_platform(
    request: DisconnectPlatformRequest,
    user: CurrentUserDep,
    registry: ConnectionRegistryDep,
):
    """Deactivate the account; a no-op when nothing is connected."""
    await registry.disconnect(user.id, request.platform)
    return SuccessResponse()
