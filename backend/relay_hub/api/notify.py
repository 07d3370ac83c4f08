from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from relay_hub.api.deps import get_hub
from relay_hub.realtime.hub import RelayHub

router = APIRouter()


class NotifyRequest(BaseModel):
    recipientId: Optional[Any] = None
    message: Any = None


class NotifyResponse(BaseModel):
    success: bool


class OnlineUsersResponse(BaseModel):
    userIds: List[str]
    count: int


@router.post("/notify/appointment", response_model=NotifyResponse)
async def notify_appointment(
    payload: NotifyRequest,
    hub: RelayHub = Depends(get_hub),
):
    """
    Notify all sessions of a user.
    Always succeeds: an offline, missing or non-string recipient is a silent drop.
    """
    if isinstance(payload.recipientId, str):
        await hub.notify(payload.recipientId, payload.message)
    return NotifyResponse(success=True)


@router.get("/online-users", response_model=OnlineUsersResponse)
async def online_users(hub: RelayHub = Depends(get_hub)):
    user_ids = hub.online_users()
    return OnlineUsersResponse(userIds=user_ids, count=len(user_ids))
