from fastapi import APIRouter, Depends

from relay_hub.api.deps import get_hub
from relay_hub.realtime.hub import RelayHub

router = APIRouter()

@router.get('/healthz')
def healthz():
    return {"status": "ok"}

@router.get('/readyz')
async def readyz(hub: RelayHub = Depends(get_hub)):
    return {"status": "ready", "onlineUsers": hub.registry.total_users}
