"""
Socket.IO server: routes transport events into the hub.

Inbound events:
- register - userId (bare string or {userId})
- request_online_users - no payload
- typing / stop_typing - {senderId, receiverId}
- send_message - {senderId, receiverId, content, messageId?, createdAt?}
- send_media - {senderId, receiverId, mediaType, data?, filename?, messageId?, createdAt?}
- webrtc_offer - {receiverId, senderId, offer}
- webrtc_answer - {senderSocketId, answer}
- webrtc_ice - {targetSocketId, candidate}
- debug_status - no payload

Every handler is guarded: a failure is logged and ends that one event, it
never propagates to the transport or other connections.
"""
from functools import wraps

import socketio

from relay_hub.core.config import settings
from relay_hub.core.logging import socket_id_var, ws_logger as logger
from relay_hub.realtime.hub import RelayHub

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=settings.CORS_ORIGINS,
    logger=False,
    engineio_logger=False,
)

hub = RelayHub(sio)


def guarded(handler):
    """Bind the sid to the log context and contain any failure to this event."""
    @wraps(handler)
    async def wrapper(sid: str, *args):
        token = socket_id_var.set(sid)
        try:
            return await handler(sid, *args)
        except Exception as e:
            logger.error(f"{handler.__name__} failed", error=e)
            return None
        finally:
            socket_id_var.reset(token)
    return wrapper


@sio.event
@guarded
async def connect(sid: str, environ: dict, auth: dict = None):
    logger.info(f"User connected: {sid}")


@sio.event
@guarded
async def disconnect(sid: str, reason=None):
    logger.info(f"User disconnected: {sid}", reason=str(reason) if reason else None)
    await hub.disconnect(sid)


@sio.event
@guarded
async def register(sid: str, data=None):
    await hub.register(sid, data)


@sio.event
@guarded
async def request_online_users(sid: str, data=None):
    await hub.request_online_users(sid)


@sio.event
@guarded
async def typing(sid: str, data=None):
    await hub.typing(sid, data)


@sio.event
@guarded
async def stop_typing(sid: str, data=None):
    await hub.stop_typing(sid, data)


@sio.event
@guarded
async def send_message(sid: str, data=None):
    await hub.send_message(sid, data)


@sio.event
@guarded
async def send_media(sid: str, data=None):
    await hub.send_media(sid, data)


@sio.event
@guarded
async def webrtc_offer(sid: str, data=None):
    await hub.webrtc_offer(sid, data)


@sio.event
@guarded
async def webrtc_answer(sid: str, data=None):
    await hub.webrtc_answer(sid, data)


@sio.event
@guarded
async def webrtc_ice(sid: str, data=None):
    await hub.webrtc_ice(sid, data)


@sio.event
@guarded
async def debug_status(sid: str, data=None):
    await hub.debug_status(sid)
