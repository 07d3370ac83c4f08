"""
RelayHub wires the registry, presence, relay and signaling components over
a single emitter and exposes one coroutine per inbound event.

The Socket.IO handlers and the HTTP notifier both call into a hub; tests
build one over a recording emitter.
"""
from typing import Any, List, Optional

from relay_hub.core.config import settings
from relay_hub.core.logging import ws_logger as logger
from relay_hub.realtime.presence import PresenceBroadcaster
from relay_hub.realtime.registry import ConnectionRegistry, Registration, Unregistration
from relay_hub.realtime.relay import Emitter, RelayEngine
from relay_hub.realtime.schemas import RegisterEvent, parse_event
from relay_hub.realtime.signaling import SignalingRelay


def _extract_user_id(data: Any) -> Optional[str]:
    """register accepts a bare user id string or {"userId": ...}."""
    if isinstance(data, str):
        return data or None
    event = parse_event(RegisterEvent, data)
    return event.user_id if event else None


class RelayHub:
    def __init__(
        self,
        emitter: Emitter,
        registry: Optional[ConnectionRegistry] = None,
        echo_sent_messages: Optional[bool] = None,
        announce_every_registration: Optional[bool] = None,
    ):
        self.emitter = emitter
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.presence = PresenceBroadcaster(
            self.registry, emitter, announce_every_registration=announce_every_registration
        )
        self.relay = RelayEngine(self.registry, emitter, echo_sent_messages=echo_sent_messages)
        self.signaling = SignalingRelay(self.relay)

    # ------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------

    async def register(self, sid: str, data: Any) -> Optional[Registration]:
        user_id = _extract_user_id(data)
        if not user_id:
            logger.debug("Ignored register without userId")
            return None

        registration = self.registry.register(user_id, sid)
        if registration is None:
            return None

        logger.info(f"{user_id} registered", connections=self.registry.connection_count(user_id))
        await self.presence.announce_registration(sid, registration)
        return registration

    async def disconnect(self, sid: str) -> Optional[Unregistration]:
        unregistration = self.registry.unregister(sid)
        await self.presence.announce_disconnect(unregistration)
        return unregistration

    async def request_online_users(self, sid: str) -> None:
        await self.presence.send_online_users(sid)

    # ------------------------------------------------------------
    # Relays
    # ------------------------------------------------------------

    async def typing(self, sid: str, data: Any) -> int:
        return await self.relay.typing(data)

    async def stop_typing(self, sid: str, data: Any) -> int:
        return await self.relay.stop_typing(data)

    async def send_message(self, sid: str, data: Any) -> int:
        return await self.relay.send_message(data)

    async def send_media(self, sid: str, data: Any) -> int:
        return await self.relay.send_media(data)

    async def webrtc_offer(self, sid: str, data: Any) -> int:
        return await self.signaling.offer(sid, data)

    async def webrtc_answer(self, sid: str, data: Any) -> bool:
        return await self.signaling.answer(sid, data)

    async def webrtc_ice(self, sid: str, data: Any) -> bool:
        return await self.signaling.ice(sid, data)

    async def notify(self, recipient_id: str, message: Any) -> int:
        return await self.relay.notify(recipient_id, message)

    # ------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------

    def online_users(self) -> List[str]:
        return self.registry.online_user_ids()

    async def debug_status(self, sid: str) -> Optional[dict]:
        """Send a registry snapshot to the requesting connection only."""
        if not settings.DEBUG_STATUS_ENABLED:
            return None

        snapshot = self.registry.snapshot()
        payload = {
            "totalUsers": len(snapshot),
            "connectedUsers": [
                {"userId": user_id, "socketIds": handles, "connectionCount": len(handles)}
                for user_id, handles in snapshot.items()
            ],
            "socketId": sid,
        }
        await self.emitter.emit("debug_status_response", payload, to=sid)
        return payload
