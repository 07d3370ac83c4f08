"""
Presence broadcasting (online/offline) on top of the connection registry.

Events:
- user_online {userId} - broadcast to every connected party
- user_offline {userId} - broadcast when a user's last connection closes
- online_users {userIds} - full list, sent to one requesting connection
"""
from typing import Any, Optional

from relay_hub.core.config import settings
from relay_hub.core.logging import presence_logger as logger
from relay_hub.realtime.registry import ConnectionRegistry, Registration, Unregistration
from relay_hub.realtime.relay import Emitter


class PresenceBroadcaster:
    def __init__(
        self,
        registry: ConnectionRegistry,
        emitter: Emitter,
        announce_every_registration: Optional[bool] = None,
    ):
        self.registry = registry
        self.emitter = emitter
        self.announce_every_registration = (
            settings.PRESENCE_ANNOUNCE_EVERY_REGISTRATION
            if announce_every_registration is None
            else announce_every_registration
        )

    async def announce_registration(self, sid: str, registration: Registration) -> None:
        """
        Run the presence sequence for a new registration:
        1. broadcast user_online for the registering user
        2. send the full online list to the registering connection
        3. send one user_online per other online user to that connection,
           so a late joiner rebuilds presence state without another round trip

        By default step 1 runs on every registration, including a user's
        second and later connections.
        """
        if registration.displaced_went_offline:
            await self._broadcast("user_offline", {"userId": registration.displaced_from})

        if self.announce_every_registration or registration.created:
            await self._broadcast("user_online", {"userId": registration.user_id})

        online = self.registry.online_user_ids()
        await self._send(sid, "online_users", {"userIds": online})
        for other_id in online:
            if other_id != registration.user_id:
                await self._send(sid, "user_online", {"userId": other_id})

    async def announce_disconnect(self, unregistration: Optional[Unregistration]) -> None:
        """Broadcast user_offline only when the last connection went away."""
        if unregistration is None or not unregistration.went_offline:
            return
        await self._broadcast("user_offline", {"userId": unregistration.user_id})

    async def send_online_users(self, sid: str) -> None:
        """Answer a "who is online" query for one connection only."""
        await self._send(sid, "online_users", {"userIds": self.registry.online_user_ids()})

    async def _broadcast(self, event: str, payload: Any) -> None:
        try:
            await self.emitter.emit(event, payload)
        except Exception as e:
            logger.warning(f"Failed to broadcast {event}", error=e)

    async def _send(self, sid: str, event: str, payload: Any) -> None:
        try:
            await self.emitter.emit(event, payload, to=sid)
        except Exception as e:
            logger.warning(f"Failed to send {event} to {sid}", error=e)
