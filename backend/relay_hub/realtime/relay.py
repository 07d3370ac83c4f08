"""
Relay engine: best-effort, at-most-once forwarding of payloads.

Two addressing modes:
- relay_to_user: fan-out to every live connection of a user
- relay_to_connection: delivery to exactly one connection handle

Nothing is queued or retried. A target with no live connection means the
payload is dropped.
"""
import asyncio
from typing import Any, Iterable, Optional, Protocol

from relay_hub.core.config import settings
from relay_hub.core.logging import relay_logger as logger
from relay_hub.realtime.registry import ConnectionRegistry
from relay_hub.realtime.schemas import (
    SendMediaEvent,
    SendMessageEvent,
    TypingEvent,
    parse_event,
)


class Emitter(Protocol):
    """Anything that can push an event to one connection, or to all when to is None."""

    async def emit(self, event: str, data: Any = None, to: Optional[str] = None, **kwargs) -> None:
        ...


class RelayEngine:
    def __init__(
        self,
        registry: ConnectionRegistry,
        emitter: Emitter,
        echo_sent_messages: Optional[bool] = None,
    ):
        self.registry = registry
        self.emitter = emitter
        self.echo_sent_messages = (
            settings.ECHO_SENT_MESSAGES if echo_sent_messages is None else echo_sent_messages
        )

    # ------------------------------------------------------------
    # Addressing modes
    # ------------------------------------------------------------

    async def relay_to_user(self, user_id: str, event: str, payload: dict) -> int:
        """
        Deliver payload to every connection user_id holds right now.
        Returns the number of connections it was handed to.
        """
        handles = self.registry.connections_of(user_id)
        if not handles:
            logger.debug(f"Dropped {event}: user {user_id} is not connected")
            return 0
        return await self._fan_out(handles, event, payload)

    async def relay_to_connection(self, handle: str, event: str, payload: dict) -> bool:
        """Deliver payload to a single connection, if it is still registered."""
        if self.registry.owner_of(handle) is None:
            logger.debug(f"Dropped {event}: connection {handle} is gone")
            return False
        delivered = await self._fan_out([handle], event, payload)
        return delivered == 1

    async def _fan_out(self, handles: Iterable[str], event: str, payload: dict) -> int:
        """Send to each handle independently; one failed send never blocks the rest."""
        handles = list(handles)
        results = await asyncio.gather(
            *(self.emitter.emit(event, payload, to=handle) for handle in handles),
            return_exceptions=True,
        )

        delivered = 0
        for handle, result in zip(handles, results):
            if isinstance(result, BaseException):
                logger.warning(f"Failed to deliver {event} to {handle}", error=result)
            else:
                delivered += 1
        return delivered

    # ------------------------------------------------------------
    # Relay kinds
    # ------------------------------------------------------------

    async def typing(self, data: Any) -> int:
        event = parse_event(TypingEvent, data)
        if event is None:
            return 0
        return await self.relay_to_user(event.receiver_id, "typing", {"senderId": event.sender_id})

    async def stop_typing(self, data: Any) -> int:
        event = parse_event(TypingEvent, data)
        if event is None:
            return 0
        return await self.relay_to_user(event.receiver_id, "stop_typing", {"senderId": event.sender_id})

    async def send_message(self, data: Any) -> int:
        """
        Relay a chat message to the receiver's connections.

        With ECHO_SENT_MESSAGES on, the sender's connections also get a
        message_sent confirmation so every open tab can update.
        """
        event = parse_event(SendMessageEvent, data)
        if event is None:
            return 0

        delivered = await self.relay_to_user(event.receiver_id, "receive_message", {
            "senderId": event.sender_id,
            "content": event.content,
            "messageId": event.message_id,
            "createdAt": event.created_at,
        })

        if self.echo_sent_messages:
            await self.relay_to_user(event.sender_id, "message_sent", {
                "receiverId": event.receiver_id,
                "content": event.content,
                "messageId": event.message_id,
                "createdAt": event.created_at,
            })

        return delivered

    async def send_media(self, data: Any) -> int:
        event = parse_event(SendMediaEvent, data)
        if event is None:
            return 0
        return await self.relay_to_user(event.receiver_id, "receive_media", {
            "senderId": event.sender_id,
            "mediaType": event.media_type,
            "data": event.data,
            "filename": event.filename,
            "messageId": event.message_id,
            "createdAt": event.created_at,
        })

    async def notify(self, recipient_id: str, message: Any) -> int:
        """One-shot notification to all sessions of a user."""
        if not recipient_id:
            return 0
        delivered = await self.relay_to_user(recipient_id, "notification", {"message": message})
        if delivered:
            logger.info(f"Sent notification to all sessions of user {recipient_id}", connections=delivered)
        else:
            logger.info(f"Recipient not connected: {recipient_id}")
        return delivered
