"""
WebRTC signaling relay.

Offers are addressed to a user and fan out to all of that user's
connections, tagged with the caller's own sid. Answers and ICE candidates
are addressed to one sid, so a call leg stays pinned to the connections
that set it up. No call state is kept here; it lives in the message fields.
"""
from typing import Any

from relay_hub.realtime.relay import RelayEngine
from relay_hub.realtime.schemas import (
    WebRTCAnswerEvent,
    WebRTCIceEvent,
    WebRTCOfferEvent,
    parse_event,
)


class SignalingRelay:
    def __init__(self, relay: RelayEngine):
        self.relay = relay

    async def offer(self, sid: str, data: Any) -> int:
        """Returns how many of the receiver's connections got the offer."""
        event = parse_event(WebRTCOfferEvent, data)
        if event is None:
            return 0
        return await self.relay.relay_to_user(event.receiver_id, "webrtc_offer", {
            "senderSocketId": sid,
            "senderId": event.sender_id,
            "offer": event.offer,
        })

    async def answer(self, sid: str, data: Any) -> bool:
        # receiverSocketId lets the caller address its ICE candidates to us
        event = parse_event(WebRTCAnswerEvent, data)
        if event is None:
            return False
        return await self.relay.relay_to_connection(event.sender_socket_id, "webrtc_answer", {
            "answer": event.answer,
            "receiverSocketId": sid,
        })

    async def ice(self, sid: str, data: Any) -> bool:
        event = parse_event(WebRTCIceEvent, data)
        if event is None:
            return False
        return await self.relay.relay_to_connection(event.target_socket_id, "webrtc_ice", {
            "candidate": event.candidate,
        })
