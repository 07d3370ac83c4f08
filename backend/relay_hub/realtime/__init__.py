"""
Real-time module: Socket.IO presence and relay.
"""
from relay_hub.realtime.socket import sio

__all__ = ["sio"]
