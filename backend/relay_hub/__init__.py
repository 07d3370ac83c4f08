"""
Presence and relay hub.
Tracks which users are online and relays payloads between their connections.
"""
__version__ = "0.1.0"
