from relay_hub.realtime.hub import RelayHub


def get_hub() -> RelayHub:
    """The process-wide hub shared with the Socket.IO handlers."""
    from relay_hub.realtime.socket import hub
    return hub
