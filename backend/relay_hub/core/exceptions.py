class RelayHubError(Exception):
    """Base class for errors raised inside the hub."""


class RegistryInvariantError(RelayHubError):
    def __init__(self, handle: str, detail: str):
        super().__init__(f"Registry invariant violated for connection {handle}: {detail}")
        self.handle = handle
        self.detail = detail
