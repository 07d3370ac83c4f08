"""
Connection registry: the single source of truth for who is online.

Maps each user id to the set of live connection handles (Socket.IO sids) it
holds, supporting multiple browser tabs/devices per user. A user id is present
exactly while its set is non-empty, and a handle belongs to at most one user.
"""
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from relay_hub.core.exceptions import RegistryInvariantError
from relay_hub.core.logging import presence_logger as logger


@dataclass(frozen=True)
class Registration:
    """Outcome of a successful register() call."""
    user_id: str
    handle: str
    # True if this call created the user's entry (first connection)
    created: bool
    # Previous owner when the handle was re-registered under another user
    displaced_from: Optional[str] = None
    displaced_went_offline: bool = False


@dataclass(frozen=True)
class Unregistration:
    """Outcome of unregister() for a known handle."""
    user_id: str
    handle: str
    went_offline: bool
    remaining: int


class ConnectionRegistry:
    """
    In-memory registry of live connections.

    Structure:
    - _connections[user_id] = set(handles)
    - _owners[handle] = user_id (for O(1) lookup on disconnect)

    Every mutation, and the "was that the last handle" decision that goes with
    it, happens under one lock.
    """

    def __init__(self):
        self._connections: Dict[str, Set[str]] = {}
        self._owners: Dict[str, str] = {}
        self._lock = threading.RLock()

    def register(self, user_id: str, handle: str) -> Optional[Registration]:
        """
        Add a handle to a user's set, creating the entry if absent.

        Returns None (no-op) for a missing or empty user id. Registering the
        same pair twice is idempotent.
        """
        if not user_id or not handle:
            return None

        with self._lock:
            displaced_from = None
            displaced_went_offline = False

            previous = self._owners.get(handle)
            if previous is not None and previous != user_id:
                # Most recent registration wins
                displaced_went_offline = self._detach(previous, handle)
                displaced_from = previous

            created = user_id not in self._connections
            self._connections.setdefault(user_id, set()).add(handle)
            self._owners[handle] = user_id
            count = len(self._connections[user_id])

        if created:
            logger.info(f"User {user_id} came online", handle=handle)
        else:
            logger.debug(f"User {user_id} added connection {handle} (now {count} connections)")

        return Registration(
            user_id=user_id,
            handle=handle,
            created=created,
            displaced_from=displaced_from,
            displaced_went_offline=displaced_went_offline,
        )

    def unregister(self, handle: str) -> Optional[Unregistration]:
        """
        Remove a handle from whichever user owns it.

        Returns None if the handle is unknown (already removed, or never
        registered). went_offline is True exactly once per transition to
        zero connections.
        """
        with self._lock:
            user_id = self._owners.get(handle)
            if user_id is None:
                return None
            went_offline = self._detach(user_id, handle)
            remaining = len(self._connections.get(user_id, ()))

        if went_offline:
            logger.info(f"User {user_id} went offline", handle=handle)
        else:
            logger.debug(f"User {user_id} closed connection {handle} ({remaining} remaining)")

        return Unregistration(
            user_id=user_id,
            handle=handle,
            went_offline=went_offline,
            remaining=remaining,
        )

    def _detach(self, user_id: str, handle: str) -> bool:
        """Remove handle from user_id's set. Caller holds the lock."""
        handles = self._connections.get(user_id)
        if not handles or handle not in handles:
            # Drop the stale index entry so only this operation fails
            self._owners.pop(handle, None)
            raise RegistryInvariantError(handle, f"indexed under {user_id!r} but not in its set")

        handles.discard(handle)
        self._owners.pop(handle, None)

        if not handles:
            # Empty sets never linger
            del self._connections[user_id]
            return True
        return False

    def connections_of(self, user_id: str) -> Set[str]:
        """Point-in-time copy of a user's handles (empty if offline)."""
        with self._lock:
            return set(self._connections.get(user_id, ()))

    def owner_of(self, handle: str) -> Optional[str]:
        with self._lock:
            return self._owners.get(handle)

    def online_user_ids(self) -> List[str]:
        """User ids with at least one live connection, in registration order."""
        with self._lock:
            return list(self._connections)

    def is_online(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._connections

    def connection_count(self, user_id: str) -> int:
        with self._lock:
            return len(self._connections.get(user_id, ()))

    @property
    def total_users(self) -> int:
        with self._lock:
            return len(self._connections)

    def snapshot(self) -> Dict[str, List[str]]:
        """Copy of the whole registry; mutating it does not touch the registry."""
        with self._lock:
            return {user_id: sorted(handles) for user_id, handles in self._connections.items()}

    def clear(self) -> None:
        """Clear all registry data (for testing)."""
        with self._lock:
            self._connections.clear()
            self._owners.clear()
