"""In-memory presence service.

Tracks which actors are editing which entity, notifies each tracker about
the *other* active actors, and keeps the per-entity "pending local
changes" flag that suppresses realtime re-renders while an edit is in
flight. Entries not refreshed within ``stale_seconds`` are ignored.

Suitable for a single process and for tests. A hosted deployment would
back the same interface with the realtime store.
"""

import logging
import threading
from collections.abc import Callable
from time import time

from mortar.config import RouterConfig
from mortar.protocols import OthersChanged

logger = logging.getLogger("mortar.presence")


class InMemoryPresence:
    """Presence registry satisfying ``mortar.protocols.PresenceService``."""

    __slots__ = (
        "_active",
        "_clock",
        "_last_save",
        "_listeners",
        "_lock",
        "_pending",
        "_stale_seconds",
    )

    def __init__(self, *, stale_seconds: float = 300.0, clock: Callable[[], float] = time) -> None:
        self._stale_seconds = stale_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # entity_id -> {actor_id: last_seen}
        self._active: dict[str, dict[str, float]] = {}
        # entity_id -> {actor_id: callback}
        self._listeners: dict[str, dict[str, OthersChanged]] = {}
        self._pending: dict[str, bool] = {}
        self._last_save: dict[str, float] = {}

    @classmethod
    def from_config(
        cls, config: RouterConfig, *, clock: Callable[[], float] = time
    ) -> "InMemoryPresence":
        return cls(stale_seconds=config.presence_stale_seconds, clock=clock)

    # -- PresenceService -----------------------------------------------------

    def start_tracking(
        self, entity_id: str, actor_id: str, on_others_changed: OthersChanged | None = None
    ) -> None:
        with self._lock:
            self._active.setdefault(entity_id, {})[actor_id] = self._clock()
            if on_others_changed is not None:
                self._listeners.setdefault(entity_id, {})[actor_id] = on_others_changed
        logger.debug("presence start entity=%s actor=%s", entity_id, actor_id)
        self._broadcast(entity_id)

    def stop_tracking(self, entity_id: str, actor_id: str) -> None:
        if not entity_id:
            return
        with self._lock:
            editors = self._active.get(entity_id, {})
            editors.pop(actor_id, None)
            if not editors:
                self._active.pop(entity_id, None)
                self._pending.pop(entity_id, None)
                self._last_save.pop(entity_id, None)
            listeners = self._listeners.get(entity_id, {})
            listeners.pop(actor_id, None)
            if not listeners:
                self._listeners.pop(entity_id, None)
        logger.debug("presence stop entity=%s actor=%s", entity_id, actor_id)
        self._broadcast(entity_id)

    def has_pending_local_changes(self, entity_id: str) -> bool:
        return self._pending.get(entity_id, False)

    # -- Extras --------------------------------------------------------------

    def heartbeat(self, entity_id: str, actor_id: str) -> None:
        """Refresh an actor's last-seen time."""
        with self._lock:
            editors = self._active.get(entity_id)
            if editors is None or actor_id not in editors:
                return
            editors[actor_id] = self._clock()

    def set_pending_changes(self, entity_id: str, pending: bool) -> None:
        self._pending[entity_id] = pending

    def record_save(self, entity_id: str) -> None:
        """A local save landed; inbound pushes may render again."""
        self._last_save[entity_id] = self._clock()
        self._pending[entity_id] = False

    def last_save(self, entity_id: str) -> float | None:
        return self._last_save.get(entity_id)

    def active_editors(self, entity_id: str) -> list[str]:
        now = self._clock()
        with self._lock:
            editors = dict(self._active.get(entity_id, {}))
        return sorted(uid for uid, seen in editors.items() if now - seen < self._stale_seconds)

    def other_active_editors(self, entity_id: str, actor_id: str) -> list[str]:
        return [uid for uid in self.active_editors(entity_id) if uid != actor_id]

    def _broadcast(self, entity_id: str) -> None:
        with self._lock:
            listeners = list(self._listeners.get(entity_id, {}).items())
        for actor_id, callback in listeners:
            callback(self.other_active_editors(entity_id, actor_id))
