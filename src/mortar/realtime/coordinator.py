"""Edit-session coordinator — one realtime subscription, one presence session.

The coordinator owns a single slot holding the current ``EditSession``
(subscription disposer + presence registration). Every transition tears
the slot down before attaching anything new, so two listeners for
different entities never coexist::

    coordinator.enter_entity_edit_session("g1", "u1", on_data)
    coordinator.enter_entity_edit_session("g2", "u1", on_data)  # g1 torn down first
    coordinator.leave_entity_edit_session()                     # g2 torn down

A generation counter guards the realtime callback: pushes that arrive
after the slot has moved on (the underlying unsubscribe may not have
propagated yet) are dropped.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from mortar.models import GraduationData
from mortar.protocols import (
    DataCallback,
    EntityRepository,
    OthersChanged,
    PresenceService,
    Unsubscribe,
)

logger = logging.getLogger("mortar.realtime")


@dataclass(frozen=True, slots=True)
class EditSession:
    """The live subscription handle and presence session for one entity."""

    entity_id: str
    actor_id: str
    generation: int
    unsubscribe: Unsubscribe


class SubscriptionCoordinator:
    """Single-slot owner of the realtime subscription and presence session."""

    __slots__ = ("_current", "_generation", "_presence", "_repository")

    def __init__(self, repository: EntityRepository, presence: PresenceService) -> None:
        self._repository = repository
        self._presence = presence
        self._current: EditSession | None = None
        self._generation = 0

    @property
    def current(self) -> EditSession | None:
        return self._current

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int, entity_id: str | None = None) -> bool:
        """True if *generation* (and *entity_id*, if given) still own the slot."""
        if generation != self._generation:
            return False
        if entity_id is None:
            return True
        return self._current is not None and self._current.entity_id == entity_id

    def has_pending_local_changes(self, entity_id: str) -> bool:
        return self._presence.has_pending_local_changes(entity_id)

    def enter_entity_edit_session(
        self,
        entity_id: str,
        actor_id: str,
        on_data: DataCallback,
        on_others_changed: OthersChanged | None = None,
    ) -> EditSession | None:
        """Tear down the current session, then subscribe to *entity_id*.

        Re-entering the same entity still detaches and reattaches so the
        callback never closes over a stale actor or route.

        Returns ``None`` if the session was torn down again while attaching
        (e.g. the first push revoked access synchronously).
        """
        self._teardown()
        self._generation += 1
        generation = self._generation

        unsubscribe = self._repository.on_update(
            entity_id, self._guard(generation, entity_id, on_data)
        )

        if generation != self._generation:
            # A synchronous first push already left or replaced this session.
            logger.debug("edit session %s superseded during attach", entity_id)
            unsubscribe()
            return None

        try:
            self._presence.start_tracking(entity_id, actor_id, on_others_changed)
        except Exception:
            # The slot is still empty, so nothing else would dispose this handle.
            unsubscribe()
            self._generation += 1
            raise
        session = EditSession(
            entity_id=entity_id,
            actor_id=actor_id,
            generation=generation,
            unsubscribe=unsubscribe,
        )
        self._current = session
        logger.debug(
            "edit session started entity=%s actor=%s gen=%d", entity_id, actor_id, generation
        )
        return session

    def leave_entity_edit_session(self) -> None:
        """Tear down the current session, if any. Safe to call repeatedly."""
        self._teardown()
        self._generation += 1

    def _guard(
        self, generation: int, entity_id: str, on_data: DataCallback
    ) -> Callable[[GraduationData | None], None]:
        def callback(data: GraduationData | None) -> None:
            if generation != self._generation:
                logger.debug("dropping stale push entity=%s gen=%d", entity_id, generation)
                return
            on_data(data)

        return callback

    def _teardown(self) -> None:
        session = self._current
        if session is None:
            return
        # Clear the slot first so re-entrant calls see it empty.
        self._current = None
        try:
            self._presence.stop_tracking(session.entity_id, session.actor_id)
        finally:
            session.unsubscribe()
        logger.debug("edit session stopped entity=%s gen=%d", session.entity_id, session.generation)
