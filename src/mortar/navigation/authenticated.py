"""Authenticated router — dashboard, new project, and the realtime editor.

Routes served: ``#/dashboard``, ``#/new``, ``#/edit/<id-or-slug>``.
Anything else falls back to the dashboard.

The edit route is the only one holding a live subscription. Every other
route leaves the edit session before rendering, and every realtime push
re-validates editor membership because it can change while subscribed.
"""

import logging
from functools import partial

from mortar.config import RouterConfig
from mortar.errors import Forbidden, NotFound, Unauthorized
from mortar.models import Actor, GraduationData
from mortar.navigation.outcome import Outcome, OutcomeKind
from mortar.protocols import EntityRepository, Navigate, Notifier, Renderer
from mortar.realtime.coordinator import SubscriptionCoordinator
from mortar.routing.codec import parse
from mortar.routing.resolver import IdentifierResolver
from mortar.routing.route import Route, RouteName
from mortar.security import audit
from mortar.security.access import AccessDecision, AccessReason, check_edit_access

logger = logging.getLogger("mortar.router")

_REVOKED_MESSAGES: dict[AccessReason, str] = {
    AccessReason.REMOVED: "You no longer have access to this graduation.",
    AccessReason.NOT_FOUND: "This graduation no longer exists.",
}


class _EditWatcher:
    """Realtime callback for one edit session.

    Remembers whether the actor was authorized on an earlier push, so a
    later denial can be told apart from a denial on entry.
    """

    __slots__ = ("_actor", "_authorized", "_entity_id", "_route", "_router", "_sequence")

    def __init__(
        self,
        router: "AuthenticatedRouter",
        route: Route,
        actor: Actor,
        entity_id: str,
        sequence: int,
    ) -> None:
        self._router = router
        self._route = route
        self._actor = actor
        self._entity_id = entity_id
        self._sequence = sequence
        self._authorized = False

    def __call__(self, entity: GraduationData | None) -> None:
        if self._sequence != self._router._sequence:
            # A newer navigation is underway; it will tear this session down.
            logger.debug("dropping push for superseded navigation entity=%s", self._entity_id)
            return
        try:
            self._on_data(entity)
        except Exception:
            logger.exception(
                "edit push failed route=%s entity=%s actor=%s",
                self._route.name,
                self._entity_id,
                self._actor.uid,
            )
            self._router._finish(self._router._recover(self._route))

    def _on_data(self, entity: GraduationData | None) -> None:
        decision = check_edit_access(
            entity, self._actor.uid, previously_authorized=self._authorized
        )
        if not decision.allowed:
            self._router._revoke(
                self._route, self._actor, self._entity_id, decision, self._authorized
            )
            return
        self._authorized = True

        coordinator = self._router._coordinator
        if coordinator.has_pending_local_changes(self._entity_id):
            logger.debug("push suppressed, local edits pending entity=%s", self._entity_id)
            return
        self._router._renderer.editor(entity, self._actor)


class AuthenticatedRouter:
    """Dispatch fragments for a signed-in actor.

    Usage::

        router = AuthenticatedRouter(
            repository=repo,
            coordinator=coordinator,
            renderer=renderer,
            notifier=notifier,
            navigate=set_hash,
        )
        await router.dispatch("#/edit/lincoln-high-2024-abc12345", actor)
    """

    __slots__ = (
        "_config",
        "_coordinator",
        "_navigate",
        "_notifier",
        "_renderer",
        "_resolver",
        "_sequence",
        "last_outcome",
    )

    def __init__(
        self,
        *,
        repository: EntityRepository,
        coordinator: SubscriptionCoordinator,
        renderer: Renderer,
        notifier: Notifier,
        navigate: Navigate,
        resolver: IdentifierResolver | None = None,
        config: RouterConfig | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._renderer = renderer
        self._notifier = notifier
        self._navigate = navigate
        self._resolver = resolver or IdentifierResolver(repository)
        self._config = config or RouterConfig()
        self._sequence = 0
        self.last_outcome: Outcome | None = None

    async def dispatch(self, fragment: str | None, actor: Actor | None) -> Outcome:
        route = parse(fragment)
        self._sequence += 1
        sequence = self._sequence

        if actor is None:
            self._renderer.login()
            return self._finish(Outcome(route, OutcomeKind.LOGIN, error=Unauthorized()))

        self._renderer.loading()

        try:
            match route.name:
                case RouteName.EDIT_GRADUATION:
                    outcome = await self._edit(route, actor, sequence)
                case RouteName.NEW_GRADUATION:
                    self._coordinator.leave_entity_edit_session()
                    self._renderer.new_graduation_form(actor)
                    outcome = Outcome(route, OutcomeKind.RENDERED)
                case _:
                    self._coordinator.leave_entity_edit_session()
                    self._renderer.dashboard(actor)
                    outcome = Outcome(route, OutcomeKind.RENDERED)
        except Exception:
            logger.exception(
                "dispatch failed fragment=%s route=%s gradId=%s actor=%s",
                fragment,
                route.name,
                route.grad_id,
                actor.uid,
            )
            outcome = self._recover(route)
        return self._finish(outcome)

    def invalidate(self) -> None:
        """Mark every in-flight dispatch stale, e.g. on sign-out."""
        self._sequence += 1

    async def _edit(self, route: Route, actor: Actor, sequence: int) -> Outcome:
        identifier = route.grad_id
        entity_id = await self._resolver.resolve(identifier)
        if sequence != self._sequence:
            logger.debug("discarding stale edit resolution identifier=%s", identifier)
            return Outcome(route, OutcomeKind.STALE)

        if entity_id is None:
            logger.info("edit route unresolved identifier=%s actor=%s", identifier, actor.uid)
            self._coordinator.leave_entity_edit_session()
            self._navigate(self._config.default_fragment)
            return Outcome(
                route,
                OutcomeKind.REDIRECTED,
                reason=AccessReason.NOT_FOUND,
                redirect_to=self._config.default_fragment,
                error=NotFound(f"No graduation matches {identifier!r}"),
            )

        watcher = _EditWatcher(self, route, actor, entity_id, sequence)
        session = self._coordinator.enter_entity_edit_session(
            entity_id,
            actor.uid,
            watcher,
            on_others_changed=partial(self._renderer.collaborators, entity_id),
        )
        if session is None:
            # Denied by a synchronous first push; _revoke recorded the outcome.
            return self.last_outcome or Outcome(route, OutcomeKind.REDIRECTED, entity_id=entity_id)
        return Outcome(route, OutcomeKind.SUBSCRIBED, entity_id=entity_id)

    def _revoke(
        self,
        route: Route,
        actor: Actor,
        entity_id: str,
        decision: AccessDecision,
        mid_session: bool,
    ) -> None:
        self._coordinator.leave_entity_edit_session()
        error: NotFound | Forbidden
        if decision.reason is AccessReason.NOT_FOUND:
            error = NotFound("Graduation not found", entity_id=entity_id)
        else:
            error = Forbidden(str(decision.reason), entity_id=entity_id)

        if mid_session:
            logger.warning(
                "edit access revoked entity=%s actor=%s reason=%s",
                entity_id,
                actor.uid,
                decision.reason,
            )
            audit.emit_security_event(
                audit.ACCESS_REVOKED,
                fragment=route.raw_fragment,
                actor_id=actor.uid,
                entity_id=entity_id,
                details={"reason": str(decision.reason)},
            )
            message = _REVOKED_MESSAGES.get(decision.reason, "You no longer have access.")
            self._notifier.notice(message, dismissible=True)
        else:
            logger.info(
                "edit access denied entity=%s actor=%s reason=%s",
                entity_id,
                actor.uid,
                decision.reason,
            )

        self._navigate(self._config.default_fragment)
        self._finish(
            Outcome(
                route,
                OutcomeKind.DENIED,
                reason=decision.reason,
                entity_id=entity_id,
                redirect_to=self._config.default_fragment,
                error=error,
            )
        )

    def _recover(self, route: Route) -> Outcome:
        try:
            self._coordinator.leave_entity_edit_session()
        except Exception:
            logger.exception("teardown failed while recovering from %s", route.raw_fragment)
        self._navigate(self._config.default_fragment)
        return Outcome(route, OutcomeKind.ERROR, redirect_to=self._config.default_fragment)

    def _finish(self, outcome: Outcome) -> Outcome:
        if outcome.kind is not OutcomeKind.STALE:
            self.last_outcome = outcome
        return outcome
