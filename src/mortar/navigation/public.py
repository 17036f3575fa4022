"""Public router — shared views and upload portals, no sign-in required.

Routes served: ``#/view/<id-or-slug>``, ``#/upload/<id-or-slug>``,
``#/upload/<id-or-slug>/<linkToken>``, and ``#/login``.

Not-found, locked, and invalid-link conditions surface as modals; the
page renderer is never called for them. Password-protected views drive the
entity's ``PasswordGate`` until it is verified or the visitor gives up.
"""

import logging
from collections.abc import Sequence

from mortar._internal.invoke import invoke
from mortar.config import RouterConfig
from mortar.errors import (
    InvalidLink,
    Locked,
    NotFound,
    TooManyAttempts,
    TransportError,
    VerificationInProgress,
)
from mortar.models import Actor, GraduationData, StudentRecord
from mortar.navigation.authenticated import AuthenticatedRouter
from mortar.navigation.outcome import Outcome, OutcomeKind
from mortar.protocols import EntityRepository, Navigate, Notifier, PasswordPrompt, Renderer
from mortar.realtime.coordinator import SubscriptionCoordinator
from mortar.routing.codec import parse
from mortar.routing.resolver import IdentifierResolver
from mortar.routing.route import Route, RouteName
from mortar.security import audit
from mortar.security.access import (
    AccessReason,
    check_password,
    check_upload_lock,
    find_student_by_link,
)
from mortar.security.lockout import GateStatus, PasswordGate, PasswordGates, SubmitResult
from mortar.security.verifier import RemotePasswordVerifier

logger = logging.getLogger("mortar.router")


class PublicRouter:
    """Dispatch public fragments, signed in or not.

    Usage::

        router = PublicRouter(
            repository=repo,
            coordinator=coordinator,
            renderer=renderer,
            notifier=notifier,
            navigate=set_hash,
            prompt=ask_password,
            authenticated=authenticated_router,
        )
        await router.dispatch("#/view/lincoln-high-2024-abc12345")
    """

    __slots__ = (
        "_authenticated",
        "_config",
        "_coordinator",
        "_gates",
        "_navigate",
        "_notifier",
        "_prompt",
        "_renderer",
        "_repository",
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
        prompt: PasswordPrompt | None = None,
        gates: PasswordGates | None = None,
        authenticated: AuthenticatedRouter | None = None,
        resolver: IdentifierResolver | None = None,
        config: RouterConfig | None = None,
    ) -> None:
        self._config = config or RouterConfig()
        self._repository = repository
        self._coordinator = coordinator
        self._renderer = renderer
        self._notifier = notifier
        self._navigate = navigate
        self._prompt = prompt
        self._gates = gates or PasswordGates(
            RemotePasswordVerifier(self._config.verify_url), config=self._config
        )
        self._authenticated = authenticated
        self._resolver = resolver or IdentifierResolver(repository)
        self._sequence = 0
        self.last_outcome: Outcome | None = None

    @property
    def gates(self) -> PasswordGates:
        return self._gates

    async def dispatch(self, fragment: str | None, actor: Actor | None = None) -> Outcome:
        route = parse(fragment)
        self._sequence += 1
        sequence = self._sequence

        try:
            match route.name:
                case RouteName.PUBLIC_VIEW:
                    self._enter_public_page()
                    outcome = await self._public_view(route, actor, sequence)
                case RouteName.UPLOAD_PORTAL | RouteName.DIRECT_UPLOAD:
                    self._enter_public_page()
                    outcome = await self._upload(route, actor, sequence)
                case _:
                    if actor is not None and self._authenticated is not None:
                        return await self._authenticated.dispatch(fragment, actor)
                    self._coordinator.leave_entity_edit_session()
                    self._renderer.login()
                    outcome = Outcome(route, OutcomeKind.LOGIN)
        except Exception:
            logger.exception(
                "public dispatch failed fragment=%s route=%s gradId=%s actor=%s",
                fragment,
                route.name,
                route.grad_id,
                actor.uid if actor else None,
            )
            outcome = self._recover(route)

        if outcome.kind is not OutcomeKind.STALE:
            self.last_outcome = outcome
        return outcome

    def invalidate(self) -> None:
        """Mark every in-flight dispatch stale, e.g. on sign-out."""
        self._sequence += 1

    def _enter_public_page(self) -> None:
        self._renderer.loading()
        self._coordinator.leave_entity_edit_session()

    # -- Routes --------------------------------------------------------------

    async def _public_view(self, route: Route, actor: Actor | None, sequence: int) -> Outcome:
        entity = await self._load(route, actor)
        if sequence != self._sequence:
            return Outcome(route, OutcomeKind.STALE)
        if entity is None:
            return self._not_found(route)

        if not check_password(entity, self._gates.is_verified(entity.id)).allowed:
            verified = await self._unlock(entity, self._gates.gate_for(entity.id), sequence)
            if sequence != self._sequence:
                return Outcome(route, OutcomeKind.STALE)
            if not verified:
                return Outcome(
                    route,
                    OutcomeKind.DENIED,
                    reason=AccessReason.PASSWORD_REQUIRED,
                    entity_id=entity.id,
                )

        students = await self._repository.get_all_students(entity.id)
        if sequence != self._sequence:
            return Outcome(route, OutcomeKind.STALE)
        self._renderer.public_view(entity, students)
        return Outcome(route, OutcomeKind.RENDERED, entity_id=entity.id)

    async def _upload(self, route: Route, actor: Actor | None, sequence: int) -> Outcome:
        entity = await self._load(route, actor)
        if sequence != self._sequence:
            return Outcome(route, OutcomeKind.STALE)
        if entity is None:
            return self._not_found(route)

        lock = check_upload_lock(entity, route.name)
        if not lock.allowed:
            logger.info("upload blocked entity=%s variant=%s", entity.id, lock.detail)
            audit.emit_security_event(
                audit.UPLOAD_LOCKED,
                fragment=route.raw_fragment,
                entity_id=entity.id,
                details={"variant": lock.detail},
            )
            self._notifier.show_modal(
                "Submissions Closed", "This graduation is no longer accepting submissions."
            )
            return Outcome(
                route,
                OutcomeKind.DENIED,
                reason=AccessReason.LOCKED,
                entity_id=entity.id,
                error=Locked(lock.detail, entity_id=entity.id),
            )

        students: Sequence[StudentRecord] = await self._repository.get_all_students(entity.id)
        if sequence != self._sequence:
            return Outcome(route, OutcomeKind.STALE)

        if route.name is RouteName.UPLOAD_PORTAL:
            self._renderer.upload_portal(entity, students)
            return Outcome(route, OutcomeKind.RENDERED, entity_id=entity.id)

        _decision, student = find_student_by_link(students, route.link_id)
        if student is None:
            logger.info("invalid upload link entity=%s", entity.id)
            audit.emit_security_event(
                audit.UPLOAD_INVALID_LINK, fragment=route.raw_fragment, entity_id=entity.id
            )
            self._notifier.show_modal(
                "Invalid Link", "This upload link is not valid or has expired."
            )
            return Outcome(
                route,
                OutcomeKind.DENIED,
                reason=AccessReason.INVALID_LINK,
                entity_id=entity.id,
                error=InvalidLink(entity_id=entity.id),
            )

        self._renderer.direct_upload(entity, student)
        return Outcome(route, OutcomeKind.RENDERED, entity_id=entity.id)

    # -- Password gate -------------------------------------------------------

    async def _unlock(self, entity: GraduationData, gate: PasswordGate, sequence: int) -> bool:
        """Prompt until the gate is verified. ``False`` if the visitor gives up."""
        if self._prompt is None:
            self._notifier.show_modal(
                "Password Required", "This graduation is protected by a password."
            )
            return False

        gate.begin_prompt()
        while not gate.verified:
            if sequence != self._sequence:
                return False

            if gate.status is GateStatus.LOCKED_OUT:
                self._notifier.show_modal(
                    "Too Many Attempts",
                    f"Please wait {gate.retry_after()} seconds before trying again.",
                )
                await gate.wait_out_lockout()
                continue

            password = await invoke(self._prompt, entity, gate.snapshot())
            if password is None:
                return False

            try:
                result = await gate.submit(password)
            except VerificationInProgress:
                # Another dispatch owns the submit; re-check the gate once it settles.
                logger.debug("verification already running entity=%s", entity.id)
                self._notifier.show_modal(
                    "Checking Password", "Your password is still being checked."
                )
                await gate.wait_for_verification()
                continue
            except TooManyAttempts:
                continue

            if sequence != self._sequence:
                return False

            if result is SubmitResult.REJECTED:
                remaining = self._config.lockout.max_failures - gate.attempt_count
                self._notifier.show_modal(
                    "Incorrect Password",
                    f"That password is not correct. {remaining} attempt(s) left before a lockout.",
                )
            elif result is SubmitResult.TRANSPORT_ERROR:
                self._notifier.show_modal(
                    "Connection Problem", "We couldn't check the password. Please try again."
                )
        return True

    # -- Helpers -------------------------------------------------------------

    async def _load(self, route: Route, actor: Actor | None) -> GraduationData | None:
        identifier = route.grad_id
        actor_id = actor.uid if actor else None
        entity_id = await self._resolver.resolve(identifier)
        if entity_id is None:
            logger.info("public route unresolved identifier=%s actor=%s", identifier, actor_id)
            return None
        try:
            entity = await self._repository.get_by_id(entity_id)
        except TransportError as exc:
            logger.warning(
                "entity fetch failed entity=%s route=%s actor=%s reason=transport error=%s",
                entity_id,
                route.name,
                actor_id,
                exc,
            )
            return None
        if entity is None:
            logger.info(
                "entity fetch missed entity=%s route=%s actor=%s reason=not_found",
                entity_id,
                route.name,
                actor_id,
            )
        return entity

    def _not_found(self, route: Route) -> Outcome:
        self._notifier.show_modal("Not Found", "Graduation not found.")
        return Outcome(
            route,
            OutcomeKind.DENIED,
            reason=AccessReason.NOT_FOUND,
            error=NotFound(f"No graduation matches {route.grad_id!r}"),
        )

    def _recover(self, route: Route) -> Outcome:
        try:
            self._coordinator.leave_entity_edit_session()
        except Exception:
            logger.exception("teardown failed while recovering from %s", route.raw_fragment)
        self._notifier.show_modal("Error", "An error occurred while loading the page.")
        self._navigate(self._config.default_fragment)
        return Outcome(route, OutcomeKind.ERROR, redirect_to=self._config.default_fragment)
