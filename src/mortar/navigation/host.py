"""Navigation host — owns the actor and picks the router per fragment.

Wire it to the fragment-change event::

    host = NavigationHost.build(
        repository=repo,
        presence=presence,
        renderer=renderer,
        notifier=notifier,
        navigate=set_hash,
        prompt=ask_password,
    )
    host.sign_in(Actor(uid="u1"))
    await host.handle("#/edit/g1")
"""

from mortar.config import RouterConfig
from mortar.models import Actor
from mortar.navigation.authenticated import AuthenticatedRouter
from mortar.navigation.outcome import Outcome
from mortar.navigation.public import PublicRouter
from mortar.protocols import (
    EntityRepository,
    Navigate,
    Notifier,
    PasswordPrompt,
    PasswordVerifier,
    PresenceService,
    Renderer,
)
from mortar.realtime.coordinator import SubscriptionCoordinator
from mortar.routing.codec import LOGIN_FRAGMENT, is_public_fragment
from mortar.routing.resolver import IdentifierResolver
from mortar.security.lockout import PasswordGates
from mortar.security.verifier import RemotePasswordVerifier


class NavigationHost:
    """Route each fragment to the public or authenticated router."""

    __slots__ = ("_coordinator", "actor", "authenticated", "public")

    def __init__(
        self,
        *,
        authenticated: AuthenticatedRouter,
        public: PublicRouter,
        coordinator: SubscriptionCoordinator,
        actor: Actor | None = None,
    ) -> None:
        self.authenticated = authenticated
        self.public = public
        self._coordinator = coordinator
        self.actor = actor

    @classmethod
    def build(
        cls,
        *,
        repository: EntityRepository,
        presence: PresenceService,
        renderer: Renderer,
        notifier: Notifier,
        navigate: Navigate,
        prompt: PasswordPrompt | None = None,
        verifier: PasswordVerifier | None = None,
        gates: PasswordGates | None = None,
        config: RouterConfig | None = None,
        actor: Actor | None = None,
    ) -> "NavigationHost":
        """Wire both routers around one coordinator and one resolver."""
        config = config or RouterConfig()
        coordinator = SubscriptionCoordinator(repository, presence)
        resolver = IdentifierResolver(repository)
        if gates is None:
            gates = PasswordGates(
                verifier or RemotePasswordVerifier(config.verify_url), config=config
            )
        authenticated = AuthenticatedRouter(
            repository=repository,
            coordinator=coordinator,
            renderer=renderer,
            notifier=notifier,
            navigate=navigate,
            resolver=resolver,
            config=config,
        )
        public = PublicRouter(
            repository=repository,
            coordinator=coordinator,
            renderer=renderer,
            notifier=notifier,
            navigate=navigate,
            prompt=prompt,
            gates=gates,
            authenticated=authenticated,
            resolver=resolver,
            config=config,
        )
        return cls(
            authenticated=authenticated, public=public, coordinator=coordinator, actor=actor
        )

    @property
    def coordinator(self) -> SubscriptionCoordinator:
        return self._coordinator

    def sign_in(self, actor: Actor) -> None:
        self.actor = actor

    def sign_out(self) -> None:
        """Drop the actor; dispatches still awaiting I/O come back stale."""
        self.authenticated.invalidate()
        self.public.invalidate()
        self._coordinator.leave_entity_edit_session()
        self.actor = None

    async def handle(self, fragment: str | None) -> Outcome:
        if is_public_fragment(fragment) or fragment == LOGIN_FRAGMENT:
            return await self.public.dispatch(fragment, self.actor)
        return await self.authenticated.dispatch(fragment, self.actor)
