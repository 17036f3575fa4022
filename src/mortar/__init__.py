"""Mortar — fragment routing and edit-session lifecycle for the graduation app.

Classifies URL fragments, resolves slugs, gates access (editors, locks,
link tokens, passwords), and keeps exactly one realtime subscription and
presence session alive for the active edit route.

Basic usage::

    from mortar import Actor, NavigationHost

    host = NavigationHost.build(
        repository=repo,
        presence=presence,
        renderer=renderer,
        notifier=notifier,
        navigate=set_hash,
    )
    host.sign_in(Actor(uid="u1"))
    await host.handle("#/edit/lincoln-high-school-2024-abc12345")
"""

__version__ = "0.1.0.dev0"
__all__ = [
    "AccessDecision",
    "AccessReason",
    "Actor",
    "AuthenticatedRouter",
    "ConfigurationError",
    "Forbidden",
    "GraduationData",
    "InvalidLink",
    "Locked",
    "LockoutConfig",
    "MortarError",
    "NavigationHost",
    "NotFound",
    "Outcome",
    "OutcomeKind",
    "PasswordGates",
    "PublicRouter",
    "Route",
    "RouteName",
    "RouterConfig",
    "StudentRecord",
    "SubscriptionCoordinator",
    "TooManyAttempts",
    "TransportError",
    "Unauthorized",
    "VerificationInProgress",
    "VerificationTimeout",
    "generate",
    "parse",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import mortar`` fast while providing a clean top-level API.
    """
    if name in ("RouterConfig", "LockoutConfig"):
        from mortar import config as _config

        return getattr(_config, name)

    if name in ("Actor", "GraduationData", "StudentRecord"):
        from mortar import models as _models

        return getattr(_models, name)

    if name in ("Route", "RouteName"):
        from mortar.routing import route as _route

        return getattr(_route, name)

    if name in ("parse", "generate"):
        from mortar.routing import codec as _codec

        return getattr(_codec, name)

    if name in ("AccessDecision", "AccessReason"):
        from mortar.security import access as _access

        return getattr(_access, name)

    if name == "PasswordGates":
        from mortar.security.lockout import PasswordGates

        return PasswordGates

    if name == "SubscriptionCoordinator":
        from mortar.realtime.coordinator import SubscriptionCoordinator

        return SubscriptionCoordinator

    if name in ("AuthenticatedRouter", "NavigationHost", "Outcome", "OutcomeKind", "PublicRouter"):
        from mortar import navigation as _navigation

        return getattr(_navigation, name)

    if name in (
        "ConfigurationError",
        "Forbidden",
        "InvalidLink",
        "Locked",
        "MortarError",
        "NotFound",
        "TooManyAttempts",
        "TransportError",
        "Unauthorized",
        "VerificationInProgress",
        "VerificationTimeout",
    ):
        from mortar import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
