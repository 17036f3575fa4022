"""Navigation — authenticated and public routers plus the host that picks one."""

from mortar.navigation.authenticated import AuthenticatedRouter
from mortar.navigation.host import NavigationHost
from mortar.navigation.outcome import Outcome, OutcomeKind
from mortar.navigation.public import PublicRouter

__all__ = ["AuthenticatedRouter", "NavigationHost", "Outcome", "OutcomeKind", "PublicRouter"]
