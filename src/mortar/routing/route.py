"""Route, RouteName, and per-route metadata."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType


class RouteName(StrEnum):
    """Every navigation target the application knows about."""

    DASHBOARD = "DASHBOARD"
    EDIT_GRADUATION = "EDIT_GRADUATION"
    NEW_GRADUATION = "NEW_GRADUATION"
    PUBLIC_VIEW = "PUBLIC_VIEW"
    UPLOAD_PORTAL = "UPLOAD_PORTAL"
    DIRECT_UPLOAD = "DIRECT_UPLOAD"
    LOGIN = "LOGIN"


@dataclass(frozen=True, slots=True)
class Route:
    """A classified navigation fragment.

    Created per navigation event, discarded after dispatch. ``params`` is
    wrapped read-only so a route cannot be mutated by a handler.
    """

    name: RouteName
    params: Mapping[str, str] = field(default_factory=dict)
    raw_fragment: str = "#/dashboard"

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @property
    def grad_id(self) -> str | None:
        return self.params.get("gradId")

    @property
    def link_id(self) -> str | None:
        return self.params.get("linkId")


@dataclass(frozen=True, slots=True)
class RouteMetadata:
    """Navigation context for a route name."""

    title: str
    requires_auth: bool
    is_public: bool


ROUTE_METADATA: Mapping[RouteName, RouteMetadata] = MappingProxyType(
    {
        RouteName.DASHBOARD: RouteMetadata("Your Graduations", requires_auth=True, is_public=False),
        RouteName.EDIT_GRADUATION: RouteMetadata(
            "Edit Graduation", requires_auth=True, is_public=False
        ),
        RouteName.NEW_GRADUATION: RouteMetadata(
            "Create New Graduation", requires_auth=True, is_public=False
        ),
        RouteName.PUBLIC_VIEW: RouteMetadata(
            "Graduation View", requires_auth=False, is_public=True
        ),
        RouteName.UPLOAD_PORTAL: RouteMetadata(
            "Upload Portal", requires_auth=False, is_public=True
        ),
        RouteName.DIRECT_UPLOAD: RouteMetadata(
            "Upload Profile", requires_auth=False, is_public=True
        ),
        RouteName.LOGIN: RouteMetadata("Sign In", requires_auth=False, is_public=False),
    }
)
