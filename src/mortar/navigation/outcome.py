"""Dispatch outcome returned by both routers."""

from dataclasses import dataclass
from enum import StrEnum

from mortar.errors import AccessError
from mortar.routing.route import Route
from mortar.security.access import AccessReason


class OutcomeKind(StrEnum):
    RENDERED = "rendered"
    SUBSCRIBED = "subscribed"
    REDIRECTED = "redirected"
    DENIED = "denied"
    LOGIN = "login"
    STALE = "stale"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Outcome:
    """What a dispatch (or a realtime push on the edit route) ended in.

    ``STALE`` means a later navigation overtook this one and its results
    were discarded without rendering.
    """

    route: Route
    kind: OutcomeKind
    reason: AccessReason | None = None
    entity_id: str | None = None
    redirect_to: str | None = None
    error: AccessError | None = None
