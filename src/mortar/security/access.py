"""Access predicates — ownership, locking, link tokens, password gating.

Pure functions over entity data. Each returns an ``AccessDecision`` that is
computed fresh per navigation or realtime push and never stored.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from mortar.models import GraduationData, StudentRecord
from mortar.routing.route import RouteName


class AccessReason(StrEnum):
    OWNER_ONLY = "owner_only"
    REMOVED = "removed"
    LOCKED = "locked"
    NOT_FOUND = "not_found"
    INVALID_LINK = "invalid_link"
    PASSWORD_REQUIRED = "password_required"


@dataclass(frozen=True, slots=True)
class AccessDecision:
    """Outcome of an access check.

    ``detail`` narrows the reason where observability needs it, e.g. which
    upload route hit a lock.
    """

    allowed: bool
    reason: AccessReason | None = None
    detail: str = ""

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: AccessReason, detail: str = "") -> "AccessDecision":
        return cls(allowed=False, reason=reason, detail=detail)


ALLOWED = AccessDecision.allow()

_LOCK_DETAIL: dict[RouteName, str] = {
    RouteName.UPLOAD_PORTAL: "upload_portal",
    RouteName.DIRECT_UPLOAD: "direct_upload",
}


def is_editor(entity: GraduationData, actor_id: str | None) -> bool:
    """True if *actor_id* is listed in ``editors`` or is the legacy owner."""
    if not actor_id:
        return False
    return actor_id in entity.editors or entity.owner_uid == actor_id


def check_edit_access(
    entity: GraduationData | None,
    actor_id: str | None,
    *,
    previously_authorized: bool = False,
) -> AccessDecision:
    """Authorize an actor on the edit route.

    A denial after the actor was already authorized in the same session is
    reported as ``REMOVED`` rather than ``OWNER_ONLY``.
    """
    if entity is None:
        return AccessDecision.deny(AccessReason.NOT_FOUND)
    if is_editor(entity, actor_id):
        return ALLOWED
    if previously_authorized:
        return AccessDecision.deny(AccessReason.REMOVED)
    return AccessDecision.deny(AccessReason.OWNER_ONLY)


def check_upload_lock(entity: GraduationData, route_name: RouteName) -> AccessDecision:
    """Reject upload-class routes on a locked entity, whoever is asking."""
    if not entity.is_locked:
        return ALLOWED
    return AccessDecision.deny(AccessReason.LOCKED, _LOCK_DETAIL.get(route_name, route_name.value))


def find_student_by_link(
    students: Iterable[StudentRecord], link_token: str | None
) -> tuple[AccessDecision, StudentRecord | None]:
    """Find the student whose ``unique_link_token`` equals *link_token* exactly."""
    if link_token:
        for student in students:
            if student.unique_link_token == link_token:
                return ALLOWED, student
    return AccessDecision.deny(AccessReason.INVALID_LINK), None


def check_password(entity: GraduationData, verified: bool) -> AccessDecision:
    """Require a verified password on protected entities."""
    if entity.is_password_protected and not verified:
        return AccessDecision.deny(AccessReason.PASSWORD_REQUIRED)
    return ALLOWED
