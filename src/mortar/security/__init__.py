"""Security utilities — access predicates and the password gate.

Access predicates::

    from mortar.security import check_edit_access

    decision = check_edit_access(entity, actor.uid)
    if not decision.allowed:
        ...

Password gate::

    from mortar.security import PasswordGates, RemotePasswordVerifier

    gates = PasswordGates(RemotePasswordVerifier("/verify"))
    result = await gates.gate_for(entity_id).submit("class-of-2024")
"""

from mortar.security.access import (
    AccessDecision,
    AccessReason,
    check_edit_access,
    check_password,
    check_upload_lock,
    find_student_by_link,
    is_editor,
)
from mortar.security.audit import SecurityEvent, emit_security_event, set_security_event_sink
from mortar.security.lockout import (
    GateSnapshot,
    GateStatus,
    PasswordGate,
    PasswordGates,
    SubmitResult,
)
from mortar.security.passwords import hash_password, verify_password
from mortar.security.session_store import GateSessionStore
from mortar.security.verifier import LocalPasswordVerifier, RemotePasswordVerifier

__all__ = [
    "AccessDecision",
    "AccessReason",
    "GateSessionStore",
    "GateSnapshot",
    "GateStatus",
    "LocalPasswordVerifier",
    "PasswordGate",
    "PasswordGates",
    "RemotePasswordVerifier",
    "SecurityEvent",
    "SubmitResult",
    "check_edit_access",
    "check_password",
    "check_upload_lock",
    "emit_security_event",
    "find_student_by_link",
    "hash_password",
    "is_editor",
    "set_security_event_sink",
    "verify_password",
]
