"""Security audit events for the password gate and access checks.

Routers and gates report denials, lockouts, and revocations here. Nothing
is delivered unless the application installs a sink::

    set_security_event_sink(lambda event: siem.send(event.name, event.details))

Event names are dotted, with the first segment naming the area:
``gate.*`` (password verification), ``access.*`` (edit membership), and
``upload.*`` (submission portals).
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from time import time
from typing import Any, TypeAlias

GATE_VERIFY_SUCCESS = "gate.verify.success"
GATE_VERIFY_FAILURE = "gate.verify.failure"
GATE_LOCKOUT = "gate.lockout"
GATE_TRANSPORT_ERROR = "gate.verify.transport_error"
ACCESS_REVOKED = "access.revoked"
UPLOAD_LOCKED = "upload.locked"
UPLOAD_INVALID_LINK = "upload.invalid_link"


@dataclass(frozen=True, slots=True)
class SecurityEvent:
    """One audit record. ``fragment`` is the navigation that triggered it, if any."""

    name: str
    timestamp: float = field(default_factory=time)
    fragment: str | None = None
    actor_id: str | None = None
    entity_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def area(self) -> str:
        return self.name.partition(".")[0]


SecurityEventSink: TypeAlias = Callable[[SecurityEvent], None]


_sink_guard = threading.Lock()
_sink: SecurityEventSink | None = None


def set_security_event_sink(sink: SecurityEventSink | None) -> None:
    """Install the process-wide sink, or remove it with ``None``."""
    global _sink
    with _sink_guard:
        _sink = sink


def emit_security_event(
    name: str,
    *,
    fragment: str | None = None,
    actor_id: str | None = None,
    entity_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    """Hand an event to the sink. No-op when none is installed."""
    with _sink_guard:
        sink = _sink
    if sink is not None:
        sink(
            SecurityEvent(
                name,
                fragment=fragment,
                actor_id=actor_id,
                entity_id=entity_id,
                details=dict(details or {}),
            )
        )
