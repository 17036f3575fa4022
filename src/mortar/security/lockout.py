"""Password gate with progressive lockout.

Each password-protected entity gets one ``PasswordGate`` per visitor
session. The gate is an explicit state machine::

    UNVERIFIED --begin_prompt--> PROMPTING --submit--> VERIFYING
    VERIFYING --valid--> VERIFIED
    VERIFYING --invalid--> PROMPTING            (attempt_count += 1)
    VERIFYING --invalid, attempt_count >= 5--> LOCKED_OUT
    VERIFYING --transport error / timeout--> COOLDOWN --2s--> PROMPTING
    LOCKED_OUT --lockout elapsed--> PROMPTING   (attempt_count kept)

Lockout lasts ``min(300, 10 * 2 ** (attempt_count - 5))`` seconds with the
default ``LockoutConfig``. Only a successful verification resets the
attempt count; nothing the visitor does shortens a lockout.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from time import time
from typing import Any, TypeAlias

import anyio

from mortar.config import RouterConfig
from mortar.errors import (
    TooManyAttempts,
    TransportError,
    VerificationInProgress,
    VerificationTimeout,
)
from mortar.protocols import PasswordVerifier
from mortar.security import audit

logger = logging.getLogger("mortar.gate")

Clock: TypeAlias = Callable[[], float]
Sleep: TypeAlias = Callable[[float], Awaitable[None]]


class GateStatus(StrEnum):
    UNVERIFIED = "unverified"
    PROMPTING = "prompting"
    VERIFYING = "verifying"
    COOLDOWN = "cooldown"
    VERIFIED = "verified"
    LOCKED_OUT = "locked_out"


class SubmitResult(StrEnum):
    VERIFIED = "verified"
    REJECTED = "rejected"
    LOCKED_OUT = "locked_out"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True, slots=True)
class GateSnapshot:
    """Read-only view of a gate, handed to prompts and renderers."""

    entity_id: str
    status: GateStatus
    attempt_count: int
    lockout_ends_at: float | None
    retry_after: int

    @property
    def verified(self) -> bool:
        return self.status is GateStatus.VERIFIED


class PasswordGate:
    """Verification state for one protected entity."""

    __slots__ = (
        "_attempt_count",
        "_clock",
        "_config",
        "_in_flight",
        "_lockout_ends_at",
        "_sleep",
        "_status",
        "_verifier",
        "entity_id",
    )

    def __init__(
        self,
        entity_id: str,
        verifier: PasswordVerifier,
        *,
        config: RouterConfig | None = None,
        clock: Clock = time,
        sleep: Sleep = anyio.sleep,
    ) -> None:
        self.entity_id = entity_id
        self._verifier = verifier
        self._config = config or RouterConfig()
        self._clock = clock
        self._sleep = sleep
        self._status = GateStatus.UNVERIFIED
        self._attempt_count = 0
        self._lockout_ends_at: float | None = None
        self._in_flight: anyio.Event | None = None

    # -- State ---------------------------------------------------------------

    def _refresh(self) -> None:
        if (
            self._status is GateStatus.LOCKED_OUT
            and self._lockout_ends_at is not None
            and self._clock() >= self._lockout_ends_at
        ):
            self._status = GateStatus.PROMPTING
            self._lockout_ends_at = None
            logger.info(
                "lockout elapsed entity=%s attempts=%d", self.entity_id, self._attempt_count
            )

    @property
    def status(self) -> GateStatus:
        self._refresh()
        return self._status

    @property
    def verified(self) -> bool:
        return self._status is GateStatus.VERIFIED

    @property
    def attempt_count(self) -> int:
        return self._attempt_count

    @property
    def lockout_ends_at(self) -> float | None:
        self._refresh()
        return self._lockout_ends_at

    def retry_after(self) -> int:
        """Whole seconds until the lockout ends (at least 1 while locked)."""
        ends_at = self.lockout_ends_at
        if ends_at is None:
            return 0
        return max(1, int(ends_at - self._clock() + 0.999))

    def snapshot(self) -> GateSnapshot:
        return GateSnapshot(
            entity_id=self.entity_id,
            status=self.status,
            attempt_count=self._attempt_count,
            lockout_ends_at=self._lockout_ends_at,
            retry_after=self.retry_after(),
        )

    # -- Events --------------------------------------------------------------

    def begin_prompt(self) -> GateSnapshot:
        """Show the prompt for the first time in this session."""
        if self._status is GateStatus.UNVERIFIED:
            self._status = GateStatus.PROMPTING
        return self.snapshot()

    def lockout_expired(self) -> GateSnapshot:
        """Timer event. Early calls leave the lockout in place."""
        self._refresh()
        return self.snapshot()

    async def wait_out_lockout(self) -> GateSnapshot:
        """Sleep until the current lockout elapses, then fire the timer event."""
        ends_at = self.lockout_ends_at
        if ends_at is not None:
            await self._sleep(max(0.0, ends_at - self._clock()))
        return self.lockout_expired()

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    async def wait_for_verification(self) -> GateSnapshot:
        """Block until the in-flight submit, if any, has settled."""
        if self._in_flight is not None:
            await self._in_flight.wait()
        return self.snapshot()

    async def submit(self, password: str) -> SubmitResult:
        """Verify a candidate password.

        Raises ``VerificationInProgress`` if another submit is in flight and
        ``TooManyAttempts`` while locked out.
        """
        self._refresh()
        if self._in_flight is not None:
            raise VerificationInProgress()
        if self._status is GateStatus.VERIFIED:
            return SubmitResult.VERIFIED
        if self._status is GateStatus.LOCKED_OUT:
            raise TooManyAttempts(self.retry_after())

        self._in_flight = anyio.Event()
        self._status = GateStatus.VERIFYING
        try:
            try:
                is_valid = await self._verify(password)
            except TransportError as exc:
                await self._cool_down(exc)
                return SubmitResult.TRANSPORT_ERROR
            if is_valid:
                return self._record_success()
            return self._record_failure()
        finally:
            done, self._in_flight = self._in_flight, None
            done.set()
            if self._status in (GateStatus.VERIFYING, GateStatus.COOLDOWN):
                # Cancelled mid-flight; the attempt never completed.
                self._status = GateStatus.PROMPTING

    # -- Internals -----------------------------------------------------------

    async def _verify(self, password: str) -> bool:
        timeout = self._config.verification_timeout_seconds
        try:
            with anyio.fail_after(timeout):
                return await self._verifier.verify(self.entity_id, password)
        except TimeoutError as exc:
            raise VerificationTimeout(timeout, entity_id=self.entity_id) from exc

    async def _cool_down(self, exc: TransportError) -> None:
        logger.warning(
            "password verification unavailable entity=%s error=%s", self.entity_id, exc
        )
        audit.emit_security_event(
            audit.GATE_TRANSPORT_ERROR,
            entity_id=self.entity_id,
            details={"operation": exc.operation, "detail": exc.detail},
        )
        self._status = GateStatus.COOLDOWN
        await self._sleep(self._config.transport_cooldown_seconds)
        self._status = GateStatus.PROMPTING

    def _record_success(self) -> SubmitResult:
        self._status = GateStatus.VERIFIED
        self._attempt_count = 0
        self._lockout_ends_at = None
        logger.info("password verified entity=%s", self.entity_id)
        audit.emit_security_event(audit.GATE_VERIFY_SUCCESS, entity_id=self.entity_id)
        return SubmitResult.VERIFIED

    def _record_failure(self) -> SubmitResult:
        self._attempt_count += 1
        lock_seconds = self._config.lockout.lock_seconds(self._attempt_count)
        details = {"attempt_count": self._attempt_count}
        if lock_seconds:
            self._status = GateStatus.LOCKED_OUT
            self._lockout_ends_at = self._clock() + lock_seconds
            logger.warning(
                "password lockout entity=%s attempts=%d seconds=%d",
                self.entity_id,
                self._attempt_count,
                lock_seconds,
            )
            audit.emit_security_event(
                audit.GATE_LOCKOUT,
                entity_id=self.entity_id,
                details={**details, "lock_seconds": lock_seconds},
            )
            return SubmitResult.LOCKED_OUT

        self._status = GateStatus.PROMPTING
        logger.info("password rejected entity=%s attempts=%d", self.entity_id, self._attempt_count)
        audit.emit_security_event(
            audit.GATE_VERIFY_FAILURE, entity_id=self.entity_id, details=details
        )
        return SubmitResult.REJECTED

    # -- Persistence ---------------------------------------------------------

    def export_state(self) -> dict[str, Any]:
        self._refresh()
        return {
            "verified": self.verified,
            "attempt_count": self._attempt_count,
            "lockout_ends_at": self._lockout_ends_at,
        }

    def restore_state(self, state: Mapping[str, Any]) -> None:
        """Load state exported by ``export_state``. In-flight state is never restored."""
        attempt_count = int(state.get("attempt_count", 0))
        lockout_ends_at = state.get("lockout_ends_at")
        self._attempt_count = max(0, attempt_count)
        if state.get("verified"):
            self._status = GateStatus.VERIFIED
            self._attempt_count = 0
            self._lockout_ends_at = None
        elif lockout_ends_at is not None:
            self._status = GateStatus.LOCKED_OUT
            self._lockout_ends_at = float(lockout_ends_at)
            self._refresh()
        elif self._attempt_count:
            self._status = GateStatus.PROMPTING


class PasswordGates:
    """Per-entity gate registry for one visitor session.

    Passed explicitly to the public router so the state machine stays
    testable in isolation.
    """

    __slots__ = ("_clock", "_config", "_gates", "_sleep", "_verifier")

    def __init__(
        self,
        verifier: PasswordVerifier,
        *,
        config: RouterConfig | None = None,
        clock: Clock = time,
        sleep: Sleep = anyio.sleep,
    ) -> None:
        self._verifier = verifier
        self._config = config or RouterConfig()
        self._clock = clock
        self._sleep = sleep
        self._gates: dict[str, PasswordGate] = {}

    def gate_for(self, entity_id: str) -> PasswordGate:
        gate = self._gates.get(entity_id)
        if gate is None:
            gate = PasswordGate(
                entity_id,
                self._verifier,
                config=self._config,
                clock=self._clock,
                sleep=self._sleep,
            )
            self._gates[entity_id] = gate
        return gate

    def is_verified(self, entity_id: str) -> bool:
        gate = self._gates.get(entity_id)
        return gate is not None and gate.verified

    def export(self) -> dict[str, dict[str, Any]]:
        """Serializable state for every gate that has something to remember."""
        result: dict[str, dict[str, Any]] = {}
        for entity_id, gate in self._gates.items():
            state = gate.export_state()
            if state["verified"] or state["attempt_count"]:
                result[entity_id] = state
        return result

    def restore(self, data: Mapping[str, Mapping[str, Any]]) -> None:
        for entity_id, state in data.items():
            self.gate_for(entity_id).restore_state(state)
