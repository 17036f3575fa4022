"""Tests for the password gate state machine and progressive lockout."""

import anyio
import pytest

from mortar.config import LockoutConfig, RouterConfig
from mortar.errors import TooManyAttempts, VerificationInProgress
from mortar.security.audit import SecurityEvent, set_security_event_sink
from mortar.security.lockout import GateStatus, PasswordGate, PasswordGates, SubmitResult
from mortar.testing import FakeClock, StaticVerifier


def _gate(verifier: StaticVerifier | None = None, clock: FakeClock | None = None) -> PasswordGate:
    clock = clock or FakeClock()
    return PasswordGate(
        "g1",
        verifier or StaticVerifier("secret"),
        config=RouterConfig(),
        clock=clock,
        sleep=clock.sleep,
    )


# ---------------------------------------------------------------------------
# LockoutConfig
# ---------------------------------------------------------------------------


class TestLockSeconds:
    def test_no_lock_below_threshold(self) -> None:
        config = LockoutConfig()
        assert [config.lock_seconds(n) for n in range(1, 5)] == [0, 0, 0, 0]

    def test_doubles_from_threshold_and_caps(self) -> None:
        config = LockoutConfig()
        assert [config.lock_seconds(n) for n in range(5, 12)] == [10, 20, 40, 80, 160, 300, 300]


# ---------------------------------------------------------------------------
# PasswordGate
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_starts_unverified_and_prompts() -> None:
    gate = _gate()
    assert gate.status is GateStatus.UNVERIFIED
    snapshot = gate.begin_prompt()
    assert snapshot.status is GateStatus.PROMPTING
    assert snapshot.attempt_count == 0


@pytest.mark.anyio
async def test_correct_password_verifies_and_resets() -> None:
    gate = _gate()
    gate.begin_prompt()
    assert await gate.submit("wrong") is SubmitResult.REJECTED
    assert gate.attempt_count == 1
    assert await gate.submit("secret") is SubmitResult.VERIFIED
    assert gate.verified
    assert gate.attempt_count == 0
    assert gate.snapshot().verified


@pytest.mark.anyio
async def test_four_failures_never_lock() -> None:
    gate = _gate()
    gate.begin_prompt()
    for _ in range(4):
        assert await gate.submit("wrong") is SubmitResult.REJECTED
    assert gate.status is GateStatus.PROMPTING
    assert gate.lockout_ends_at is None


@pytest.mark.anyio
async def test_progressive_lockout() -> None:
    clock = FakeClock()
    gate = _gate(clock=clock)
    gate.begin_prompt()
    for _ in range(4):
        await gate.submit("wrong")

    assert await gate.submit("wrong") is SubmitResult.LOCKED_OUT
    assert gate.status is GateStatus.LOCKED_OUT
    assert gate.lockout_ends_at == clock.now + 10
    assert gate.retry_after() == 10

    clock.advance(10)
    assert gate.lockout_expired().status is GateStatus.PROMPTING
    assert gate.attempt_count == 5

    assert await gate.submit("wrong") is SubmitResult.LOCKED_OUT
    assert gate.lockout_ends_at == clock.now + 20


@pytest.mark.anyio
async def test_submit_while_locked_raises() -> None:
    clock = FakeClock()
    gate = _gate(clock=clock)
    gate.begin_prompt()
    for _ in range(5):
        await gate.submit("wrong")

    clock.advance(3)
    with pytest.raises(TooManyAttempts) as exc_info:
        await gate.submit("secret")
    assert exc_info.value.retry_after == 7
    assert gate.attempt_count == 5


@pytest.mark.anyio
async def test_early_timer_keeps_lockout() -> None:
    clock = FakeClock()
    gate = _gate(clock=clock)
    gate.begin_prompt()
    for _ in range(5):
        await gate.submit("wrong")
    clock.advance(9)
    assert gate.lockout_expired().status is GateStatus.LOCKED_OUT


@pytest.mark.anyio
async def test_wait_out_lockout_sleeps_remaining_time() -> None:
    clock = FakeClock()
    gate = _gate(clock=clock)
    gate.begin_prompt()
    for _ in range(5):
        await gate.submit("wrong")
    clock.advance(4)
    snapshot = await gate.wait_out_lockout()
    assert clock.sleeps == [6]
    assert snapshot.status is GateStatus.PROMPTING


@pytest.mark.anyio
async def test_transport_error_keeps_attempt_count_and_cools_down() -> None:
    clock = FakeClock()
    verifier = StaticVerifier("secret", transport_failures=1)
    gate = _gate(verifier, clock)
    gate.begin_prompt()
    await gate.submit("wrong")

    assert await gate.submit("secret") is SubmitResult.TRANSPORT_ERROR
    assert gate.attempt_count == 1
    assert clock.sleeps == [2.0]
    assert gate.status is GateStatus.PROMPTING

    assert await gate.submit("secret") is SubmitResult.VERIFIED


@pytest.mark.anyio
async def test_timeout_is_transport_error() -> None:
    class _Hanging:
        async def verify(self, entity_id: str, candidate: str) -> bool:
            await anyio.sleep(10)
            return True

    gate = PasswordGate(
        "g1",
        _Hanging(),
        config=RouterConfig(verification_timeout_seconds=0.01, transport_cooldown_seconds=0),
    )
    gate.begin_prompt()
    assert await gate.submit("secret") is SubmitResult.TRANSPORT_ERROR
    assert gate.attempt_count == 0
    assert gate.status is GateStatus.PROMPTING


@pytest.mark.anyio
async def test_concurrent_submit_rejected() -> None:
    started = anyio.Event()
    release = anyio.Event()

    class _Slow:
        async def verify(self, entity_id: str, candidate: str) -> bool:
            started.set()
            await release.wait()
            return True

    gate = PasswordGate("g1", _Slow())
    gate.begin_prompt()
    results: list[SubmitResult] = []

    async def first() -> None:
        results.append(await gate.submit("secret"))

    async with anyio.create_task_group() as tg:
        tg.start_soon(first)
        await started.wait()
        assert gate.status is GateStatus.VERIFYING
        with pytest.raises(VerificationInProgress):
            await gate.submit("secret")
        release.set()

    assert results == [SubmitResult.VERIFIED]


@pytest.mark.anyio
async def test_wait_for_verification_returns_settled_snapshot() -> None:
    started = anyio.Event()
    release = anyio.Event()

    class _Slow:
        async def verify(self, entity_id: str, candidate: str) -> bool:
            started.set()
            await release.wait()
            return True

    gate = PasswordGate("g1", _Slow())
    gate.begin_prompt()
    snapshots = []

    async def waiter() -> None:
        snapshots.append(await gate.wait_for_verification())

    async with anyio.create_task_group() as tg:
        tg.start_soon(gate.submit, "secret")
        await started.wait()
        assert gate.in_flight
        tg.start_soon(waiter)
        await anyio.sleep(0)
        assert snapshots == []
        release.set()

    assert not gate.in_flight
    assert snapshots[0].verified


@pytest.mark.anyio
async def test_wait_for_verification_without_submit_is_immediate() -> None:
    gate = _gate()
    snapshot = await gate.wait_for_verification()
    assert snapshot.status is GateStatus.UNVERIFIED


@pytest.mark.anyio
async def test_gate_events_reach_sink() -> None:
    events: list[SecurityEvent] = []
    set_security_event_sink(events.append)
    try:
        gate = _gate()
        gate.begin_prompt()
        for _ in range(5):
            await gate.submit("wrong")
    finally:
        set_security_event_sink(None)

    names = [event.name for event in events]
    assert names.count("gate.verify.failure") == 4
    assert names[-1] == "gate.lockout"
    assert events[-1].details["lock_seconds"] == 10


# ---------------------------------------------------------------------------
# PasswordGates
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_gates_are_per_entity() -> None:
    gates = PasswordGates(StaticVerifier("secret"))
    assert gates.gate_for("g1") is gates.gate_for("g1")
    await gates.gate_for("g1").submit("secret")
    assert gates.is_verified("g1")
    assert not gates.is_verified("g2")


@pytest.mark.anyio
async def test_export_and_restore_keep_lockout() -> None:
    clock = FakeClock()
    gates = PasswordGates(StaticVerifier("secret"), clock=clock, sleep=clock.sleep)
    for _ in range(5):
        await gates.gate_for("g1").submit("wrong")
    await gates.gate_for("g2").submit("secret")

    state = gates.export()
    assert state["g2"]["verified"] is True
    assert state["g1"]["attempt_count"] == 5

    restored = PasswordGates(StaticVerifier("secret"), clock=clock, sleep=clock.sleep)
    restored.restore(state)
    assert restored.is_verified("g2")
    assert restored.gate_for("g1").status is GateStatus.LOCKED_OUT
    assert restored.gate_for("g1").retry_after() == 10
