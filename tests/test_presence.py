"""Tests for the in-memory presence service."""

from mortar.config import RouterConfig
from mortar.realtime import InMemoryPresence
from mortar.testing import FakeClock


def test_others_exclude_self() -> None:
    presence = InMemoryPresence()
    seen: dict[str, list[str]] = {}
    presence.start_tracking("g1", "u1", lambda others: seen.__setitem__("u1", others))
    presence.start_tracking("g1", "u2", lambda others: seen.__setitem__("u2", others))
    assert seen == {"u1": ["u2"], "u2": ["u1"]}
    assert presence.other_active_editors("g1", "u1") == ["u2"]


def test_stale_entries_ignored_until_heartbeat() -> None:
    clock = FakeClock()
    presence = InMemoryPresence(stale_seconds=300, clock=clock)
    presence.start_tracking("g1", "u1")
    presence.start_tracking("g1", "u2")
    clock.advance(200)
    presence.heartbeat("g1", "u2")
    clock.advance(150)
    assert presence.active_editors("g1") == ["u2"]


def test_last_stop_clears_entity_state() -> None:
    clock = FakeClock()
    presence = InMemoryPresence(clock=clock)
    presence.start_tracking("g1", "u1")
    presence.set_pending_changes("g1", True)
    presence.record_save("g1")
    assert presence.last_save("g1") == clock.now
    presence.stop_tracking("g1", "u1")
    assert presence.active_editors("g1") == []
    assert presence.last_save("g1") is None
    assert not presence.has_pending_local_changes("g1")


def test_stop_without_start_is_harmless() -> None:
    presence = InMemoryPresence()
    presence.stop_tracking("g1", "ghost")
    presence.stop_tracking("", "ghost")
    presence.heartbeat("g1", "ghost")
    assert presence.active_editors("g1") == []


def test_from_config_uses_stale_window() -> None:
    clock = FakeClock()
    presence = InMemoryPresence.from_config(RouterConfig(presence_stale_seconds=30), clock=clock)
    presence.start_tracking("g1", "u1")
    clock.advance(31)
    assert presence.active_editors("g1") == []
